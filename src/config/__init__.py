"""Configuración del sistema de perfiles típicos de consumo"""

from .settings import *
