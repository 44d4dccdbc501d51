"""
Pipeline de Perfiles Típicos de Consumo
=======================================

Lectura, limpieza, representación, clustering y reporte de matrices de consumo
"""

from .dataset import generate_elec_load, load_elec_load
from .connectors import DataConnectorFactory, load_consumption_matrix
from .cleaning import DataQualityReport, LoadMatrixCleaner, clean_consumption_matrix
from .orchestrator import ProfileClusteringOrchestrator, MethodResult, run_profile_clustering

__all__ = [
    'generate_elec_load',
    'load_elec_load',
    'DataConnectorFactory',
    'load_consumption_matrix',
    'DataQualityReport',
    'LoadMatrixCleaner',
    'clean_consumption_matrix',
    'ProfileClusteringOrchestrator',
    'MethodResult',
    'run_profile_clustering',
]
