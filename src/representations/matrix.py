"""
Cálculo de representaciones para un conjunto completo de series

Cada fila de la matriz de entrada es un consumidor; el resultado es una matriz
consumidores × features lista para el clustering.
"""

import logging
import math
from typing import Callable, Dict, Optional, Union

import numpy as np
import pandas as pd

from .dft import repr_dft
from .feaclip import FEACLIP_FEATURES, repr_feaclip
from .gam import gam_coefficient_count, repr_gam
from .normalization import get_normalization, norm_z
from .paa import repr_paa
from .seasonal import repr_seas_profile
from .windowing import repr_windowing

logger = logging.getLogger(__name__)

REPRESENTATIONS: Dict[str, Callable] = {
    'seas_profile': repr_seas_profile,
    'gam': repr_gam,
    'dft': repr_dft,
    'feaclip': repr_feaclip,
    'paa': repr_paa,
}


def get_representation(name_or_func: Union[str, Callable]) -> Callable:
    """Resuelve una representación por nombre o la retorna si es callable"""
    if callable(name_or_func):
        return name_or_func
    if name_or_func not in REPRESENTATIONS:
        raise ValueError(
            f"Representación desconocida: {name_or_func}. Opciones: {list(REPRESENTATIONS)}"
        )
    return REPRESENTATIONS[name_or_func]


def representation_length(name: str, n: int, windowing: bool = False,
                          win_size: Optional[int] = None, **args) -> int:
    """
    Longitud esperada de la representación sin calcularla

    Args:
        name: Nombre de la representación
        n: Longitud de la serie original
        windowing: Si la representación se aplica por ventanas
        win_size: Tamaño de ventana
        **args: Argumentos de la representación

    Returns:
        Número de features
    """
    if windowing:
        if not win_size or n % win_size != 0:
            raise ValueError(f"win_size={win_size} no divide la longitud {n}")
        return (n // win_size) * representation_length(name, win_size, **args)

    if name == 'seas_profile':
        return int(args['freq'])
    if name == 'gam':
        return gam_coefficient_count(args.get('freq', 48))
    if name == 'dft':
        return int(args.get('coef', 10))
    if name == 'feaclip':
        return len(FEACLIP_FEATURES)
    if name == 'paa':
        return math.ceil(n / int(args['q']))

    raise ValueError(f"Representación desconocida: {name}")


def repr_matrix(data: Union[np.ndarray, pd.DataFrame],
                func: Union[str, Callable],
                args: Optional[Dict] = None,
                normalise: bool = False,
                func_norm: Union[str, Callable] = norm_z,
                windowing: bool = False,
                win_size: Optional[int] = None) -> np.ndarray:
    """
    Calcula una representación para cada fila de la matriz

    Args:
        data: Matriz consumidores × tiempo (array o DataFrame numérico)
        func: Representación (nombre registrado o callable)
        args: Argumentos de la representación
        normalise: Si True, normaliza cada serie antes de representarla
        func_norm: Normalización ('z', 'min_max' o callable)
        windowing: Si True, aplica la representación por ventanas
        win_size: Tamaño de ventana (requerido si windowing=True)

    Returns:
        Matriz consumidores × features
    """
    matrix = np.asarray(data, dtype=float)
    if matrix.ndim != 2:
        raise ValueError(f"Se esperaba una matriz 2-D, se recibió forma {matrix.shape}")
    if np.isnan(matrix).any():
        raise ValueError("La matriz contiene valores faltantes; limpie los datos antes")
    if windowing and win_size is None:
        raise ValueError("win_size es requerido cuando windowing=True")

    representation = get_representation(func)
    normalizer = get_normalization(func_norm) if normalise else None
    args = args or {}

    rows = []
    for series in matrix:
        if normalizer is not None:
            series = normalizer(series)

        if windowing:
            rows.append(repr_windowing(series, win_size, representation, **args))
        else:
            rows.append(np.asarray(representation(series, **args), dtype=float))

    result = np.vstack(rows)
    logger.debug(f"Representación {getattr(representation, '__name__', func)}: "
                 f"{matrix.shape} -> {result.shape}")
    return result
