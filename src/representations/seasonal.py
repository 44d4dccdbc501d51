"""
Perfil estacional de una serie

Cada posición de la temporada (por ejemplo cada media hora del día) se resume
con una función de agregación sobre todos los días disponibles.
"""

import numpy as np
from typing import Callable, Union

from .normalization import ArrayLike, _as_float_array

AGGREGATIONS = {
    'mean': np.mean,
    'median': np.median,
    'min': np.min,
    'max': np.max,
    'sum': np.sum,
}


def get_aggregation(func: Union[str, Callable]) -> Callable:
    """Resuelve una función de agregación por nombre o la retorna si es callable"""
    if callable(func):
        return func
    if func not in AGGREGATIONS:
        raise ValueError(f"Agregación desconocida: {func}. Opciones: {list(AGGREGATIONS)}")
    return AGGREGATIONS[func]


def repr_seas_profile(x: ArrayLike, freq: int, func: Union[str, Callable] = 'mean') -> np.ndarray:
    """
    Calcula el perfil estacional de la serie

    Args:
        x: Serie de consumo
        freq: Longitud de la temporada (48 para datos semihorarios diarios)
        func: Agregación aplicada por posición ('mean', 'median', ... o callable)

    Returns:
        Array de longitud freq
    """
    x = _as_float_array(x)
    freq = int(freq)
    if freq < 1:
        raise ValueError(f"freq debe ser positivo, se recibió {freq}")
    if x.size < freq:
        raise ValueError(f"La serie ({x.size} puntos) es más corta que la temporada ({freq})")

    agg = get_aggregation(func)
    positions = np.arange(x.size) % freq

    return np.array([agg(x[positions == pos]) for pos in range(freq)], dtype=float)
