"""
Normalización de series de consumo

Las representaciones se calculan normalmente sobre series normalizadas para que
el clustering agrupe por forma de la curva y no por nivel de consumo.
"""

import numpy as np
import pandas as pd
from typing import Tuple, Union

ArrayLike = Union[np.ndarray, pd.Series, list]


def _as_float_array(x: ArrayLike) -> np.ndarray:
    x = np.asarray(x, dtype=float)
    if x.ndim != 1:
        raise ValueError(f"Se esperaba una serie 1-D, se recibió forma {x.shape}")
    if x.size == 0:
        raise ValueError("La serie está vacía")
    return x


def norm_z_params(x: ArrayLike) -> Tuple[np.ndarray, float, float]:
    """
    Normalización z-score retornando también los parámetros

    Args:
        x: Serie de consumo

    Returns:
        Tuple con (serie normalizada, media, desviación estándar muestral)
    """
    x = _as_float_array(x)
    mean = float(np.mean(x))
    sd = float(np.std(x, ddof=1)) if x.size > 1 else 0.0

    # Serie constante: no hay forma que preservar
    if sd == 0.0:
        return np.zeros_like(x), mean, sd

    return (x - mean) / sd, mean, sd


def norm_z(x: ArrayLike) -> np.ndarray:
    """Normalización z-score (media 0, desviación estándar muestral 1)"""
    return norm_z_params(x)[0]


def norm_min_max_params(x: ArrayLike) -> Tuple[np.ndarray, float, float]:
    """
    Normalización min-max al rango [0, 1] retornando también los parámetros

    Args:
        x: Serie de consumo

    Returns:
        Tuple con (serie normalizada, mínimo, máximo)
    """
    x = _as_float_array(x)
    x_min = float(np.min(x))
    x_max = float(np.max(x))

    if x_max == x_min:
        return np.zeros_like(x), x_min, x_max

    return (x - x_min) / (x_max - x_min), x_min, x_max


def norm_min_max(x: ArrayLike) -> np.ndarray:
    """Normalización min-max al rango [0, 1]"""
    return norm_min_max_params(x)[0]


def denorm_z(x: ArrayLike, mean: float, sd: float) -> np.ndarray:
    """Deshace la normalización z-score"""
    return _as_float_array(x) * sd + mean


def denorm_min_max(x: ArrayLike, x_min: float, x_max: float) -> np.ndarray:
    """Deshace la normalización min-max"""
    return _as_float_array(x) * (x_max - x_min) + x_min


NORMALIZATIONS = {
    'z': norm_z,
    'min_max': norm_min_max,
}


def get_normalization(name_or_func):
    """Resuelve una normalización por nombre ('z', 'min_max') o la retorna si es callable"""
    if callable(name_or_func):
        return name_or_func
    if name_or_func not in NORMALIZATIONS:
        raise ValueError(
            f"Normalización desconocida: {name_or_func}. Opciones: {list(NORMALIZATIONS)}"
        )
    return NORMALIZATIONS[name_or_func]
