"""Piecewise Aggregate Approximation (PAA)"""

import numpy as np
from typing import Callable, Union

from .normalization import ArrayLike, _as_float_array
from .seasonal import get_aggregation


def repr_paa(x: ArrayLike, q: int, func: Union[str, Callable] = 'mean') -> np.ndarray:
    """
    Agrega cada bloque de q puntos consecutivos

    Si la longitud no es múltiplo de q, el último bloque incompleto también se agrega.

    Args:
        x: Serie de consumo
        q: Tamaño del bloque
        func: Agregación ('mean', 'median', ... o callable)

    Returns:
        Array de longitud ceil(len(x) / q)
    """
    x = _as_float_array(x)
    q = int(q)
    if q < 1 or q > x.size:
        raise ValueError(f"q debe estar entre 1 y {x.size}, se recibió {q}")

    agg = get_aggregation(func)
    return np.array([agg(x[start:start + q]) for start in range(0, x.size, q)], dtype=float)
