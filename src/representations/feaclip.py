"""
FeaClip: features extraídas de la representación recortada (clipped) de la serie

La serie se convierte en bits (1 si el valor supera la media, 0 si no) y se
describen las rachas de unos y ceros con 8 features.
"""

import numpy as np
from typing import Tuple

from .normalization import ArrayLike, _as_float_array

FEACLIP_FEATURES = ['max_1', 'sum_1', 'max_0', 'crossings', 'f_0', 'l_0', 'f_1', 'l_1']


def clipping(x: ArrayLike) -> np.ndarray:
    """Representación recortada: 1 donde x > media(x), 0 en otro caso"""
    x = _as_float_array(x)
    return (x > np.mean(x)).astype(int)


def run_lengths(bits: ArrayLike) -> Tuple[np.ndarray, np.ndarray]:
    """
    Codificación run-length de una secuencia

    Returns:
        Tuple con (valores de cada racha, longitud de cada racha)
    """
    bits = np.asarray(bits)
    if bits.size == 0:
        return np.array([], dtype=bits.dtype), np.array([], dtype=int)

    change_points = np.flatnonzero(bits[1:] != bits[:-1]) + 1
    starts = np.concatenate(([0], change_points))
    ends = np.concatenate((change_points, [bits.size]))

    return bits[starts], ends - starts


def repr_feaclip(x: ArrayLike) -> np.ndarray:
    """
    Calcula las 8 features FeaClip de la serie

    Features (en orden):
        max_1: racha más larga de unos
        sum_1: número de unos
        max_0: racha más larga de ceros
        crossings: número de cambios entre rachas
        f_0: longitud de la racha inicial si es de ceros
        l_0: longitud de la racha final si es de ceros
        f_1: longitud de la racha inicial si es de unos
        l_1: longitud de la racha final si es de unos

    Args:
        x: Serie de consumo

    Returns:
        Array de 8 features
    """
    bits = clipping(x)
    values, lengths = run_lengths(bits)

    ones = lengths[values == 1]
    zeros = lengths[values == 0]

    first_value, first_length = values[0], lengths[0]
    last_value, last_length = values[-1], lengths[-1]

    return np.array([
        ones.max() if ones.size else 0,
        ones.sum(),
        zeros.max() if zeros.size else 0,
        lengths.size - 1,
        first_length if first_value == 0 else 0,
        last_length if last_value == 0 else 0,
        first_length if first_value == 1 else 0,
        last_length if last_value == 1 else 0,
    ], dtype=float)
