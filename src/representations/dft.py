"""
Representación DFT

Se conservan las primeras frecuencias de la transformada de Fourier y se
vuelven al dominio del tiempo, obteniendo una versión suavizada y comprimida
de la serie.
"""

import numpy as np

from .normalization import ArrayLike, _as_float_array


def repr_dft(x: ArrayLike, coef: int = 10) -> np.ndarray:
    """
    Calcula la representación DFT de la serie

    Args:
        x: Serie de consumo
        coef: Número de coeficientes de Fourier a conservar (1 <= coef <= len(x)/2)

    Returns:
        Array de longitud coef
    """
    x = _as_float_array(x)
    n = x.size
    coef = int(coef)

    if coef < 1 or coef > n / 2:
        raise ValueError(f"coef debe estar entre 1 y {n // 2}, se recibió {coef}")

    fourier = np.fft.fft(x)[:coef]

    # ifft divide por coef; se reescala para dividir por la longitud original
    return np.fft.ifft(fourier).real * coef / n
