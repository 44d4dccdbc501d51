"""Aplicación de una representación por ventanas no solapadas"""

import numpy as np
from typing import Callable

from .normalization import ArrayLike, _as_float_array


def repr_windowing(x: ArrayLike, win_size: int, func: Callable, **args) -> np.ndarray:
    """
    Divide la serie en ventanas consecutivas y concatena la representación de cada una

    Args:
        x: Serie de consumo
        win_size: Longitud de cada ventana (p.ej. 48 para ventanas diarias)
        func: Función de representación aplicada a cada ventana
        **args: Argumentos adicionales para func

    Returns:
        Array con las representaciones concatenadas
    """
    x = _as_float_array(x)
    win_size = int(win_size)

    if win_size < 1:
        raise ValueError(f"win_size debe ser positivo, se recibió {win_size}")
    if x.size % win_size != 0:
        raise ValueError(
            f"La longitud de la serie ({x.size}) no es múltiplo de win_size ({win_size})"
        )

    windows = x.reshape(-1, win_size)
    return np.concatenate([np.asarray(func(window, **args), dtype=float) for window in windows])
