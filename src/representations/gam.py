"""
Representación por coeficientes de un modelo aditivo (GAM)

La serie se explica con splines cúbicos de regresión sobre la posición dentro
del día y, opcionalmente, la posición dentro de la semana. Los coeficientes de
las bases (sin intercepto) forman la representación.

Número de coeficientes:
    una frecuencia f:          f - 1
    dos frecuencias (f1, f2):  (f1 - 1) + (f2 / f1 - 1)
Para datos semihorarios con estacionalidad diaria y semanal (48, 336) son
47 + 6 = 53 coeficientes.
"""

import numpy as np
import statsmodels.api as sm
from patsy import cr
from typing import Sequence, Tuple, Union

from .normalization import ArrayLike, _as_float_array

MIN_SEASON_POSITIONS = 3


def _parse_freq(freq: Union[int, Sequence[int]]) -> Tuple[int, ...]:
    if np.isscalar(freq):
        freqs = (int(freq),)
    else:
        freqs = tuple(int(f) for f in freq)

    if len(freqs) not in (1, 2):
        raise ValueError(f"freq debe tener una o dos frecuencias, se recibió {freq}")

    if freqs[0] < MIN_SEASON_POSITIONS:
        raise ValueError(f"La frecuencia principal debe ser >= {MIN_SEASON_POSITIONS}")

    if len(freqs) == 2:
        if freqs[1] % freqs[0] != 0:
            raise ValueError(
                f"La segunda frecuencia ({freqs[1]}) debe ser múltiplo de la primera ({freqs[0]})"
            )
        if freqs[1] // freqs[0] < MIN_SEASON_POSITIONS:
            raise ValueError(
                f"La segunda estacionalidad debe tener al menos {MIN_SEASON_POSITIONS} posiciones"
            )

    return freqs


def _seasonal_basis(position: np.ndarray, n_positions: int) -> np.ndarray:
    """Spline cúbico de regresión con un nodo por posición y restricción de suma cero"""
    return cr(
        position,
        knots=np.arange(2, n_positions),
        lower_bound=1,
        upper_bound=n_positions,
        constraints='center',
    )


def gam_coefficient_count(freq: Union[int, Sequence[int]]) -> int:
    """Número de coeficientes que produce repr_gam para la frecuencia dada"""
    freqs = _parse_freq(freq)
    count = freqs[0] - 1
    if len(freqs) == 2:
        count += freqs[1] // freqs[0] - 1
    return count


def repr_gam(x: ArrayLike, freq: Union[int, Sequence[int]] = 48) -> np.ndarray:
    """
    Calcula la representación GAM de la serie

    Args:
        x: Serie de consumo
        freq: Frecuencia diaria (int) o par (diaria, semanal), p.ej. (48, 336)

    Returns:
        Array con los coeficientes de regresión de las bases estacionales
    """
    x = _as_float_array(x)
    freqs = _parse_freq(freq)
    n = x.size

    if n < freqs[-1] or (len(freqs) == 1 and n <= freqs[0]):
        raise ValueError(
            f"La serie ({n} puntos) no cubre la estacionalidad completa ({freqs[-1]})"
        )

    daily_position = np.arange(n) % freqs[0] + 1
    bases = [np.ones((n, 1)), _seasonal_basis(daily_position, freqs[0])]

    if len(freqs) == 2:
        n_weekly = freqs[1] // freqs[0]
        weekly_position = (np.arange(n) // freqs[0]) % n_weekly + 1
        bases.append(_seasonal_basis(weekly_position, n_weekly))

    design = np.column_stack(bases)
    model = sm.OLS(x, design).fit()

    return np.asarray(model.params[1:], dtype=float)
