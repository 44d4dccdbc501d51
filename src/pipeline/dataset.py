"""
Dataset de referencia de consumo eléctrico (elec_load)

Genera de forma determinista 50 consumidores con 14 días de medidas
semihorarias (672 puntos). Cada consumidor sigue un arquetipo de uso
(residencial, oficina, comercio, tarifa nocturna o carga base) con escala,
desfase horario y ruido propios, de modo que existan grupos reales que el
clustering pueda recuperar.
"""

import logging
from typing import Tuple, Union

import numpy as np
import pandas as pd

from config.settings import (
    DATASET_SEED, ID_COLUMN, N_CONSUMERS, N_DAYS, PERIODS_PER_DAY,
)

logger = logging.getLogger(__name__)

# Proporción de consumidores por arquetipo
ARCHETYPE_SHARES = {
    'residencial': 0.36,
    'oficina': 0.20,
    'comercio': 0.18,
    'nocturno': 0.14,
    'carga_base': 0.12,
}

# El día 0 del dataset es lunes
FIRST_WEEKDAY = 0


def _bump(hours: np.ndarray, center: float, width: float) -> np.ndarray:
    return np.exp(-0.5 * ((hours - center) / width) ** 2)


def _plateau(hours: np.ndarray, start: float, end: float, steepness: float = 2.0) -> np.ndarray:
    rise = 1.0 / (1.0 + np.exp(-steepness * (hours - start)))
    fall = 1.0 / (1.0 + np.exp(-steepness * (end - hours)))
    return rise * fall


def _daily_shape(archetype: str, hours: np.ndarray, weekday: int, shift: float) -> np.ndarray:
    """Curva diaria (sin escala) de un arquetipo para un día de la semana"""
    h = hours - shift
    weekend = weekday >= 5

    if archetype == 'residencial':
        if weekend:
            return 0.35 + 0.45 * _bump(h, 9.5, 1.5) + 0.4 * _bump(h, 13.5, 2.5) + 0.9 * _bump(h, 20.0, 2.0)
        return 0.3 + 0.55 * _bump(h, 7.0, 1.0) + 1.0 * _bump(h, 19.5, 1.8)

    if archetype == 'oficina':
        if weekend:
            return np.full_like(h, 0.2)
        return 0.2 + 1.0 * _plateau(h, 8.0, 18.0)

    if archetype == 'comercio':
        level = 0.6 if weekday == 6 else 1.0
        return 0.25 + level * _plateau(h, 9.0, 21.0)

    if archetype == 'nocturno':
        night = _plateau(h, 22.0, 30.0) + _plateau(h, -2.0, 6.0)
        return 0.3 + 1.0 * night

    if archetype == 'carga_base':
        return 1.0 + 0.05 * np.sin(2 * np.pi * h / 24.0)

    raise ValueError(f"Arquetipo desconocido: {archetype}")


def _assign_archetypes(n_consumers: int, rng: np.random.Generator) -> np.ndarray:
    names = list(ARCHETYPE_SHARES)
    counts = [int(round(ARCHETYPE_SHARES[name] * n_consumers)) for name in names]
    counts[0] += n_consumers - sum(counts)

    archetypes = np.repeat(names, counts)
    return rng.permutation(archetypes)


def generate_elec_load(n_consumers: int = N_CONSUMERS,
                       n_days: int = N_DAYS,
                       periods_per_day: int = PERIODS_PER_DAY,
                       seed: int = DATASET_SEED,
                       return_archetypes: bool = False
                       ) -> Union[pd.DataFrame, Tuple[pd.DataFrame, pd.Series]]:
    """
    Genera el dataset de consumo

    Args:
        n_consumers: Número de consumidores
        n_days: Número de días
        periods_per_day: Medidas por día (48 = cada 30 minutos)
        seed: Semilla del generador (mismo seed -> mismo dataset)
        return_archetypes: Si True, retorna también el arquetipo de cada consumidor

    Returns:
        DataFrame indexado por ID con columnas T1..Tn (kW), y opcionalmente
        Series con el arquetipo de cada consumidor
    """
    if n_consumers < 1 or n_days < 1 or periods_per_day < 2:
        raise ValueError("n_consumers, n_days y periods_per_day deben ser positivos")

    rng = np.random.default_rng(seed)
    hours = np.arange(periods_per_day) * 24.0 / periods_per_day
    archetypes = _assign_archetypes(n_consumers, rng)

    rows = []
    for archetype in archetypes:
        scale = rng.lognormal(mean=0.0, sigma=0.6) * 2.0
        shift = rng.uniform(-1.0, 1.0)

        days = []
        for day in range(n_days):
            weekday = (FIRST_WEEKDAY + day) % 7
            level = rng.normal(1.0, 0.05)
            shape = _daily_shape(archetype, hours, weekday, shift)
            noise = rng.lognormal(mean=0.0, sigma=0.08, size=periods_per_day)
            days.append(scale * level * shape * noise)

        rows.append(np.clip(np.concatenate(days), 0.01, None))

    width = len(str(n_consumers))
    ids = [f"C{i:0{max(width, 2)}d}" for i in range(1, n_consumers + 1)]
    columns = [f'T{i}' for i in range(1, n_days * periods_per_day + 1)]

    df = pd.DataFrame(np.vstack(rows), index=pd.Index(ids, name=ID_COLUMN), columns=columns)
    logger.debug(f"Dataset generado: {df.shape[0]} consumidores × {df.shape[1]} periodos")

    if return_archetypes:
        return df, pd.Series(archetypes, index=df.index, name='archetype')
    return df


def load_elec_load(seed: int = DATASET_SEED) -> pd.DataFrame:
    """Dataset de referencia: 50 consumidores × 672 medidas semihorarias"""
    return generate_elec_load(seed=seed)
