"""
Limpieza y validación de matrices de consumo
Garantiza series numéricas, completas, de igual longitud y con variación,
requisitos de las representaciones y del clustering
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

import numpy as np
import pandas as pd

from config.settings import DATA_QUALITY_THRESHOLDS, PERIODS_PER_DAY
from representations.feaclip import run_lengths

logger = logging.getLogger(__name__)


class DataQualityReport:
    """
    Reporte de calidad de una matriz consumidores × periodos

    - issues: problemas detectados; los de severidad ERROR invalidan la matriz
    - warnings: observaciones que no impiden el análisis
    - stats: conteos de consumidores y de valores tratados
    - removed: consumidores descartados -> tipo de problema que los descartó
    """

    def __init__(self):
        self.created_at = datetime.now()
        self.issues: List[Dict] = []
        self.warnings: List[str] = []
        self.stats: Dict = {}
        self.removed: Dict[str, str] = {}

    @property
    def passed(self) -> bool:
        return not any(issue['severity'] == 'ERROR' for issue in self.issues)

    def add_issue(self, issue_type: str, description: str, severity: str = 'ERROR',
                  removed_consumers: Optional[Iterable] = None):
        """
        Registra un problema

        Args:
            issue_type: Código del problema (p.ej. 'CONSTANT_SERIES')
            description: Descripción legible
            severity: 'ERROR' invalida la matriz; 'WARNING' no
            removed_consumers: IDs descartados por este problema
        """
        removed_consumers = [] if removed_consumers is None else [str(c) for c in removed_consumers]
        self.issues.append({
            'type': issue_type,
            'description': description,
            'severity': severity,
            'consumers': removed_consumers,
        })
        for consumer in removed_consumers:
            self.removed.setdefault(consumer, issue_type)

        level = logging.ERROR if severity == 'ERROR' else logging.WARNING
        logger.log(level, f"{issue_type}: {description}")

    def add_warning(self, warning: str):
        self.warnings.append(warning)
        logger.warning(warning)

    def add_stat(self, key: str, value):
        self.stats[key] = value

    def to_dict(self) -> Dict:
        return {
            'created_at': self.created_at.isoformat(),
            'passed': self.passed,
            'issues': self.issues,
            'warnings': self.warnings,
            'stats': self.stats,
            'removed': self.removed,
        }

    def summary(self) -> str:
        """Resumen en texto para consola y mensajes de error"""
        lines = [
            "=" * 60,
            f"CALIDAD DE LA MATRIZ DE CONSUMO - {'✓ APROBADA' if self.passed else '✗ RECHAZADA'}",
            "=" * 60,
        ]
        lines += [f"  • {key}: {value}" for key, value in self.stats.items()]

        if self.issues:
            lines.append(f"\nPROBLEMAS ({len(self.issues)}):")
            lines += [f"  [{i['severity']}] {i['type']}: {i['description']}" for i in self.issues]

        if self.warnings:
            lines.append(f"\nADVERTENCIAS ({len(self.warnings)}):")
            lines += [f"  • {warning}" for warning in self.warnings]

        return "\n" + "\n".join(lines) + "\n"


class LoadMatrixCleaner:
    """
    Limpiador de matrices consumidores × periodos

    Pasos, en orden: conversión a numérico, validación de la longitud de las
    series, tratamiento de faltantes, descarte de series constantes, revisión
    de valores negativos y validación del número de consumidores restantes.
    """

    def __init__(self, config: Optional[Dict] = None):
        self.config = {**DATA_QUALITY_THRESHOLDS, **(config or {})}
        self.report = DataQualityReport()

    def clean(self, df: pd.DataFrame, freq: int = PERIODS_PER_DAY) -> Tuple[pd.DataFrame, DataQualityReport]:
        """
        Limpia la matriz

        Args:
            df: Matriz cruda indexada por ID
            freq: Periodos por día; la longitud de las series debe ser múltiplo

        Returns:
            Tuple con (matriz limpia, reporte de calidad)
        """
        self.report = DataQualityReport()
        self.report.add_stat('consumidores_iniciales', int(len(df)))
        self.report.add_stat('periodos', int(df.shape[1]))
        logger.info(f"Limpiando matriz de {df.shape[0]} consumidores × {df.shape[1]} periodos...")

        matrix = self._to_numeric(df)
        self._check_length(matrix, freq)
        matrix = self._fill_gaps(matrix)
        matrix = self._drop_constant(matrix)
        self._check_negative(matrix)
        self._check_consumer_count(matrix)

        self.report.add_stat('consumidores_finales', int(len(matrix)))
        logger.info(f"✓ Limpieza completada: {len(matrix)} consumidores válidos")
        return matrix, self.report

    def _to_numeric(self, df: pd.DataFrame) -> pd.DataFrame:
        numeric = df.apply(pd.to_numeric, errors='coerce').astype(float)

        coerced = int(numeric.isna().sum().sum() - df.isna().sum().sum())
        if coerced:
            self.report.add_warning(f"{coerced} valores no numéricos tratados como faltantes")
        return numeric

    def _check_length(self, df: pd.DataFrame, freq: int):
        n_periods = df.shape[1]
        if n_periods == 0 or n_periods % freq:
            self.report.add_issue(
                'SERIES_LENGTH',
                f"Las series tienen {n_periods} periodos, que no es múltiplo de {freq} por día"
            )
        else:
            self.report.add_stat('dias', n_periods // freq)

    def _fill_gaps(self, df: pd.DataFrame) -> pd.DataFrame:
        """Interpola huecos cortos; descarta consumidores muy incompletos o con huecos largos"""
        missing_share = df.isna().mean(axis=1)
        if not missing_share.any():
            return df

        max_share = self.config['max_missing_percentage']
        sparse = missing_share.index[missing_share > max_share]
        if len(sparse):
            self.report.add_issue(
                'EXCESSIVE_MISSING_DATA',
                f"{len(sparse)} consumidores con más de {max_share:.0%} de faltantes",
                'WARNING',
                removed_consumers=sparse,
            )
            df = df.drop(index=sparse)

        max_gap = self.config['max_interpolation_gap']
        longest = pd.Series([_longest_gap(row) for row in df.isna().to_numpy()], index=df.index)
        with_gaps = longest.index[longest > max_gap]
        if len(with_gaps):
            self.report.add_issue(
                'UNFILLABLE_GAPS',
                f"{len(with_gaps)} consumidores con huecos de más de {max_gap} periodos",
                'WARNING',
                removed_consumers=with_gaps,
            )
            df = df.drop(index=with_gaps)

        # Huecos interiores: interpolación lineal; bordes: valor válido más cercano
        filled = df.interpolate(axis=1, limit_area='inside').bfill(axis=1).ffill(axis=1)

        n_filled = int(df.isna().sum().sum())
        if n_filled:
            self.report.add_stat('valores_interpolados', n_filled)

        return filled

    def _drop_constant(self, df: pd.DataFrame) -> pd.DataFrame:
        # La normalización z de una serie constante no está definida
        constant = df.index[df.std(axis=1, ddof=1).fillna(0) == 0]
        if len(constant):
            self.report.add_issue(
                'CONSTANT_SERIES',
                f"{len(constant)} consumidores con consumo constante",
                'WARNING',
                removed_consumers=constant,
            )
            df = df.drop(index=constant)
        return df

    def _check_negative(self, df: pd.DataFrame):
        negatives = int(np.count_nonzero(df.to_numpy() < 0))
        if negatives:
            self.report.add_warning(f"{negatives} valores negativos (generación propia o error de medida)")
            self.report.add_stat('valores_negativos', negatives)

    def _check_consumer_count(self, df: pd.DataFrame):
        min_consumers = self.config['min_consumers']
        if len(df) < min_consumers:
            self.report.add_issue(
                'INSUFFICIENT_CONSUMERS',
                f"Quedan {len(df)} consumidores; se requieren al menos {min_consumers} para agrupar"
            )


def clean_consumption_matrix(df: pd.DataFrame,
                             freq: int = PERIODS_PER_DAY,
                             config: Optional[Dict] = None) -> Tuple[pd.DataFrame, DataQualityReport]:
    """Limpia la matriz con los umbrales por defecto (o los de config)"""
    return LoadMatrixCleaner(config).clean(df, freq=freq)


def _longest_gap(missing: np.ndarray) -> int:
    """Longitud de la racha más larga de faltantes en una fila"""
    values, lengths = run_lengths(missing)
    gaps = lengths[values]
    return int(gaps.max()) if gaps.size else 0
