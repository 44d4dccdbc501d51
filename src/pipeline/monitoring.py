"""
Monitoreo del Pipeline de Clustering

Logging estructurado (consola + archivo), alertas de calidad de datos y de
clustering, y seguimiento de la duración y el estado de cada etapa
"""
import json
import logging
from collections import Counter
from contextlib import contextmanager
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional

import numpy as np

from config.settings import LOG_DATE_FORMAT, LOG_FORMAT, LOG_LEVEL, LOGS_DIR

SEVERITIES = ('LOW', 'MEDIUM', 'HIGH', 'CRITICAL')


class LogLevel(Enum):
    """Niveles de logging"""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AlertType(Enum):
    """Tipos de alertas"""
    DATA_QUALITY = "DATA_QUALITY"
    MISSING_DATA = "MISSING_DATA"
    CONSTANT_SERIES = "CONSTANT_SERIES"
    DEGENERATE_CLUSTER = "DEGENERATE_CLUSTER"
    INVALID_INDEX = "INVALID_INDEX"
    PROCESSING_ERROR = "PROCESSING_ERROR"


# Tipo de alerta asociado a cada tipo de problema del DataQualityReport
ISSUE_ALERTS = {
    'CONSTANT_SERIES': AlertType.CONSTANT_SERIES,
    'EXCESSIVE_MISSING_DATA': AlertType.MISSING_DATA,
    'UNFILLABLE_GAPS': AlertType.MISSING_DATA,
}


def _remove_handlers(logger: logging.Logger):
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


class PipelineLogger:
    """
    Logger estructurado para el pipeline

    Escribe en consola y, opcionalmente, en logs/<name>_latest.log. Cada evento
    y alerta queda además en memoria (events, alerts) para el reporte final.
    """

    def __init__(self, name: str, log_to_file: bool = True, logs_dir: Optional[Path] = None):
        self.name = name
        self.logs_dir = Path(logs_dir or LOGS_DIR)
        self.log_file = self.logs_dir / f"{name}_latest.log" if log_to_file else None
        self.logger = self._build_logger()
        self.events: List[Dict] = []
        self.alerts: List[Dict] = []

    def _build_logger(self) -> logging.Logger:
        logger = logging.getLogger(self.name)
        logger.setLevel(logging.DEBUG)
        logger.propagate = False

        # La instancia más reciente reemplaza los handlers de una anterior con el mismo nombre
        _remove_handlers(logger)

        handlers = [(logging.StreamHandler(), getattr(logging, LOG_LEVEL))]
        if self.log_file is not None:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)
            handlers.append((logging.FileHandler(self.log_file, mode='w', encoding='utf-8'), logging.DEBUG))

        formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)
        for handler, level in handlers:
            handler.setLevel(level)
            handler.setFormatter(formatter)
            logger.addHandler(handler)

        return logger

    def close(self):
        """Cierra los handlers y libera el archivo de log"""
        _remove_handlers(self.logger)

    def log_event(self, level: LogLevel, message: str, metadata: Optional[Dict] = None):
        """
        Registra un evento

        Args:
            level: Nivel del log
            message: Mensaje descriptivo
            metadata: Datos estructurados del evento
        """
        metadata = metadata or {}
        self.events.append({
            'timestamp': datetime.now().isoformat(),
            'level': level.value,
            'message': message,
            'metadata': metadata,
        })

        if metadata:
            message = f"{message} | {json.dumps(metadata, ensure_ascii=False, default=str)}"
        self.logger.log(getattr(logging, level.value), message)

    def log_alert(self, alert_type: AlertType, description: str, severity: str,
                  metadata: Optional[Dict] = None):
        """
        Registra una alerta

        Args:
            alert_type: Tipo de alerta
            description: Descripción
            severity: LOW, MEDIUM, HIGH o CRITICAL
            metadata: Datos estructurados de la alerta
        """
        if severity not in SEVERITIES:
            raise ValueError(f"Severidad desconocida: {severity}. Opciones: {SEVERITIES}")

        self.alerts.append({
            'timestamp': datetime.now().isoformat(),
            'alert_type': alert_type.value,
            'description': description,
            'severity': severity,
            'metadata': metadata or {},
        })

        level = logging.ERROR if severity in ('HIGH', 'CRITICAL') else logging.WARNING
        self.logger.log(level, f"[ALERTA:{alert_type.value}|{severity}] {description}")

    def log_data_quality_report(self, report: Any):
        """Registra un DataQualityReport: un evento resumen y una alerta por problema"""
        status = 'APROBADO' if report.passed else 'RECHAZADO'
        self.log_event(
            LogLevel.INFO if report.passed else LogLevel.ERROR,
            f"Reporte de calidad de datos: {status}",
            {
                'passed': report.passed,
                'issues': len(report.issues),
                'warnings': len(report.warnings),
                'stats': report.stats,
            }
        )

        for issue in report.issues:
            self.log_alert(
                ISSUE_ALERTS.get(issue['type'], AlertType.DATA_QUALITY),
                issue['description'],
                'HIGH' if issue['severity'] == 'ERROR' else 'MEDIUM',
                {'issue_type': issue['type']}
            )

    def save_events_to_file(self, filename: Optional[str] = None) -> Path:
        """Guarda eventos y alertas en un JSON dentro de logs_dir"""
        filename = filename or f"{self.name}_events_{datetime.now():%Y%m%d_%H%M%S}.json"
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.logs_dir / filename

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump({
                'logger_name': self.name,
                'saved_at': datetime.now().isoformat(),
                'events': self.events,
                'alerts': self.alerts,
            }, f, indent=2, ensure_ascii=False, default=str)

        self.logger.info(f"Eventos guardados en: {filepath}")
        return filepath

    def get_summary(self) -> Dict:
        """Conteo de eventos por nivel y de alertas por tipo y severidad"""
        levels = Counter(event['level'] for event in self.events)
        types = Counter(alert['alert_type'] for alert in self.alerts)
        severities = Counter(alert['severity'] for alert in self.alerts)

        return {
            'total_events': len(self.events),
            'events_by_level': {level.value: levels[level.value] for level in LogLevel},
            'total_alerts': len(self.alerts),
            'alerts_by_type': {alert_type.value: types[alert_type.value] for alert_type in AlertType},
            'alerts_by_severity': {severity: severities[severity] for severity in SEVERITIES},
        }


class ClusteringQualityMonitor:
    """Monitor de la calidad de los resultados de clustering"""

    def __init__(self, logger: PipelineLogger):
        self.logger = logger

    def check_cluster_sizes(self, method: str, k: int, sizes) -> bool:
        """
        Alerta si algún cluster contiene un único consumidor (solo su medoide)

        Returns:
            True si todos los clusters tienen al menos dos miembros
        """
        sizes = np.asarray(sizes)
        singletons = [int(i) for i in np.flatnonzero(sizes <= 1)]

        if singletons:
            self.logger.log_alert(
                AlertType.DEGENERATE_CLUSTER,
                f"[{method}] k={k}: clusters con un solo consumidor {singletons}",
                'LOW',
                {'method': method, 'k': k, 'sizes': sizes.tolist()}
            )
            return False
        return True

    def check_validity_scores(self, method: str, scores) -> bool:
        """
        Alerta si algún índice de validez no es finito

        Args:
            scores: DataFrame de evaluate_k_range

        Returns:
            True si todos los valores son finitos
        """
        index_columns = [c for c in ('davies_bouldin', 'silhouette', 'calinski_harabasz') if c in scores]
        values = scores[index_columns].to_numpy(dtype=float)
        invalid = ~np.isfinite(values)

        if invalid.any():
            bad_k = scores.loc[invalid.any(axis=1), 'k'].astype(int).tolist()
            self.logger.log_alert(
                AlertType.INVALID_INDEX,
                f"[{method}] índices de validez no finitos para k={bad_k}",
                'MEDIUM',
                {'method': method, 'k': bad_k}
            )
            return False
        return True


class PipelineExecutionTracker:
    """Seguimiento de inicio, fin, duración y estado de cada etapa del pipeline"""

    def __init__(self, pipeline_name: str, logs_dir: Optional[Path] = None, log_to_file: bool = True):
        self.pipeline_name = pipeline_name
        self.logs_dir = Path(logs_dir or LOGS_DIR)
        self.logger = PipelineLogger(f"pipeline_{pipeline_name}", log_to_file=log_to_file,
                                     logs_dir=self.logs_dir)
        self.start_time: Optional[datetime] = None
        self.end_time: Optional[datetime] = None
        self.status = 'NOT_STARTED'
        self.stages: List[Dict] = []
        self.current_stage: Optional[Dict] = None

    @property
    def duration(self) -> Optional[float]:
        if self.start_time is None or self.end_time is None:
            return None
        return (self.end_time - self.start_time).total_seconds()

    def start_pipeline(self):
        self.start_time = datetime.now()
        self.status = 'IN_PROGRESS'
        self.logger.log_event(LogLevel.INFO, f"Pipeline '{self.pipeline_name}' iniciado")

    def start_stage(self, stage_name: str):
        self.current_stage = {
            'name': stage_name,
            'start_time': datetime.now(),
            'end_time': None,
            'duration': None,
            'status': 'IN_PROGRESS',
            'metadata': {},
            'errors': [],
        }
        self.logger.log_event(LogLevel.INFO, f"Etapa '{stage_name}' iniciada")

    def complete_stage(self, stage_name: str, success: bool = True,
                       metadata: Optional[Dict] = None, error: Optional[str] = None):
        """
        Cierra la etapa en curso

        Args:
            stage_name: Nombre de la etapa (debe ser la etapa en curso)
            success: Si la etapa terminó correctamente
            metadata: Resultados de la etapa para el reporte
            error: Mensaje de error si la etapa falló
        """
        stage = self.current_stage
        if stage is None or stage['name'] != stage_name:
            raise RuntimeError(f"La etapa '{stage_name}' no está en curso")

        stage['end_time'] = datetime.now()
        stage['duration'] = (stage['end_time'] - stage['start_time']).total_seconds()
        stage['status'] = 'SUCCESS' if success else 'FAILED'
        stage['metadata'] = metadata or {}
        if error:
            stage['errors'].append(error)

        self.stages.append(stage)
        self.current_stage = None

        self.logger.log_event(
            LogLevel.INFO if success else LogLevel.ERROR,
            f"Etapa '{stage_name}' finalizada: {stage['status']} ({stage['duration']:.2f}s)",
            {'errors': stage['errors']} if stage['errors'] else None
        )

    @contextmanager
    def stage(self, stage_name: str) -> Iterator[Dict]:
        """
        Registra el bloque como una etapa del pipeline

        El bloque recibe un diccionario para la metadata de la etapa. Si el
        bloque lanza una excepción la etapa queda FAILED y la excepción se propaga.

        Example:
            >>> with tracker.stage("clustering") as metadata:
            ...     metadata['k'] = 4
        """
        self.start_stage(stage_name)
        metadata: Dict = {}
        try:
            yield metadata
        except Exception as e:
            self.complete_stage(stage_name, success=False, metadata=metadata, error=str(e))
            raise
        self.complete_stage(stage_name, success=True, metadata=metadata)

    def complete_pipeline(self, success: bool = True):
        self.end_time = datetime.now()
        self.status = 'SUCCESS' if success else 'FAILED'

        failed = [s['name'] for s in self.stages if s['status'] == 'FAILED']
        self.logger.log_event(
            LogLevel.INFO if success else LogLevel.ERROR,
            f"Pipeline '{self.pipeline_name}' finalizado: {self.status} ({self.duration:.2f}s)",
            {'stages': len(self.stages), 'failed_stages': failed}
        )

    def get_execution_report(self) -> Dict:
        return {
            'pipeline_name': self.pipeline_name,
            'status': self.status,
            'start_time': self.start_time.isoformat() if self.start_time else None,
            'end_time': self.end_time.isoformat() if self.end_time else None,
            'total_duration': self.duration,
            'stages': self.stages,
            'logger_summary': self.logger.get_summary(),
        }

    def save_report(self, keep_history: bool = False) -> Path:
        """
        Guarda el reporte de ejecución en logs_dir

        Args:
            keep_history: Si True, el nombre lleva timestamp; si no, se sobrescribe el *_latest.json
        """
        suffix = f"{datetime.now():%Y%m%d_%H%M%S}" if keep_history else "latest"
        self.logs_dir.mkdir(parents=True, exist_ok=True)
        filepath = self.logs_dir / f"pipeline_execution_{self.pipeline_name}_{suffix}.json"

        with open(filepath, 'w', encoding='utf-8') as f:
            json.dump(self.get_execution_report(), f, indent=2, ensure_ascii=False, default=str)

        self.logger.logger.info(f"Reporte de ejecución guardado en: {filepath}")
        return filepath
