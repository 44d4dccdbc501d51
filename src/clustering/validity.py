"""
Índices de Validez Interna del Clustering

Permiten comparar distintos números de clusters sin etiquetas de referencia.
El índice principal es Davies-Bouldin (menor es mejor); silhouette y
Calinski-Harabasz se reportan como apoyo (mayor es mejor).
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Optional

import numpy as np
import pandas as pd
from sklearn.metrics import calinski_harabasz_score, davies_bouldin_score, silhouette_score

from config.settings import DISTANCE_METRIC, K_RANGE, PAM_MAX_ITER
from .pam import ProfileClusterer, compute_distance_matrix

logger = logging.getLogger(__name__)

# Dirección de optimización de cada índice
VALIDITY_INDICES = {
    'davies_bouldin': 'min',
    'silhouette': 'max',
    'calinski_harabasz': 'max',
}


def _has_valid_partition(labels: np.ndarray) -> bool:
    n_labels = len(np.unique(labels))
    return 2 <= n_labels <= len(labels) - 1


def davies_bouldin(X: np.ndarray, labels: np.ndarray) -> float:
    """Índice Davies-Bouldin (menor es mejor); NaN si la partición es degenerada"""
    if not _has_valid_partition(labels):
        return float('nan')
    return float(davies_bouldin_score(X, labels))


def silhouette(distance_matrix: np.ndarray, labels: np.ndarray) -> float:
    """Silhouette promedio a partir de la matriz de distancias (mayor es mejor)"""
    if not _has_valid_partition(labels):
        return float('nan')
    return float(silhouette_score(distance_matrix, labels, metric='precomputed'))


def calinski_harabasz(X: np.ndarray, labels: np.ndarray) -> float:
    """Índice Calinski-Harabasz (mayor es mejor)"""
    if not _has_valid_partition(labels):
        return float('nan')
    return float(calinski_harabasz_score(X, labels))


@dataclass
class ClusteringSearchResult:
    """Resultado de explorar un rango de k: tabla de índices y modelos entrenados"""

    scores: pd.DataFrame
    clusterers: Dict[int, ProfileClusterer] = field(default_factory=dict)

    @property
    def k_values(self):
        return [int(k) for k in self.scores['k']]

    def best_k(self, index: str = 'davies_bouldin') -> int:
        """
        Número de clusters óptimo según el índice

        Args:
            index: 'davies_bouldin' (mínimo), 'silhouette' o 'calinski_harabasz' (máximo)
        """
        if index not in VALIDITY_INDICES:
            raise ValueError(f"Índice desconocido: {index}. Opciones: {list(VALIDITY_INDICES)}")

        values = self.scores.set_index('k')[index].dropna()
        if values.empty:
            raise ValueError(f"No hay valores válidos del índice {index}")

        best = values.idxmin() if VALIDITY_INDICES[index] == 'min' else values.idxmax()
        return int(best)

    def get_clusterer(self, k: int) -> ProfileClusterer:
        if k not in self.clusterers:
            raise KeyError(f"No se entrenó un modelo con k={k}")
        return self.clusterers[k]


def evaluate_k_range(X,
                     k_range: Iterable[int] = K_RANGE,
                     metric: str = DISTANCE_METRIC,
                     max_iter: int = PAM_MAX_ITER,
                     distance_matrix: Optional[np.ndarray] = None) -> ClusteringSearchResult:
    """
    Ejecuta PAM para cada k del rango y calcula los índices de validez

    Args:
        X: Matriz consumidores × features
        k_range: Números de clusters candidatos (por defecto 2..7)
        metric: Métrica de distancia
        max_iter: Iteraciones máximas de PAM
        distance_matrix: Distancias precalculadas (opcional)

    Returns:
        ClusteringSearchResult con una fila por k evaluado
    """
    X = np.asarray(X, dtype=float)
    n_samples = X.shape[0]

    if distance_matrix is None:
        distance_matrix = compute_distance_matrix(X, metric)

    rows = []
    clusterers = {}

    for k in k_range:
        k = int(k)
        if k < 2 or k >= n_samples:
            logger.warning(f"k={k} fuera del rango válido [2, {n_samples - 1}], se omite")
            continue

        clusterer = ProfileClusterer(
            n_clusters=k, metric=metric, max_iter=max_iter
        )
        labels = clusterer.fit_predict(X, distance_matrix=distance_matrix)

        rows.append({
            'k': k,
            'davies_bouldin': davies_bouldin(X, labels),
            'silhouette': silhouette(distance_matrix, labels),
            'calinski_harabasz': calinski_harabasz(X, labels),
            'loss': clusterer.loss_,
            'n_iter': clusterer.n_iter_,
        })
        clusterers[k] = clusterer

        logger.info(f"  k={k}: Davies-Bouldin={rows[-1]['davies_bouldin']:.4f}, "
                    f"silhouette={rows[-1]['silhouette']:.4f}")

    if not rows:
        raise ValueError(f"Ningún k del rango es válido para {n_samples} consumidores")

    scores = pd.DataFrame(rows, columns=['k', 'davies_bouldin', 'silhouette',
                                         'calinski_harabasz', 'loss', 'n_iter'])
    return ClusteringSearchResult(scores=scores, clusterers=clusterers)
