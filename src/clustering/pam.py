"""
Clustering K-Medoids (PAM) de representaciones de consumo

Agrupa los vectores de representación con Partitioning Around Medoids. A
diferencia de K-Means, el centro de cada cluster es un consumidor real (el
medoide), que sirve directamente como perfil típico del grupo.
"""

import logging
from pathlib import Path
from typing import Optional, Sequence

import joblib
import kmedoids
import numpy as np
import pandas as pd
from scipy.spatial.distance import pdist, squareform

from config.settings import DISTANCE_METRIC, MODELS_DIR, PAM_MAX_ITER

logger = logging.getLogger(__name__)


def compute_distance_matrix(X: np.ndarray, metric: str = DISTANCE_METRIC) -> np.ndarray:
    """
    Matriz cuadrada de distancias entre todos los pares de filas

    Args:
        X: Matriz consumidores × features
        metric: Métrica aceptada por scipy.spatial.distance.pdist

    Returns:
        Matriz (n × n) de distancias
    """
    return np.ascontiguousarray(squareform(pdist(X, metric=metric)), dtype=np.float64)


class ProfileClusterer:
    """
    Agrupador de perfiles de consumo basado en PAM.

    Sigue el patrón de sklearn: fit(X) entrena y deja los resultados en
    atributos con sufijo '_'.
    """

    def __init__(self,
                 n_clusters: int,
                 metric: str = DISTANCE_METRIC,
                 max_iter: int = PAM_MAX_ITER):
        """
        Args:
            n_clusters: Número de clusters
            metric: Métrica de distancia entre representaciones
            max_iter: Máximo de iteraciones de intercambio de PAM
        """
        self.n_clusters = n_clusters
        self.metric = metric
        self.max_iter = max_iter

        self.labels_ = None
        self.medoid_indices_ = None
        self.loss_ = None
        self.n_iter_ = None
        self.distance_matrix_ = None
        self.is_fitted = False

    def fit(self, X, distance_matrix: Optional[np.ndarray] = None) -> 'ProfileClusterer':
        """
        Ejecuta PAM sobre las representaciones

        Args:
            X: Matriz consumidores × features
            distance_matrix: Distancias precalculadas (opcional, evita recalcularlas
                al explorar varios k)

        Returns:
            self (patrón sklearn)
        """
        X = np.asarray(X, dtype=float)
        if X.ndim != 2:
            raise ValueError(f"Se esperaba una matriz 2-D, se recibió forma {X.shape}")
        if not np.isfinite(X).all():
            raise ValueError("La matriz de representaciones contiene valores no finitos")

        n_samples = X.shape[0]
        if self.n_clusters < 2 or self.n_clusters >= n_samples:
            raise ValueError(
                f"n_clusters debe estar entre 2 y {n_samples - 1}, se recibió {self.n_clusters}"
            )

        if distance_matrix is None:
            distance_matrix = compute_distance_matrix(X, self.metric)
        elif distance_matrix.shape != (n_samples, n_samples):
            raise ValueError("La matriz de distancias no coincide con el número de consumidores")

        logger.info(f"Ejecutando PAM con k={self.n_clusters} sobre {n_samples} consumidores...")
        result = kmedoids.pam(
            np.ascontiguousarray(distance_matrix, dtype=np.float64),
            self.n_clusters,
            max_iter=self.max_iter,
        )

        self.labels_ = np.asarray(result.labels, dtype=int)
        self.medoid_indices_ = np.asarray(result.medoids, dtype=int)
        self.loss_ = float(result.loss)
        self.n_iter_ = int(result.n_iter)
        self.distance_matrix_ = distance_matrix
        self.is_fitted = True

        logger.debug(f"PAM k={self.n_clusters}: pérdida={self.loss_:.4f}, iteraciones={self.n_iter_}")
        return self

    def fit_predict(self, X, distance_matrix: Optional[np.ndarray] = None) -> np.ndarray:
        """Entrena y retorna las etiquetas de cluster"""
        return self.fit(X, distance_matrix).labels_

    def _check_fitted(self):
        if not self.is_fitted:
            raise RuntimeError("El modelo no ha sido entrenado. Ejecute .fit() primero.")

    def cluster_sizes(self) -> pd.Series:
        """Número de consumidores por cluster"""
        self._check_fitted()
        sizes = np.bincount(self.labels_, minlength=self.n_clusters)
        return pd.Series(sizes, index=pd.RangeIndex(self.n_clusters, name='cluster'), name='size')

    def medoids(self, X) -> np.ndarray:
        """Filas de X correspondientes a los medoides (una por cluster)"""
        self._check_fitted()
        return np.asarray(X)[self.medoid_indices_]

    def assignments(self, ids: Optional[Sequence] = None) -> pd.DataFrame:
        """
        Tabla de asignación consumidor -> cluster

        Args:
            ids: Identificadores de los consumidores (por defecto la posición)

        Returns:
            DataFrame con columnas ID, cluster, is_medoid
        """
        self._check_fitted()
        if ids is None:
            ids = np.arange(len(self.labels_))

        ids = list(ids)
        if len(ids) != len(self.labels_):
            raise ValueError("El número de IDs no coincide con el número de consumidores")

        is_medoid = np.zeros(len(self.labels_), dtype=bool)
        is_medoid[self.medoid_indices_] = True

        return pd.DataFrame({
            'ID': ids,
            'cluster': self.labels_,
            'is_medoid': is_medoid,
        })

    def save(self, filepath: Optional[Path] = None) -> Path:
        """
        Guarda el modelo entrenado en disco

        Args:
            filepath: Ruta del archivo (por defecto en MODELS_DIR)
        """
        self._check_fitted()

        if filepath is None:
            filepath = Path(MODELS_DIR) / f"profile_clusterer_k{self.n_clusters}.joblib"

        filepath = Path(filepath)
        filepath.parent.mkdir(parents=True, exist_ok=True)

        joblib.dump({
            'n_clusters': self.n_clusters,
            'metric': self.metric,
            'max_iter': self.max_iter,
            'labels': self.labels_,
            'medoid_indices': self.medoid_indices_,
            'loss': self.loss_,
            'n_iter': self.n_iter_,
        }, filepath)

        logger.info(f"✓ Modelo guardado en {filepath}")
        return filepath

    @classmethod
    def load(cls, filepath: Path) -> 'ProfileClusterer':
        """
        Carga un modelo entrenado desde disco

        La matriz de distancias no se persiste; distance_matrix_ queda en None.
        """
        filepath = Path(filepath)
        if not filepath.exists():
            raise FileNotFoundError(f"No se encontró modelo en {filepath}")

        data = joblib.load(filepath)

        instance = cls(
            n_clusters=data['n_clusters'],
            metric=data['metric'],
            max_iter=data['max_iter'],
        )
        instance.labels_ = data['labels']
        instance.medoid_indices_ = data['medoid_indices']
        instance.loss_ = data['loss']
        instance.n_iter_ = data['n_iter']
        instance.is_fitted = True

        logger.info(f"✓ Modelo cargado desde {filepath}")
        return instance
