"""
Clustering de Perfiles de Consumo

PAM (k-medoids) sobre representaciones de series e índices de validez interna
para elegir el número de clusters.
"""

from .pam import ProfileClusterer, compute_distance_matrix
from .validity import (
    ClusteringSearchResult, evaluate_k_range, davies_bouldin, silhouette,
    calinski_harabasz, VALIDITY_INDICES,
)

__all__ = [
    'ProfileClusterer',
    'compute_distance_matrix',
    'ClusteringSearchResult',
    'evaluate_k_range',
    'davies_bouldin',
    'silhouette',
    'calinski_harabasz',
    'VALIDITY_INDICES',
]
