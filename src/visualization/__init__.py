"""Visualización de clusters de perfiles de consumo"""

from .plots import (
    plot_cluster_profiles, plot_validity_index,
    plot_representation_comparison, plot_cluster_profiles_interactive,
)

__all__ = [
    'plot_cluster_profiles',
    'plot_validity_index',
    'plot_representation_comparison',
    'plot_cluster_profiles_interactive',
]
