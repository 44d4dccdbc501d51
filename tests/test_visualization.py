"""
Tests para las gráficas de clusters
"""

import matplotlib
matplotlib.use('Agg')

import pytest
import numpy as np
import pandas as pd
import matplotlib.pyplot as plt
from pathlib import Path
import sys

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from visualization import (
    plot_cluster_profiles, plot_validity_index,
    plot_representation_comparison, plot_cluster_profiles_interactive,
)


@pytest.fixture
def clustered():
    """12 perfiles de 48 puntos en 4 clusters con su medoide"""
    rng = np.random.default_rng(3)
    x = np.linspace(0, 2 * np.pi, 48)
    data = np.vstack([np.sin(x + shift) + rng.normal(0, 0.1, 48)
                      for shift in np.repeat([0.0, 1.0, 2.0, 3.0], 3)])
    labels = np.repeat([0, 1, 2, 3], 3)
    medoids = np.array([0, 4, 8, 9])
    return data, labels, medoids


class TestStaticPlots:
    """Tests para gráficas de matplotlib"""

    def test_cluster_profiles_facets(self, clustered, tmp_path):
        data, labels, medoids = clustered
        save_path = tmp_path / "clusters.png"

        fig = plot_cluster_profiles(data, labels, medoids, title="Prueba", save_path=save_path)
        visible = [ax for ax in fig.axes if ax.get_visible()]

        assert len(visible) == 4
        assert visible[0].get_title() == "Cluster 1 (n = 3)"
        # 3 miembros + medoide por faceta
        assert len(visible[0].get_lines()) == 4
        assert save_path.exists()
        plt.close(fig)

    def test_cluster_profiles_label_mismatch(self, clustered):
        data, labels, medoids = clustered

        with pytest.raises(ValueError):
            plot_cluster_profiles(data, labels[:-1], medoids)

    def test_validity_index(self, tmp_path):
        scores = pd.DataFrame({
            'k': [2, 3, 4],
            'davies_bouldin': [1.2, 0.7, 0.9],
            'silhouette': [0.3, 0.5, 0.4],
        })
        save_path = tmp_path / "validity.png"

        fig = plot_validity_index(scores, best_k=3, save_path=save_path)

        assert save_path.exists()
        plt.close(fig)

        with pytest.raises(ValueError):
            plot_validity_index(scores, index='calinski_harabasz')

    def test_representation_comparison(self, tmp_path):
        series = np.sin(np.linspace(0, 28 * np.pi, 672))
        representations = {'perfil': series[:48], 'dft': series[:10]}

        fig = plot_representation_comparison(series, representations,
                                             save_path=tmp_path / "comparacion.png")

        assert len(fig.axes) == 3
        assert (tmp_path / "comparacion.png").exists()
        plt.close(fig)


class TestInteractivePlots:
    """Tests para la gráfica interactiva de plotly"""

    def test_traces_per_member_and_medoid(self, clustered, tmp_path):
        data, labels, medoids = clustered
        html_path = tmp_path / "clusters.html"

        fig = plot_cluster_profiles_interactive(
            data, labels, medoids, ids=[f"C{i:02d}" for i in range(1, 13)], html_path=html_path,
        )

        assert len(fig.data) == 12 + 4
        assert fig.data[3].name == "Medoide C01"
        assert html_path.exists()


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
