"""
Demo: Perfiles Típicos de Consumo Eléctrico

Recorrido paso a paso del análisis: representaciones de las series de
consumo, clustering PAM para k = 2..7, índice Davies-Bouldin y gráficas de
miembros y medoides por cluster.

Uso:
    python scripts/demo_typical_profiles.py [directorio_salida]
"""

import sys
from pathlib import Path
import logging

import matplotlib.pyplot as plt

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from config.settings import K_RANGE, OUTPUTS_DIR, PERIODS_PER_DAY, WEEK_PERIODS
from clustering import evaluate_k_range
from pipeline.dataset import load_elec_load
from representations import (
    repr_matrix, repr_seas_profile, repr_gam, repr_dft, repr_feaclip, repr_windowing, norm_z,
)
from visualization import (
    plot_cluster_profiles, plot_validity_index,
    plot_representation_comparison, plot_cluster_profiles_interactive,
)

logging.basicConfig(
    level=logging.INFO,
    format='%(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


def demo_dataset():
    """Demostración 1: el dataset de consumo"""
    print("\n" + "=" * 80)
    print("DEMOSTRACIÓN 1: DATASET elec_load")
    print("=" * 80)

    data = load_elec_load()
    print(f"\n📊 Dimensiones: {data.shape[0]} consumidores × {data.shape[1]} medidas")
    print(f"   {data.shape[1] // PERIODS_PER_DAY} días con {PERIODS_PER_DAY} medidas diarias")
    return data


def demo_representations(data, output_dir: Path):
    """Demostración 2: representaciones de un consumidor"""
    print("\n" + "=" * 80)
    print("DEMOSTRACIÓN 2: REPRESENTACIONES DE UN CONSUMIDOR")
    print("=" * 80)

    series = data.iloc[0].to_numpy()
    series_norm = norm_z(series)

    representations = {
        'Perfil estacional medio': repr_seas_profile(series_norm, freq=PERIODS_PER_DAY),
        'GAM (diaria + semanal)': repr_gam(series_norm, freq=(PERIODS_PER_DAY, WEEK_PERIODS)),
        'DFT (48 coeficientes)': repr_dft(series_norm, coef=PERIODS_PER_DAY),
        'FeaClip por día': repr_windowing(series, PERIODS_PER_DAY, repr_feaclip),
    }

    for name, values in representations.items():
        print(f"  {name:<28} {len(values):>4} features")

    n_weekly = WEEK_PERIODS // PERIODS_PER_DAY - 1
    print(f"\n  GAM: {PERIODS_PER_DAY - 1} coeficientes diarios + "
          f"{WEEK_PERIODS}/{PERIODS_PER_DAY} - 1 = {n_weekly} semanales")

    fig = plot_representation_comparison(
        series, representations,
        title=f"Consumidor {data.index[0]}",
        save_path=output_dir / "demo_representations.png",
    )
    plt.close(fig)


def demo_clustering(data, output_dir: Path):
    """Demostración 3: clustering de cada representación"""
    print("\n" + "=" * 80)
    print("DEMOSTRACIÓN 3: CLUSTERING PAM E ÍNDICE DAVIES-BOULDIN")
    print("=" * 80)

    matrices = {
        'seas_profile': repr_matrix(data, func='seas_profile', args={'freq': PERIODS_PER_DAY},
                                    normalise=True),
        'gam': repr_matrix(data, func='gam', args={'freq': (PERIODS_PER_DAY, WEEK_PERIODS)},
                           normalise=True),
        'dft': repr_matrix(data, func='dft', args={'coef': PERIODS_PER_DAY}, normalise=True),
        'feaclip': repr_matrix(data, func='feaclip', windowing=True, win_size=PERIODS_PER_DAY),
    }

    for method, matrix in matrices.items():
        print(f"\n🔧 {method}: matriz {matrix.shape}")
        search = evaluate_k_range(matrix, k_range=K_RANGE)
        print(search.scores[['k', 'davies_bouldin', 'silhouette']].to_string(index=False))

        best_k = search.best_k('davies_bouldin')
        clusterer = search.get_clusterer(best_k)
        print(f"   ✓ k elegido: {best_k} | medoides: {list(data.index[clusterer.medoid_indices_])}")

        fig = plot_validity_index(search.scores, best_k=best_k,
                                  save_path=output_dir / f"demo_{method}_validity.png")
        plt.close(fig)

        fig = plot_cluster_profiles(matrix, clusterer.labels_, clusterer.medoid_indices_,
                                    title=f"{method} - k = {best_k}",
                                    save_path=output_dir / f"demo_{method}_clusters.png")
        plt.close(fig)

        plot_cluster_profiles_interactive(matrix, clusterer.labels_, clusterer.medoid_indices_,
                                          ids=data.index, title=f"{method} - k = {best_k}",
                                          html_path=output_dir / f"demo_{method}_clusters.html")


def main():
    output_dir = Path(sys.argv[1]) if len(sys.argv) > 1 else OUTPUTS_DIR / "demo"
    output_dir.mkdir(parents=True, exist_ok=True)

    data = demo_dataset()
    demo_representations(data, output_dir)
    demo_clustering(data, output_dir)

    print("\n" + "=" * 80)
    print(f"✓ Demo completada. Gráficas en: {output_dir}")
    print("=" * 80)


if __name__ == "__main__":
    main()
