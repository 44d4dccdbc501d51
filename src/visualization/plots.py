"""
Visualización de Perfiles Típicos de Consumo

Gráficas de miembros y medoides por cluster (una faceta por cluster), del
índice de validez frente a k y de las representaciones de un consumidor.
"""

import logging
import math
from pathlib import Path
from typing import Dict, Optional, Sequence, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd
import plotly.graph_objects as go
import seaborn as sns
from plotly.subplots import make_subplots

from config.settings import PLOT_STYLE

logger = logging.getLogger(__name__)

INDEX_LABELS = {
    'davies_bouldin': 'Índice Davies-Bouldin',
    'silhouette': 'Silhouette promedio',
    'calinski_harabasz': 'Índice Calinski-Harabasz',
}


def _facet_grid(n_clusters: int):
    n_cols = min(PLOT_STYLE['max_cols'], n_clusters)
    n_rows = math.ceil(n_clusters / n_cols)
    return n_rows, n_cols


def _save(fig, save_path: Optional[Union[str, Path]]):
    if save_path is None:
        return
    save_path = Path(save_path)
    save_path.parent.mkdir(parents=True, exist_ok=True)
    fig.savefig(save_path, dpi=PLOT_STYLE['dpi'], bbox_inches='tight')
    logger.info(f"✓ Gráfica guardada en {save_path}")


def plot_cluster_profiles(data,
                          labels: Sequence[int],
                          medoid_indices: Sequence[int],
                          title: Optional[str] = None,
                          xlabel: str = 'Índice',
                          ylabel: str = 'Valor',
                          save_path: Optional[Union[str, Path]] = None):
    """
    Gráfica de miembros y medoide de cada cluster

    Args:
        data: Matriz consumidores × puntos (representaciones o series originales)
        labels: Cluster de cada consumidor
        medoid_indices: Índice del consumidor medoide de cada cluster
        title: Título general
        xlabel, ylabel: Etiquetas de ejes
        save_path: Ruta PNG (opcional)

    Returns:
        Figura de matplotlib
    """
    data = np.asarray(data, dtype=float)
    labels = np.asarray(labels)
    medoid_indices = np.asarray(medoid_indices)

    if data.shape[0] != labels.shape[0]:
        raise ValueError("El número de etiquetas no coincide con el número de consumidores")

    n_clusters = len(medoid_indices)
    n_rows, n_cols = _facet_grid(n_clusters)
    x = np.arange(1, data.shape[1] + 1)

    sns.set_style(PLOT_STYLE['seaborn_style'])
    fig, axes = plt.subplots(
        n_rows, n_cols,
        figsize=(PLOT_STYLE['facet_width'] * n_cols, PLOT_STYLE['facet_height'] * n_rows),
        sharex=True, sharey=True, squeeze=False
    )

    for cluster, medoid in enumerate(medoid_indices):
        ax = axes[cluster // n_cols, cluster % n_cols]
        members = np.flatnonzero(labels == cluster)

        for member in members:
            ax.plot(x, data[member], color=PLOT_STYLE['member_color'],
                    alpha=PLOT_STYLE['member_alpha'], linewidth=0.8)
        ax.plot(x, data[medoid], color=PLOT_STYLE['medoid_color'],
                linewidth=PLOT_STYLE['medoid_linewidth'], label='Medoide')

        ax.set_title(f"Cluster {cluster + 1} (n = {len(members)})", fontweight='bold')
        ax.grid(True, alpha=0.3)

    for empty in range(n_clusters, n_rows * n_cols):
        axes[empty // n_cols, empty % n_cols].set_visible(False)

    for ax in axes[-1, :]:
        ax.set_xlabel(xlabel)
    for ax in axes[:, 0]:
        ax.set_ylabel(ylabel)

    axes[0, 0].legend(loc='upper right')
    if title:
        fig.suptitle(title, fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path)
    return fig


def plot_validity_index(scores: pd.DataFrame,
                        index: str = 'davies_bouldin',
                        best_k: Optional[int] = None,
                        title: Optional[str] = None,
                        save_path: Optional[Union[str, Path]] = None):
    """
    Índice de validez frente al número de clusters

    Args:
        scores: DataFrame con columna 'k' y la columna del índice
        index: Índice a graficar
        best_k: k elegido (se resalta)
        title: Título
        save_path: Ruta PNG (opcional)

    Returns:
        Figura de matplotlib
    """
    if index not in scores.columns:
        raise ValueError(f"El DataFrame no contiene el índice '{index}'")

    sns.set_style(PLOT_STYLE['seaborn_style'])
    fig, ax = plt.subplots(figsize=(8, 4.5))

    sns.lineplot(data=scores, x='k', y=index, marker='o', linewidth=2, color='#2E86AB', ax=ax)

    if best_k is not None and best_k in set(scores['k']):
        best_value = scores.loc[scores['k'] == best_k, index].iloc[0]
        ax.scatter([best_k], [best_value], s=150, color=PLOT_STYLE['medoid_color'],
                   zorder=5, label=f'k elegido = {best_k}')
        ax.legend()

    ax.set_xticks(scores['k'].astype(int).tolist())
    ax.set_xlabel('Número de clusters (k)')
    ax.set_ylabel(INDEX_LABELS.get(index, index))
    ax.set_title(title or INDEX_LABELS.get(index, index), fontweight='bold')
    ax.grid(True, alpha=0.3)
    fig.tight_layout()

    _save(fig, save_path)
    return fig


def plot_representation_comparison(series,
                                   representations: Dict[str, np.ndarray],
                                   title: Optional[str] = None,
                                   save_path: Optional[Union[str, Path]] = None):
    """Serie original de un consumidor y sus representaciones, una por fila"""
    sns.set_style(PLOT_STYLE['seaborn_style'])
    n_panels = len(representations) + 1
    fig, axes = plt.subplots(n_panels, 1, figsize=(12, 2.6 * n_panels), squeeze=False)

    series = np.asarray(series, dtype=float)
    axes[0, 0].plot(np.arange(1, series.size + 1), series, color='#2E86AB', linewidth=1)
    axes[0, 0].set_title(f"Serie original ({series.size} puntos)", fontweight='bold')

    for ax, (name, values) in zip(axes[1:, 0], representations.items()):
        values = np.asarray(values, dtype=float)
        ax.plot(np.arange(1, values.size + 1), values, marker='.', color='#A23B72', linewidth=1.2)
        ax.set_title(f"{name} ({values.size} features)", fontweight='bold')

    for ax in axes[:, 0]:
        ax.grid(True, alpha=0.3)

    if title:
        fig.suptitle(title, fontsize=14, fontweight='bold')
    fig.tight_layout()

    _save(fig, save_path)
    return fig


def plot_cluster_profiles_interactive(data,
                                      labels: Sequence[int],
                                      medoid_indices: Sequence[int],
                                      ids: Optional[Sequence] = None,
                                      title: Optional[str] = None,
                                      html_path: Optional[Union[str, Path]] = None) -> go.Figure:
    """
    Versión interactiva (plotly) de plot_cluster_profiles

    Args:
        data: Matriz consumidores × puntos
        labels: Cluster de cada consumidor
        medoid_indices: Medoide de cada cluster
        ids: Identificadores de los consumidores (para el hover)
        title: Título
        html_path: Ruta HTML (opcional)

    Returns:
        Figura de plotly
    """
    data = np.asarray(data, dtype=float)
    labels = np.asarray(labels)
    ids = list(ids) if ids is not None else list(range(data.shape[0]))

    n_clusters = len(medoid_indices)
    n_rows, n_cols = _facet_grid(n_clusters)
    x = np.arange(1, data.shape[1] + 1)

    subplot_titles = [
        f"Cluster {c + 1} (n = {int((labels == c).sum())})" for c in range(n_clusters)
    ]
    fig = make_subplots(rows=n_rows, cols=n_cols, subplot_titles=subplot_titles,
                        shared_xaxes=True, shared_yaxes=True)

    for cluster, medoid in enumerate(medoid_indices):
        row, col = cluster // n_cols + 1, cluster % n_cols + 1

        for member in np.flatnonzero(labels == cluster):
            fig.add_trace(go.Scatter(
                x=x, y=data[member], mode='lines', name=str(ids[member]),
                line=dict(color=PLOT_STYLE['member_color'], width=1),
                opacity=PLOT_STYLE['member_alpha'], showlegend=False,
            ), row=row, col=col)

        fig.add_trace(go.Scatter(
            x=x, y=data[medoid], mode='lines', name=f"Medoide {ids[medoid]}",
            line=dict(color=PLOT_STYLE['medoid_color'], width=3),
        ), row=row, col=col)

    fig.update_layout(
        title=title,
        template='plotly_white',
        height=320 * n_rows,
        hovermode='closest',
    )

    if html_path is not None:
        html_path = Path(html_path)
        html_path.parent.mkdir(parents=True, exist_ok=True)
        fig.write_html(str(html_path))
        logger.info(f"✓ Gráfica interactiva guardada en {html_path}")

    return fig
