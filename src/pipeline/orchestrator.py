"""
Orquestador del Pipeline de Perfiles Típicos de Consumo
Integra todos los componentes: lectura, limpieza, representaciones,
clustering PAM, selección de k, gráficas y monitoreo
"""
import argparse
import json
import logging
import sys
import traceback
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple, Union

import matplotlib.pyplot as plt
import numpy as np
import pandas as pd

from config.settings import (
    DEFAULT_METHODS, K_RANGE, LOG_FORMAT, OUTPUTS_DIR, PERIODS_PER_DAY,
    PRIMARY_VALIDITY_INDEX, REPRESENTATION_METHODS, ensure_dir,
)
from clustering import ClusteringSearchResult, ProfileClusterer, evaluate_k_range
from representations import repr_matrix
from pipeline.cleaning import LoadMatrixCleaner
from pipeline.connectors import DataConnectorFactory
from pipeline.monitoring import ClusteringQualityMonitor, LogLevel, PipelineExecutionTracker
from visualization import plot_cluster_profiles, plot_validity_index

logger = logging.getLogger(__name__)


@dataclass
class MethodResult:
    """Resultado completo de un método de representación"""

    method: str
    representation: np.ndarray
    search: ClusteringSearchResult
    chosen_k: int
    clusterer: ProfileClusterer

    @property
    def n_features(self) -> int:
        return int(self.representation.shape[1])


class ProfileClusteringOrchestrator:
    """
    Orquestador principal del pipeline
    Ejecuta todo el flujo: lectura -> limpieza -> representación -> clustering -> gráficas
    """

    def __init__(self,
                 source: Optional[Union[str, Path]] = None,
                 output_dir: Optional[Path] = None,
                 methods: Optional[Iterable[str]] = None,
                 k_range: Iterable[int] = K_RANGE,
                 n_clusters: Optional[int] = None,
                 index: str = PRIMARY_VALIDITY_INDEX,
                 make_plots: bool = True,
                 method_configs: Optional[Dict[str, Dict]] = None,
                 freq: int = PERIODS_PER_DAY):
        """
        Args:
            source: None/'elec_load' para el dataset de referencia o ruta a un CSV
            output_dir: Directorio de salida (CSV, figuras, modelos, reporte)
            methods: Métodos de representación a ejecutar
            k_range: Números de clusters candidatos
            n_clusters: k fijo; si se indica, reemplaza la elección por índice
            index: Índice de validez para elegir k
            make_plots: Si True, genera las gráficas
            method_configs: Configuraciones adicionales o que reemplazan REPRESENTATION_METHODS
            freq: Periodos por día (validación de la longitud de las series)
        """
        self.source = source
        self.output_dir = Path(output_dir or OUTPUTS_DIR)
        self.method_configs = {**REPRESENTATION_METHODS, **(method_configs or {})}
        self.methods = list(methods or DEFAULT_METHODS)
        self.k_range = list(k_range)
        self.n_clusters = n_clusters
        self.index = index
        self.make_plots = make_plots
        self.freq = freq

        unknown = [m for m in self.methods if m not in self.method_configs]
        if unknown:
            raise ValueError(f"Métodos desconocidos: {unknown}. Opciones: {list(self.method_configs)}")

        # Monitoreo: se crea en cada run() y se cierra al terminar
        self.tracker: Optional[PipelineExecutionTracker] = None
        self.monitor: Optional[ClusteringQualityMonitor] = None

        # Datos
        self.df_raw = None
        self.df_clean = None
        self.quality_report = None

        # Resultados por método
        self.results: Dict[str, MethodResult] = {}
        self.output_files: Dict[str, List[str]] = {}

    def run(self, save_outputs: bool = True) -> Tuple[Dict[str, MethodResult], Dict]:
        """
        Ejecuta el pipeline completo

        Args:
            save_outputs: Si True, guarda CSV, modelos y reporte en output_dir

        Returns:
            Tuple con (resultados por método, reporte de ejecución)
        """
        self.tracker = PipelineExecutionTracker("profile_clustering",
                                                logs_dir=self.output_dir / "logs")
        self.monitor = ClusteringQualityMonitor(self.tracker.logger)
        self.tracker.start_pipeline()

        try:
            # ETAPA 1: Lectura de datos
            self._run_data_loading()

            # ETAPA 2: Limpieza
            self._run_data_cleaning()

            # ETAPA 3 y 4: Representaciones y clustering
            representations = self._run_representations()
            self._run_clustering(representations)

            # ETAPA 5: Gráficas
            if self.make_plots:
                self._run_plotting()

            # ETAPA 6: Guardar resultados
            if save_outputs:
                self._save_outputs()

            self.tracker.complete_pipeline(success=True)
            report = self._generate_final_report(save=save_outputs)

            print("\n" + "="*70)
            print("PIPELINE COMPLETADO EXITOSAMENTE")
            print("="*70)
            for method, result in self.results.items():
                print(f"  {method:<14} {result.n_features:>4} features -> k = {result.chosen_k}")
            print(f"  Tiempo total: {report['execution_summary']['total_duration']:.2f}s")
            print("="*70 + "\n")

            return self.results, report

        except Exception as e:
            self.tracker.logger.log_event(
                LogLevel.ERROR,
                f"El pipeline falló: {e}"
            )
            self.tracker.complete_pipeline(success=False)
            raise

        finally:
            self.tracker.logger.close()

    def _run_data_loading(self):
        """Etapa 1: Carga de datos"""
        with self.tracker.stage("data_loading") as metadata:
            connector = DataConnectorFactory.create_connector(self.source)
            self.df_raw = connector.read_data()
            metadata.update({
                'source': str(self.source or 'elec_load'),
                'consumers': int(self.df_raw.shape[0]),
                'periods': int(self.df_raw.shape[1]),
            })

    def _run_data_cleaning(self):
        """Etapa 2: Limpieza y validación"""
        with self.tracker.stage("data_cleaning") as metadata:
            self.df_clean, self.quality_report = LoadMatrixCleaner().clean(self.df_raw, freq=self.freq)
            self.tracker.logger.log_data_quality_report(self.quality_report)

            metadata.update({
                'consumers_after_cleaning': int(len(self.df_clean)),
                'quality_passed': self.quality_report.passed,
                'issues_found': len(self.quality_report.issues),
            })

            if not self.quality_report.passed:
                raise ValueError(
                    "La matriz de consumo no pasó la validación de calidad:"
                    + self.quality_report.summary()
                )

    def _run_representations(self) -> Dict[str, np.ndarray]:
        """Etapa 3: Cálculo de representaciones para cada método"""
        representations = {}
        with self.tracker.stage("representation") as metadata:
            for method in self.methods:
                cfg = self.method_configs[method]
                logger.info(f"Calculando representación '{method}': {cfg.get('description', '')}")

                representations[method] = repr_matrix(
                    self.df_clean,
                    func=cfg['func'],
                    args=cfg.get('args'),
                    normalise=cfg.get('normalise', False),
                    func_norm=cfg.get('func_norm') or 'z',
                    windowing=cfg.get('windowing', False),
                    win_size=cfg.get('win_size'),
                )
                metadata[method] = list(representations[method].shape)
                print(f"  {method}: {representations[method].shape}")

        return representations

    def _run_clustering(self, representations: Dict[str, np.ndarray]):
        """Etapa 4: PAM para cada k y elección del número de clusters"""
        with self.tracker.stage("clustering") as metadata:
            for method, matrix in representations.items():
                logger.info(f"Clustering PAM de '{method}' para k en {self.k_range}...")
                search = evaluate_k_range(matrix, k_range=self.k_range)
                self.monitor.check_validity_scores(method, search.scores)

                if self.n_clusters is not None:
                    chosen_k = int(self.n_clusters)
                    if chosen_k not in search.clusterers:
                        search.clusterers[chosen_k] = ProfileClusterer(n_clusters=chosen_k).fit(matrix)
                else:
                    chosen_k = search.best_k(self.index)

                clusterer = search.get_clusterer(chosen_k)
                self.monitor.check_cluster_sizes(method, chosen_k, clusterer.cluster_sizes())

                self.results[method] = MethodResult(
                    method=method,
                    representation=matrix,
                    search=search,
                    chosen_k=chosen_k,
                    clusterer=clusterer,
                )
                metadata[method] = {
                    'chosen_k': chosen_k,
                    'index': self.index,
                    'cluster_sizes': clusterer.cluster_sizes().tolist(),
                }

    def _run_plotting(self):
        """Etapa 5: Gráficas de clusters e índices"""
        with self.tracker.stage("plotting") as metadata:
            figures_dir = ensure_dir(self.output_dir / "figures")
            for method, result in self.results.items():
                cfg = self.method_configs[method]
                clusters_path = figures_dir / f"{method}_clusters.png"
                fig = plot_cluster_profiles(
                    result.representation,
                    result.clusterer.labels_,
                    result.clusterer.medoid_indices_,
                    title=f"{cfg.get('description', method)} - k = {result.chosen_k}",
                    xlabel='Feature',
                    ylabel='Valor de la representación',
                    save_path=clusters_path,
                )
                plt.close(fig)

                validity_path = figures_dir / f"{method}_validity.png"
                fig = plot_validity_index(
                    result.search.scores,
                    index=self.index,
                    best_k=result.chosen_k,
                    title=f"{method}: índice de validez por k",
                    save_path=validity_path,
                )
                plt.close(fig)

                self.output_files.setdefault(method, []).extend([str(clusters_path), str(validity_path)])

            metadata['figures_dir'] = str(figures_dir)

    def _save_outputs(self):
        """Etapa 6: Guardar resultados"""
        with self.tracker.stage("saving_outputs") as metadata:
            ensure_dir(self.output_dir)
            ids = self.df_clean.index

            for method, result in self.results.items():
                representation_path = self.output_dir / f"{method}_representation.csv"
                pd.DataFrame(
                    result.representation,
                    index=ids,
                    columns=[f'F{i}' for i in range(1, result.n_features + 1)],
                ).to_csv(representation_path)

                validity_path = self.output_dir / f"{method}_validity.csv"
                result.search.scores.to_csv(validity_path, index=False)

                assignments_path = self.output_dir / f"{method}_assignments.csv"
                result.clusterer.assignments(ids).to_csv(assignments_path, index=False)

                model_path = result.clusterer.save(self.output_dir / "models" / f"{method}_clusterer.joblib")

                self.output_files.setdefault(method, []).extend([
                    str(representation_path), str(validity_path),
                    str(assignments_path), str(model_path),
                ])

            metadata['output_dir'] = str(self.output_dir)

    def _generate_final_report(self, save: bool = True) -> Dict:
        """Genera el reporte final de ejecución"""
        execution_report = self.tracker.get_execution_report()

        report = {
            'pipeline_version': '1.0.0',
            'execution_timestamp': datetime.now().isoformat(),
            'execution_summary': {
                'status': execution_report['status'],
                'start_time': execution_report['start_time'],
                'end_time': execution_report['end_time'],
                'total_duration': execution_report['total_duration'],
            },
            'data_summary': {
                'source': str(self.source or 'elec_load'),
                'input_consumers': int(len(self.df_raw)),
                'clean_consumers': int(len(self.df_clean)),
                'series_length': int(self.df_clean.shape[1]),
            },
            'quality_report': {
                'passed': self.quality_report.passed,
                'issues_count': len(self.quality_report.issues),
                'warnings_count': len(self.quality_report.warnings),
                'stats': self.quality_report.stats,
                'removed_consumers': self.quality_report.removed,
            },
            'methods': {
                method: {
                    'n_features': result.n_features,
                    'chosen_k': result.chosen_k,
                    'validity_index': self.index,
                    'scores': json.loads(result.search.scores.to_json(orient='records')),
                    'medoids': [str(self.df_clean.index[i]) for i in result.clusterer.medoid_indices_],
                    'cluster_sizes': result.clusterer.cluster_sizes().tolist(),
                    'files': self.output_files.get(method, []),
                }
                for method, result in self.results.items()
            },
            'stages': execution_report['stages'],
        }

        if save:
            report_path = self.output_dir / "clustering_report_latest.json"
            with open(report_path, 'w', encoding='utf-8') as f:
                json.dump(report, f, indent=2, ensure_ascii=False, default=str)
            self.tracker.save_report(keep_history=False)
            logger.info(f"✓ Reporte guardado en {report_path}")

        return report


# ============== FUNCIÓN DE UTILIDAD PRINCIPAL ==============

def run_profile_clustering(source: Optional[Union[str, Path]] = None,
                           output_dir: Optional[Path] = None,
                           methods: Optional[Iterable[str]] = None,
                           k_range: Iterable[int] = K_RANGE,
                           n_clusters: Optional[int] = None,
                           index: str = PRIMARY_VALIDITY_INDEX,
                           make_plots: bool = True) -> Tuple[Dict[str, MethodResult], Dict]:
    """
    Función principal para ejecutar el pipeline completo

    Args:
        source: None/'elec_load' para el dataset de referencia o ruta a un CSV
        output_dir: Directorio de salida (opcional)
        methods: Métodos de representación (por defecto los cuatro del análisis)
        k_range: Números de clusters candidatos (por defecto 2..7)
        n_clusters: k fijo (opcional)
        index: Índice de validez para elegir k
        make_plots: Si True, genera las gráficas

    Returns:
        Tuple con (resultados por método, reporte de ejecución)

    Example:
        >>> results, report = run_profile_clustering(
        ...     methods=['seas_profile', 'feaclip'],
        ...     k_range=range(2, 8),
        ... )
        >>> results['seas_profile'].chosen_k
    """
    orchestrator = ProfileClusteringOrchestrator(
        source=source,
        output_dir=output_dir,
        methods=methods,
        k_range=k_range,
        n_clusters=n_clusters,
        index=index,
        make_plots=make_plots,
    )
    return orchestrator.run(save_outputs=True)


def build_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Extrae perfiles típicos de consumo con representaciones de series y PAM"
    )
    parser.add_argument('--data', default=None,
                        help="CSV con la matriz de consumo (por defecto el dataset elec_load)")
    parser.add_argument('--output-dir', type=Path, default=None,
                        help="Directorio de salida (por defecto outputs/)")
    parser.add_argument('--methods', nargs='+', default=None, choices=list(REPRESENTATION_METHODS),
                        help="Métodos de representación a ejecutar")
    parser.add_argument('--k-min', type=int, default=min(K_RANGE))
    parser.add_argument('--k-max', type=int, default=max(K_RANGE))
    parser.add_argument('--k', type=int, default=None, help="Número de clusters fijo")
    parser.add_argument('--index', default=PRIMARY_VALIDITY_INDEX,
                        choices=['davies_bouldin', 'silhouette', 'calinski_harabasz'])
    parser.add_argument('--no-plots', action='store_true', help="No generar gráficas")
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_arg_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT)

    print("="*70)
    print("PERFILES TÍPICOS DE CONSUMO - CLUSTERING DE REPRESENTACIONES")
    print("="*70 + "\n")

    try:
        results, report = run_profile_clustering(
            source=args.data,
            output_dir=args.output_dir,
            methods=args.methods,
            k_range=range(args.k_min, args.k_max + 1),
            n_clusters=args.k,
            index=args.index,
            make_plots=not args.no_plots,
        )
    except Exception as e:
        print(f"\n❌ Error en el pipeline: {e}")
        traceback.print_exc()
        return 1

    print("📊 RESULTADOS:")
    for method, result in results.items():
        medoids = report['methods'][method]['medoids']
        print(f"  - {method}: k = {result.chosen_k}, medoides = {medoids}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
