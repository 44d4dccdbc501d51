"""
Tests para el Pipeline de Perfiles Típicos

Valida:
1. Dataset de referencia (dimensiones y determinismo)
2. Conectores (dataset incorporado, CSV ancho y largo)
3. Limpieza y reporte de calidad
4. Monitoreo
5. Ejecución completa del orquestador
"""

import json
import logging

import matplotlib
matplotlib.use('Agg')

import pytest
import pandas as pd
import numpy as np
from pathlib import Path
import sys

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from config.settings import (
    N_CONSUMERS, SERIES_LENGTH, TIME_COLUMNS, ID_COLUMN,
    DEFAULT_METHODS, REPRESENTATION_METHODS, get_config,
)
from pipeline.dataset import generate_elec_load, load_elec_load, ARCHETYPE_SHARES
from pipeline.connectors import (
    DataConnectorFactory, BundledElecLoadConnector, LoadMatrixCSVConnector, load_consumption_matrix,
)
from pipeline.cleaning import DataQualityReport, LoadMatrixCleaner, clean_consumption_matrix
from pipeline.monitoring import (
    PipelineLogger, ClusteringQualityMonitor, PipelineExecutionTracker, AlertType, LogLevel,
)
from pipeline.orchestrator import ProfileClusteringOrchestrator, main


@pytest.fixture(scope='module')
def elec_load():
    return load_elec_load()


@pytest.fixture
def small_matrix():
    """Matriz de 6 consumidores × 4 días"""
    return generate_elec_load(n_consumers=6, n_days=4)


class TestSettings:
    """Tests para la configuración central"""

    def test_methods_catalogue(self):
        assert DEFAULT_METHODS == ['seas_profile', 'gam', 'dft', 'feaclip']
        assert set(DEFAULT_METHODS) <= set(REPRESENTATION_METHODS)
        assert REPRESENTATION_METHODS['feaclip']['windowing']
        assert REPRESENTATION_METHODS['gam']['args']['freq'] == (48, 336)

    def test_get_config(self):
        config = get_config()

        assert config['clustering']['k_range'] == [2, 3, 4, 5, 6, 7]
        assert config['dataset']['series_length'] == 672
        assert config['representations']['gam']['args']['freq'] == (48, 336)


class TestDataset:
    """Tests para el dataset elec_load"""

    def test_shape_and_labels(self, elec_load):
        assert elec_load.shape == (N_CONSUMERS, SERIES_LENGTH) == (50, 672)
        assert elec_load.index.name == ID_COLUMN
        assert list(elec_load.columns) == TIME_COLUMNS
        assert elec_load.index[0] == 'C01'
        assert elec_load.index[-1] == 'C50'

    def test_deterministic(self, elec_load):
        pd.testing.assert_frame_equal(elec_load, load_elec_load())

    def test_seed_changes_data(self, elec_load):
        assert not np.allclose(elec_load.to_numpy(), load_elec_load(seed=1).to_numpy())

    def test_values_positive_and_complete(self, elec_load):
        assert not elec_load.isna().any().any()
        assert (elec_load.to_numpy() > 0).all()

    def test_archetypes(self):
        df, archetypes = generate_elec_load(return_archetypes=True)

        assert archetypes.index.equals(df.index)
        assert set(archetypes) == set(ARCHETYPE_SHARES)
        assert archetypes.value_counts()['residencial'] == 18

    def test_invalid_arguments(self):
        with pytest.raises(ValueError):
            generate_elec_load(n_consumers=0)


class TestConnectors:
    """Tests para los conectores de datos"""

    def test_factory_bundled(self):
        connector = DataConnectorFactory.create_connector()

        assert isinstance(connector, BundledElecLoadConnector)
        assert connector.validate_connection()
        assert connector.read_data().shape == (50, 672)

    def test_factory_csv(self, tmp_path):
        connector = DataConnectorFactory.create_connector(tmp_path / "datos.csv")
        assert isinstance(connector, LoadMatrixCSVConnector)

    def test_wide_csv(self, small_matrix, tmp_path):
        path = tmp_path / "matriz.csv"
        small_matrix.to_csv(path)

        df = load_consumption_matrix(path)

        assert df.shape == small_matrix.shape
        assert df.index.name == ID_COLUMN
        assert list(df.index) == list(small_matrix.index)
        np.testing.assert_allclose(df.to_numpy(), small_matrix.to_numpy())

    def test_long_csv(self, tmp_path):
        timestamps = pd.date_range('2024-01-01', periods=96, freq='30min')
        long_df = pd.concat([
            pd.DataFrame({'meter': meter, 'timestamp': timestamps, 'kw': np.arange(96) + offset})
            for meter, offset in [('A', 0.0), ('B', 100.0)]
        ])
        # Filas desordenadas: el conector ordena por timestamp
        long_df = long_df.sample(frac=1.0, random_state=0)
        path = tmp_path / "largo.csv"
        long_df.to_csv(path, index=False)

        df = load_consumption_matrix(path, layout='long', id_column='meter', value_column='kw')

        assert df.shape == (2, 96)
        assert list(df.columns[:2]) == ['T1', 'T2']
        np.testing.assert_allclose(df.loc['B'].to_numpy(), np.arange(96) + 100.0)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_consumption_matrix(tmp_path / "no_existe.csv")

    def test_missing_id_column(self, small_matrix, tmp_path):
        path = tmp_path / "sin_id.csv"
        small_matrix.to_csv(path, index=False)

        with pytest.raises(ValueError):
            load_consumption_matrix(path)


class TestCleaning:
    """Tests para limpieza y reporte de calidad"""

    def test_clean_matrix_passes(self, small_matrix):
        df, report = clean_consumption_matrix(small_matrix)

        assert report.passed
        assert df.shape == small_matrix.shape
        assert report.stats['dias'] == 4

    def test_short_gaps_interpolated(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[0, 10:13] = np.nan

        df, report = LoadMatrixCleaner().clean(data)

        assert report.passed
        assert len(df) == 6
        assert not df.isna().any().any()
        assert report.stats['valores_interpolados'] == 3

    def test_long_gap_and_sparse_series_removed(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[1, 20:29] = np.nan    # hueco de 9 periodos
        data.iloc[2, :40] = np.nan      # más del 5% faltante

        df, report = LoadMatrixCleaner().clean(data)
        issue_types = {issue['type'] for issue in report.issues}

        assert report.passed
        assert list(df.index) == [small_matrix.index[i] for i in (0, 3, 4, 5)]
        assert {'UNFILLABLE_GAPS', 'EXCESSIVE_MISSING_DATA'} <= issue_types
        assert report.removed == {
            small_matrix.index[1]: 'UNFILLABLE_GAPS',
            small_matrix.index[2]: 'EXCESSIVE_MISSING_DATA',
        }

    def test_gap_at_limit_interpolated(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[1, 20:24] = np.nan    # hueco de 4 periodos

        df, report = LoadMatrixCleaner().clean(data)

        assert small_matrix.index[1] in df.index
        assert report.removed == {}
        assert report.stats['valores_interpolados'] == 4
        # Interpolación lineal entre los extremos del hueco
        expected = np.linspace(data.iloc[1, 19], data.iloc[1, 24], 6)[1:-1]
        np.testing.assert_allclose(df.iloc[1, 20:24].to_numpy(), expected)

    def test_gap_above_limit_removed(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[1, 20:25] = np.nan    # hueco de 5 periodos

        df, report = LoadMatrixCleaner().clean(data)

        assert small_matrix.index[1] not in df.index
        assert report.removed == {small_matrix.index[1]: 'UNFILLABLE_GAPS'}

    def test_edge_gaps_filled_with_nearest_value(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[0, :3] = np.nan
        data.iloc[0, -2:] = np.nan

        df, report = LoadMatrixCleaner().clean(data)

        assert report.removed == {}
        assert (df.iloc[0, :3] == data.iloc[0, 3]).all()
        assert (df.iloc[0, -2:] == data.iloc[0, -3]).all()

    def test_sparse_constant_series_keeps_first_issue(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[3] = 1.5
        data.iloc[3, :40] = np.nan

        df, report = LoadMatrixCleaner().clean(data)
        issue_types = {issue['type'] for issue in report.issues}

        assert small_matrix.index[3] not in df.index
        assert report.removed == {small_matrix.index[3]: 'EXCESSIVE_MISSING_DATA'}
        assert 'CONSTANT_SERIES' not in issue_types

    def test_report_removed_ledger(self):
        report = DataQualityReport()
        report.add_issue('EXCESSIVE_MISSING_DATA', "faltantes", 'WARNING',
                         removed_consumers=pd.Index(['C01', 'C02']))
        report.add_issue('CONSTANT_SERIES', "constante", 'WARNING',
                         removed_consumers=pd.Index(['C02', 'C03']))
        report.add_issue('SERIES_LENGTH', "longitud")

        assert report.removed == {
            'C01': 'EXCESSIVE_MISSING_DATA',
            'C02': 'EXCESSIVE_MISSING_DATA',
            'C03': 'CONSTANT_SERIES',
        }
        assert report.issues[-1]['consumers'] == []
        assert not report.passed

    def test_constant_series_removed(self, small_matrix):
        data = small_matrix.copy()
        data.iloc[4] = 2.0

        df, report = LoadMatrixCleaner().clean(data)

        assert small_matrix.index[4] not in df.index
        assert any(issue['type'] == 'CONSTANT_SERIES' for issue in report.issues)

    def test_non_numeric_values_coerced(self, small_matrix):
        data = small_matrix.astype(object)
        data.iloc[0, 0] = 'n/d'

        df, report = LoadMatrixCleaner().clean(data)

        assert report.warnings
        assert df.dtypes.eq(float).all()

    def test_bad_series_length_fails(self, small_matrix):
        _, report = LoadMatrixCleaner().clean(small_matrix.iloc[:, :100])

        assert not report.passed
        assert report.issues[0]['type'] == 'SERIES_LENGTH'

    def test_too_few_consumers_fails(self, small_matrix):
        _, report = LoadMatrixCleaner().clean(small_matrix.iloc[:2])

        assert not report.passed
        assert 'INSUFFICIENT_CONSUMERS' in report.summary()


class TestMonitoring:
    """Tests para logging y monitoreo"""

    def test_logger_events_and_alerts(self, tmp_path):
        pipeline_logger = PipelineLogger("test_events", log_to_file=False, logs_dir=tmp_path)
        pipeline_logger.log_event(LogLevel.INFO, "inicio", {'k': 3})
        pipeline_logger.log_alert(AlertType.MISSING_DATA, "faltantes", 'MEDIUM')

        summary = pipeline_logger.get_summary()
        assert summary['total_events'] == 1
        assert summary['alerts_by_type']['MISSING_DATA'] == 1

        path = pipeline_logger.save_events_to_file("eventos.json")
        with open(path, encoding='utf-8') as f:
            saved = json.load(f)
        assert saved['events'][0]['metadata'] == {'k': 3}
        pipeline_logger.close()

    def test_cluster_size_alert(self):
        pipeline_logger = PipelineLogger("test_sizes", log_to_file=False)
        monitor = ClusteringQualityMonitor(pipeline_logger)

        assert monitor.check_cluster_sizes('gam', 3, [10, 8, 5])
        assert not monitor.check_cluster_sizes('gam', 3, [12, 10, 1])
        assert pipeline_logger.alerts[0]['alert_type'] == AlertType.DEGENERATE_CLUSTER.value
        pipeline_logger.close()

    def test_invalid_scores_alert(self):
        pipeline_logger = PipelineLogger("test_scores", log_to_file=False)
        monitor = ClusteringQualityMonitor(pipeline_logger)
        scores = pd.DataFrame({'k': [2, 3], 'davies_bouldin': [0.8, np.nan], 'silhouette': [0.4, 0.3]})

        assert not monitor.check_validity_scores('dft', scores)
        assert pipeline_logger.alerts[0]['metadata']['k'] == [3]
        pipeline_logger.close()

    def test_execution_tracker(self, tmp_path):
        tracker = PipelineExecutionTracker("test_tracker", logs_dir=tmp_path)
        tracker.start_pipeline()
        tracker.start_stage("representation")
        tracker.complete_stage("representation", metadata={'gam': [50, 53]})
        tracker.start_stage("clustering")
        tracker.complete_stage("clustering", success=False, error="fallo")
        tracker.complete_pipeline(success=False)

        report = tracker.get_execution_report()
        assert [s['status'] for s in report['stages']] == ['SUCCESS', 'FAILED']
        assert report['stages'][1]['errors'] == ['fallo']
        assert tracker.save_report().exists()
        tracker.logger.close()

    def test_stage_context_manager(self, tmp_path):
        tracker = PipelineExecutionTracker("test_context", logs_dir=tmp_path, log_to_file=False)
        tracker.start_pipeline()

        with tracker.stage("representation") as metadata:
            metadata['gam'] = [50, 53]

        with pytest.raises(ZeroDivisionError):
            with tracker.stage("clustering"):
                1 / 0

        assert tracker.stages[0]['metadata'] == {'gam': [50, 53]}
        assert tracker.stages[1]['status'] == 'FAILED'
        assert tracker.current_stage is None

        with pytest.raises(RuntimeError):
            tracker.complete_stage("plotting")
        tracker.logger.close()

    def test_new_logger_replaces_handlers(self, tmp_path):
        first = PipelineLogger("test_handlers", logs_dir=tmp_path / "primero")
        second = PipelineLogger("test_handlers", logs_dir=tmp_path / "segundo")
        second.log_event(LogLevel.INFO, "evento")

        assert not second.logger.propagate
        assert len(second.logger.handlers) == 2
        assert (tmp_path / "segundo" / "test_handlers_latest.log").read_text(encoding='utf-8')
        assert (tmp_path / "primero" / "test_handlers_latest.log").read_text(encoding='utf-8') == ''
        second.close()
        assert first.logger.handlers == []

    def test_unknown_severity(self):
        pipeline_logger = PipelineLogger("test_severity", log_to_file=False)

        with pytest.raises(ValueError):
            pipeline_logger.log_alert(AlertType.DATA_QUALITY, "problema", 'URGENTE')
        pipeline_logger.close()


@pytest.mark.slow
class TestOrchestrator:
    """Tests de ejecución completa del pipeline"""

    def test_full_run(self, tmp_path):
        orchestrator = ProfileClusteringOrchestrator(output_dir=tmp_path, k_range=range(2, 8))
        results, report = orchestrator.run()

        assert set(results) == {'seas_profile', 'gam', 'dft', 'feaclip'}
        assert {method: r.n_features for method, r in results.items()} == {
            'seas_profile': 48, 'gam': 53, 'dft': 48, 'feaclip': 112,
        }

        for method, result in results.items():
            assert result.search.k_values == [2, 3, 4, 5, 6, 7]
            assert result.chosen_k == result.search.best_k('davies_bouldin')
            assert len(result.clusterer.labels_) == 50

            for suffix in ('representation.csv', 'validity.csv', 'assignments.csv'):
                assert (tmp_path / f"{method}_{suffix}").exists()
            assert (tmp_path / "models" / f"{method}_clusterer.joblib").exists()
            assert (tmp_path / "figures" / f"{method}_clusters.png").exists()
            assert (tmp_path / "figures" / f"{method}_validity.png").exists()

        assert report['data_summary']['clean_consumers'] == 50
        assert len(report['methods']['gam']['scores']) == 6

        with open(tmp_path / "clustering_report_latest.json", encoding='utf-8') as f:
            saved = json.load(f)
        assert saved['methods']['feaclip']['chosen_k'] == results['feaclip'].chosen_k

        assignments = pd.read_csv(tmp_path / "seas_profile_assignments.csv")
        assert assignments['is_medoid'].sum() == results['seas_profile'].chosen_k

    def test_fixed_number_of_clusters(self, tmp_path):
        orchestrator = ProfileClusteringOrchestrator(
            output_dir=tmp_path, methods=['seas_profile', 'dft'],
            k_range=range(2, 5), n_clusters=6, make_plots=False,
        )
        results, _ = orchestrator.run(save_outputs=False)

        for result in results.values():
            assert result.chosen_k == 6
            assert len(result.clusterer.medoid_indices_) == 6
        assert not (tmp_path / "figures").exists()

    def test_logs_written_to_own_output_dir(self, tmp_path):
        ProfileClusteringOrchestrator(output_dir=tmp_path / "sin_ejecutar")
        orchestrator = ProfileClusteringOrchestrator(
            output_dir=tmp_path / "ejecutado", methods=['seas_profile'],
            n_clusters=3, make_plots=False,
        )
        orchestrator.run(save_outputs=False)

        assert (tmp_path / "ejecutado" / "logs" / "pipeline_profile_clustering_latest.log").exists()
        assert not (tmp_path / "sin_ejecutar" / "logs").exists()
        assert logging.getLogger("pipeline_profile_clustering").handlers == []

    def test_csv_source(self, tmp_path):
        data = generate_elec_load(n_consumers=12)
        path = tmp_path / "consumo.csv"
        data.to_csv(path)

        orchestrator = ProfileClusteringOrchestrator(
            source=path, output_dir=tmp_path / "salida", methods=['feaclip'],
            k_range=range(2, 5), make_plots=False,
        )
        results, report = orchestrator.run()

        assert results['feaclip'].representation.shape == (12, 112)
        assert report['data_summary']['source'] == str(path)

    def test_failed_quality_check(self, tmp_path):
        path = tmp_path / "pocos.csv"
        generate_elec_load(n_consumers=2).to_csv(path)

        orchestrator = ProfileClusteringOrchestrator(source=path, output_dir=tmp_path, make_plots=False)
        with pytest.raises(ValueError):
            orchestrator.run()

        assert orchestrator.tracker.stages[-1]['name'] == 'data_cleaning'
        assert orchestrator.tracker.stages[-1]['status'] == 'FAILED'

    def test_unknown_method(self, tmp_path):
        with pytest.raises(ValueError):
            ProfileClusteringOrchestrator(output_dir=tmp_path, methods=['wavelet'])

    def test_main_cli(self, tmp_path):
        exit_code = main([
            '--methods', 'seas_profile', '--output-dir', str(tmp_path),
            '--k-min', '2', '--k-max', '4', '--no-plots',
        ])

        assert exit_code == 0
        assert (tmp_path / "seas_profile_assignments.csv").exists()

    def test_main_cli_missing_data(self, tmp_path):
        assert main(['--data', str(tmp_path / "no_existe.csv"), '--output-dir', str(tmp_path)]) == 1


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
