"""
Tests para las Representaciones de Series de Tiempo

Valida:
1. Longitudes de cada representación (perfil, GAM, DFT, FeaClip, PAA)
2. Determinismo
3. Normalizaciones
4. Cálculo por matriz y por ventanas
"""

import pytest
import numpy as np
import pandas as pd
from pathlib import Path
import sys

# Agregar src al path
sys.path.insert(0, str(Path(__file__).parent.parent / 'src'))

from config.settings import REPRESENTATION_METHODS
from pipeline.dataset import generate_elec_load
from representations import (
    norm_z, norm_z_params, norm_min_max, norm_min_max_params, denorm_z, denorm_min_max,
    repr_seas_profile, repr_gam, gam_coefficient_count, repr_dft,
    repr_feaclip, clipping, run_lengths, FEACLIP_FEATURES,
    repr_paa, repr_windowing, repr_matrix, representation_length, get_representation,
)


@pytest.fixture(scope='module')
def elec_load():
    """Dataset de 10 consumidores × 14 días"""
    return generate_elec_load(n_consumers=10)


@pytest.fixture
def series(elec_load):
    return elec_load.iloc[0].to_numpy()


class TestNormalization:
    """Tests para normalizaciones"""

    def test_norm_z_mean_and_sd(self, series):
        normalized = norm_z(series)

        assert normalized.shape == series.shape
        assert abs(normalized.mean()) < 1e-10
        assert abs(normalized.std(ddof=1) - 1.0) < 1e-10

    def test_norm_z_params_roundtrip(self, series):
        normalized, mean, sd = norm_z_params(series)
        np.testing.assert_allclose(denorm_z(normalized, mean, sd), series)

    def test_norm_min_max_range(self, series):
        normalized, x_min, x_max = norm_min_max_params(series)

        assert normalized.min() == pytest.approx(0.0)
        assert normalized.max() == pytest.approx(1.0)
        np.testing.assert_allclose(denorm_min_max(normalized, x_min, x_max), series)

    def test_constant_series_maps_to_zeros(self):
        constant = np.full(96, 3.5)

        np.testing.assert_array_equal(norm_z(constant), np.zeros(96))
        np.testing.assert_array_equal(norm_min_max(constant), np.zeros(96))

    def test_invalid_input(self):
        with pytest.raises(ValueError):
            norm_z([])
        with pytest.raises(ValueError):
            norm_z(np.ones((4, 4)))


class TestSeasonalProfile:
    """Tests para el perfil estacional"""

    def test_length_equals_freq(self, series):
        assert repr_seas_profile(series, freq=48).shape == (48,)

    def test_deterministic(self, series):
        np.testing.assert_array_equal(repr_seas_profile(series, freq=48), repr_seas_profile(series, freq=48))

    def test_mean_profile_of_repeated_day(self):
        day = np.arange(48, dtype=float)
        x = np.tile(day, 14)

        np.testing.assert_allclose(repr_seas_profile(x, freq=48), day)
        np.testing.assert_allclose(repr_seas_profile(x, freq=48, func='median'), day)

    def test_mean_per_position(self):
        x = np.array([1, 10, 3, 20, 5, 30], dtype=float)
        np.testing.assert_allclose(repr_seas_profile(x, freq=2), [3.0, 20.0])

    def test_series_shorter_than_season(self):
        with pytest.raises(ValueError):
            repr_seas_profile(np.arange(10), freq=48)

    def test_unknown_aggregation(self, series):
        with pytest.raises(ValueError):
            repr_seas_profile(series, freq=48, func='moda')


class TestGAM:
    """Tests para la representación GAM"""

    def test_daily_and_weekly_length(self, series):
        coefficients = repr_gam(norm_z(series), freq=(48, 336))

        assert coefficients.shape == (53,)
        assert gam_coefficient_count((48, 336)) == 53

    def test_daily_only_length(self, series):
        assert repr_gam(norm_z(series), freq=48).shape == (47,)
        assert gam_coefficient_count(48) == 47

    def test_deterministic(self, series):
        first = repr_gam(series, freq=(48, 336))
        second = repr_gam(series, freq=(48, 336))
        np.testing.assert_array_equal(first, second)

    def test_pure_daily_pattern_has_no_weekly_effect(self):
        day = np.sin(2 * np.pi * np.arange(48) / 48) + 0.3 * np.cos(6 * np.pi * np.arange(48) / 48)
        x = np.tile(day, 14)

        coefficients = repr_gam(x, freq=(48, 336))
        np.testing.assert_allclose(coefficients[47:], 0.0, atol=1e-6)

    def test_invalid_frequencies(self, series):
        with pytest.raises(ValueError):
            repr_gam(series, freq=(48, 100))
        with pytest.raises(ValueError):
            repr_gam(series, freq=(48, 336, 672))

    def test_series_shorter_than_week(self, series):
        with pytest.raises(ValueError):
            repr_gam(series[:200], freq=(48, 336))


class TestDFT:
    """Tests para la representación DFT"""

    def test_length_equals_coef(self, series):
        assert repr_dft(norm_z(series), coef=48).shape == (48,)

    def test_deterministic(self, series):
        np.testing.assert_array_equal(repr_dft(series, coef=48), repr_dft(series, coef=48))

    def test_constant_series_is_preserved(self):
        np.testing.assert_allclose(repr_dft(np.full(96, 5.0), coef=4), np.full(4, 5.0))

    def test_coef_out_of_range(self, series):
        with pytest.raises(ValueError):
            repr_dft(series, coef=0)
        with pytest.raises(ValueError):
            repr_dft(series, coef=series.size // 2 + 1)


class TestFeaClip:
    """Tests para FeaClip"""

    def test_clipping(self):
        np.testing.assert_array_equal(clipping([1, 5, 1, 5]), [0, 1, 0, 1])

    def test_run_lengths(self):
        values, lengths = run_lengths([0, 0, 1, 1, 1, 0])

        np.testing.assert_array_equal(values, [0, 1, 0])
        np.testing.assert_array_equal(lengths, [2, 3, 1])

    def test_worked_example(self):
        # bits: 0 0 1 1 1 0 1 0
        features = repr_feaclip([1, 1, 5, 5, 5, 1, 5, 1])

        assert len(FEACLIP_FEATURES) == 8
        np.testing.assert_array_equal(features, [3, 4, 2, 4, 2, 1, 0, 0])

    def test_starts_and_ends_with_ones(self):
        # bits: 1 1 0 1
        features = dict(zip(FEACLIP_FEATURES, repr_feaclip([9, 9, 1, 9])))

        assert features['f_1'] == 2
        assert features['l_1'] == 1
        assert features['f_0'] == 0
        assert features['l_0'] == 0
        assert features['crossings'] == 2

    def test_windowed_length(self, series):
        features = repr_windowing(series, 48, repr_feaclip)
        assert features.shape == (14 * 8,)

    def test_windowed_deterministic(self, series):
        first = repr_windowing(series, 48, repr_feaclip)
        second = repr_windowing(series, 48, repr_feaclip)
        np.testing.assert_array_equal(first, second)


class TestPAAAndWindowing:
    """Tests para PAA y aplicación por ventanas"""

    def test_paa_incomplete_last_block(self):
        np.testing.assert_allclose(repr_paa(np.arange(10), q=4), [1.5, 5.5, 8.5])

    def test_paa_length(self, series):
        assert repr_paa(series, q=5).shape == (int(np.ceil(series.size / 5)),)

    def test_windowing_concatenates(self):
        x = np.arange(12, dtype=float)
        np.testing.assert_allclose(repr_windowing(x, 4, repr_paa, q=2), [0.5, 2.5, 4.5, 6.5, 8.5, 10.5])

    def test_windowing_requires_divisible_length(self, series):
        with pytest.raises(ValueError):
            repr_windowing(series, 50, repr_feaclip)


class TestReprMatrix:
    """Tests para el cálculo de representaciones por matriz"""

    @pytest.mark.parametrize('func,args,windowing,expected', [
        ('seas_profile', {'freq': 48}, False, 48),
        ('gam', {'freq': (48, 336)}, False, 53),
        ('dft', {'coef': 48}, False, 48),
        ('feaclip', {}, True, 112),
    ])
    def test_shapes(self, elec_load, func, args, windowing, expected):
        matrix = repr_matrix(
            elec_load, func=func, args=args,
            normalise=not windowing, windowing=windowing,
            win_size=48 if windowing else None,
        )

        assert matrix.shape == (len(elec_load), expected)
        assert representation_length(
            func, elec_load.shape[1], windowing=windowing,
            win_size=48 if windowing else None, **args
        ) == expected

    @pytest.mark.parametrize('method', list(REPRESENTATION_METHODS))
    def test_configured_methods_deterministic(self, elec_load, method):
        cfg = REPRESENTATION_METHODS[method]
        kwargs = dict(
            func=cfg['func'], args=cfg['args'], normalise=cfg['normalise'],
            func_norm=cfg['func_norm'] or 'z', windowing=cfg['windowing'], win_size=cfg['win_size'],
        )

        np.testing.assert_array_equal(repr_matrix(elec_load, **kwargs), repr_matrix(elec_load, **kwargs))

    def test_normalise_matches_single_series(self, elec_load):
        matrix = repr_matrix(elec_load, func='seas_profile', args={'freq': 48}, normalise=True)
        expected = repr_seas_profile(norm_z(elec_load.iloc[3].to_numpy()), freq=48)

        np.testing.assert_allclose(matrix[3], expected)

    def test_callable_representation(self, elec_load):
        matrix = repr_matrix(elec_load, func=np.max)
        np.testing.assert_allclose(matrix[:, 0], elec_load.max(axis=1).to_numpy())

    def test_missing_values_rejected(self, elec_load):
        data = elec_load.copy()
        data.iloc[0, 5] = np.nan

        with pytest.raises(ValueError):
            repr_matrix(data, func='seas_profile', args={'freq': 48})

    def test_windowing_requires_win_size(self, elec_load):
        with pytest.raises(ValueError):
            repr_matrix(elec_load, func='feaclip', windowing=True)

    def test_unknown_representation(self):
        with pytest.raises(ValueError):
            get_representation('wavelet')

    def test_paa_length_helper(self):
        assert representation_length('paa', 10, q=4) == 3


if __name__ == "__main__":
    pytest.main([__file__, "-v", "--tb=short"])
