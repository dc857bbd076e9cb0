"""Tests for the monthly forecasters."""

import numpy as np
import pandas as pd
import pytest

from shooting_report.models import (
    MODEL_REGISTRY,
    BaseForecaster,
    LinearTrendForecaster,
    MovingAverageForecaster,
    SARIMAXForecaster,
    SeasonalNaiveForecaster,
    get_model,
)


@pytest.fixture
def monthly_series():
    dates = pd.date_range('2018-01-01', periods=48, freq='MS')
    rng = np.random.default_rng(3)
    values = 100 + 25 * np.sin(2 * np.pi * dates.month / 12) - 0.5 * np.arange(48) + rng.normal(0, 3, 48)
    return pd.DataFrame({'date': dates, 'incidents': values})


def test_sarimax_forecast_has_interval(monthly_series):
    model = SARIMAXForecaster(order=(1, 0, 0), seasonal_order=(0, 0, 0, 0)).fit(monthly_series, 'incidents')

    df_fc = model.predict(6)

    assert list(df_fc.columns) == ['date', 'incidents', 'incidents_lower', 'incidents_upper']
    assert df_fc['date'].tolist() == list(pd.date_range('2022-01-01', periods=6, freq='MS'))
    assert (df_fc['incidents_lower'] <= df_fc['incidents']).all()
    assert (df_fc['incidents'] <= df_fc['incidents_upper']).all()


def test_sarimax_wider_interval_for_smaller_alpha(monthly_series):
    narrow = SARIMAXForecaster(order=(1, 0, 0), seasonal_order=(0, 0, 0, 0), alpha=0.2).fit(monthly_series, 'incidents')
    wide = SARIMAXForecaster(order=(1, 0, 0), seasonal_order=(0, 0, 0, 0), alpha=0.01).fit(monthly_series, 'incidents')

    narrow_width = (narrow.predict(3)['incidents_upper'] - narrow.predict(3)['incidents_lower'])
    wide_width = (wide.predict(3)['incidents_upper'] - wide.predict(3)['incidents_lower'])

    assert (wide_width > narrow_width).all()


def test_sarimax_metadata_and_summary(monthly_series):
    model = SARIMAXForecaster(order=(1, 0, 0), seasonal_order=(0, 0, 0, 0)).fit(monthly_series, 'incidents')

    meta = model.get_metadata()
    assert meta['order'] == (1, 0, 0)
    assert meta['last_date'] == '2021-12-01'
    assert np.isfinite(meta['aic'])
    assert '<table' in model.summary_html()


def test_seasonal_naive_repeats_monthly_means(monthly_series):
    model = SeasonalNaiveForecaster().fit(monthly_series, 'incidents')

    df_fc = model.predict(12)

    january_mean = monthly_series[monthly_series['date'].dt.month == 1]['incidents'].mean()
    assert df_fc['incidents'].iloc[0] == pytest.approx(january_mean)
    assert len(df_fc) == 12


def test_moving_average_is_flat(monthly_series):
    model = MovingAverageForecaster(window=3).fit(monthly_series, 'incidents')

    df_fc = model.predict(4)

    assert model.model_name == 'MA-3'
    assert df_fc['incidents'].nunique() == 1
    assert df_fc['incidents'].iloc[0] == pytest.approx(monthly_series['incidents'].tail(3).mean())


def test_linear_trend_extrapolates(monthly_series):
    model = LinearTrendForecaster().fit(monthly_series, 'incidents')

    df_fc = model.predict(24)

    assert model.slope < 0
    assert df_fc['incidents'].iloc[-1] < df_fc['incidents'].iloc[0]


def test_validate_scores_months_after_training(monthly_series):
    df_train = monthly_series.iloc[:-6]
    df_val = monthly_series.iloc[-6:]

    model = SeasonalNaiveForecaster().fit(df_train, 'incidents')
    metrics = model.validate(df_val, 'incidents')

    expected = df_train.assign(month=df_train['date'].dt.month).groupby('month')['incidents'].mean()
    predicted = df_val['date'].dt.month.map(expected).to_numpy()
    actual = df_val['incidents'].to_numpy()

    assert metrics['mae'] == pytest.approx(np.mean(np.abs(actual - predicted)))
    assert metrics['mape'] == pytest.approx(np.mean(np.abs((actual - predicted) / actual)) * 100)


def test_mape_ignores_zero_actuals():
    metrics = SeasonalNaiveForecaster()._calculate_metrics([0, 10, 20], [5, 12, 18])

    assert metrics['mape'] == pytest.approx(15.0)
    assert metrics['mae'] == pytest.approx(3.0)


def test_predict_before_fit_raises():
    with pytest.raises(ValueError):
        MovingAverageForecaster().predict(3)


def test_fit_requires_target_column(monthly_series):
    with pytest.raises(ValueError):
        LinearTrendForecaster().fit(monthly_series, 'murders')


def test_save_and_load(tmp_path, monthly_series):
    model = MovingAverageForecaster(window=6).fit(monthly_series, 'incidents')
    path = tmp_path / 'models' / 'ma.pkl'

    model.save(path)
    loaded = BaseForecaster.load(path)

    pd.testing.assert_frame_equal(loaded.predict(3), model.predict(3))


def test_registry():
    assert set(MODEL_REGISTRY) == {'sarimax', 'seasonal_naive', 'moving_average', 'linear_trend'}
    assert isinstance(get_model('moving_average', window=6), MovingAverageForecaster)
    assert get_model('moving_average', window=6).window == 6

    with pytest.raises(ValueError, match='Unknown model'):
        get_model('prophet')


def test_sarimax_default_seasonal_model(monthly_series):
    model = SARIMAXForecaster().fit(monthly_series, 'incidents')

    df_fc = model.predict(12)

    assert model.seasonal_order == (1, 1, 1, 12)
    assert len(df_fc) == 12
    assert df_fc['date'].iloc[0] == pd.Timestamp('2022-01-01')
    assert (df_fc['incidents_lower'] <= df_fc['incidents']).all()
    assert (df_fc['incidents'] <= df_fc['incidents_upper']).all()
    for metric in ['mape', 'mae', 'rmse']:
        assert np.isfinite(model.training_metrics[metric]), metric


def test_sarimax_minimum_months():
    assert SARIMAXForecaster().min_observations == 37
    assert SARIMAXForecaster(order=(1, 0, 0), seasonal_order=(0, 0, 0, 0)).min_observations == 3
    assert MovingAverageForecaster().min_observations == 1


def test_sarimax_rejects_short_series(monthly_series):
    with pytest.raises(ValueError, match='at least 37 months'):
        SARIMAXForecaster().fit(monthly_series.head(14), 'incidents')
