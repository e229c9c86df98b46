import pytest

from app.aggregator import TimeSeriesAggregator

T0 = 1_000.0


def test_last_value_and_window_filter():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0)
    agg.update(0, T0 + 1, 10)
    agg.update(0, T0 + 20, 20)
    agg.update(0, T0 + 40, 30)

    assert agg.last(0) == 30
    pts = agg.window(0, 10, now_epoch=T0 + 40)
    assert [p.latency_ms for p in pts] == [30]
    pts = agg.window(0, 30, now_epoch=T0 + 40)
    assert [p.latency_ms for p in pts] == [20, 30]


def test_empty_series():
    agg = TimeSeriesAggregator(["a", "b"], window_sec=30, started_epoch=T0)
    assert agg.last(1) is None
    assert agg.y_axis_bounds(T0) == (0.0, 0.0)
    h = agg.header_stats(T0)[1]
    assert (h.name, h.last_ms, h.min_ms, h.max_ms) == ("b", None, None, None)


def test_y_bounds_pad_ten_percent_across_targets():
    agg = TimeSeriesAggregator(["a", "b"], window_sec=30, started_epoch=T0)
    agg.update(0, T0 + 1, 20)
    agg.update(1, T0 + 2, 100)
    agg.update(1, T0 + 3, 50)

    lo, hi = agg.y_axis_bounds(T0 + 5)
    assert lo == pytest.approx(18.0)
    assert hi == pytest.approx(110.0)


def test_y_bounds_ignore_points_outside_window():
    agg = TimeSeriesAggregator(["a"], window_sec=10, started_epoch=T0)
    agg.update(0, T0, 1000)
    agg.update(0, T0 + 15, 40)
    assert agg.y_axis_bounds(T0 + 15) == pytest.approx((36.0, 44.0))


def test_x_bounds_clamped_to_run_start():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0)
    assert agg.x_axis_bounds(T0 + 5) == (T0, T0 + 30)


def test_x_bounds_slide_after_window_filled():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0)
    assert agg.x_axis_bounds(T0 + 100) == (T0 + 70, T0 + 100)


def test_header_stats_over_window():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0)
    for i, v in enumerate([15, 5, 25]):
        agg.update(0, T0 + i, v)
    h = agg.header_stats(T0 + 3)[0]
    assert (h.last_ms, h.min_ms, h.max_ms) == (25, 5, 25)


def test_window_longer_than_display_uses_retention():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0, retention_sec=60)
    for t in range(61):
        agg.update(0, T0 + t, t)

    assert len(agg.window(0, 60, now_epoch=T0 + 60)) == 61
    # exibição continua limitada à janela de 30 s
    assert agg.header_stats(T0 + 60)[0].min_ms == 30


def test_window_beyond_retention_is_rejected():
    agg = TimeSeriesAggregator(["a"], window_sec=30, started_epoch=T0)
    for t in range(61):
        agg.update(0, T0 + t, t)

    assert agg.retention_sec == 30
    with pytest.raises(ValueError):
        agg.window(0, 60, now_epoch=T0 + 60)
