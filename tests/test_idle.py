import pytest
from blinkgate.filters.idle import (IdleEstimator, IdleEstimatorState, IdleParams,
                                    on_blink_edge, should_process, reset_idle)

def test_first_edge_is_seeded():
    s = on_blink_edge(10.0, reset_idle())
    assert s.estimated_interval == pytest.approx(4.0)
    assert s.interval_variance == pytest.approx(0.0)
    assert s.idle_duration == pytest.approx(1.0)
    assert s.previous_blink_timestamp == 10.0

def test_equal_gaps_converge_toward_one_second():
    est = IdleEstimator()
    xs = []
    for t in (0.0, 1.0, 2.0, 3.0):
        est(t)
        xs.append(est.state.estimated_interval)
    assert all(b < a for a, b in zip(xs, xs[1:]))
    assert all(x > 1.0 for x in xs)
    s = est.state
    assert s.estimated_interval == pytest.approx(2.265625)
    assert s.interval_variance == pytest.approx(0.94921875)
    expected = min(max(0.25 / (1/s.estimated_interval + 0.02*s.interval_variance), 0.3), 1.0)
    assert s.idle_duration == pytest.approx(expected)
    assert s.idle_duration == pytest.approx(0.54305, abs=1e-4)

def test_steady_fast_blinking_hits_lower_bound():
    est = IdleEstimator()
    for i in range(40):
        est(float(i))
    assert est.state.estimated_interval == pytest.approx(1.0, abs=1e-3)
    assert est.state.idle_duration == pytest.approx(0.3)

def test_slow_blinking_hits_upper_bound():
    est = IdleEstimator()
    for i in range(10):
        est(i*8.0)
    assert est.state.idle_duration == pytest.approx(1.0)

def test_non_increasing_timestamp_is_clamped():
    s = on_blink_edge(5.0, reset_idle())
    s = on_blink_edge(4.0, s)
    assert s.estimated_interval > 0 and s.interval_variance >= 0
    assert 0.3 <= s.idle_duration <= 1.0
    assert s.previous_blink_timestamp == 4.0

def test_gate():
    s = IdleEstimatorState(idle_duration=1.0, previous_blink_timestamp=10.0)
    for t in (10.0, 10.5, 10.999):
        assert should_process(t, s) is False
    for t in (11.0, 11.5, 100.0):
        assert should_process(t, s) is True
    assert should_process(0.0, reset_idle()) is True

def test_reset():
    est = IdleEstimator(IdleParams(seed_interval=3.0))
    est(1.0); est(2.0)
    est.reset()
    assert est.state == IdleEstimatorState(estimated_interval=3.0)
    assert est.admit(2.1)
