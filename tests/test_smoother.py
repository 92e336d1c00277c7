"""Tests for the nod rolling window."""

import pytest

from livecheck.app.liveness.smoother import NOD_WINDOW_SIZE, RollingWindow


def _fill(samples):
    window = RollingWindow()
    for sample in samples:
        window = window.push(sample)
    return window


class TestRollingWindow:
    def test_default_capacity(self):
        assert RollingWindow().capacity == NOD_WINDOW_SIZE == 10

    def test_no_determination_before_full(self):
        window = RollingWindow()
        for i in range(9):
            window = window.push(float(i * 10))
            assert window.deviation() is None
            assert not window.ready

    def test_identical_samples_have_zero_deviation(self):
        window = _fill([4.0] * 10)
        assert window.deviation() == 0.0

    def test_spike_after_stable_baseline(self):
        window = _fill([0.1] * 9 + [2.0])
        assert window.deviation() == pytest.approx(1.9)

    def test_samples_stored_as_absolute_values(self):
        window = _fill([-3.0] * 9 + [3.0])
        assert window.samples[0] == 3.0
        assert window.deviation() == 0.0

    def test_oldest_sample_evicted(self):
        window = _fill([float(i) for i in range(12)])
        assert len(window) == 10
        assert window.samples[0] == 2.0
        assert window.samples[-1] == 11.0

    def test_push_does_not_mutate(self):
        window = RollingWindow()
        pushed = window.push(1.0)
        assert len(window) == 0
        assert len(pushed) == 1

    def test_cleared_keeps_capacity(self):
        window = RollingWindow(capacity=4).push(1.0).cleared()
        assert window.capacity == 4
        assert len(window) == 0

    def test_capacity_must_hold_baseline(self):
        with pytest.raises(ValueError):
            RollingWindow(capacity=1)
