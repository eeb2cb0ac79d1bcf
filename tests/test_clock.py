import pytest

from trafficmon.clock import now_ns, ns_to_sec


def test_now_ns_is_monotonic():
    samples = [now_ns() for _ in range(100)]
    assert samples == sorted(samples)


def test_ns_to_sec_one_second():
    assert ns_to_sec(1_000_000_000) == pytest.approx(1.0)
    assert ns_to_sec(0) == 0.0


def test_ns_to_sec_scales_linearly():
    assert ns_to_sec(3_000) == pytest.approx(3 * ns_to_sec(1_000))