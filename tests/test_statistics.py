import pytest

from pulsenet.statistics import (
    average,
    jitter,
    megabits_per_second,
    round2,
    summarize_latency,
)


def test_jitter_of_single_sample_is_zero():
    assert jitter([42.0]) == 0.0


def test_jitter_of_empty_set_is_zero():
    assert jitter([]) == 0.0


def test_jitter_is_mean_of_adjacent_differences():
    assert jitter([10, 20, 15]) == pytest.approx(7.5)


def test_jitter_uses_absolute_differences():
    assert jitter([30, 10, 30, 10]) == pytest.approx(20.0)


def test_average():
    assert average([10, 20, 15]) == pytest.approx(15.0)
    assert average([]) == 0.0


def test_summarize_latency():
    stats = summarize_latency([10, 20, 15], failures=1)

    assert stats.samples == (10.0, 20.0, 15.0)
    assert stats.failures == 1
    assert stats.average_ms == pytest.approx(15.0)
    assert stats.jitter_ms == pytest.approx(7.5)
    assert stats.all_failed is False


def test_all_failed():
    assert summarize_latency([5, 5], failures=2).all_failed is True


def test_megabits_per_second():
    assert megabits_per_second(1_250_000, 1.0) == pytest.approx(10.0)


@pytest.mark.parametrize("byte_count,elapsed", [(0, 1.0), (1000, 0.0), (-5, 1.0)])
def test_megabits_per_second_never_negative(byte_count, elapsed):
    assert megabits_per_second(byte_count, elapsed) == 0.0


def test_round2():
    assert round2(12.3456) == 12.35
    assert round2(0) == 0.0
