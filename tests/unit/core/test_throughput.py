"""Unit tests for the adaptive worker-count controller."""

import pytest
from hypothesis import given
from hypothesis import strategies as st

from floorscan.core.io_load import StaticSignal
from floorscan.core.throughput import ThroughputController, adjust


class TestAdjust:
    """Test the pure hysteresis step."""

    @pytest.mark.parametrize(
        ("queue_length", "expected"),
        [
            (3.0, 7),  # above high threshold
            (0.5, 9),  # below low threshold
            (1.5, 8),  # inside the band
            (2.0, 8),  # high threshold is exclusive
            (1.0, 8),  # low threshold is exclusive
        ],
    )
    def test_hysteresis_band(self, queue_length: float, expected: int) -> None:
        assert adjust(8, queue_length, 1, 16, 2.0, 1.0) == expected

    def test_floor_at_min_threads(self) -> None:
        assert adjust(1, 50.0, 1, 16, 2.0, 1.0) == 1

    def test_cap_at_max_threads(self) -> None:
        assert adjust(16, 0.0, 1, 16, 2.0, 1.0) == 16

    def test_unavailable_reading_is_neutral(self) -> None:
        assert adjust(8, None, 1, 16, 2.0, 1.0) == 8

    @given(
        current=st.integers(min_value=-5, max_value=40),
        reading=st.one_of(st.none(), st.floats(min_value=0, max_value=100, allow_nan=False)),
        min_threads=st.integers(min_value=1, max_value=8),
        span=st.integers(min_value=0, max_value=16),
    )
    def test_result_always_within_bounds(
        self,
        current: int,
        reading: float | None,
        min_threads: int,
        span: int,
    ) -> None:
        max_threads = min_threads + span

        result = adjust(current, reading, min_threads, max_threads, 2.0, 1.0)

        assert min_threads <= result <= max_threads


class TestThroughputController:
    """Test the stateful controller used by the orchestrator."""

    def test_starts_at_max_threads_by_default(self) -> None:
        controller = ThroughputController(min_threads=2, max_threads=6, queue_high=2.0, queue_low=1.0)

        assert controller.current_threads == 6

    def test_steps_follow_signal_readings(self) -> None:
        controller = ThroughputController(
            min_threads=1, max_threads=16, queue_high=2.0, queue_low=1.0, initial_threads=8
        )
        readings = iter([3.0, 3.0, 1.5, 0.2])

        counts = [controller.next_worker_count(lambda: next(readings)) for _ in range(4)]

        assert counts == [7, 6, 6, 7]
        assert controller.state.history == [7, 6, 6, 7]

    def test_failing_signal_is_neutral(self) -> None:
        controller = ThroughputController(
            min_threads=1, max_threads=16, queue_high=2.0, queue_low=1.0, initial_threads=8
        )

        def broken() -> float | None:
            raise RuntimeError("counters unavailable")

        assert controller.next_worker_count(broken) == 8
        assert controller.next_worker_count(StaticSignal(None)) == 8

    def test_initial_threads_are_clamped(self) -> None:
        controller = ThroughputController(
            min_threads=2, max_threads=4, queue_high=2.0, queue_low=1.0, initial_threads=99
        )

        assert controller.current_threads == 4

    @pytest.mark.parametrize(
        ("kwargs", "message"),
        [
            ({"min_threads": 0, "max_threads": 4}, "min_threads"),
            ({"min_threads": 5, "max_threads": 4}, "max_threads"),
            ({"min_threads": 1, "max_threads": 4, "queue_high": 1.0, "queue_low": 2.0}, "queue_low"),
        ],
    )
    def test_invalid_bounds_raise(self, kwargs: dict[str, float], message: str) -> None:
        params: dict[str, float] = {"queue_high": 2.0, "queue_low": 1.0, **kwargs}

        with pytest.raises(ValueError, match=message):
            _ = ThroughputController(**params)  # pyright: ignore[reportArgumentType]
