"""
Unit Tests for the Progress Tracker
"""

import random

import pytest

from pipeline.progress import ProgressTracker


class Recorder:
    def __init__(self):
        self.values = []

    async def __call__(self, value):
        self.values.append(value)


class TestProgressTracker:
    """Tests for ProgressTracker."""

    @pytest.mark.asyncio
    async def test_floor_of_ratio(self):
        recorder = Recorder()
        tracker = ProgressTracker(3, recorder)

        await tracker.advance()
        await tracker.advance()

        assert recorder.values == [33, 66]

    @pytest.mark.asyncio
    async def test_reaches_100_on_last_task(self):
        recorder = Recorder()
        tracker = ProgressTracker(4, recorder)

        for _ in range(4):
            await tracker.advance()

        assert recorder.values == [25, 50, 75, 100]

    @pytest.mark.asyncio
    async def test_unchanged_value_is_not_reported_twice(self):
        recorder = Recorder()
        tracker = ProgressTracker(300, recorder)

        await tracker.advance()
        await tracker.advance()

        assert recorder.values == []
        assert tracker.progress == 0

    @pytest.mark.asyncio
    async def test_capped_at_100(self):
        recorder = Recorder()
        tracker = ProgressTracker(2, recorder)

        await tracker.advance(5)

        assert tracker.progress == 100
        assert recorder.values == [100]

    @pytest.mark.asyncio
    async def test_complete_forces_100(self):
        recorder = Recorder()
        tracker = ProgressTracker(7, recorder)
        await tracker.advance(3)

        await tracker.complete()

        assert recorder.values == [42, 100]

    @pytest.mark.asyncio
    async def test_complete_with_zero_tasks(self):
        recorder = Recorder()
        tracker = ProgressTracker(0, recorder)

        await tracker.complete()

        assert recorder.values == [100]

    @pytest.mark.asyncio
    async def test_complete_does_not_repeat_100(self):
        recorder = Recorder()
        tracker = ProgressTracker(1, recorder)
        await tracker.advance()

        await tracker.complete()

        assert recorder.values == [100]

    @pytest.mark.asyncio
    async def test_monotonic_for_any_sequence(self):
        rng = random.Random(7)
        for _ in range(50):
            recorder = Recorder()
            total = rng.randint(1, 40)
            tracker = ProgressTracker(total, recorder)
            for _ in range(rng.randint(0, total + 5)):
                await tracker.advance(rng.randint(0, 3))
            await tracker.complete()

            assert recorder.values == sorted(recorder.values)
            assert all(0 <= value <= 100 for value in recorder.values)
            assert recorder.values[-1] == 100

    @pytest.mark.asyncio
    async def test_works_without_reporter(self):
        tracker = ProgressTracker(2)
        assert await tracker.advance() == 50
        assert await tracker.complete() == 100
