"""Per-stage wall clock measurement."""

from __future__ import annotations

import time
from contextlib import contextmanager
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterator


class StageTimer:
    """
    Collects durations of named stages in milliseconds.

    Usage:
        timer = StageTimer()
        with timer.stage("ratio_test"):
            ratio_test(matches, 0.65)
        timer.timings_ms  # {"ratio_test": 0.12}
    """

    def __init__(self) -> None:
        self.timings_ms: dict[str, float] = {}

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Time the enclosed block; repeated names accumulate."""
        start = time.perf_counter()
        try:
            yield
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            self.timings_ms[name] = round(self.timings_ms.get(name, 0.0) + elapsed_ms, 3)

    @property
    def total_ms(self) -> float:
        return round(sum(self.timings_ms.values()), 3)
