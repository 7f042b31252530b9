"""Wall-clock timing helpers and a fixed-timestep update adapter."""

from __future__ import annotations

import math
import time as _time
from dataclasses import dataclass, field
from typing import Callable, Optional

Clock = Callable[[], float]


def format_duration(seconds: float) -> str:
    """Render a duration in seconds with a unit suited to its size."""
    if seconds > 60 * 60 * 3:
        return "%.2f hr" % (seconds / 3600)
    if seconds > 60 * 15:
        return "%.3f min" % (seconds / 60)
    if seconds > 10:
        return "%.2f sec" % seconds
    if seconds > 2e-3:
        return "%.1f ms" % (seconds * 1e3)
    if seconds > 2e-6:
        return "%.1f us" % (seconds * 1e6)
    return "%.1f ns" % (seconds * 1e9)


def fixed_update_adapter(
    dynamic_update: Callable[[float], object],
    fixed_update: Callable[[float], object],
    dt: float,
    fixed_dt: float,
    time_since_fixed: float,
) -> float:
    """Advance by ``dt``, running ``fixed_update`` every ``fixed_dt`` seconds.

    ``dynamic_update`` is called with the time between fixed steps so that the
    dynamic steps add up to ``dt``. Returns the new time since the last fixed
    step.
    """
    if fixed_dt <= 0:
        raise ValueError("fixed time step must be positive")
    time_left = dt
    while True:
        till_next = max(fixed_dt - time_since_fixed, 0.0)
        if time_left <= till_next:
            break
        dynamic_update(till_next)
        time_left -= till_next
        time_since_fixed = 0.0
        fixed_update(fixed_dt)
    dynamic_update(time_left)
    return time_since_fixed + time_left


class StopWatch:
    """Records laps: the time of each call to ``time`` since the last one."""

    def __init__(self, clock: Clock = _time.perf_counter) -> None:
        self._clock = clock
        self.total = 0.0
        self.laps: list[tuple[Optional[str], float, float]] = []
        self._last_point = 0.0
        self.reset()

    def time(self, tag: Optional[str] = None) -> float:
        """Record a lap and return the total elapsed time."""
        now = self._clock()
        delta = now - self._last_point
        self._last_point = now
        self.total += delta
        self.laps.append((tag, self.total, delta))
        return self.total

    def reset(self) -> None:
        """Forget recorded laps and restart the lap clock."""
        self.laps.clear()
        self._last_point = self._clock()

    def report(self) -> str:
        """A readable listing of all laps and the total."""
        lines = []
        for i, (tag, at, delta) in enumerate(self.laps):
            name = "Tag_%03d" % i if tag is None else tag
            line = f"{name} timed @ {format_duration(at)}"
            if i > 0:
                line += f" delta = {format_duration(delta)}"
            lines.append(line)
        total = "Total: %.2f sec" % self.total
        if self.total < 10:
            total += " (%.4f ms)" % (1000 * self.total)
        lines.append(total)
        return "\n".join(lines)


@dataclass
class _Entry:
    started: bool = False
    last_point: float = 0.0
    count: int = 0
    total: float = 0.0
    total_sq: float = 0.0

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.total_sq += value * value

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else math.nan

    @property
    def sd(self) -> float:
        if not self.count:
            return math.nan
        mean = self.mean
        return math.sqrt(max(0.0, self.total_sq / self.count - mean * mean))


class Timer:
    """Accumulates statistics of repeated timed sections, keyed by tag."""

    def __init__(self, clock: Clock = _time.perf_counter) -> None:
        self._clock = clock
        self._entries: dict[str, _Entry] = field(default_factory=dict).default_factory()
        self.reset()

    def start(self, tag: str) -> None:
        """Begin timing ``tag``; it must not already be running."""
        entry = self._entries.setdefault(tag, _Entry())
        if entry.started:
            raise RuntimeError(f"tag {tag!r} already started")
        entry.started = True
        entry.last_point = self._clock()

    def end(self, tag: str) -> float:
        """Stop timing ``tag`` and return the elapsed seconds."""
        entry = self._entries.get(tag)
        if entry is None or not entry.started:
            raise RuntimeError(f"tag {tag!r} not started")
        delta = self._clock() - entry.last_point
        entry.add(delta)
        entry.started = False
        return delta

    def reset(self) -> None:
        """Drop all tags and their statistics."""
        self._entries = {}

    def report(self) -> str:
        """One line per tag with mean, deviation, count and total."""
        return "\n".join(
            f'"{tag}" avg: {format_duration(e.mean)}, sd: {format_duration(e.sd)}, '
            f"count: {e.count}, tot: {format_duration(e.total)}"
            for tag, e in self._entries.items()
        )