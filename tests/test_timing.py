import pytest

from kittencore.timing import StopWatch, Timer, fixed_update_adapter, format_duration


class FakeClock:
    def __init__(self, times):
        self._times = iter(times)

    def __call__(self):
        return next(self._times)


@pytest.mark.parametrize(
    "seconds, unit",
    [
        (4 * 3600, " hr"),
        (20 * 60, " min"),
        (12.0, " sec"),
        (0.5, " ms"),
        (1e-4, " us"),
        (1e-7, " ns"),
    ],
)
def test_format_duration_units(seconds, unit):
    assert format_duration(seconds).endswith(unit)


def test_format_duration_boundary_is_exclusive():
    assert format_duration(10).endswith(" ms")
    assert format_duration(60 * 15).endswith(" sec")


def test_format_duration_value():
    assert format_duration(12.5) == "12.50 sec"


def test_fixed_update_adapter_splits_time():
    dyn, fixed = [], []
    since = fixed_update_adapter(dyn.append, fixed.append, 0.25, 0.1, 0.0)
    assert fixed == [0.1, 0.1]
    assert sum(dyn) == pytest.approx(0.25)
    assert len(dyn) == 3
    assert since == pytest.approx(0.25 - 2 * 0.1)


def test_fixed_update_adapter_no_fixed_step():
    dyn, fixed = [], []
    since = fixed_update_adapter(dyn.append, fixed.append, 0.03, 0.1, 0.02)
    assert fixed == []
    assert dyn == [0.03]
    assert since == pytest.approx(0.05)


def test_fixed_update_adapter_overdue():
    dyn, fixed = [], []
    since = fixed_update_adapter(dyn.append, fixed.append, 0.05, 0.1, 0.3)
    assert fixed == [0.1]
    assert dyn[0] == 0.0
    assert since == pytest.approx(0.05)


def test_fixed_update_adapter_rejects_nonpositive_step():
    with pytest.raises(ValueError):
        fixed_update_adapter(lambda t: None, lambda t: None, 1.0, 0.0, 0.0)


def test_stopwatch_laps():
    sw = StopWatch(clock=FakeClock([1.0, 1.5, 3.0]))
    assert sw.time("a") == pytest.approx(0.5)
    assert sw.time() == pytest.approx(2.0)
    assert sw.total == pytest.approx(2.0)
    assert [lap[0] for lap in sw.laps] == ["a", None]
    assert sw.laps[1][2] == pytest.approx(1.5)


def test_stopwatch_report():
    sw = StopWatch(clock=FakeClock([0.0, 0.5, 1.0]))
    sw.time("load")
    sw.time()
    lines = sw.report().splitlines()
    assert lines[0].startswith("load timed @ ")
    assert "delta" not in lines[0]
    assert lines[1].startswith("Tag_001 timed @ ")
    assert " delta = " in lines[1]
    assert lines[2].startswith("Total: 1.00 sec")


def test_stopwatch_reset_clears_laps_keeps_total():
    sw = StopWatch(clock=FakeClock([0.0, 2.0, 5.0, 6.0]))
    sw.time()
    sw.reset()
    assert sw.laps == []
    assert sw.time() == pytest.approx(3.0)


def test_timer_end_returns_elapsed():
    t = Timer(clock=FakeClock([1.0, 1.25]))
    t.start("x")
    assert t.end("x") == pytest.approx(0.25)


def test_timer_double_start_raises():
    t = Timer(clock=FakeClock([0.0, 1.0]))
    t.start("x")
    with pytest.raises(RuntimeError):
        t.start("x")


def test_timer_end_without_start_raises():
    t = Timer(clock=FakeClock([]))
    with pytest.raises(RuntimeError):
        t.end("missing")


def test_timer_report_counts():
    t = Timer(clock=FakeClock([0.0, 1.0, 2.0, 3.0]))
    t.start("step")
    t.end("step")
    t.start("step")
    t.end("step")
    report = t.report()
    assert report.startswith('"step" avg: ')
    assert "count: 2" in report


def test_timer_reset_drops_tags():
    t = Timer(clock=FakeClock([0.0, 1.0]))
    t.start("a")
    t.end("a")
    t.reset()
    assert t.report() == ""
    with pytest.raises(RuntimeError):
        t.end("a")