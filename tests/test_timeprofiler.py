from unittest import mock

import pytest

from walkctrl.timeprofiler import TimeProfiler, Timer


def test_timer_accumulates_measured_duration():
    timer = Timer()
    with mock.patch("time.process_time", side_effect=[1.0, 1.25]):
        timer.start()
        timer.stop()
    timer.accumulate()
    assert timer.average_duration == pytest.approx(250.0)


def test_timer_reset_clears_sum():
    timer = Timer()
    with mock.patch("time.process_time", side_effect=[1.0, 3.0]):
        timer.start()
        timer.stop()
    timer.accumulate()
    timer.reset()
    assert timer.average_duration == 0


def test_timer_accumulation_is_additive():
    timer = Timer()
    with mock.patch("time.process_time", side_effect=[0.5, 0.75]):
        timer.start()
        timer.stop()
    timer.accumulate()
    once = timer.average_duration
    timer.accumulate()
    assert timer.average_duration == pytest.approx(2 * once)


def test_duplicate_timer_rejected():
    profiler = TimeProfiler(10)
    profiler.add_timer("loop")
    with pytest.raises(ValueError):
        profiler.add_timer("loop")


def test_unknown_timer_start_raises():
    profiler = TimeProfiler(10)
    with pytest.raises(KeyError):
        profiler.start("missing")


def test_unknown_timer_stop_raises():
    profiler = TimeProfiler(10)
    with pytest.raises(KeyError):
        profiler.stop("missing")


def test_report_only_at_period(capsys):
    profiler = TimeProfiler(2)
    profiler.add_timer("a")
    with mock.patch("time.process_time", side_effect=[1.0, 1.25]):
        profiler.start("a")
        profiler.stop("a")
    assert profiler.profiling() is None
    assert capsys.readouterr().out == ""
    report = profiler.profiling()
    assert report == "a: 250.000000 ms "
    assert capsys.readouterr().out == report + "\n"


def test_counter_restarts_after_report():
    profiler = TimeProfiler(1)
    profiler.add_timer("a")
    with mock.patch("time.process_time", return_value=0.0):
        profiler.start("a")
        profiler.stop("a")
    first = profiler.profiling()
    second = profiler.profiling()
    assert first == second


def test_report_sorted_by_key():
    profiler = TimeProfiler(1)
    profiler.add_timer("b")
    profiler.add_timer("a")
    with mock.patch("time.process_time", return_value=0.0):
        for key in ("a", "b"):
            profiler.start(key)
            profiler.stop(key)
    report = profiler.profiling()
    assert report.index("a: ") < report.index("b: ")
    assert report.endswith(" ms ")