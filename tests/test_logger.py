import pytest

from multistop.logger import Logger, LoggingMode


def test_from_value_normalizes_input():
    assert LoggingMode.from_value("INFO") is LoggingMode.INFO
    assert LoggingMode.from_value(None) is LoggingMode.NONE
    with pytest.raises(ValueError, match="Invalid logging mode"):
        LoggingMode.from_value("verbose")


def test_silent_by_default(capsys):
    Logger().info("computation.start", generation=1)
    assert capsys.readouterr().out == ""


def test_phase_reports_failure(capsys):
    logger = Logger(LoggingMode.INFO)
    with pytest.raises(RuntimeError), logger.phase("route.calculate", waypoints=2):
        raise RuntimeError("boom")

    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "[INFO]\troute.calculate.start\twaypoints=2"
    assert lines[1] == "[WARN]\troute.calculate.failed\terror=RuntimeError: boom"


def test_debug_phase_reports_elapsed(capsys):
    logger = Logger(LoggingMode.DEBUG)
    with logger.phase("sort.destinations"):
        pass
    out = capsys.readouterr().out
    assert "sort.destinations.complete" in out
    assert "[DEBUG]\tsort.destinations.elapsed\tseconds=" in out
