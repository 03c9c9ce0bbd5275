"""Tests for DetectionEventLogger: telemetry contract tests."""
import json
import os
import tempfile

from conftest import exe, make_host
from detect_browsers import detect
from detect_browsers.telemetry.logger import DetectionEventLogger


def _read_events(tmpdir):
    files = os.listdir(tmpdir)
    assert len(files) == 1
    assert files[0].endswith(".jsonl")
    with open(os.path.join(tmpdir, files[0])) as f:
        return [json.loads(line) for line in f]


def test_basic_event_logging():
    with tempfile.TemporaryDirectory() as tmpdir:
        logger = DetectionEventLogger("run123", log_dir=tmpdir)
        logger.log_run_start(["chrome"], 10.0)
        logger.close()

        (event,) = _read_events(tmpdir)
        assert event["event"] == "run_start"
        assert event["run_id"] == "run123"
        assert event["browsers"] == ["chrome"]
        assert event["probe_timeout"] == 10.0
        assert "ts" in event


def test_context_manager_closes():
    with tempfile.TemporaryDirectory() as tmpdir:
        with DetectionEventLogger("run456", log_dir=tmpdir) as logger:
            logger.log_probe_failed("chrome", "registry", "OSError: denied")
        assert logger._f is None
        (event,) = _read_events(tmpdir)
        assert event["probe"] == "registry"


def test_write_after_close_is_noop():
    with tempfile.TemporaryDirectory() as tmpdir:
        logger = DetectionEventLogger("run789", log_dir=tmpdir)
        logger.close()
        logger.log_run_end(0, 0.1)
        assert _read_events(tmpdir) == []


def test_unwritable_dir_never_raises():
    with tempfile.TemporaryDirectory() as tmpdir:
        blocker = os.path.join(tmpdir, "file")
        with open(blocker, "w") as f:
            f.write("x")
        logger = DetectionEventLogger("run", log_dir=os.path.join(blocker, "sub"))
        logger.log_run_start([], None)
        logger.close()


def test_detection_run_events():
    host = make_host(files={"C:\\c\\chrome.exe": exe("1.0")},
                     env={"CHROME_BIN": "C:\\c\\chrome.exe"})
    with tempfile.TemporaryDirectory() as tmpdir:
        with DetectionEventLogger("run", log_dir=tmpdir) as logger:
            detect(["chrome"], host=host, event_logger=logger)
        kinds = [e["event"] for e in _read_events(tmpdir)]
        assert kinds[0] == "run_start"
        assert kinds[-1] == "run_end"
        assert "browser_done" in kinds
