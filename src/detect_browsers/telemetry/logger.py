"""Structured JSONL event logging for detection runs."""
import json
import logging
import os
import time

log = logging.getLogger(__name__)


class DetectionEventLogger:
    """Writes one JSON line per event to a per-run JSONL file.

    All logging is best-effort; methods never raise exceptions.
    Supports context-manager protocol for automatic close.
    """

    def __init__(self, run_id: str, log_dir: str = "data/logs/detect_events"):
        self._run_id = run_id
        self._f = None
        self.path = ""
        try:
            os.makedirs(log_dir, exist_ok=True)
            safe_run_id = run_id.replace("/", "_").replace("\\", "_")
            self.path = os.path.join(log_dir, f"detect_{safe_run_id}.jsonl")
            self._f = open(self.path, "a", encoding="utf-8")
        except Exception as e:
            log.warning(f"DetectionEventLogger: failed to open log file: {e}")

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def _write(self, event: dict):
        if self._f is None:
            return
        try:
            event["ts"] = time.time()
            event["run_id"] = self._run_id
            self._f.write(json.dumps(event, ensure_ascii=False) + "\n")
            self._f.flush()
        except Exception as e:
            log.warning(f"DetectionEventLogger: write failed: {e}")

    def log_run_start(self, browsers: list[str], probe_timeout: float | None):
        self._write({
            "event": "run_start",
            "browsers": browsers,
            "probe_timeout": probe_timeout,
        })

    def log_probe_failed(self, browser: str, probe: str, reason: str):
        self._write({
            "event": "probe_failed",
            "browser": browser,
            "probe": probe,
            "reason": reason,
        })

    def log_candidate_rejected(self, browser: str, path: str, reason: str):
        """Log a dropped candidate.

        Valid ``reason`` values:
        - ``extension``: not a ``.exe`` path
        - ``missing``: no file at the path
        - ``metadata``: PE metadata could not be read
        - ``version``: metadata had no version string
        - ``pre_hook``: the browser's pre-hook dropped it
        """
        self._write({
            "event": "candidate_rejected",
            "browser": browser,
            "path": path,
            "reason": reason,
        })

    def log_browser_done(self, browser: str, candidates: int, found: int, duration: float):
        self._write({
            "event": "browser_done",
            "browser": browser,
            "candidates": candidates,
            "found": found,
            "duration": duration,
        })

    def log_run_end(self, total_found: int, duration: float, status: str = "ok"):
        self._write({
            "event": "run_end",
            "total_found": total_found,
            "duration": duration,
            "status": status,
        })

    def close(self):
        if self._f is not None:
            try:
                self._f.flush()
                self._f.close()
            except Exception:
                pass
            self._f = None
