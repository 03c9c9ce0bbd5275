"""Command-line front end: ``python -m detect_browsers [names...]``."""
import argparse
import json
import logging
import sys
import time

from .engine.errors import DetectError
from .engine.orchestrator import DEFAULT_PROBE_TIMEOUT, detect
from .engine.records import ExecutableInfo
from .engine.registry import known_browsers
from .telemetry.logger import DetectionEventLogger

log = logging.getLogger(__name__)


def format_result(info: ExecutableInfo) -> str:
    label = info.name
    if info.channel:
        label += f" ({info.channel})"
    return f"{label} {info.version} [{info.arch_name}]\n  {info.path}"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="detect-browsers",
        description="Find installed browsers. Known: " + ", ".join(known_browsers()),
    )
    parser.add_argument("names", nargs="*", help="browser identifiers (default: all)")
    parser.add_argument("--json", action="store_true", help="print a JSON array")
    parser.add_argument("--timeout", type=float, default=DEFAULT_PROBE_TIMEOUT,
                        help="per-probe timeout in seconds")
    parser.add_argument("--strict", action="store_true",
                        help="fail on unknown browser names")
    parser.add_argument("--events", metavar="DIR", default="",
                        help="write JSONL telemetry events to DIR")
    parser.add_argument("-v", "--verbose", action="count", default=0)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose > 1 else logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    event_logger = None
    if args.events:
        event_logger = DetectionEventLogger(time.strftime("%Y%m%d_%H%M%S"), log_dir=args.events)
    try:
        results = detect(args.names, probe_timeout=args.timeout, strict=args.strict,
                         event_logger=event_logger)
    except DetectError as e:
        log.error("%s", e)
        return 2
    finally:
        if event_logger:
            event_logger.close()

    if args.json:
        print(json.dumps([r.to_dict() for r in results], indent=2))
    else:
        for r in results:
            print(format_result(r))
    return 0


if __name__ == "__main__":
    sys.exit(main())
