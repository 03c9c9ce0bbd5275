"""Minimal Node.js package resolution for npm-installed executables.

Resolves a package the way ``require.resolve`` does from a base directory
(walking up through ``node_modules`` folders), and reads the binary
location that phantomjs packages record in ``lib/location.js``.
"""
import json
import logging
import os
import re

log = logging.getLogger(__name__)

_LOCATION_RE = re.compile(r"""location\s*=\s*(["'])(.+?)\1""")


def resolve_package(name: str, basedir: str) -> str | None:
    """Return the resolved main file of package *name*, or None."""
    current = os.path.abspath(basedir)
    while True:
        if os.path.basename(current) != "node_modules":
            pkg_dir = os.path.join(current, "node_modules", name)
            main = _package_main(pkg_dir)
            if main:
                return main
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


def _package_main(pkg_dir: str) -> str | None:
    manifest = os.path.join(pkg_dir, "package.json")
    if not os.path.isfile(manifest):
        return None
    try:
        with open(manifest, "r", encoding="utf-8") as f:
            main = json.load(f).get("main") or "index.js"
    except (OSError, ValueError, AttributeError) as e:
        log.debug("Unreadable manifest %s: %s", manifest, e)
        return None
    path = os.path.normpath(os.path.join(pkg_dir, main))
    if not path.endswith(".js") and not os.path.isfile(path):
        path += ".js"
    return path if os.path.isfile(path) else None


def module_binary(module_file: str) -> str | None:
    """Return the executable a phantomjs module file points at, or None."""
    location_js = os.path.join(os.path.dirname(module_file), "location.js")
    try:
        with open(location_js, "r", encoding="utf-8") as f:
            m = _LOCATION_RE.search(f.read())
    except OSError:
        return None
    if not m:
        return None
    # location.js stores JS string escapes
    location = m.group(2).replace("\\\\", "\\")
    return os.path.join(os.path.dirname(module_file), location)
