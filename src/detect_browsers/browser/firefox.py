"""Firefox channel classification."""
import dataclasses
import re

from ..engine.records import ExecutableInfo

_DEVELOPER_NAMES = {"firefoxdeveloperedition", "firefox developer edition"}
_NIGHTLY_NAMES = {"firefoxnightly", "firefox nightly"}

_ALPHA_RE = re.compile(r"a(\d+)")


def release_channel(version: str) -> str:
    """Derive a Firefox release channel from a version string.

    ``60.8.0esr`` -> esr, ``69.0a1`` -> nightly, ``54.0a2`` -> aurora,
    ``68.0b3`` -> beta, ``68.0rc1`` -> rc, anything else -> release.
    """
    v = (version or "").strip().lower()
    if v.endswith("esr"):
        return "esr"
    m = _ALPHA_RE.search(v)
    if m:
        return "nightly" if m.group(1) == "1" else "aurora"
    if "rc" in v:
        return "rc"
    if "b" in v:
        return "beta"
    return "release"


def post(result: ExecutableInfo) -> ExecutableInfo:
    name = (result.info.get("ProductName") or "").strip()
    if name.lower() in _DEVELOPER_NAMES or "developer edition" in name.lower():
        channel = "developer"
    elif name.lower() in _NIGHTLY_NAMES or "nightly" in name.lower():
        channel = "nightly"
    else:
        channel = release_channel(result.info.get("ProductVersion") or result.version)
    return dataclasses.replace(result, channel=channel)
