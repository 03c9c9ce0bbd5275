"""Extract an executable path from registry-style command lines."""
import re

_EXE_RE = re.compile(r"^(.*?\.exe)(?=$|[\s,\"])", re.IGNORECASE)


def parse_command(value: str) -> str:
    """Return the executable part of a command line or icon spec.

    ``"C:\\App\\app.exe" --flag "%1"`` -> ``C:\\App\\app.exe``
    ``C:\\App\\app.exe,0`` -> ``C:\\App\\app.exe``
    Anything without a recognizable executable is returned stripped.
    """
    value = (value or "").strip()
    if value.startswith('"'):
        end = value.find('"', 1)
        return value[1:end] if end > 0 else value[1:]
    m = _EXE_RE.match(value)
    if m:
        return m.group(1)
    return value.split(",")[0].strip()
