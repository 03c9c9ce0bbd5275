"""browser: per-browser hooks and custom probes.

Zero engine state. Chrome probes read the registry and are Windows only.
"""
from .chrome import find_update_clients, find_progids, load_channel_map  # noqa: F401
from .firefox import release_channel  # noqa: F401
