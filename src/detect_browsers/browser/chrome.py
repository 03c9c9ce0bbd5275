"""Chrome discovery through Google Update and ProgID registrations.

Windows only: both probes read the registry. Channel names come from a
versioned JSON map (``chrome_channels.json``) rather than code, so new
channels or GUIDs can be supplied without a release: point
``DETECT_BROWSERS_CHROME_CHANNELS`` at a file of the same shape.
"""
import dataclasses
import functools
import json
import logging
import ntpath
import os
from importlib import resources

from ..engine.records import ExecutableInfo
from ..system.commands import parse_command

log = logging.getLogger(__name__)

CHANNELS_ENV = "DETECT_BROWSERS_CHROME_CHANNELS"

_CLIENTS_KEY = "Google\\Update\\Clients"
_CLIENT_STATE_KEY = "Google\\Update\\ClientState"
_CLASSES_KEY = "Classes"

_ARCH_BITNESS = {0x014C: 32, 0x8664: 64, 0xAA64: 64}


@functools.lru_cache(maxsize=None)
def load_channel_map(path: str | None = None) -> dict:
    """Load the channel map, from *path*, the override variable, or the packaged file.

    Keys of the GUID and ProgID tables are upper/lower-cased for lookup.
    """
    path = path or os.environ.get(CHANNELS_ENV)
    if path:
        with open(path, "r", encoding="utf-8") as f:
            data = json.load(f)
    else:
        text = resources.files(__package__).joinpath("chrome_channels.json").read_text("utf-8")
        data = json.loads(text)
    return {
        "update_clients": {k.upper(): v for k, v in data.get("update_clients", {}).items()},
        "progids": {k.lower(): v for k, v in data.get("progids", {}).items()},
        # Longest marker first so "Chrome SxS" wins over "Chrome"
        "install_dirs": sorted(
            ((k.lower(), v) for k, v in data.get("install_dirs", {}).items()),
            key=lambda kv: -len(kv[0]),
        ),
    }


def channel_from_path(path: str, channels: dict | None = None) -> str | None:
    channels = channels or load_channel_map()
    parts = [p.lower() for p in ntpath.normpath(path).split("\\")]
    for marker, channel in channels["install_dirs"]:
        if marker in parts:
            return channel
    return None


def _bitness_from_ap(ap: str | None) -> int | None:
    # Google Update "ap" values look like "x64-stable-multi-chrome"
    if not ap:
        return None
    return 64 if "x64" in ap.lower() or "arm64" in ap.lower() else 32


def _exe_from_setup(setup_path: str) -> str | None:
    """``...\\Application\\<version>\\Installer\\setup.exe`` -> ``...\\Application\\chrome.exe``"""
    parts = ntpath.normpath(setup_path).split("\\")
    if len(parts) < 4 or parts[-2].lower() != "installer":
        return None
    return ntpath.join("\\".join(parts[:-3]), "chrome.exe")


async def _update_client(ctx, root, guid: str, channel: str) -> None:
    key = f"{_CLIENT_STATE_KEY}\\{guid}"
    setup = await ctx.host.registry_value(root, key, "UninstallString")
    if not setup:
        ctx.skip()
        return
    arguments = await ctx.host.registry_value(root, key, "UninstallArguments")
    ap = await ctx.host.registry_value(root, key, "ap")
    setup = parse_command(setup)
    ctx.found(
        _exe_from_setup(setup),
        channel=channel,
        guid=guid,
        bitness=_bitness_from_ap(ap),
        uninstall={"command": setup, "arguments": arguments or ""},
    )


async def find_update_clients(ctx) -> None:
    """One candidate per Chrome product registered with Google Update."""
    channels = load_channel_map()["update_clients"]
    entries = await ctx.host.registry_subkeys(_CLIENTS_KEY)
    matches = [(root, g, channels[g.upper()]) for root, g in entries if g.upper() in channels]
    ctx.plan(len(matches))
    for root, guid, channel in matches:
        ctx.spawn(_update_client(ctx, root, guid, channel))


async def _progid(ctx, root, progid: str, channel: str) -> None:
    command = await ctx.host.registry_value(
        root, f"{_CLASSES_KEY}\\{progid}\\shell\\open\\command"
    )
    ctx.found(parse_command(command) if command else None, channel=channel)


async def find_progids(ctx) -> None:
    """One candidate per ChromeHTML-style ProgID, including per-user suffixed ones."""
    channels = load_channel_map()["progids"]
    entries = await ctx.host.registry_subkeys(_CLASSES_KEY)
    matches = [(root, n, channels[n.split(".")[0].lower()]) for root, n in entries
               if n.split(".")[0].lower() in channels]
    ctx.plan(len(matches))
    for root, progid, channel in matches:
        ctx.spawn(_progid(ctx, root, progid, channel))


def post(result: ExecutableInfo) -> ExecutableInfo:
    channel = result.channel or channel_from_path(result.path) or "stable"
    bitness = result.bitness or _ARCH_BITNESS.get(result.arch)
    return dataclasses.replace(result, channel=channel, bitness=bitness)
