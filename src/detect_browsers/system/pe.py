"""Version and architecture metadata from PE executables, via pefile."""
import logging
from dataclasses import dataclass, field

import pefile

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExeMetadata:
    version: str
    arch: int
    info: dict[str, str] = field(default_factory=dict)


def _decode(value) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace").rstrip("\x00")
    return str(value)


def _string_table(pe: pefile.PE) -> dict[str, str]:
    info: dict[str, str] = {}
    for file_info in getattr(pe, "FileInfo", None) or []:
        # pefile nests FileInfo one level deeper in recent versions
        entries = file_info if isinstance(file_info, list) else [file_info]
        for entry in entries:
            for table in getattr(entry, "StringTable", None) or []:
                for key, value in table.entries.items():
                    text = _decode(value).strip()
                    if text:
                        info.setdefault(_decode(key), text)
    return info


def _fixed_version(pe: pefile.PE) -> str:
    for fixed in getattr(pe, "VS_FIXEDFILEINFO", None) or []:
        ms, ls = fixed.FileVersionMS, fixed.FileVersionLS
        return f"{ms >> 16}.{ms & 0xFFFF}.{ls >> 16}.{ls & 0xFFFF}"
    return ""


def read_metadata(path: str) -> ExeMetadata:
    """Parse *path* as a PE file.

    Raises ``OSError`` when the file cannot be read and ``ValueError`` when
    it is not a PE image.
    """
    try:
        pe = pefile.PE(path, fast_load=True)
    except pefile.PEFormatError as e:
        raise ValueError(f"{path}: {e}") from e
    try:
        pe.parse_data_directories(
            directories=[pefile.DIRECTORY_ENTRY["IMAGE_DIRECTORY_ENTRY_RESOURCE"]]
        )
        info = _string_table(pe)
        version = _fixed_version(pe) or info.get("ProductVersion", "")
        return ExeMetadata(version=version, arch=pe.FILE_HEADER.Machine, info=info)
    except pefile.PEFormatError as e:
        raise ValueError(f"{path}: {e}") from e
    finally:
        pe.close()
