"""Opera channel classification."""
import dataclasses

from ..engine.records import ExecutableInfo


def post(result: ExecutableInfo) -> ExecutableInfo:
    # "Opera beta Internet Browser" -> "beta"; "Opera Internet Browser" -> stable
    product = result.info.get("ProductName") or result.info.get("FileDescription") or ""
    words = product.lower().split()
    token = words[1] if len(words) > 1 else ""
    channel = token if token in ("beta", "developer") else "stable"
    return dataclasses.replace(result, channel=channel)
