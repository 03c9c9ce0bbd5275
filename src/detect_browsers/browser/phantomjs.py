"""PhantomJS: npm package probe and command-shim resolution.

npm installs ``phantomjs.cmd`` shims that forward to the real binary. The
binary's location is recorded by the npm module itself, found either next
to a global shim (``npm\\node_modules\\...``) or three levels above a local
one (``project\\node_modules\\.bin\\phantomjs.cmd``).
"""
import logging
import ntpath

from ..engine.resolve import Resolution, accept, drop, redirect

log = logging.getLogger(__name__)

# Tried in this order: 2.x before 1.x
PACKAGES = ("phantomjs-prebuilt", "phantomjs")

_MODULE_2X = "node_modules\\phantomjs-prebuilt\\lib\\phantomjs.js"
_MODULE_1X = "node_modules\\phantomjs\\lib\\phantomjs.js"
_GLOBAL = ".."
_LOCAL = "..\\..\\.."


def is_cmd(path: str) -> bool:
    return path[-4:].lower() == ".cmd"


def module_locations(shim: str) -> list[str]:
    """Candidate module files for a shim, most specific first."""
    return [
        ntpath.normpath(ntpath.join(shim, base, module))
        for module in (_MODULE_2X, _MODULE_1X)
        for base in (_LOCAL, _GLOBAL)
    ]


async def find_package(ctx) -> None:
    """Report the binary bundled with a locally resolvable npm package."""
    ctx.plan(1)
    for package in PACKAGES:
        module = await ctx.host.resolve_package(package, ctx.host.cwd)
        if module:
            binary = await ctx.host.module_binary(module)
            ctx.found(binary, origin=package)
            return
    ctx.skip()


async def pre(path: str, host) -> Resolution:
    """Resolve a ``.cmd`` shim to the binary its npm module points at.

    A module may itself point at another shim (a local install pointing at
    a global one); that is returned as a redirect so the executor can try
    one more level.
    """
    if not is_cmd(path):
        return accept(path)
    for location in module_locations(path):
        if not await host.is_file(location):
            continue
        binary = await host.module_binary(location)
        if not binary:
            continue
        if is_cmd(binary):
            return redirect(binary)
        return accept(binary)
    log.debug("Could not resolve %s to a module", path)
    return drop()
