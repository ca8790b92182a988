"""Module context threaded through the declaration scan."""

import re
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

MODULE_MARKER_PATTERN = re.compile(r'"module_name"\s*:\s*"([^"]+)"')
VERSION_MARKER_PATTERN = re.compile(r'"version"\s*:\s*"([^"]+)"')


@dataclass(frozen=True)
class ModuleContext:
    """
    Sticky "current module" plus every module seen so far.

    Instances are immutable: ``advance`` returns the context for the next
    line, so the scan loop owns the only copy in use.
    """
    current: str
    seen: Tuple[str, ...] = ()
    versions: Tuple[Tuple[str, str], ...] = ()
    allowed: Tuple[str, ...] = ()
    awaiting_version: Optional[str] = None

    @classmethod
    def start(cls, default_module: str, allowed=()) -> "ModuleContext":
        return cls(current=default_module, allowed=tuple(allowed))

    def advance(self, line: str) -> "ModuleContext":
        """Context after observing ``line``; unrecognized markers change nothing."""
        ctx = self
        marker = MODULE_MARKER_PATTERN.search(line)
        if marker:
            module = marker.group(1).strip()
            if module and (not ctx.allowed or module in ctx.allowed):
                ctx = replace(ctx, current=module, awaiting_version=module)

        if ctx.awaiting_version:
            version = VERSION_MARKER_PATTERN.search(line)
            if version:
                if ctx.awaiting_version not in dict(ctx.versions):
                    ctx = replace(ctx, versions=ctx.versions + ((ctx.awaiting_version, version.group(1)),))
                ctx = replace(ctx, awaiting_version=None)

        if ctx.current not in ctx.seen:
            ctx = replace(ctx, seen=ctx.seen + (ctx.current,))
        return ctx

    def version_map(self) -> Dict[str, str]:
        return dict(self.versions)
