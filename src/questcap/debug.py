from __future__ import annotations

import logging
import os

_DEBUG_OVERRIDE: bool | None = None


def set_debug_enabled(enabled: bool) -> None:
    global _DEBUG_OVERRIDE
    _DEBUG_OVERRIDE = bool(enabled)


def debug_enabled() -> bool:
    if _DEBUG_OVERRIDE is not None:
        return bool(_DEBUG_OVERRIDE)
    return os.environ.get("QUESTCAP_DEBUG") == "1"


def configure_logging() -> None:
    level = logging.DEBUG if debug_enabled() else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("questcap").setLevel(level)
