from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict


def _env_extra_mode(default: str = "ignore") -> str:
    """
    Determine the extra-mode from environment vars.

    EVERNOTE_MCP_EXTRA: allow|forbid|ignore
    Convenience booleans: "true/1/on" -> forbid (strict), "false/0/off" -> allow
    """
    raw = (os.getenv("EVERNOTE_MCP_EXTRA") or default).strip().lower()

    if raw in {"allow", "forbid", "ignore"}:
        return raw

    if raw in {"1", "true", "yes", "on", "strict"}:
        return "forbid"
    if raw in {"0", "false", "no", "off", "lenient"}:
        return "allow"

    return default


_EXTRA = _env_extra_mode()


class ENModel(BaseModel):
    """
    Project-wide base model for note-store payloads.

    Note-store objects carry many fields this package never reads, so the
    default is extra='ignore'; tighten it while debugging with:
      export EVERNOTE_MCP_EXTRA=forbid
    """

    model_config = ConfigDict(
        extra=_EXTRA,  # 'forbid' | 'allow' | 'ignore'
        populate_by_name=True,
    )


__all__ = ["ENModel", "_env_extra_mode"]
