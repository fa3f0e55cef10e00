"""Default document numbers: ``{prefix}-{YYYYmmddHHMMSS}`` in UTC."""

from __future__ import annotations

from datetime import UTC, datetime


def document_code(prefix: str, now: datetime | None = None) -> str:
    stamp = (now or datetime.now(UTC)).astimezone(UTC).strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}"


def resolve_document_no(requested: str | None, prefix: str, now: datetime | None = None) -> str:
    """A caller-supplied number wins; blank or missing falls back to a generated code."""
    if requested and requested.strip():
        return requested.strip()
    return document_code(prefix, now)
