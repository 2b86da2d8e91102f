"""
Demo Data Model
===============
The one long-lived value (UserRecord) and the JSON envelopes each
endpoint responds with.

    UserRecord       — Immutable (id, name) pair, built once per app
    DataEnvelope     — /callback, /promise, /async success body
    FileEnvelope     — /file success body
    ChainEnvelope    — /chain success body
    ErrorEnvelope    — Any 500 body
    NotFoundEnvelope — Any 404 body
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision, e.g. 2026-10-18T09:30:00.123Z."""
    now = datetime.now(timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class UserRecord:
    id: int
    name: str

    def to_dict(self) -> dict:
        return asdict(self)


# ─────────────────────────────────────────────────────────────
#  Response Envelopes
# ─────────────────────────────────────────────────────────────

class Envelope(BaseModel):
    """Base for every response body. Dumps by alias and drops unset optionals."""

    model_config = ConfigDict(populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


class DataEnvelope(Envelope):
    method: str
    message: str
    data: Optional[dict[str, Any]] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class FileEnvelope(Envelope):
    method: str
    message: str
    file_path: str = Field(alias="filePath")
    content: str
    timestamp: str = Field(default_factory=utc_timestamp)


class ChainStep(Envelope):
    step: int
    action: str
    message: str
    data: Optional[dict[str, Any]] = None
    timestamp: str = Field(default_factory=utc_timestamp)


class ChainResult(Envelope):
    steps: list[ChainStep] = Field(default_factory=list)
    total_time: int = Field(default=0, alias="totalTime")  # milliseconds


class ChainEnvelope(Envelope):
    method: str
    message: str
    results: ChainResult
    timestamp: str = Field(default_factory=utc_timestamp)


class IndexEnvelope(Envelope):
    message: str
    author: str
    endpoints: list[str]
    instructions: str


class ErrorEnvelope(Envelope):
    error: str
    message: str


class NotFoundEnvelope(Envelope):
    error: str
    message: str
    available_endpoints: list[str] = Field(alias="availableEndpoints")
