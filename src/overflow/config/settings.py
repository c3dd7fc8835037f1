"""Configuration – settings dataclasses."""
from __future__ import annotations

import dataclasses

from overflow.config.errors import InvalidSettingValueError

BACKENDS = ("memory", "production")


@dataclasses.dataclass
class Settings:
    """Base class for 12-factor settings."""

    _prefix: dataclasses.ClassVar[str] = ""

    def __post_init__(self) -> None:
        self._validate()

    def _validate(self) -> None:
        """Override to add cross-field validation."""


@dataclasses.dataclass
class OverflowSettings(Settings):
    """Runtime settings, read from ``OVERFLOW_*`` environment variables."""

    _prefix: dataclasses.ClassVar[str] = "OVERFLOW"

    backend: str = "memory"
    database_url: str = "sqlite+aiosqlite:///:memory:"
    kafka_bootstrap_servers: str = "localhost:9092"
    kafka_topic: str = "questions"
    kafka_group_id: str = "search-projector"
    typesense_url: str = "http://localhost:8108"
    typesense_api_key: str = ""
    collection_name: str = "questions"
    tags: list[str] = dataclasses.field(default_factory=list)
    publish_max_attempts: int = 5
    publish_base_delay: float = 0.2
    projector_max_attempts: int = 5
    projector_base_delay: float = 0.5
    projector_workers: int = 4
    outbox_poll_seconds: float = 5.0
    reconcile_interval_seconds: float = 300.0
    log_level: str = "INFO"
    log_json: bool = True

    def _validate(self) -> None:
        if self.backend not in BACKENDS:
            raise InvalidSettingValueError("backend", self.backend, f"expected one of {BACKENDS}")
        for name in ("publish_max_attempts", "projector_max_attempts", "projector_workers"):
            if getattr(self, name) < 1:
                raise InvalidSettingValueError(name, getattr(self, name), "must be >= 1")
        for name in ("outbox_poll_seconds", "reconcile_interval_seconds"):
            if getattr(self, name) <= 0:
                raise InvalidSettingValueError(name, getattr(self, name), "must be > 0")
        if self.backend == "production" and not self.typesense_api_key:
            raise InvalidSettingValueError(
                "typesense_api_key", self.typesense_api_key, "required for the production backend"
            )


__all__ = ["BACKENDS", "OverflowSettings", "Settings"]
