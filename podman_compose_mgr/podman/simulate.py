"""Replay podman answers from a captured JSON snapshot."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, ValidationError, field_validator

from ..errors import ConfigError
from ..ports import PodmanPort
from .cli import file_exists_and_readable
from .dates import parse_podman_date


class ImageRecord(BaseModel):
    """One ``podman image inspect`` answer captured for replay."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    name: str = Field(alias="Name")
    created: Optional[str] = Field(default=None, alias="Created")
    modified: Optional[str] = Field(default=None, alias="Modified")

    @field_validator("created", "modified")
    @classmethod
    def check_date(cls, value: Optional[str]) -> Optional[str]:
        if value is not None:
            parse_podman_date(value)
        return value


_RECORDS = TypeAdapter(List[ImageRecord])


def load_fixture(path: Path) -> List[ImageRecord]:
    """Read and validate a fixture file (a JSON array of records)."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Cannot read simulate fixture {path}: {exc}") from exc
    try:
        return _RECORDS.validate_json(text)
    except ValidationError as exc:
        raise ConfigError(f"Invalid simulate fixture {path}: {exc}") from exc


class SimulatedPodman(PodmanPort):
    """Deterministic runtime port backed by fixture records.

    Names absent from the fixture behave like images podman has never seen.
    """

    def __init__(self, records: Sequence[ImageRecord]) -> None:
        self._records: Dict[str, ImageRecord] = {record.name: record for record in records}

    @classmethod
    def from_file(cls, path: Path) -> "SimulatedPodman":
        return cls(load_fixture(path))

    def image_created(self, name: str) -> Optional[datetime]:
        record = self._records.get(name)
        if record is None or record.created is None:
            return None
        return parse_podman_date(record.created)

    def image_modified(self, name: str) -> Optional[datetime]:
        record = self._records.get(name)
        if record is None or record.modified is None:
            return None
        return parse_podman_date(record.modified)

    def file_exists_and_readable(self, path: Path) -> bool:
        return file_exists_and_readable(path)


__all__ = ["ImageRecord", "SimulatedPodman", "load_fixture"]
