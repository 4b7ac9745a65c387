"""Local JSON state of the associations this tool manages.

The store only remembers identities and the last confirmed attributes; the
networking API stays authoritative and every ``refresh`` re-reads it.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path

import structlog
from pydantic import BaseModel, Field, ValidationError

from nic_associations.associations.base import AssociationState
from nic_associations.config.models import AssociationKind

logger = structlog.get_logger()

STATE_VERSION = 1


class AssociationRecord(BaseModel):
    id: str
    kind: AssociationKind
    network_interface_id: str
    ip_configuration_name: str
    backend_address_pool_id: str

    @classmethod
    def from_state(cls, state: AssociationState) -> AssociationRecord:
        return cls(
            id=state.id,
            kind=state.kind,
            network_interface_id=state.network_interface_id,
            ip_configuration_name=state.ip_configuration_name,
            backend_address_pool_id=state.backend_address_pool_id,
        )


class StateFile(BaseModel):
    version: int = STATE_VERSION
    associations: list[AssociationRecord] = Field(default_factory=list)


class StateStore:
    """Keeps ``AssociationRecord``s keyed by association ID in a JSON file."""

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._records: dict[str, AssociationRecord] = {}
        self._loaded = False

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> None:
        self._records = {}
        self._loaded = True
        if not self._path.exists():
            return
        try:
            data = StateFile.model_validate_json(self._path.read_text())
        except ValidationError as exc:
            msg = f"Invalid state file {self._path}:\n{exc}"
            raise ValueError(msg) from exc
        if data.version != STATE_VERSION:
            msg = (
                f"Unsupported state file version {data.version} in {self._path} "
                f"(expected {STATE_VERSION})"
            )
            raise ValueError(msg)
        self._records = {r.id: r for r in data.associations}

    def _ensure_loaded(self) -> None:
        if not self._loaded:
            self.load()

    def records(self) -> list[AssociationRecord]:
        self._ensure_loaded()
        return list(self._records.values())

    def get(self, association_id: str) -> AssociationRecord | None:
        self._ensure_loaded()
        return self._records.get(association_id)

    def put(self, state: AssociationState) -> None:
        self._ensure_loaded()
        self._records[state.id] = AssociationRecord.from_state(state)
        self._save()

    def remove(self, association_id: str) -> bool:
        self._ensure_loaded()
        removed = self._records.pop(association_id, None) is not None
        if removed:
            self._save()
        return removed

    def _save(self) -> None:
        payload = StateFile(associations=list(self._records.values()))
        self._path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(
            dir=self._path.parent, prefix=f".{self._path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                f.write(payload.model_dump_json(indent=2))
            os.replace(tmp, self._path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise
        logger.debug("state.saved", path=str(self._path), count=len(self._records))
