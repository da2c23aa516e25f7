"""Append-only provenance log carried by every :class:`~hsicube.data.cube.Datacube`.

Each transformation that returns a new cube appends one
:class:`ProvenanceRecord` describing what was done and with which
parameters. The log is only meant for audit and replay; no code path
branches on its contents.
"""

from __future__ import annotations

from collections.abc import Iterator, Mapping, Sequence
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, overload

import numpy as np

from hsicube.utils.array import readonly

__all__ = ["CREATED", "ProvenanceLog", "ProvenanceRecord"]

CREATED = "Object created"


@dataclass(frozen=True, slots=True)
class ProvenanceRecord:
    """One provenance entry: a description, an operation name and its parameters."""

    description: str
    operation: str
    parameters: Mapping[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.description, str) or not self.description:
            raise ValueError("Provenance description must be a non-empty string")
        object.__setattr__(
            self, "parameters", MappingProxyType({k: _freeze(v) for k, v in self.parameters.items()})
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialise the record into JSON-friendly primitives."""

        return {
            "description": self.description,
            "operation": self.operation,
            "parameters": {k: _to_primitive(v) for k, v in self.parameters.items()},
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> ProvenanceRecord:
        params = {k: _from_primitive(v) for k, v in dict(payload.get("parameters") or {}).items()}
        return cls(
            description=str(payload["description"]),
            operation=str(payload.get("operation", "")),
            parameters=params,
        )


@dataclass(frozen=True, slots=True)
class ProvenanceLog(Sequence[ProvenanceRecord]):
    """Immutable, ordered sequence of :class:`ProvenanceRecord` entries.

    :meth:`append` returns a new log exactly one record longer; the receiver
    is never modified.
    """

    records: tuple[ProvenanceRecord, ...] = ()

    def __post_init__(self) -> None:
        records = tuple(self.records)
        for record in records:
            if not isinstance(record, ProvenanceRecord):
                raise TypeError("ProvenanceLog entries must be ProvenanceRecord instances")
        object.__setattr__(self, "records", records)

    @classmethod
    def created(
        cls,
        description: str = CREATED,
        operation: str = "create",
        parameters: Mapping[str, Any] | None = None,
    ) -> ProvenanceLog:
        """Start a log whose first entry is the creation marker."""

        return cls((ProvenanceRecord(description, operation, parameters or {}),))

    def append(
        self,
        description: str,
        operation: str,
        parameters: Mapping[str, Any] | None = None,
    ) -> ProvenanceLog:
        record = ProvenanceRecord(description, operation, parameters or {})
        return ProvenanceLog(self.records + (record,))

    def with_creation_marker(self) -> ProvenanceLog:
        """Return this log, prefixed with the creation record unless it already starts with one."""

        if self.records and self.records[0].description == CREATED:
            return self
        return ProvenanceLog(ProvenanceLog.created().records + self.records)

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ProvenanceRecord]:
        return iter(self.records)

    @overload
    def __getitem__(self, index: int) -> ProvenanceRecord: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[ProvenanceRecord, ...]: ...

    def __getitem__(self, index):
        return self.records[index]

    @property
    def descriptions(self) -> list[str]:
        return [record.description for record in self.records]

    def to_list(self) -> list[dict[str, Any]]:
        return [record.to_dict() for record in self.records]

    @classmethod
    def from_list(cls, payload: Sequence[Mapping[str, Any]]) -> ProvenanceLog:
        return cls(tuple(ProvenanceRecord.from_dict(item) for item in payload))


_LOG_TAG = "__provenance_log__"
_COMPLEX_TAG = "__complex__"


def _freeze(value: Any) -> Any:
    """Detach a parameter value from caller-owned mutable state."""

    if isinstance(value, np.ndarray):
        return readonly(value)
    if isinstance(value, ProvenanceLog):
        return value
    if isinstance(value, Mapping):
        return MappingProxyType({k: _freeze(v) for k, v in value.items()})
    if isinstance(value, (list, tuple)):
        return tuple(_freeze(v) for v in value)
    return value


def _to_primitive(value: Any) -> Any:
    if isinstance(value, ProvenanceLog):
        return {_LOG_TAG: value.to_list()}
    if isinstance(value, np.ndarray):
        return _to_primitive(value.tolist())
    if isinstance(value, np.generic):
        return _to_primitive(value.item())
    if isinstance(value, complex):
        return {_COMPLEX_TAG: [value.real, value.imag]}
    if isinstance(value, Mapping):
        return {str(k): _to_primitive(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_to_primitive(v) for v in value]
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if callable(value):
        return getattr(value, "__qualname__", repr(value))
    return repr(value)


def _from_primitive(value: Any) -> Any:
    if isinstance(value, Mapping):
        if set(value) == {_LOG_TAG}:
            return ProvenanceLog.from_list(value[_LOG_TAG])
        if set(value) == {_COMPLEX_TAG}:
            real, imag = value[_COMPLEX_TAG]
            return complex(real, imag)
        return {k: _from_primitive(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_from_primitive(v) for v in value]
    return value
