"""
Segments -- the declarative model of an inventory's ID template.

Responsibility:
    Defines ``SegmentType`` (the closed set of segment kinds) and
    ``IdSegment`` (one typed, ordered piece of a template), plus the
    boundary converters between segments and the JSON-shaped dicts stored
    on ``Inventory.id_format``.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Failure modes:
    (none) ``IdSegment.from_dict`` keeps an unknown type, or a ``value``/
    ``format`` of the wrong JSON type, as stored.  ``domain.template``
    reports them as invalid segments.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Iterable, Mapping
from uuid import uuid4


class SegmentType(str, Enum):
    """
    Kind of an ID template segment.

    Contract:
        Exhaustive.  Every consumer (compiler, generator, validator)
        dispatches over all members.
    """

    FIXED = "fixed"
    DATE = "date"
    SEQUENCE = "sequence"
    RANDOM_6DIGIT = "random_6digit"
    RANDOM_9DIGIT = "random_9digit"
    RANDOM_20BIT = "random_20bit"
    RANDOM_32BIT = "random_32bit"
    GUID = "guid"


@dataclass(frozen=True)
class IdSegment:
    """
    One element of an inventory's identifier template.

    ``id`` is an opaque handle used by editors to reorder segments; it has
    no effect on generation.  ``value`` is only meaningful for FIXED
    segments, ``format`` for everything else.

    Segments read from storage may carry a plain string ``type`` that is
    not a ``SegmentType`` member; the compiler marks those invalid.
    """

    id: str
    type: SegmentType | str
    value: str | None = None
    format: str | None = None

    @property
    def type_name(self) -> str:
        return type_name(self.type)

    @classmethod
    def fixed(cls, value: str, segment_id: str | None = None) -> IdSegment:
        return cls(id=segment_id or _new_segment_id(), type=SegmentType.FIXED, value=value)

    @classmethod
    def of(
        cls,
        segment_type: SegmentType | str,
        format: str | None = None,
        segment_id: str | None = None,
    ) -> IdSegment:
        return cls(
            id=segment_id or _new_segment_id(),
            type=SegmentType(segment_type),
            format=format,
        )

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> IdSegment:
        """Build a segment from its stored/JSON form.

        Never raises on content: an unknown ``type`` is kept as its string
        form and ``value``/``format`` are passed through unchecked.
        """
        raw_type = data.get("type")
        segment_type: SegmentType | str
        try:
            segment_type = SegmentType(raw_type)
        except (ValueError, TypeError):
            segment_type = "" if raw_type is None else str(raw_type)
        return cls(
            id=str(data.get("id") or _new_segment_id()),
            type=segment_type,
            value=data.get("value"),
            format=data.get("format"),
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"id": self.id, "type": self.type_name}
        if self.value is not None:
            data["value"] = self.value
        if self.format is not None:
            data["format"] = self.format
        return data


def parse_segments(raw: Iterable[Mapping[str, Any] | IdSegment] | None) -> tuple[IdSegment, ...]:
    """Normalize a stored template (dicts or segments) into segments."""
    if not raw:
        return ()
    return tuple(
        item if isinstance(item, IdSegment) else IdSegment.from_dict(item)
        for item in raw
    )


def segments_to_json(segments: Iterable[IdSegment]) -> list[dict[str, Any]]:
    return [segment.to_dict() for segment in segments]


def type_name(segment_type: SegmentType | str) -> str:
    """Stored name of a segment type, known or not."""
    if isinstance(segment_type, SegmentType):
        return segment_type.value
    return segment_type


def _new_segment_id() -> str:
    return f"seg-{uuid4().hex[:8]}"
