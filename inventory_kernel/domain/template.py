"""
Template -- compiler for ID templates.

Responsibility:
    Validates every segment's ``format`` against the grammar of its type
    and compiles the segment list into a ``CompiledTemplate``: per-segment
    validation results, a positional span table, and a human-readable
    pattern string.  The generator and the edit validator both work off
    the span table, so a template is compiled once and read many times.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Format grammar (per segment type):
    fixed          no format; ``value`` must be non-empty
    date           (yyyy|mm|dd|ddd) + optional literal suffix
    sequence       D<width 1..10> + optional literal suffix (suffix may
                   not start with a digit); absent format means width 1
    random_20bit   X5 | D6 + optional suffix (absent format means D6)
    random_32bit   X8 | D10 + optional suffix (absent format means D10)
    random_6digit  optional format, taken verbatim as suffix
    random_9digit  optional format, taken verbatim as suffix
    guid           optional format, taken verbatim as suffix

Invariants enforced:
    - The compiler never raises on malformed segments (unknown type,
      non-string value or format, bad grammar).  An invalid segment gets
      ``SegmentCheck(valid=False)`` and renders as a bracketed placeholder
      (``[format-or-type]``); the other segments are unaffected.
    - Only the first ``sequence`` segment is bound to the item counter.
      Any further ``sequence`` segment is reported invalid.
    - Span widths are fixed per segment: a template always describes IDs
      of exactly ``CompiledTemplate.length`` characters.

Failure modes:
    (none -- problems are reported as data)
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Mapping, Any

from inventory_kernel.domain.segments import IdSegment, SegmentType, parse_segments, type_name

MAX_SEQUENCE_WIDTH = 10
GUID_LENGTH = 36
GUID_HYPHEN_OFFSETS = frozenset({8, 13, 18, 23})

_DATE_RE = re.compile(r"^(yyyy|mm|ddd|dd)(.*)$", re.DOTALL)
_SEQUENCE_RE = re.compile(r"^D(\d+)(\D.*)?$", re.DOTALL)
_RANDOM_20BIT_RE = re.compile(r"^(X5|D6)(\D.*)?$", re.DOTALL)
_RANDOM_32BIT_RE = re.compile(r"^(X8|D10)(\D.*)?$", re.DOTALL)

# Date tokens the generator substitutes; other valid tokens render as placeholders.
RENDERED_DATE_TOKENS = frozenset({"yyyy"})


class CharClass(str, Enum):
    """Characters allowed in the variable body of a span."""

    DIGIT = "digit"
    HEX = "hex"
    GUID = "guid"


@dataclass(frozen=True)
class SegmentCheck:
    """Validation result for one segment of a template."""

    index: int
    segment_id: str
    type: SegmentType | str
    valid: bool
    message: str = ""

    def to_dict(self) -> dict[str, Any]:
        return {
            "index": self.index,
            "segment_id": self.segment_id,
            "type": type_name(self.type),
            "valid": self.valid,
            "message": self.message,
        }


@dataclass(frozen=True)
class Span:
    """
    Character range a segment occupies in every generated ID.

    A span is a variable ``body`` of ``body_length`` characters followed
    by a ``literal`` tail.  Fixed segments, placeholders, and suffixes are
    all literal text; only the body changes from one ID to the next.
    """

    index: int
    segment_id: str
    type: SegmentType | str
    start: int
    body_length: int
    literal: str
    char_class: CharClass | None = None
    token: str | None = None

    @property
    def body_end(self) -> int:
        return self.start + self.body_length

    @property
    def end(self) -> int:
        return self.body_end + len(self.literal)

    @property
    def length(self) -> int:
        return self.end - self.start

    @property
    def is_literal(self) -> bool:
        return self.body_length == 0


@dataclass(frozen=True)
class CompiledTemplate:
    """
    Compiled form of an ID template.

    Contract:
        Produced by ``compile_template``.  Read-only; safe to share across
        threads.

    Guarantees:
        - ``spans`` are contiguous, ordered, and cover ``[0, length)``.
        - ``checks`` has exactly one entry per segment.
    """

    segments: tuple[IdSegment, ...]
    checks: tuple[SegmentCheck, ...]
    spans: tuple[Span, ...]

    @property
    def length(self) -> int:
        return self.spans[-1].end if self.spans else 0

    @property
    def is_valid(self) -> bool:
        return all(check.valid for check in self.checks)

    @property
    def invalid_checks(self) -> tuple[SegmentCheck, ...]:
        return tuple(check for check in self.checks if not check.valid)

    @property
    def sequence_span(self) -> Span | None:
        """The span bound to the item counter, if the template has one."""
        for span in self.spans:
            if span.type == SegmentType.SEQUENCE and not span.is_literal:
                return span
        return None

    @property
    def pattern(self) -> str:
        return format_pattern(self)


@dataclass(frozen=True)
class _Shape:
    valid: bool
    message: str
    body_length: int = 0
    literal: str = ""
    char_class: CharClass | None = None
    token: str | None = None


def compile_template(
    segments: Iterable[IdSegment | Mapping[str, Any]] | None,
) -> CompiledTemplate:
    """
    Compile a segment list into checks and a span table.

    Preconditions:
        Each item is an ``IdSegment`` or its dict form.

    Postconditions:
        Returns a ``CompiledTemplate``; never raises for malformed
        segments (unknown type, non-string value or format, bad grammar).
    """
    parsed = parse_segments(segments)
    checks: list[SegmentCheck] = []
    spans: list[Span] = []
    position = 0
    sequence_bound = False

    for index, segment in enumerate(parsed):
        shape = _shape_segment(segment)
        if shape.valid and segment.type == SegmentType.SEQUENCE:
            if sequence_bound:
                shape = _Shape(False, "Only one sequence segment is supported")
            sequence_bound = True

        if not shape.valid:
            shape = _Shape(
                False,
                shape.message,
                literal=_placeholder(segment),
            )

        checks.append(
            SegmentCheck(
                index=index,
                segment_id=segment.id,
                type=segment.type,
                valid=shape.valid,
                message=shape.message,
            )
        )
        span = Span(
            index=index,
            segment_id=segment.id,
            type=segment.type,
            start=position,
            body_length=shape.body_length,
            literal=shape.literal,
            char_class=shape.char_class,
            token=shape.token,
        )
        spans.append(span)
        position = span.end

    return CompiledTemplate(
        segments=parsed,
        checks=tuple(checks),
        spans=tuple(spans),
    )


def format_pattern(template: CompiledTemplate) -> str:
    """Render a human-readable pattern such as ``ITEM-###``."""
    parts: list[str] = []
    for segment, check, span in zip(template.segments, template.checks, template.spans):
        if not check.valid:
            parts.append(span.literal)
            continue
        match segment.type:
            case SegmentType.FIXED:
                parts.append(segment.value or "")
            case SegmentType.SEQUENCE:
                if span.is_literal:
                    parts.append(span.literal)
                else:
                    parts.append("#" * span.body_length + span.literal)
            case SegmentType.RANDOM_6DIGIT:
                parts.append("rand6" + (segment.format or ""))
            case SegmentType.RANDOM_9DIGIT:
                parts.append("rand9" + (segment.format or ""))
            case SegmentType.DATE | SegmentType.RANDOM_20BIT | SegmentType.RANDOM_32BIT | SegmentType.GUID:
                parts.append(segment.format or segment.type.value)
            case _:
                parts.append(span.literal)
    return "".join(parts)


# ---------------------------------------------------------------------------
# Per-type grammar
# ---------------------------------------------------------------------------


def _shape_segment(segment: IdSegment) -> _Shape:
    if not isinstance(segment.type, SegmentType):
        return _Shape(False, f"Unknown segment type: {segment.type!r}")
    fmt = segment.format
    if segment.type != SegmentType.FIXED and fmt is not None and not isinstance(fmt, str):
        return _Shape(False, f"Format must be text: {fmt!r}")

    match segment.type:
        case SegmentType.FIXED:
            if segment.value is not None and not isinstance(segment.value, str):
                return _Shape(False, f"Fixed text must be text: {segment.value!r}")
            if not segment.value:
                return _Shape(False, "Fixed text cannot be empty")
            return _Shape(True, "", literal=segment.value)

        case SegmentType.DATE:
            if not fmt:
                return _Shape(False, "Date format is required")
            parsed = _DATE_RE.match(fmt)
            if parsed is None:
                return _Shape(False, f"Unsupported date format: {fmt}")
            token, suffix = parsed.group(1), parsed.group(2)
            if token not in RENDERED_DATE_TOKENS:
                # Valid but not rendered: the whole format shows as a placeholder.
                return _Shape(True, "", literal=f"[{fmt}]", token=token)
            return _Shape(
                True, "", body_length=4, literal=suffix,
                char_class=CharClass.DIGIT, token=token,
            )

        case SegmentType.SEQUENCE:
            if not fmt:
                return _Shape(True, "", body_length=1, char_class=CharClass.DIGIT, token="D1")
            parsed = _SEQUENCE_RE.match(fmt)
            if parsed is None:
                return _Shape(False, f"Sequence format must be D1..D{MAX_SEQUENCE_WIDTH}: {fmt}")
            width = int(parsed.group(1))
            if not 1 <= width <= MAX_SEQUENCE_WIDTH:
                return _Shape(False, f"Sequence width must be 1..{MAX_SEQUENCE_WIDTH}: {fmt}")
            return _Shape(
                True, "", body_length=width, literal=parsed.group(2) or "",
                char_class=CharClass.DIGIT, token=f"D{width}",
            )

        case SegmentType.RANDOM_20BIT:
            return _shape_random_bits(fmt or "D6", _RANDOM_20BIT_RE, "X5 or D6")

        case SegmentType.RANDOM_32BIT:
            return _shape_random_bits(fmt or "D10", _RANDOM_32BIT_RE, "X8 or D10")

        case SegmentType.RANDOM_6DIGIT:
            return _Shape(True, "", body_length=6, literal=fmt or "", char_class=CharClass.DIGIT)

        case SegmentType.RANDOM_9DIGIT:
            return _Shape(True, "", body_length=9, literal=fmt or "", char_class=CharClass.DIGIT)

        case SegmentType.GUID:
            return _Shape(True, "", body_length=GUID_LENGTH, literal=fmt or "", char_class=CharClass.GUID)

        case _:
            return _Shape(False, f"Unknown segment type: {segment.type}")


def _shape_random_bits(fmt: str, pattern: re.Pattern[str], allowed: str) -> _Shape:
    parsed = pattern.match(fmt)
    if parsed is None:
        return _Shape(False, f"Format must be {allowed}: {fmt}")
    token = parsed.group(1)
    return _Shape(
        True, "",
        body_length=int(token[1:]),
        literal=parsed.group(2) or "",
        char_class=CharClass.HEX if token.startswith("X") else CharClass.DIGIT,
        token=token,
    )


def _placeholder(segment: IdSegment) -> str:
    fmt = segment.format if isinstance(segment.format, str) else None
    return f"[{fmt or segment.type_name}]"
