"""
ID Generator -- renders concrete custom IDs from a template.

Responsibility:
    ``generate(template, sequence_value)`` walks the compiled span table
    and renders each span independently: the body from the segment type
    (sequence value, year, random draw, GUID) followed by the span's
    literal tail.  ``preview`` renders the same thing with sequence ``1``.

Architecture position:
    Kernel > Domain -- pure functional core.  Time and randomness are
    injected (``Clock``, ``random.Random``) so callers and tests control
    both.

Invariants enforced:
    - Output length equals ``CompiledTemplate.length`` as long as the
      sequence value fits the sequence width.  Values wider than the
      width are rendered in full, never truncated.
    - Random bodies are NOT checked against existing IDs.  Uniqueness is
      enforced by the ``(inventory_id, custom_id)`` constraint.

Failure modes:
    - ValueError if ``sequence_value`` is negative.
"""

from __future__ import annotations

import random
from typing import Any, Iterable, Mapping
from uuid import UUID

from inventory_kernel.domain.clock import Clock, SystemClock
from inventory_kernel.domain.segments import IdSegment, SegmentType
from inventory_kernel.domain.template import (
    CharClass,
    CompiledTemplate,
    Span,
    compile_template,
)

PREVIEW_SEQUENCE = 1

_SYSTEM_CLOCK = SystemClock()
_SYSTEM_RANDOM = random.SystemRandom()

TemplateLike = CompiledTemplate | Iterable[IdSegment | Mapping[str, Any]] | None


def as_template(template: TemplateLike) -> CompiledTemplate:
    if isinstance(template, CompiledTemplate):
        return template
    return compile_template(template)


def generate(
    template: TemplateLike,
    sequence_value: int,
    *,
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> str:
    """
    Render a custom ID.

    Args:
        template: Compiled template, or the raw segment list.
        sequence_value: Value for the sequence segment (>= 0).
        clock: Time source for date segments (system clock by default).
        rng: Random source for random/GUID segments
            (``random.SystemRandom`` by default).

    Returns:
        The rendered identifier.
    """
    if sequence_value < 0:
        raise ValueError(f"sequence_value must be >= 0, got {sequence_value}")

    compiled = as_template(template)
    clock = clock or _SYSTEM_CLOCK
    rng = rng or _SYSTEM_RANDOM

    return "".join(
        _render_body(span, sequence_value, clock, rng) + span.literal
        for span in compiled.spans
    )


def preview(
    template: TemplateLike,
    *,
    clock: Clock | None = None,
    rng: random.Random | None = None,
) -> str:
    """What an ID from this template looks like; touches no persisted state."""
    return generate(template, PREVIEW_SEQUENCE, clock=clock, rng=rng)


def _render_body(span: Span, sequence_value: int, clock: Clock, rng: random.Random) -> str:
    if span.is_literal:
        return ""

    match span.type:
        case SegmentType.SEQUENCE:
            return str(sequence_value).zfill(span.body_length)
        case SegmentType.DATE:
            return f"{clock.year():04d}"
        case SegmentType.RANDOM_6DIGIT:
            return str(rng.randint(100_000, 999_999))
        case SegmentType.RANDOM_9DIGIT:
            return str(rng.randint(100_000_000, 999_999_999))
        case SegmentType.RANDOM_20BIT:
            if span.char_class == CharClass.HEX:
                return f"{rng.getrandbits(20):05X}"
            # 20 bits can exceed six decimal digits; draw within the width.
            return f"{rng.randrange(10 ** 6):06d}"
        case SegmentType.RANDOM_32BIT:
            if span.char_class == CharClass.HEX:
                return f"{rng.getrandbits(32):08X}"
            return f"{rng.getrandbits(32):010d}"
        case SegmentType.GUID:
            return str(UUID(int=rng.getrandbits(128), version=4))
        case _:
            raise ValueError(f"Segment type {span.type} has no generated body")
