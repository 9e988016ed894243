"""Pure domain core: ID template model, compiler, generator and validator."""

from inventory_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from inventory_kernel.domain.id_generator import generate, preview
from inventory_kernel.domain.id_validator import (
    EditOutcome,
    validate_edit,
    validate_format,
)
from inventory_kernel.domain.segments import IdSegment, SegmentType, parse_segments
from inventory_kernel.domain.template import (
    CharClass,
    CompiledTemplate,
    SegmentCheck,
    Span,
    compile_template,
    format_pattern,
)

__all__ = [
    "CharClass",
    "Clock",
    "CompiledTemplate",
    "DeterministicClock",
    "EditOutcome",
    "IdSegment",
    "SegmentCheck",
    "SegmentType",
    "Span",
    "SystemClock",
    "compile_template",
    "format_pattern",
    "generate",
    "parse_segments",
    "preview",
    "validate_edit",
    "validate_format",
]
