"""
ID Validator -- positional validation of custom ID edits.

Responsibility:
    Decides whether a user-submitted replacement for an item's custom ID
    is structurally legal under the inventory's template, and whether it
    changes the value of the sequence segment.  Also validates a free
    candidate ID against a template (no original to compare with).

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.  Uniqueness is a
    persistence concern and is checked by the services.

Rules (``validate_edit``):
    1. Empty edits are rejected; identical edits are valid, no change.
    2. The edited ID must be exactly ``template.length`` characters.  This
       is checked before any positional comparison.
    3. The original ID must also fit the span table, otherwise positions
       cannot be located and the item's ID is not editable.
    4. Literal regions (fixed text, suffixes, placeholders) must be
       unchanged.
    5. Body regions must keep the character class of their span (digits,
       hex digits, GUID layout).
    6. If the template has no sequence segment, no body may change at all.
    7. If the sequence body changed, its new value is parsed as a decimal
       integer and reported in ``new_sequence``.

Positions in messages are 1-based.

Failure modes:
    (none -- outcomes are returned as ``EditOutcome``)
"""

from __future__ import annotations

from dataclasses import dataclass

from inventory_kernel.domain.id_generator import TemplateLike, as_template
from inventory_kernel.domain.template import (
    GUID_HYPHEN_OFFSETS,
    CharClass,
    Span,
)

_DIGITS = frozenset("0123456789")
_HEX_DIGITS = frozenset("0123456789abcdefABCDEF")


@dataclass(frozen=True)
class EditOutcome:
    """Result of validating a custom ID (edit or candidate)."""

    valid: bool
    message: str
    position: int | None = None
    new_sequence: int | None = None

    @property
    def sequence_changed(self) -> bool:
        return self.new_sequence is not None

    def to_dict(self) -> dict:
        return {"valid": self.valid, "message": self.message}


def validate_edit(template: TemplateLike, original: str, edited: str) -> EditOutcome:
    """
    Validate an in-place edit of ``original`` into ``edited``.

    Preconditions:
        ``original`` is the stored custom ID of the item.

    Postconditions:
        ``valid`` is True only if every rule in the module docstring
        holds.  ``new_sequence`` is set iff the sequence body changed.
    """
    compiled = as_template(template)

    if not edited:
        return EditOutcome(False, "Custom ID cannot be empty")
    if edited == original:
        return EditOutcome(True, "No changes detected")

    expected = compiled.length
    if len(edited) != expected:
        return EditOutcome(False, f"Custom ID must be {expected} characters")
    if len(original) != expected:
        return EditOutcome(
            False,
            "Current custom ID does not match the inventory's ID format "
            "and cannot be edited",
        )

    sequence_span = compiled.sequence_span
    for span in compiled.spans:
        old_body, new_body = _body(span, original), _body(span, edited)
        if _literal(span, original) != _literal(span, edited):
            offset = _first_difference(_literal(span, original), _literal(span, edited))
            return _cannot_change(span.body_end + offset)

        if old_body == new_body:
            continue
        if sequence_span is None:
            offset = _first_difference(old_body, new_body)
            return _cannot_change(span.start + offset)

        bad = _first_invalid_char(span, new_body)
        if bad is not None:
            return EditOutcome(
                False,
                f"Invalid character at position {span.start + bad + 1}",
                position=span.start + bad + 1,
            )

    new_sequence = None
    if sequence_span is not None:
        old_seq, new_seq = _body(sequence_span, original), _body(sequence_span, edited)
        if old_seq != new_seq:
            new_sequence = int(new_seq)

    return EditOutcome(True, "Valid edit", new_sequence=new_sequence)


def validate_format(template: TemplateLike, candidate: str) -> EditOutcome:
    """
    Check that ``candidate`` could have been produced by ``template``.

    Literal regions must equal the template's literal text and every body
    character must belong to its span's character class.
    """
    compiled = as_template(template)

    if not candidate:
        return EditOutcome(False, "Custom ID cannot be empty")
    expected = compiled.length
    if len(candidate) != expected:
        return EditOutcome(False, f"Custom ID must be {expected} characters")

    for span in compiled.spans:
        literal = _literal(span, candidate)
        if literal != span.literal:
            offset = _first_difference(span.literal, literal)
            position = span.body_end + offset + 1
            return EditOutcome(
                False,
                f"Character at position {position} must be {span.literal[offset]!r}",
                position=position,
            )
        bad = _first_invalid_char(span, _body(span, candidate))
        if bad is not None:
            return EditOutcome(
                False,
                f"Invalid character at position {span.start + bad + 1}",
                position=span.start + bad + 1,
            )

    return EditOutcome(True, "Custom ID format is valid")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _body(span: Span, value: str) -> str:
    return value[span.start:span.body_end]


def _literal(span: Span, value: str) -> str:
    return value[span.body_end:span.end]


def _first_difference(a: str, b: str) -> int:
    for i, (x, y) in enumerate(zip(a, b)):
        if x != y:
            return i
    return min(len(a), len(b))


def _first_invalid_char(span: Span, body: str) -> int | None:
    for offset, ch in enumerate(body):
        if not _char_allowed(span.char_class, offset, ch):
            return offset
    return None


def _char_allowed(char_class: CharClass | None, offset: int, ch: str) -> bool:
    match char_class:
        case CharClass.DIGIT:
            return ch in _DIGITS
        case CharClass.HEX:
            return ch in _HEX_DIGITS
        case CharClass.GUID:
            if offset in GUID_HYPHEN_OFFSETS:
                return ch == "-"
            return ch in _HEX_DIGITS
        case _:
            return False


def _cannot_change(index: int) -> EditOutcome:
    return EditOutcome(
        False,
        f"Character at position {index + 1} cannot be changed",
        position=index + 1,
    )
