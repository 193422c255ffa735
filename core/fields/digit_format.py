"""Digit block codec for fixed-pattern inputs such as license plates and OTPs.

A format string such as ``AA-X-XXX`` is parsed once into segments:

- ``X``/``x`` runs become digit input segments.
- ``A``/``a`` runs become letter input segments.
- Any other run is a literal separator, inserted on encode and stripped on decode.
"""

from __future__ import annotations

import re
from collections.abc import Sequence
from dataclasses import dataclass
from functools import lru_cache

from core.fields.models import CharType, DigitSegment

_DIGIT_MARKERS = frozenset("Xx")
_LETTER_MARKERS = frozenset("Aa")
_NON_ALNUM_RE = re.compile(r"[^A-Za-z0-9]+")
_CHAR_CLASS_RE = {
    "digit": "[0-9]",
    "letter": "[A-Za-z]",
    "any": r"[\s\S]",
}


def parse_format(format_string: str) -> list[DigitSegment]:
    """Parse a digit format string into ordered segments."""

    segments: list[DigitSegment] = []
    current_class: str | None = None
    buffer: list[str] = []

    for char in format_string or "":
        char_class = _classify_format_char(char)
        if buffer and char_class != current_class:
            segments.append(_flush_segment(current_class, buffer))
            buffer = []
        current_class = char_class
        buffer.append(char)

    if buffer:
        segments.append(_flush_segment(current_class, buffer))

    return segments


def input_segments(segments: Sequence[DigitSegment]) -> list[DigitSegment]:
    """Return only the input segments, in order."""

    return [segment for segment in segments if segment.kind == "input"]


def decode(value: str, segments: Sequence[DigitSegment]) -> list[str]:
    """Split a stored value into one string per input segment.

    A structural match keeps the user's separators intact. When the value does not follow
    the format (for example digits pasted without separators), anything other than ASCII
    letters and digits is stripped and the remainder is sliced by segment length. Never raises.
    """

    inputs = input_segments(segments)
    if not inputs:
        return []

    text = value or ""
    match = _structural_pattern(tuple(segments)).fullmatch(text)
    if match is not None:
        return list(match.groups())

    cleaned = _NON_ALNUM_RE.sub("", text)
    parts: list[str] = []
    cursor = 0
    for segment in inputs:
        parts.append(cleaned[cursor : cursor + segment.length])
        cursor += segment.length
    return parts


def encode(values: Sequence[str], segments: Sequence[DigitSegment]) -> str:
    """Join per-segment values, inserting separator literals verbatim.

    Short values are emitted as-is; callers needing fixed width pad before calling.
    """

    chunks: list[str] = []
    index = 0
    for segment in segments:
        if segment.kind == "separator":
            chunks.append(segment.literal)
            continue
        chunks.append(values[index] if index < len(values) else "")
        index += 1
    return "".join(chunks)


def filter_char(char: str, char_type: CharType) -> str | None:
    """Return the character to store in a cell of ``char_type``, or None when rejected."""

    if len(char) != 1:
        return None
    if char_type == "digit":
        return char if char in "0123456789" else None
    if char_type == "letter":
        return char.upper() if char.isascii() and char.isalpha() else None
    return char


@dataclass(frozen=True)
class CellEdit:
    """Cell contents and focused cell index after one editing action."""

    char_values: tuple[str, ...]
    focus: int


class DigitBlock:
    """Per-character editing over the input cells of one digit format.

    Every method is pure: it takes the current cell values and returns a new ``CellEdit``.
    """

    def __init__(self, format_string: str) -> None:
        self.format_string = format_string
        self.segments = parse_format(format_string)
        self.cell_types: tuple[CharType, ...] = tuple(
            segment.char_type
            for segment in input_segments(self.segments)
            for _ in range(segment.length)
        )

    @property
    def cell_count(self) -> int:
        return len(self.cell_types)

    def empty_cells(self) -> tuple[str, ...]:
        return ("",) * self.cell_count

    def cells_from_value(self, value: str) -> tuple[str, ...]:
        """Spread a stored value over the cells, one character each."""

        cells: list[str] = []
        for segment, part in zip(input_segments(self.segments), decode(value, self.segments)):
            chars = list(part[: segment.length])
            chars.extend([""] * (segment.length - len(chars)))
            cells.extend(chars)
        return tuple(cells)

    def value_from_cells(self, char_values: Sequence[str]) -> str:
        """Collapse cells back into the stored (separator-formatted) value."""

        cells = self._normalize(char_values)
        values: list[str] = []
        cursor = 0
        for segment in input_segments(self.segments):
            values.append("".join(cells[cursor : cursor + segment.length]))
            cursor += segment.length
        return encode(values, self.segments)

    def type_char(self, char_values: Sequence[str], index: int, char: str) -> CellEdit:
        """Overwrite one cell with the most recently typed character and advance."""

        cells = list(self._normalize(char_values))
        if not 0 <= index < self.cell_count:
            return CellEdit(tuple(cells), self._clamp(index))

        accepted = filter_char(char[-1:], self.cell_types[index])
        if accepted is None:
            return CellEdit(tuple(cells), index)

        cells[index] = accepted
        return CellEdit(tuple(cells), self._clamp(index + 1))

    def backspace(self, char_values: Sequence[str], index: int) -> CellEdit:
        """Clear the current cell, or step back and clear the previous one if already empty."""

        cells = list(self._normalize(char_values))
        if not 0 <= index < self.cell_count:
            return CellEdit(tuple(cells), self._clamp(index))

        if cells[index]:
            cells[index] = ""
            return CellEdit(tuple(cells), index)
        if index > 0:
            cells[index - 1] = ""
            return CellEdit(tuple(cells), index - 1)
        return CellEdit(tuple(cells), index)

    def navigate(self, index: int, key: str) -> int:
        """Move focus for an arrow/home/end key; other keys keep the focus."""

        if key == "ArrowLeft":
            return self._clamp(index - 1)
        if key == "ArrowRight":
            return self._clamp(index + 1)
        if key == "Home":
            return 0
        if key == "End":
            return self._clamp(self.cell_count - 1)
        return self._clamp(index)

    def paste(self, char_values: Sequence[str], index: int, text: str) -> CellEdit:
        """Distribute pasted text from ``index`` on, keeping only compatible characters.

        The source index advances on every character; the target cell advances only after a
        successful write, so an incompatible character is dropped and the same cell is retried
        with the next one.
        """

        cells = list(self._normalize(char_values))
        if not 0 <= index < self.cell_count:
            return CellEdit(tuple(cells), self._clamp(index))

        source = 0
        target = index
        while source < len(text) and target < self.cell_count:
            accepted = filter_char(text[source], self.cell_types[target])
            source += 1
            if accepted is None:
                continue
            cells[target] = accepted
            target += 1

        return CellEdit(tuple(cells), self._clamp(target))

    def _normalize(self, char_values: Sequence[str]) -> tuple[str, ...]:
        cells = [value[:1] for value in list(char_values)[: self.cell_count]]
        cells.extend([""] * (self.cell_count - len(cells)))
        return tuple(cells)

    def _clamp(self, index: int) -> int:
        if self.cell_count == 0:
            return 0
        return max(0, min(index, self.cell_count - 1))


def _classify_format_char(char: str) -> str:
    if char in _DIGIT_MARKERS:
        return "digit"
    if char in _LETTER_MARKERS:
        return "letter"
    return "separator"


def _flush_segment(char_class: str | None, chars: list[str]) -> DigitSegment:
    if char_class == "digit":
        return DigitSegment(kind="input", char_type="digit", length=len(chars))
    if char_class == "letter":
        return DigitSegment(kind="input", char_type="letter", length=len(chars))
    return DigitSegment(kind="separator", char_type="any", length=len(chars), literal="".join(chars))


@lru_cache(maxsize=128)
def _structural_pattern(segments: tuple[DigitSegment, ...]) -> re.Pattern[str]:
    parts: list[str] = []
    for segment in segments:
        if segment.kind == "separator":
            parts.append(re.escape(segment.literal))
        else:
            parts.append(f"({_CHAR_CLASS_RE[segment.char_type]}{{{segment.length}}})")
    return re.compile("".join(parts))
