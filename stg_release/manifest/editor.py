"""Line-shape parser and duplicate-target removal for Cargo manifests.

The parser recognises four line shapes: section headers (``[x]`` and
``[[x]]``), ``key = value`` entries, continuation lines belonging to a
multi-line string or array, and trivia (blank lines and comments). Both
removal passes work on the original lines, so text outside the removed block
is carried through byte for byte, line endings included.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

_ARRAY_HEADER = re.compile(r"^\s*\[\[\s*(?P<name>[^\[\]]+?)\s*\]\]\s*(?:#.*)?$")
_TABLE_HEADER = re.compile(r"^\s*\[\s*(?P<name>[^\[\]]+?)\s*\]\s*(?:#.*)?$")
_TRIPLE_QUOTES = ('"""', "'''")


class LineKind(str, Enum):
    HEADER = "header"
    ENTRY = "entry"
    CONTINUATION = "continuation"
    TRIVIA = "trivia"


@dataclass(frozen=True, slots=True)
class ManifestLine:
    index: int
    text: str
    kind: LineKind
    section: Optional[str] = None
    array: bool = False
    key: Optional[str] = None
    value: Optional[str] = None

    @property
    def body(self) -> str:
        return self.text.rstrip("\r\n")

    @property
    def is_content(self) -> bool:
        return self.kind is not LineKind.TRIVIA


@dataclass(frozen=True, slots=True)
class ManifestBlock:
    """A header line plus every line up to the next header."""

    header: Optional[ManifestLine]
    lines: Tuple[ManifestLine, ...]

    @property
    def section(self) -> Optional[str]:
        return self.header.section if self.header else None

    @property
    def text(self) -> str:
        return "".join(line.text for line in self.lines)

    def get(self, key: str) -> Optional[str]:
        for line in self.lines:
            if line.kind is LineKind.ENTRY and line.key == key:
                return string_value(line.value or "")
        return None


@dataclass(frozen=True, slots=True)
class ManifestEdit:
    """Outcome of removing one duplicate target block."""

    original: str
    text: str
    removed: bool
    strategy: str
    removed_text: str = ""
    notes: List[str] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.text != self.original


def parse_lines(text: str) -> List[ManifestLine]:
    """Classify every physical line of ``text``."""

    parsed: List[ManifestLine] = []
    open_string: Optional[str] = None
    depth = 0
    for index, raw in enumerate(text.splitlines(keepends=True)):
        body = raw.rstrip("\r\n")
        if open_string is not None:
            parsed.append(ManifestLine(index, raw, LineKind.CONTINUATION))
            if open_string in body:
                open_string = None
            continue
        if depth > 0:
            parsed.append(ManifestLine(index, raw, LineKind.CONTINUATION))
            depth = max(0, depth + _bracket_delta(body))
            continue

        stripped = body.strip()
        if not stripped or stripped.startswith("#"):
            parsed.append(ManifestLine(index, raw, LineKind.TRIVIA))
            continue

        header = _ARRAY_HEADER.match(body)
        if header:
            parsed.append(ManifestLine(index, raw, LineKind.HEADER, section=header.group("name"), array=True))
            continue
        header = _TABLE_HEADER.match(body)
        if header:
            parsed.append(ManifestLine(index, raw, LineKind.HEADER, section=header.group("name")))
            continue

        if "=" in stripped:
            key, value = stripped.split("=", 1)
            value = value.strip()
            parsed.append(ManifestLine(index, raw, LineKind.ENTRY, key=key.strip().strip("\"'"), value=value))
            for quote in _TRIPLE_QUOTES:
                if value.startswith(quote):
                    if value.count(quote) == 1:
                        open_string = quote
                    break
            else:
                depth = max(0, _bracket_delta(value))
            continue

        parsed.append(ManifestLine(index, raw, LineKind.CONTINUATION))
    return parsed


def split_blocks(lines: Sequence[ManifestLine]) -> List[ManifestBlock]:
    """Group classified lines into a preamble block followed by one block per header."""

    blocks: List[ManifestBlock] = []
    header: Optional[ManifestLine] = None
    current: List[ManifestLine] = []
    for line in lines:
        if line.kind is LineKind.HEADER:
            if header is not None or current:
                blocks.append(ManifestBlock(header, tuple(current)))
            header = line
            current = [line]
        else:
            current.append(line)
    if header is not None or current:
        blocks.append(ManifestBlock(header, tuple(current)))
    return blocks


def string_value(raw: str) -> str:
    """Return the unquoted value of a TOML scalar, dropping any trailing comment."""

    raw = raw.strip()
    if raw[:1] in {'"', "'"}:
        quote = raw[0]
        escaped = False
        for position in range(1, len(raw)):
            char = raw[position]
            if quote == '"' and char == "\\" and not escaped:
                escaped = True
                continue
            if char == quote and not escaped:
                return raw[1:position]
            escaped = False
        return raw[1:]
    return raw.split("#", 1)[0].strip()


def count_assignments(text: str, section: str, target: str) -> int:
    """Count ``[[section]]`` blocks whose ``name`` equals ``target``."""

    return sum(
        1
        for block in split_blocks(parse_lines(text))
        if block.header is not None
        and block.header.array
        and block.section == section
        and block.get("name") == target
    )


def line_range_pass(text: str, marker: str, assignment: str) -> str:
    """Delete every range from a line equal to ``marker`` through the next line equal to ``assignment``.

    An unterminated range runs to the end of the text, matching the
    classic ``sed '/start/,/end/d'`` behaviour this pass reproduces.
    """

    kept: List[str] = []
    in_range = False
    for raw in text.splitlines(keepends=True):
        body = raw.rstrip("\r\n")
        if in_range:
            if body == assignment:
                in_range = False
            continue
        if body == marker:
            in_range = True
            continue
        kept.append(raw)
    return "".join(kept)


def block_scan_pass(lines: Iterable[ManifestLine], section: str, target: str) -> Tuple[str, str]:
    """Remove the first ``[[section]]`` block whose ``name`` is ``target``.

    Returns ``(new_text, removed_text)``. Trailing trivia of the removed block
    is emitted so blank lines and comments before the next header survive.
    """

    emitted: List[str] = []
    buffer: List[ManifestLine] = []
    buffering = False
    confirmed = False
    removed_text = ""

    def close_block() -> None:
        nonlocal buffering, confirmed, removed_text
        if confirmed:
            last_content = max(position for position, line in enumerate(buffer) if line.is_content)
            removed_text = "".join(line.text for line in buffer[: last_content + 1])
            emitted.extend(line.text for line in buffer[last_content + 1 :])
        else:
            emitted.extend(line.text for line in buffer)
        buffer.clear()
        buffering = False
        confirmed = False

    for line in lines:
        if line.kind is LineKind.HEADER:
            if buffering:
                close_block()
            if not removed_text and line.array and line.section == section:
                buffering = True
                buffer.append(line)
                continue
            emitted.append(line.text)
            continue
        if buffering:
            buffer.append(line)
            if (
                line.kind is LineKind.ENTRY
                and line.key == "name"
                and string_value(line.value or "") == target
            ):
                confirmed = True
            continue
        emitted.append(line.text)
    if buffering:
        close_block()
    return "".join(emitted), removed_text


def remove_target_block(text: str, section: str, target: str) -> ManifestEdit:
    """Drop one duplicate target declaration from a manifest.

    The block-aware scan decides the result. The cheaper line-range pass is
    tried first and reported as the strategy only when its output is
    byte-identical to the scan.
    """

    scanned, removed_text = block_scan_pass(parse_lines(text), section, target)
    if not removed_text:
        return ManifestEdit(original=text, text=text, removed=False, strategy="none")

    marker = f"[[{section}]]"
    assignment = f'name = "{target}"'
    fast = line_range_pass(text, marker, assignment)
    if fast == scanned:
        return ManifestEdit(
            original=text,
            text=scanned,
            removed=True,
            strategy="line-range",
            removed_text=removed_text,
        )
    return ManifestEdit(
        original=text,
        text=scanned,
        removed=True,
        strategy="block-scan",
        removed_text=removed_text,
        notes=["line-range pass disagreed with block scan; block scan used"],
    )


def _bracket_delta(fragment: str) -> int:
    """Net count of opening minus closing brackets/braces outside strings and comments."""

    delta = 0
    quote: Optional[str] = None
    escaped = False
    for char in fragment:
        if quote is not None:
            if quote == '"' and char == "\\" and not escaped:
                escaped = True
                continue
            if char == quote and not escaped:
                quote = None
            escaped = False
            continue
        if char in {'"', "'"}:
            quote = char
        elif char == "#":
            break
        elif char in "[{":
            delta += 1
        elif char in "]}":
            delta -= 1
    return delta
