"""Header extraction: splits ``---`` delimited YAML headers from markdown bodies.

Parsing is a two-step pipeline.  The header block is first handed to
``yaml.safe_load``; when that fails, a line scanner takes a second pass.
Some producers write ``description`` as one long unquoted line with
literal ``\\n`` sequences and embedded colons, which strict YAML rejects.
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

import yaml

from agentsync_agents.definitions.types import HeaderParse, HeaderStatus, HeaderValue

SENTINEL = "---"

# Lenient-mode thresholds and keys.
_MULTILINE_KEY = "description"
_MULTILINE_LENGTH = 100
_ESCAPED_NEWLINE = "\\n"

_KEY_LINE = re.compile(r"^([\w-]+):\s*(.*)$")
_CLOSING_KEY_LINE = re.compile(r"^(name|tools|color|version|author|tags):\s*")
_LIST_ITEM_LINE = re.compile(r"^\s+-\s+(.*)$|^-\s+(.*)$")
_INT_TOKEN = re.compile(r"^\d+$")
_FLOAT_TOKEN = re.compile(r"^\d+\.\d+$")


@dataclass(frozen=True, slots=True)
class HeaderBlock:
    """Raw header text and the body that follows it."""

    raw: str
    body: str


def extract_header(text: str) -> HeaderBlock | None:
    """Locate the header block at the very start of *text*.

    The block is everything strictly between the first line (which must
    be exactly ``---``) and the next line that is exactly ``---``.

    Returns:
        The raw block and the stripped body, or *None* when the document
        does not open with a sentinel or never closes it.
    """
    lines = text.split("\n")
    if not lines or lines[0].rstrip("\r") != SENTINEL:
        return None

    for idx in range(1, len(lines)):
        if lines[idx].rstrip("\r") == SENTINEL:
            raw = "\n".join(lines[1:idx])
            body = "\n".join(lines[idx + 1 :]).strip()
            return HeaderBlock(raw=raw, body=body)

    return None


def parse_header(raw: str) -> HeaderParse:
    """Parse a raw header block, strict first and lenient second.

    The returned status is ``STRICT`` or ``LENIENT`` depending on which
    parser produced the mapping, or ``MALFORMED`` when neither yielded
    a single key.
    """
    try:
        loaded = yaml.safe_load(raw)
    except yaml.YAMLError as exc:
        error = str(exc)
    else:
        if isinstance(loaded, dict) and loaded:
            return HeaderParse(
                status=HeaderStatus.STRICT,
                header={str(k): v for k, v in loaded.items()},
            )
        if isinstance(loaded, dict):
            error = "header block is empty"
        else:
            error = f"header is not a mapping (got {type(loaded).__name__})"

    header = parse_lenient(raw)
    if not header:
        return HeaderParse(status=HeaderStatus.MALFORMED, error=error)
    return HeaderParse(status=HeaderStatus.LENIENT, header=header, error=error)


def parse_document(text: str) -> HeaderParse:
    """Extract and parse the header of a full document."""
    block = extract_header(text)
    if block is None:
        return HeaderParse(status=HeaderStatus.NO_HEADER, body=text.strip())

    parsed = parse_header(block.raw)
    return HeaderParse(
        status=parsed.status,
        header=parsed.header,
        body=block.body,
        error=parsed.error,
    )


def parse_lenient(raw: str) -> dict[str, HeaderValue]:
    """Line-scanning fallback for headers strict YAML rejects.

    Each ``key: value`` line starts a field.  A ``description`` whose value
    contains a literal ``\\n`` or runs past 100 characters switches to
    multi-line mode: following lines are joined with single spaces until
    a line opens one of the recognised top-level keys.  Indented ``- item``
    lines under an empty-valued key collect into a list.
    """
    result: dict[str, HeaderValue] = {}
    current_key: str | None = None
    current_value = ""
    in_multiline = False
    list_key: str | None = None

    lines = raw.split("\n")
    idx = 0
    while idx < len(lines):
        line = lines[idx].rstrip("\r")
        idx += 1

        if not line.strip():
            continue

        if in_multiline:
            if _CLOSING_KEY_LINE.match(line):
                result[current_key] = _coerce(current_value.strip())
                in_multiline = False
                current_key = None
                current_value = ""
                idx -= 1  # reprocess as a new key
            else:
                current_value += " " + line.strip()
            continue

        item = _LIST_ITEM_LINE.match(line)
        if item and list_key is not None:
            value = (item.group(1) or item.group(2) or "").strip()
            items = result.get(list_key)
            if not isinstance(items, list):
                items = []
                result[list_key] = items
            items.append(str(_coerce(value)))
            continue

        match = _KEY_LINE.match(line)
        if not match:
            continue

        key, value = match.group(1), match.group(2).strip()
        list_key = key if value == "" else None

        if key == _MULTILINE_KEY and (
            _ESCAPED_NEWLINE in value or len(value) > _MULTILINE_LENGTH
        ):
            current_key = key
            current_value = value
            in_multiline = True
        elif value == "":
            result[key] = ""
        else:
            result[key] = _coerce(value)

    if in_multiline and current_key is not None:
        result[current_key] = _coerce(current_value.strip())

    return result


def _coerce(value: str) -> HeaderValue:
    """Strip one layer of matching quotes and type booleans and numbers."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    if value == "true":
        return True
    if value == "false":
        return False
    if _INT_TOKEN.match(value):
        return int(value)
    if _FLOAT_TOKEN.match(value):
        return float(value)
    return value


def render_document(header: dict[str, Any], body: str) -> str:
    """Render a header mapping and body as a single-file document."""
    rendered = yaml.safe_dump(
        header,
        sort_keys=False,
        allow_unicode=True,
        default_flow_style=False,
        width=1_000_000,
    ).strip()
    return f"{SENTINEL}\n{rendered}\n{SENTINEL}\n\n{body.strip()}\n"
