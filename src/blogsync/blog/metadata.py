"""Page metadata and frontmatter decoding.

Pages begin with a frontmatter block delimited by a marker line repeated
before and after it, in the style of Hugo or Jekyll:

* ``+++`` -- TOML, decoded with ``tomllib``.
* ``---`` -- YAML, decoded with ``yaml.safe_load``.

The decoded mapping is wrapped in ``Metadata``, whose typed accessors
return a zero value on a missing key or a type mismatch instead of
raising, so a sloppy frontmatter field never fails a publish run.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass
from datetime import date, datetime, time, timezone
from enum import Enum
from typing import Any

import yaml

HEADER_TOML = "+++"
HEADER_YAML = "---"

# Formats tried, in order, when a timestamp field holds a string.
TIME_FORMATS: tuple[str, ...] = (
    "rfc3339",
    "rfc3339nano",
    "%Y-%m-%dT%H:%M:%S",
    "%Y-%m-%d",
)

# Values accepted as true by Go's strconv.ParseBool, which existing
# frontmatter was written against.
_TRUE_STRINGS = frozenset({"1", "t", "T", "TRUE", "true", "True"})


class HeaderKind(str, Enum):
    """Kind of frontmatter block found at the top of a page."""

    TOML = "toml"
    YAML = "yaml"


DEFAULT_HEADERS: dict[str, HeaderKind] = {
    HEADER_TOML: HeaderKind.TOML,
    HEADER_YAML: HeaderKind.YAML,
}


class FrontmatterError(ValueError):
    """Raised when a page's frontmatter cannot be decoded."""


class Metadata(dict):
    """Mapping of frontmatter keys to dynamically typed values.

    Keys are case-sensitive.  Values are whatever the decoder produced:
    strings, booleans, integers, datetimes, or nested mappings.
    """

    def get_string(self, key: str) -> str:
        """Return the value for *key* if it is a string, else ``""``."""
        val = self.get(key)
        return val if isinstance(val, str) else ""

    def get_bool(self, key: str) -> bool:
        """Return the value for *key* as a bool.

        Strings are parsed the way ``strconv.ParseBool`` parses them;
        anything unparseable is ``False``.
        """
        val = self.get(key)
        if isinstance(val, bool):
            return val
        if isinstance(val, str):
            return val in _TRUE_STRINGS
        return False

    def get_int(self, key: str, default: int | None = 0) -> int | None:
        """Return the value for *key* if it is an integer, else *default*."""
        val = self.get(key)
        if isinstance(val, int) and not isinstance(val, bool):
            return val
        return default

    def get_mapping(self, key: str) -> dict:
        """Return the value for *key* if it is a mapping, else ``{}``."""
        val = self.get(key)
        return val if isinstance(val, dict) else {}

    def get_time(
        self, key: str, formats: tuple[str, ...] = TIME_FORMATS
    ) -> datetime | None:
        """Return the value for *key* as a timezone-aware datetime.

        Accepts native datetimes and dates (as produced by TOML and YAML
        decoders) and strings in any of *formats*.  Naive values are taken
        to be UTC.  Returns ``None`` when the key is missing or the value
        cannot be interpreted as a time.
        """
        val = self.get(key)
        if isinstance(val, datetime):
            return _as_utc(val)
        if isinstance(val, date):
            return datetime.combine(val, time(), tzinfo=timezone.utc)
        if isinstance(val, str):
            return parse_time(val, formats)
        return None


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def parse_time(
    value: str, formats: tuple[str, ...] = TIME_FORMATS
) -> datetime | None:
    """Parse *value* using the first matching format, or return ``None``.

    The pseudo-formats ``rfc3339`` and ``rfc3339nano`` accept full
    timestamps with a zone offset (``Z`` or ``+hh:mm``), with or without
    fractional seconds.
    """
    value = value.strip()
    for fmt in formats:
        if fmt in ("rfc3339", "rfc3339nano"):
            parsed = _parse_rfc3339(value, nano=fmt == "rfc3339nano")
        else:
            try:
                parsed = datetime.strptime(value, fmt)
            except ValueError:
                parsed = None
        if parsed is not None:
            return _as_utc(parsed)
    return None


def _parse_rfc3339(value: str, nano: bool) -> datetime | None:
    if "T" not in value:
        return None
    if not (value.endswith(("Z", "z")) or value[-6:-5] in ("+", "-")):
        return None
    if "." in value and not nano:
        return None
    text = value[:-1] + "+00:00" if value.endswith(("Z", "z")) else value
    if "." in text:
        # fromisoformat only takes up to microseconds; truncate nanos
        head, _, rest = text.partition(".")
        digits = rest[:-6]
        text = f"{head}.{digits[:6].ljust(6, '0')}{rest[-6:]}"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


@dataclass
class Frontmatter:
    """Result of decoding a page's frontmatter.

    Attributes:
        header: Kind of header block that was found.
        metadata: The decoded key/value mapping.
        body: Everything after the closing marker line.
        offset: Number of characters consumed by the frontmatter block.
    """

    header: HeaderKind
    metadata: Metadata
    body: str
    offset: int


def decode_frontmatter(
    text: str, headers: dict[str, HeaderKind] | None = None
) -> Frontmatter:
    """
    Split *text* into its frontmatter block and body and decode the block.

    The first line must be one of the known header markers, and the block
    is closed by the next line equal to that same marker.

    Args:
        text: Full page content.
        headers: Marker line -> header kind.  Defaults to ``+++`` (TOML)
            and ``---`` (YAML).

    Returns:
        ``Frontmatter`` with the header kind, metadata, body and offset.

    Raises:
        FrontmatterError: If the header is missing or unknown, the block is
            never closed, or its content cannot be decoded.
    """
    known = headers if headers is not None else DEFAULT_HEADERS
    lines = text.splitlines(keepends=True)
    if not lines:
        raise FrontmatterError("empty file has no frontmatter")

    marker = lines[0].rstrip("\r\n")
    kind = known.get(marker)
    if kind is None:
        raise FrontmatterError(
            f"unsupported frontmatter header {marker!r}"
        )

    offset = len(lines[0])
    block: list[str] = []
    for line in lines[1:]:
        offset += len(line)
        if line.rstrip("\r\n") == marker:
            break
        block.append(line)
    else:
        raise FrontmatterError(
            f"frontmatter opened with {marker!r} is never closed"
        )

    raw = "".join(block)
    if kind == HeaderKind.TOML:
        try:
            data: Any = tomllib.loads(raw)
        except tomllib.TOMLDecodeError as exc:
            raise FrontmatterError(f"invalid TOML frontmatter: {exc}") from exc
    else:
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as exc:
            raise FrontmatterError(f"invalid YAML frontmatter: {exc}") from exc
        if data is None:
            data = {}
        if not isinstance(data, dict):
            raise FrontmatterError(
                f"YAML frontmatter must be a mapping, got {type(data).__name__}"
            )

    return Frontmatter(
        header=kind,
        metadata=Metadata(data),
        body=text[offset:],
        offset=offset,
    )
