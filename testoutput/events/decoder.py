"""Line-oriented decoder for ``go test -json`` output.

Each input line is decoded on its own. Lines that are not a JSON object
with the expected field types are skipped so that interleaved build output
or truncated lines never abort the stream. Field names match the way Go's
``encoding/json`` matches them: exact name first, then case-insensitively.
"""

from __future__ import annotations

import datetime
import json
import re
from typing import IO, Any, Iterable, Iterator

from testoutput.events.index import TestEvents
from testoutput.events.model import ZERO_TIME, Action, TestEvent

# RFC 3339 timestamp as written by Go's time.Time JSON marshalling
_RFC3339 = re.compile(
    r"^(\d{4})-(\d{2})-(\d{2})[Tt](\d{2}):(\d{2}):(\d{2})"
    r"(?:\.(\d+))?"
    r"(?:([Zz])|([+-])(\d{2}):(\d{2}))$"
)

_STRING_FIELDS = {
    "Action": "action",
    "Package": "package",
    "Test": "test",
    "Output": "output",
}


class DecodeError(ValueError):
    """A line could not be decoded into a TestEvent."""


class SinkWriteError(RuntimeError):
    """Writing to the passthrough sink failed."""


def parse_rfc3339(value: str) -> datetime.datetime:
    """Parse an RFC 3339 timestamp into an aware datetime.

    Fractions finer than a microsecond are truncated.

    Raises:
        DecodeError: If *value* is not a valid RFC 3339 timestamp.
    """
    match = _RFC3339.match(value)
    if match is None:
        raise DecodeError(f"invalid timestamp: {value!r}")
    (year, month, day, hour, minute, second,
     fraction, zulu, sign, off_hour, off_minute) = match.groups()

    if zulu:
        tz = datetime.timezone.utc
    else:
        offset = datetime.timedelta(hours=int(off_hour), minutes=int(off_minute))
        if sign == "-":
            offset = -offset
        try:
            tz = datetime.timezone(offset)
        except ValueError as e:
            raise DecodeError(f"invalid timestamp offset: {value!r}") from e

    microsecond = int((fraction or "0")[:6].ljust(6, "0"))
    try:
        return datetime.datetime(
            int(year), int(month), int(day),
            int(hour), int(minute), int(second),
            microsecond, tzinfo=tz,
        )
    except ValueError as e:
        raise DecodeError(f"invalid timestamp: {value!r}") from e


def _lookup(record: dict[str, Any], name: str) -> Any:
    """Find a field by exact name, falling back to a case-insensitive match."""
    if name in record:
        return record[name]
    lowered = name.lower()
    for key, value in record.items():
        if key.lower() == lowered:
            return value
    return None


def decode_event(line: str | bytes) -> TestEvent:
    """Decode one line of test2json output.

    Missing fields and JSON ``null`` values leave the field at its zero
    value. Unknown fields are ignored.

    Raises:
        DecodeError: If the line is not a JSON object or a known field has
            the wrong type.
    """
    if isinstance(line, bytes):
        # Invalid UTF-8 becomes U+FFFD, as encoding/json does
        line = line.decode("utf-8", "replace")
    try:
        record = json.loads(line)
    except (ValueError, RecursionError) as e:
        raise DecodeError(f"invalid JSON: {e}") from e
    if not isinstance(record, dict):
        raise DecodeError(f"expected a JSON object, got {type(record).__name__}")

    event = TestEvent()
    for name, attr in _STRING_FIELDS.items():
        value = _lookup(record, name)
        if value is None:
            continue
        if not isinstance(value, str):
            raise DecodeError(f"{name}: expected string, got {type(value).__name__}")
        setattr(event, attr, value)

    raw_time = _lookup(record, "Time")
    if raw_time is not None:
        if not isinstance(raw_time, str):
            raise DecodeError(f"Time: expected string, got {type(raw_time).__name__}")
        event.time = parse_rfc3339(raw_time)
    else:
        event.time = ZERO_TIME

    elapsed = _lookup(record, "Elapsed")
    if elapsed is not None:
        if isinstance(elapsed, bool) or not isinstance(elapsed, (int, float)):
            raise DecodeError(f"Elapsed: expected number, got {type(elapsed).__name__}")
        try:
            event.elapsed = float(elapsed)
        except OverflowError as e:
            raise DecodeError(f"Elapsed: {e}") from e

    return event


def _write_passthrough(sink: IO[str], text: str) -> None:
    try:
        sink.write(text)
        sink.flush()
    except OSError as e:
        raise SinkWriteError(f"failed writing passthrough output: {e}") from e


def iter_events(
    lines: Iterable[str | bytes],
    passthrough: IO[str] | None = None,
) -> Iterator[TestEvent]:
    """Lazily decode events, skipping lines that fail to decode.

    When *passthrough* is set, the text of every ``output`` event is
    written to it before the event is yielded.

    Raises:
        SinkWriteError: If writing to *passthrough* fails.
    """
    for line in lines:
        try:
            event = decode_event(line)
        except DecodeError:
            continue
        if passthrough is not None and event.kind is Action.OUTPUT:
            _write_passthrough(passthrough, event.output)
        yield event


def decode_events(
    lines: Iterable[str | bytes],
    passthrough: IO[str] | None = None,
) -> TestEvents:
    """Decode a whole stream into a TestEvents collection.

    Args:
        lines: Lines of ``go test -json`` output (text or bytes).
        passthrough: Optional text sink mirroring ``output`` events.

    Returns:
        All successfully decoded events in arrival order.

    Raises:
        SinkWriteError: If writing to *passthrough* fails.
    """
    return TestEvents(iter_events(lines, passthrough))
