"""Tests for the test2json stream decoder."""

from __future__ import annotations

import datetime
import io
import json
from unittest.mock import MagicMock

import pytest

from testoutput.events.decoder import (
    DecodeError,
    SinkWriteError,
    decode_event,
    decode_events,
    iter_events,
    parse_rfc3339,
)
from testoutput.events.model import ZERO_TIME, Action


def _line(**fields) -> str:
    return json.dumps(fields) + "\n"


class TestParseRfc3339:
    """Tests for timestamp parsing."""

    def test_utc_with_nanoseconds(self):
        """Nanosecond fractions are truncated to microseconds."""
        ts = parse_rfc3339("2020-03-01T12:30:45.123456789Z")
        assert ts == datetime.datetime(
            2020, 3, 1, 12, 30, 45, 123456, tzinfo=datetime.timezone.utc
        )

    def test_offset(self):
        """Numeric offsets are applied."""
        ts = parse_rfc3339("2020-03-01T12:30:45-07:00")
        assert ts.utcoffset() == datetime.timedelta(hours=-7)
        assert ts.astimezone(datetime.timezone.utc).hour == 19

    def test_short_fraction(self):
        ts = parse_rfc3339("2020-03-01T12:30:45.5Z")
        assert ts.microsecond == 500000

    @pytest.mark.parametrize("value", [
        "",
        "yesterday",
        "2020-03-01 12:30:45Z",
        "2020-03-01T12:30:45",
        "2020-13-01T12:30:45Z",
    ])
    def test_invalid(self, value):
        with pytest.raises(DecodeError):
            parse_rfc3339(value)


class TestDecodeEvent:
    """Tests for decoding a single line."""

    def test_full_event(self):
        """All fields are decoded."""
        event = decode_event(_line(
            Time="2020-03-01T12:30:45Z",
            Action="fail",
            Package="example.com/root/pkg",
            Test="TestFoo",
            Elapsed=0.25,
            Output="boom\n",
        ))
        assert event.action == "fail"
        assert event.kind is Action.FAIL
        assert event.package == "example.com/root/pkg"
        assert event.test == "TestFoo"
        assert event.elapsed == 0.25
        assert event.output == "boom\n"
        assert event.time.year == 2020

    def test_missing_fields_are_empty(self):
        """Missing fields take zero values."""
        event = decode_event('{"Action": "output"}')
        assert event.package == ""
        assert event.test == ""
        assert event.output == ""
        assert event.elapsed is None
        assert event.time == ZERO_TIME

    def test_null_fields_are_empty(self):
        event = decode_event('{"Action": "run", "Test": null, "Elapsed": null}')
        assert event.test == ""
        assert event.elapsed is None

    def test_case_insensitive_field_names(self):
        """Field names match case-insensitively, like encoding/json."""
        event = decode_event('{"action": "pass", "PACKAGE": "p", "test": "TestX"}')
        assert event.action == "pass"
        assert event.package == "p"
        assert event.test == "TestX"

    def test_exact_name_preferred(self):
        event = decode_event('{"test": "lower", "Test": "exact"}')
        assert event.test == "exact"

    def test_unknown_fields_ignored(self):
        event = decode_event('{"Action": "run", "FailedBuild": "x", "Extra": [1]}')
        assert event.action == "run"

    def test_bytes_input(self):
        event = decode_event(b'{"Action": "pass"}\n')
        assert event.kind is Action.PASS

    def test_invalid_utf8_replaced(self):
        event = decode_event(b'{"Action": "fail", "Output": "bad \xff"}')
        assert event.kind is Action.FAIL
        assert event.output == "bad \ufffd"

    def test_integer_elapsed(self):
        event = decode_event('{"Action": "pass", "Elapsed": 3}')
        assert event.elapsed == 3.0

    def test_unknown_action_kept(self):
        """Unrecognised actions keep their raw tag."""
        event = decode_event('{"Action": "frobnicate"}')
        assert event.action == "frobnicate"
        assert event.kind is Action.UNKNOWN

    @pytest.mark.parametrize("line", [
        "",
        "not json",
        "{truncated",
        "[1, 2]",
        '"string"',
        "null",
        '{"Action": 5}',
        '{"Test": ["a"]}',
        '{"Elapsed": "1.0"}',
        '{"Elapsed": true}',
        '{"Time": 12345}',
        '{"Time": "not a time"}',
        '{"Elapsed": ' + "9" * 400 + "}",
        '{"Elapsed": ' + "9" * 5000 + "}",
        "[" * 100000,
    ])
    def test_malformed(self, line):
        with pytest.raises(DecodeError):
            decode_event(line)


class TestDecodeEvents:
    """Tests for decoding whole streams."""

    def test_preserves_order(self):
        lines = [
            _line(Action="run", Test="TestA"),
            _line(Action="output", Test="TestA", Output="x"),
            _line(Action="pass", Test="TestA"),
        ]
        events = decode_events(lines)
        assert [ev.action for ev in events] == ["run", "output", "pass"]

    def test_malformed_lines_dropped(self):
        """Malformed lines do not stop later lines from decoding."""
        lines = [
            _line(Action="run", Test="TestA"),
            "# github.com/x/y [build failed]\n",
            "{",
            _line(Action="fail", Test="TestA"),
        ]
        events = decode_events(lines)
        assert [ev.action for ev in events] == ["run", "fail"]

    @pytest.mark.parametrize("bad", [
        '{"Action": "pass", "Elapsed": ' + "9" * 400 + "}",
        '{"Action": "pass", "Test": ' + "1" * 5000 + "}",
        "[" * 100000,
    ])
    def test_oversized_values_skipped(self, bad):
        events = decode_events([bad, _line(Action="fail", Test="TestA")])
        assert [ev.action for ev in events] == ["fail"]

    def test_invalid_utf8_kept(self):
        events = decode_events([b'{"Action": "fail", "Test": "TestA", "Output": "\xff"}\n'])
        assert events.by_key().filter_by_result("fail").sorted_keys() == [":TestA"]

    def test_empty_input(self):
        assert decode_events([]) == []

    def test_reads_binary_stream(self):
        stream = io.BytesIO(
            b'{"Action": "run", "Test": "TestA"}\n'
            b'garbage\n'
            b'{"Action": "pass", "Test": "TestA"}'
        )
        events = decode_events(stream)
        assert len(events) == 2

    def test_iter_events_is_lazy(self):
        lines = iter([_line(Action="run"), _line(Action="pass")])
        gen = iter_events(lines)
        assert next(gen).action == "run"
        assert next(gen).action == "pass"
        with pytest.raises(StopIteration):
            next(gen)


class TestPassthrough:
    """Tests for mirroring output events to a sink."""

    def test_output_written_verbatim(self):
        sink = io.StringIO()
        decode_events([
            _line(Action="run", Test="TestA"),
            _line(Action="output", Test="TestA", Output="=== RUN   TestA\n"),
            _line(Action="output", Test="TestA", Output="--- PASS: TestA\n"),
            _line(Action="pass", Test="TestA", Output="ignored"),
        ], passthrough=sink)
        assert sink.getvalue() == "=== RUN   TestA\n--- PASS: TestA\n"

    def test_written_before_next_line_is_read(self):
        """Output reaches the sink as each line is decoded."""
        sink = io.StringIO()
        gen = iter_events(
            [_line(Action="output", Output="first\n"), _line(Action="output", Output="second\n")],
            passthrough=sink,
        )
        next(gen)
        assert sink.getvalue() == "first\n"

    def test_sink_failure_is_fatal(self):
        sink = MagicMock()
        sink.write.side_effect = BrokenPipeError("pipe closed")
        with pytest.raises(SinkWriteError):
            decode_events([_line(Action="output", Output="x")], passthrough=sink)

    def test_no_sink_writes_without_output_events(self):
        sink = MagicMock()
        decode_events([_line(Action="run"), _line(Action="fail")], passthrough=sink)
        sink.write.assert_not_called()
