"""Unit tests for transcript cursoring and self-echo filtering."""

from __future__ import annotations

from src.meeting_gateway.gateway.schemas import TranscriptEntry
from src.meeting_gateway.sessions.transcript import (
    NO_NEW_SPEECH,
    ONLY_SELF_ECHO,
    compute_delta,
    next_cursor,
    select_new_entries,
)


class TestSelectNewEntries:
    def test_no_cursor_returns_everything(self, entry):
        entries = [entry("A", "one", 1.0), entry("B", "untimed", None)]
        assert select_new_entries(entries, None) == entries

    def test_only_entries_past_cursor(self, entry):
        entries = [entry("A", "old", 1.0), entry("B", "edge", 2.0), entry("C", "new", 3.0)]
        assert [e.speaker for e in select_new_entries(entries, 2.0)] == ["C"]

    def test_untimed_entries_excluded_once_cursor_exists(self, entry):
        entries = [entry("A", "untimed", None), entry("B", "new", 5.0)]
        assert [e.speaker for e in select_new_entries(entries, 1.0)] == ["B"]


class TestNextCursor:
    def test_empty_snapshot_keeps_cursor(self):
        assert next_cursor([], 4.0) == 4.0
        assert next_cursor([], None) is None

    def test_advances_to_last_entry(self, entry):
        entries = [entry("A", "x", 1.0), entry("B", "y", 2.5)]
        assert next_cursor(entries, None) == 2.5

    def test_last_entry_untimed_keeps_cursor(self, entry):
        entries = [entry("A", "x", 9.0), entry("B", "y", None)]
        assert next_cursor(entries, 3.0) == 3.0

    def test_uses_last_entry_even_if_earlier_entry_is_later(self, entry):
        entries = [entry("A", "x", 9.0), entry("B", "y", 6.0)]
        assert next_cursor(entries, 2.0) == 6.0

    def test_never_moves_backwards(self, entry):
        entries = [entry("A", "x", 1.0)]
        assert next_cursor(entries, 5.0) == 5.0


class TestComputeDelta:
    def test_filters_self_echo(self, entry):
        entries = [entry("Agent", "hello", 1.0), entry("Dana", "hi", 2.0)]
        delta = compute_delta(entries, None, "Agent")
        assert delta.render() == "Dana: hi"
        assert delta.echo_count == 1
        assert delta.cursor == 2.0

    def test_echo_filter_requires_colon_space_prefix(self, entry):
        entries = [entry("Agent Smith", "hello", 1.0)]
        assert compute_delta(entries, None, "Agent").render() == "Agent Smith: hello"

    def test_no_new_entries_sentinel(self, entry):
        entries = [entry("Dana", "hi", 2.0)]
        assert compute_delta(entries, 2.0, "Agent").render() == NO_NEW_SPEECH

    def test_only_echo_sentinel(self, entry):
        entries = [entry("Agent", "hello", 3.0)]
        delta = compute_delta(entries, 2.0, "Agent")
        assert delta.render() == ONLY_SELF_ECHO
        assert delta.cursor == 3.0

    def test_missing_speaker_renders_unknown(self, entry):
        entries = [entry(None, "who said this", 1.0)]
        assert compute_delta(entries, None, "Agent").render() == "Unknown: who said this"

    def test_lines_are_newline_joined_in_order(self, entry):
        entries = [entry("Dana", "first", 1.0), entry("Lee", "second", 2.0)]
        assert compute_delta(entries, None, "Agent").render() == "Dana: first\nLee: second"

    def test_append_only_snapshots_never_repeat_entries(self, entry):
        snapshots = [
            [entry("Dana", "one", 1.0)],
            [entry("Dana", "one", 1.0), entry("Lee", "two", 2.0)],
            [entry("Dana", "one", 1.0), entry("Lee", "two", 2.0)],
            [
                entry("Dana", "one", 1.0),
                entry("Lee", "two", 2.0),
                entry("Dana", "three", 3.5),
            ],
        ]
        cursor = None
        delivered: list[str] = []
        cursors: list[float | None] = []
        for snapshot in snapshots:
            delta = compute_delta(snapshot, cursor, "Agent")
            delivered.extend(delta.lines)
            cursor = delta.cursor
            cursors.append(cursor)

        assert delivered == ["Dana: one", "Lee: two", "Dana: three"]
        assert cursors == sorted(cursors)

    def test_flat_text_entry_renders(self):
        entry = TranscriptEntry.model_validate({"speaker": "Dana", "text": "plain"})
        assert compute_delta([entry], None, "Agent").render() == "Dana: plain"
