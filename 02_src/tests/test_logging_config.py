"""Tests for structured logging."""

import contextvars
import json
import logging

from teamchat.logging_config import ChatContextFilter, JSONFormatter, log_context, set_log_context


def in_fresh_context(func):
    return contextvars.Context().run(func)


def make_record(**extra):
    record = logging.LogRecord("teamchat.test", logging.INFO, __file__, 1, "hello %s", ("bob",), None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestJSONFormatter:
    """Tests for JSONFormatter."""

    def test_fields(self):
        data = json.loads(JSONFormatter().format(make_record()))

        assert data["message"] == "hello bob"
        assert data["level"] == "INFO"
        assert data["logger"] == "teamchat.test"
        assert "context" not in data

    def test_context_keeps_non_ascii(self):
        line = JSONFormatter().format(make_record(context={"value": "👍"}))

        assert "👍" in line
        assert json.loads(line)["context"] == {"value": "👍"}


class TestChatContextFilter:
    """Tests for ChatContextFilter."""

    def test_bound_ids_are_merged(self):
        record = make_record(context={"scope": "team"})

        with log_context(user_id="alice-1", owner_id="owner-1"):
            assert ChatContextFilter().filter(record)

        assert record.context == {"user_id": "alice-1", "owner_id": "owner-1", "scope": "team"}

    def test_record_context_wins(self):
        record = make_record(context={"owner_id": "owner-2"})

        with log_context(owner_id="owner-1"):
            ChatContextFilter().filter(record)

        assert record.context == {"owner_id": "owner-2"}

    def test_nothing_bound(self):
        record = make_record()

        in_fresh_context(lambda: ChatContextFilter().filter(record))

        assert not hasattr(record, "context")

    def test_context_is_restored(self):
        def run():
            with log_context(table="team_messages"):
                pass
            record = make_record()
            ChatContextFilter().filter(record)
            return record

        assert not hasattr(in_fresh_context(run), "context")

    def test_set_log_context_extends(self):
        def run():
            set_log_context(user_id="alice-1")
            set_log_context(owner_id="owner-1")
            record = make_record()
            ChatContextFilter().filter(record)
            return record.context

        assert in_fresh_context(run) == {"user_id": "alice-1", "owner_id": "owner-1"}
