"""Unit tests for ConversationStore and its table backends."""
import sys
sys.path.insert(0, 'backend')

import logging
from datetime import datetime, timedelta, timezone

import pytest
from unittest.mock import MagicMock, Mock, patch

from models.conversation import ChatTurn, Role
from services.conversation_store import (
    ConversationStore,
    DynamoDBTable,
    InMemoryTable,
    SupabaseTable,
    _parse_timestamp,
    build_store,
)

START = datetime(2026, 3, 1, 12, 0, 0, tzinfo=timezone.utc)


def turn(role, content, seconds):
    return ChatTurn(role=role, content=content, timestamp=START + timedelta(seconds=seconds))


class TestConversationStore:
    """Test suite for ConversationStore with the in-memory backend."""

    @pytest.fixture
    def store(self):
        return ConversationStore(InMemoryTable("userId", "sessionId"), InMemoryTable("threadKey"))

    def test_append_writes_history_item(self, store):
        """Test the stored item layout."""
        store.append(turn(Role.USER, "Hi", 0), "u1", "s1")

        items = store.history_table.query("u1")
        assert len(items) == 1
        assert items[0]["userId"] == "u1"
        assert items[0]["sessionId"].startswith("s1#2026-03-01T12:00:00")
        assert items[0]["role"] == "user"
        assert items[0]["content"] == "Hi"
        assert items[0]["timestamp"] == "2026-03-01T12:00:00.000Z"

    def test_recent_history_is_chronological(self, store):
        """Test turns come back oldest first."""
        store.append(turn(Role.USER, "Q1", 0), "u1", "s1")
        store.append(turn(Role.ASSISTANT, "A1", 1), "u1", "s1")
        store.append(turn(Role.USER, "Q2", 2), "u1", "s1")

        history = store.recent_history("u1", "s1", limit=5)

        assert [t.content for t in history] == ["Q1", "A1", "Q2"]
        assert history[1].role == Role.ASSISTANT
        assert history[0].timestamp == START

    def test_recent_history_limit_counts_both_roles(self, store):
        """Test a limit of N exchanges returns the last 2N turns."""
        for i in range(5):
            store.append(turn(Role.USER, f"Q{i}", 2 * i), "u1", "s1")
            store.append(turn(Role.ASSISTANT, f"A{i}", 2 * i + 1), "u1", "s1")

        history = store.recent_history("u1", "s1", limit=2)

        assert [t.content for t in history] == ["Q3", "A3", "Q4", "A4"]

    @pytest.mark.parametrize("limit", [0, -1])
    def test_recent_history_non_positive_limit_reads_nothing(self, limit):
        """Test a zero limit returns no turns and never queries the table."""
        table = InMemoryTable("userId", "sessionId")
        store = ConversationStore(table, InMemoryTable("threadKey"))
        for i in range(3):
            store.append(turn(Role.USER, f"Q{i}", 2 * i), "u1", "s1")
            store.append(turn(Role.ASSISTANT, f"A{i}", 2 * i + 1), "u1", "s1")

        with patch.object(table, 'query', wraps=table.query) as query:
            assert store.recent_history("u1", "s1", limit=limit) == []

        query.assert_not_called()

    def test_recent_history_isolates_sessions(self, store):
        """Test a session id prefix does not match a longer session id."""
        store.append(turn(Role.USER, "mine", 0), "u1", "default")
        store.append(turn(Role.USER, "other", 1), "u1", "default2")
        store.append(turn(Role.USER, "other user", 2), "u2", "default")

        history = store.recent_history("u1", "default")

        assert [t.content for t in history] == ["mine"]

    def test_thread_binding_roundtrip(self, store):
        """Test a bound thread is found again, and missing keys return None."""
        assert store.get_thread_id("u1", "s1") is None

        store.bind_thread("u1", "s1", "thread_1")

        assert store.get_thread_id("u1", "s1") == "thread_1"
        assert store.get_thread_id("u1", "s2") is None

    def test_rebinding_last_writer_wins(self, store):
        """Test a second binding for the same key replaces the first."""
        store.bind_thread("u1", "s1", "thread_1")
        store.bind_thread("u1", "s1", "thread_2")

        assert store.get_thread_id("u1", "s1") == "thread_2"

    def test_append_failure_is_swallowed(self, caplog):
        """Test a failing put is logged, not raised."""
        table = Mock()
        table.put.side_effect = RuntimeError("table unavailable")
        store = ConversationStore(table, Mock())

        with caplog.at_level(logging.WARNING):
            store.append(turn(Role.USER, "Hi", 0), "u1", "s1")

        assert "Error saving message" in caplog.text

    def test_history_failure_returns_empty(self):
        """Test a failing query yields no history."""
        table = Mock()
        table.query.side_effect = RuntimeError("throttled")
        store = ConversationStore(table, Mock())

        assert store.recent_history("u1", "s1") == []

    def test_thread_lookup_failure_returns_none(self):
        """Test a failing thread query is treated as not bound."""
        threads = Mock()
        threads.query.side_effect = RuntimeError("throttled")
        store = ConversationStore(Mock(), threads)

        assert store.get_thread_id("u1", "s1") is None

    def test_bind_failure_is_swallowed(self):
        """Test a failing thread put is not raised."""
        threads = Mock()
        threads.put.side_effect = RuntimeError("table unavailable")
        store = ConversationStore(Mock(), threads)

        store.bind_thread("u1", "s1", "thread_1")

    def test_malformed_items_are_skipped(self):
        """Test items with unknown roles are ignored."""
        table = Mock()
        table.query.return_value = [
            {"role": "robot", "content": "x", "timestamp": "2026-03-01T12:00:01.000Z"},
            {"role": "user", "content": "ok", "timestamp": "2026-03-01T12:00:00.000Z"},
        ]
        store = ConversationStore(table, Mock())

        assert [t.content for t in store.recent_history("u1", "s1")] == ["ok"]


class TestDynamoDBTable:
    """Test suite for DynamoDBTable."""

    @pytest.fixture
    def resource(self):
        return MagicMock()

    def test_put_item(self, resource):
        table = DynamoDBTable("ChatHistory", "userId", "sessionId", resource=resource)
        table.put({"userId": "u1"})

        resource.Table.assert_called_once_with("ChatHistory")
        resource.Table.return_value.put_item.assert_called_once_with(Item={"userId": "u1"})

    def test_query_newest_first_with_prefix(self, resource):
        resource.Table.return_value.query.return_value = {"Items": [{"userId": "u1"}]}
        table = DynamoDBTable("ChatHistory", "userId", "sessionId", resource=resource)

        items = table.query("u1", sort_key_prefix="s1#", limit=20, scan_forward=False)

        kwargs = resource.Table.return_value.query.call_args.kwargs
        assert kwargs["ScanIndexForward"] is False
        assert kwargs["Limit"] == 20
        assert "KeyConditionExpression" in kwargs
        assert items == [{"userId": "u1"}]

    def test_query_without_items(self, resource):
        resource.Table.return_value.query.return_value = {}
        table = DynamoDBTable("ChatThreads", "threadKey", resource=resource)

        assert table.query("u1-s1", limit=1) == []


class TestSupabaseTable:
    """Test suite for SupabaseTable."""

    def test_put_upserts(self):
        client = MagicMock()
        table = SupabaseTable("ChatThreads", "threadKey", client=client)

        table.put({"threadKey": "u1-s1", "threadId": "t"})

        client.table.assert_called_with("ChatThreads")
        client.table.return_value.upsert.assert_called_once_with({"threadKey": "u1-s1", "threadId": "t"})

    def test_query_builds_filtered_ordered_select(self):
        client = MagicMock()
        select = client.table.return_value.select.return_value
        eq = select.eq.return_value
        like = eq.like.return_value
        order = like.order.return_value
        order.limit.return_value.execute.return_value = Mock(data=[{"content": "hi"}])
        table = SupabaseTable("ChatHistory", "userId", "sessionId", client=client)

        items = table.query("u1", sort_key_prefix="s1#", limit=4, scan_forward=False)

        select.eq.assert_called_once_with("userId", "u1")
        eq.like.assert_called_once_with("sessionId", "s1#%")
        like.order.assert_called_once_with("sessionId", desc=True)
        order.limit.assert_called_once_with(4)
        assert items == [{"content": "hi"}]

    def test_requires_credentials_without_client(self):
        with patch('services.conversation_store.SUPABASE_URL', None):
            with pytest.raises(ValueError, match="SUPABASE_URL"):
                SupabaseTable("ChatHistory", "userId")


class TestHelpers:
    """Test suite for module helpers."""

    def test_build_memory_store(self):
        store = build_store("memory")
        assert isinstance(store.history_table, InMemoryTable)

    def test_build_unknown_store(self):
        with pytest.raises(ValueError, match="Unknown conversation store"):
            build_store("redis")

    @pytest.mark.parametrize("raw", [
        "2026-02-21T02:08:26.18976+00:00",
        "2026-02-21T02:08:26.189760Z",
        "2026-02-21T02:08:26.189760123+00:00",
    ])
    def test_parse_timestamp_precision(self, raw):
        parsed = _parse_timestamp(raw)
        assert parsed == datetime(2026, 2, 21, 2, 8, 26, 189760, tzinfo=timezone.utc)
