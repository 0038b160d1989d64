"""Conversation store: chat history and assistant thread bindings."""
import logging
import threading
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol, Tuple

import boto3
from boto3.dynamodb.conditions import Key
from supabase import create_client

from config import (
    AWS_REGION,
    CHAT_HISTORY_TABLE,
    CHAT_THREADS_TABLE,
    CONVERSATION_STORE,
    HISTORY_LIMIT,
    SUPABASE_KEY,
    SUPABASE_URL,
)
from models.conversation import ChatTurn, Role, isoformat_z, thread_key
from services.errors import PersistenceError

logger = logging.getLogger(__name__)

Item = Dict[str, Any]


class KeyValueTable(Protocol):
    """Minimal key-value collaborator: single-item put and key-prefix query."""

    def put(self, item: Item) -> None:
        ...

    def query(
        self,
        partition_key: str,
        sort_key_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
    ) -> List[Item]:
        ...


class DynamoDBTable:
    """KeyValueTable backed by a DynamoDB table."""

    def __init__(
        self,
        table_name: str,
        partition_key: str,
        sort_key: Optional[str] = None,
        region: str = AWS_REGION,
        resource=None,
    ):
        self.table_name = table_name
        self.partition_key = partition_key
        self.sort_key = sort_key
        dynamodb = resource or boto3.resource("dynamodb", region_name=region)
        self.table = dynamodb.Table(table_name)

    def put(self, item: Item) -> None:
        self.table.put_item(Item=item)

    def query(
        self,
        partition_key: str,
        sort_key_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
    ) -> List[Item]:
        condition = Key(self.partition_key).eq(partition_key)
        if sort_key_prefix and self.sort_key:
            condition = condition & Key(self.sort_key).begins_with(sort_key_prefix)

        kwargs: Dict[str, Any] = {
            "KeyConditionExpression": condition,
            "ScanIndexForward": scan_forward,
        }
        if limit:
            kwargs["Limit"] = limit

        response = self.table.query(**kwargs)
        return response.get("Items", [])


class SupabaseTable:
    """KeyValueTable backed by a Supabase (PostgreSQL) table with the same columns."""

    def __init__(self, table_name: str, partition_key: str, sort_key: Optional[str] = None, client=None):
        if client is None:
            if not SUPABASE_URL or not SUPABASE_KEY:
                raise ValueError("SUPABASE_URL and SUPABASE_KEY must be set in environment variables")
            client = create_client(SUPABASE_URL, SUPABASE_KEY)
        self.client = client
        self.table_name = table_name
        self.partition_key = partition_key
        self.sort_key = sort_key

    def put(self, item: Item) -> None:
        # upsert keeps DynamoDB's replace-on-same-key semantics
        self.client.table(self.table_name).upsert(item).execute()

    def query(
        self,
        partition_key: str,
        sort_key_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
    ) -> List[Item]:
        query = self.client.table(self.table_name).select("*").eq(self.partition_key, partition_key)
        if self.sort_key:
            if sort_key_prefix:
                query = query.like(self.sort_key, f"{sort_key_prefix}%")
            query = query.order(self.sort_key, desc=not scan_forward)
        if limit:
            query = query.limit(limit)

        result = query.execute()
        return result.data or []


class InMemoryTable:
    """Process-local KeyValueTable for development and tests."""

    def __init__(self, partition_key: str, sort_key: Optional[str] = None):
        self.partition_key = partition_key
        self.sort_key = sort_key
        self._items: Dict[Tuple[str, str], Item] = {}
        self._lock = threading.Lock()

    def put(self, item: Item) -> None:
        key = (item[self.partition_key], item.get(self.sort_key, "") if self.sort_key else "")
        with self._lock:
            self._items[key] = dict(item)

    def query(
        self,
        partition_key: str,
        sort_key_prefix: Optional[str] = None,
        limit: Optional[int] = None,
        scan_forward: bool = True,
    ) -> List[Item]:
        with self._lock:
            matches = [
                dict(item)
                for (pk, sk), item in self._items.items()
                if pk == partition_key and (not sort_key_prefix or sk.startswith(sort_key_prefix))
            ]
        matches.sort(key=lambda item: item.get(self.sort_key, "") if self.sort_key else "", reverse=not scan_forward)
        return matches[:limit] if limit else matches


class ConversationStore:
    """
    Persistence adapter for chat turns and thread bindings.

    History items: partition ``userId``, sort key ``sessionId`` holding
    ``"{session_id}#{timestamp}"``. Thread items: partition ``threadKey``
    holding ``"{user_id}-{session_id}"``.

    Store failures never propagate: writes are logged and dropped, reads
    degrade to "nothing stored".
    """

    def __init__(self, history_table: KeyValueTable, threads_table: KeyValueTable):
        self.history_table = history_table
        self.threads_table = threads_table

    def append(self, turn: ChatTurn, user_id: str, session_id: str) -> None:
        """Persist one turn. Failures are logged and swallowed."""
        item = {
            "userId": user_id,
            "sessionId": f"{session_id}#{_sort_timestamp(turn.timestamp)}",
            "role": turn.role.value,
            "content": turn.content,
            "timestamp": isoformat_z(turn.timestamp),
        }
        try:
            self.history_table.put(item)
            logger.debug(f"Saved {turn.role.value} turn for {user_id}/{session_id}")
        except Exception as e:
            self._log_failure("saving message", e, user_id, session_id)

    def recent_history(self, user_id: str, session_id: str, limit: int = HISTORY_LIMIT) -> List[ChatTurn]:
        """
        Most recent turns of a session, oldest first.

        Args:
            user_id: Partition key
            session_id: Session whose turns are returned
            limit: Number of exchanges; up to ``2 * limit`` turns are read
                since user and assistant turns are stored separately

        Returns:
            Chronologically ordered turns, empty on any store failure
        """
        # Tables treat a zero limit as unbounded
        if limit <= 0:
            return []

        try:
            items = self.history_table.query(
                user_id,
                sort_key_prefix=f"{session_id}#",
                limit=limit * 2,
                scan_forward=False,
            )
        except Exception as e:
            self._log_failure("getting chat history", e, user_id, session_id)
            return []

        turns = []
        for item in items:
            try:
                turns.append(
                    ChatTurn(
                        role=Role(item["role"]),
                        content=item["content"],
                        timestamp=_parse_timestamp(item["timestamp"]),
                    )
                )
            except (KeyError, ValueError) as e:
                logger.warning(f"Skipping malformed history item for {user_id}/{session_id}: {e}")

        turns.reverse()
        logger.debug(f"Retrieved {len(turns)} history turns for {user_id}/{session_id}")
        return turns

    def get_thread_id(self, user_id: str, session_id: str) -> Optional[str]:
        """Cached remote thread for the session, or None if not bound."""
        try:
            items = self.threads_table.query(thread_key(user_id, session_id), limit=1)
        except Exception as e:
            self._log_failure("getting thread", e, user_id, session_id)
            return None
        return items[0].get("threadId") if items else None

    def bind_thread(self, user_id: str, session_id: str, thread_id: str) -> None:
        """Remember the session's thread. Concurrent binders race; last write wins."""
        item = {
            "threadKey": thread_key(user_id, session_id),
            "threadId": thread_id,
            "createdAt": isoformat_z(datetime.now(timezone.utc)),
        }
        try:
            self.threads_table.put(item)
            logger.info(f"Bound thread {thread_id} to {user_id}/{session_id}")
        except Exception as e:
            self._log_failure("saving thread", e, user_id, session_id)

    def _log_failure(self, action: str, error: Exception, user_id: str, session_id: str) -> None:
        failure = PersistenceError(
            f"Error {action}: {error}",
            {"user_id": user_id, "session_id": session_id, "error_type": type(error).__name__},
        )
        logger.warning(str(failure), exc_info=True, extra=failure.log_extra())


def build_store(backend: str = CONVERSATION_STORE) -> ConversationStore:
    """Create the ConversationStore for the configured backend."""
    if backend == "dynamodb":
        history = DynamoDBTable(CHAT_HISTORY_TABLE, "userId", "sessionId")
        threads = DynamoDBTable(CHAT_THREADS_TABLE, "threadKey")
    elif backend == "supabase":
        client = create_client(SUPABASE_URL, SUPABASE_KEY) if SUPABASE_URL and SUPABASE_KEY else None
        history = SupabaseTable(CHAT_HISTORY_TABLE, "userId", "sessionId", client=client)
        threads = SupabaseTable(CHAT_THREADS_TABLE, "threadKey", client=client)
    elif backend == "memory":
        history = InMemoryTable("userId", "sessionId")
        threads = InMemoryTable("threadKey")
    else:
        raise ValueError(f"Unknown conversation store backend: {backend}")

    logger.info(f"ConversationStore initialized with {backend} backend")
    return ConversationStore(history, threads)


def _sort_timestamp(moment: datetime) -> str:
    """Fixed-width UTC timestamp that sorts lexicographically."""
    return moment.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def _parse_timestamp(timestamp_str: str) -> datetime:
    """
    Parse a stored timestamp, handling various formats.

    Supabase can return timestamps with varying microsecond precision, which
    older Python's fromisoformat() can't always handle. This normalizes the
    fraction to six digits and the Z suffix to an explicit offset.
    """
    timestamp_str = timestamp_str.replace("Z", "+00:00")

    # Format: 2026-02-21T02:08:26.18976+00:00
    if "." in timestamp_str:
        head, tail = timestamp_str.split(".", 1)
        for sign in ("+", "-"):
            if sign in tail:
                fraction, tz = tail.split(sign, 1)
                timestamp_str = f"{head}.{fraction[:6].ljust(6, '0')}{sign}{tz}"
                break
        else:
            timestamp_str = f"{head}.{tail[:6].ljust(6, '0')}"

    return datetime.fromisoformat(timestamp_str)
