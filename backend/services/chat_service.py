"""Chat request handling shared by the FastAPI app and the Lambda entry point."""
import logging
from dataclasses import dataclass
from typing import Optional

from config import (
    CHAT_MODE,
    CONVERSATION_STORE,
    HISTORY_LIMIT,
    POLL_INTERVAL_SECONDS,
    POLL_MAX_ATTEMPTS,
    RESPONSE_CATALOG_PATH,
)
from models.conversation import ChatTurn, ConversationContext, Role, isoformat_z
from services.assistant_client import AssistantClient
from services.conversation_store import ConversationStore, build_store
from services.errors import ValidationError
from services.llm_client import LLMClient
from services.prompts import RESUME_CONTEXT
from services.resolver import ASSISTANT, COMPLETION, ChatResponseResolver, build_resolver
from services.response_catalog import load_catalog
from services.run_poller import AssistantConversation, RunPoller

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatExchange:
    """One answered chat message."""
    user_turn: ChatTurn
    assistant_turn: ChatTurn

    @property
    def response(self) -> str:
        return self.assistant_turn.content

    @property
    def timestamp(self) -> str:
        return isoformat_z(self.assistant_turn.timestamp)


class ChatService:
    """
    Answers chat messages and records them.

    ``reply`` never fails except on a missing message; ``persist`` never fails.
    """

    def __init__(
        self,
        resolver: ChatResponseResolver,
        store: Optional[ConversationStore] = None,
        system_prompt: str = RESUME_CONTEXT,
        history_limit: int = HISTORY_LIMIT,
        use_history: bool = True,
    ):
        self.resolver = resolver
        self.store = store
        self.system_prompt = system_prompt
        self.history_limit = history_limit
        self.use_history = use_history

    def reply(self, message: Optional[str], user_id: str = "anonymous", session_id: str = "default") -> ChatExchange:
        """
        Produce the assistant's reply to a chat message.

        Raises:
            ValidationError: The message is missing or blank
        """
        if not message or not message.strip():
            raise ValidationError("Message is required")

        logger.info(
            f"Processing chat message: {message[:100]}",
            extra={"user_id": user_id, "session_id": session_id},
        )

        user_turn = ChatTurn(role=Role.USER, content=message)
        history = []
        if self.use_history and self.store is not None:
            history = self.store.recent_history(user_id, session_id, self.history_limit)

        context = ConversationContext.build(
            user_turn,
            history=history,
            system_prompt=self.system_prompt,
            user_id=user_id,
            session_id=session_id,
        )
        text = self.resolver.resolve(context)

        return ChatExchange(user_turn=user_turn, assistant_turn=ChatTurn(role=Role.ASSISTANT, content=text))

    def persist(self, exchange: ChatExchange, user_id: str = "anonymous", session_id: str = "default") -> None:
        """Record both turns of an exchange; store failures are swallowed."""
        if self.store is None:
            return
        self.store.append(exchange.user_turn, user_id, session_id)
        self.store.append(exchange.assistant_turn, user_id, session_id)


def build_chat_service(mode: str = CHAT_MODE, store_backend: str = CONVERSATION_STORE) -> ChatService:
    """Wire a ChatService from configuration."""
    catalog = load_catalog(RESPONSE_CATALOG_PATH)
    store = build_store(store_backend)

    llm_client = None
    assistant = None
    if mode == COMPLETION:
        llm_client = LLMClient()
    elif mode == ASSISTANT:
        client = AssistantClient()
        poller = RunPoller(client, interval=POLL_INTERVAL_SECONDS, max_attempts=POLL_MAX_ATTEMPTS)
        assistant = AssistantConversation(client, poller, store)

    resolver = build_resolver(mode, catalog, llm_client=llm_client, assistant=assistant)
    logger.info(f"ChatService initialized: mode={mode}, strategies={resolver.strategy_names}")

    # The assistant thread already carries the history remotely
    return ChatService(resolver, store=store, use_history=mode == COMPLETION)
