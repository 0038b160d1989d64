"""
Chat Response Resolver.

Answers a conversation by trying an ordered list of strategies until one
returns text. The order is the fallback policy:

    canned      keyword match
    completion  remote completion -> keyword match
    assistant   assistant run     -> "temporarily unavailable" (last resort)

A strategy signals failure by raising; the resolver logs the failure and moves
on, so callers always get a reply.
"""
import logging
from typing import Optional, Protocol, Sequence

from models.conversation import ConversationContext
from services.errors import ChatServiceError, ProtocolViolation, RecoverableRemoteError
from services.keyword_classifier import KeywordClassifier
from services.llm_client import LLMClient
from services.response_catalog import UNAVAILABLE_MESSAGE, ResponseCatalog
from services.run_poller import AssistantConversation

logger = logging.getLogger(__name__)

CANNED = "canned"
COMPLETION = "completion"
ASSISTANT = "assistant"
MODES = (CANNED, COMPLETION, ASSISTANT)


class ResponseStrategy(Protocol):
    name: str

    def resolve(self, context: ConversationContext) -> str:
        ...


class KeywordStrategy:
    """Canned answer picked by keyword topic."""

    name = "keyword"

    def __init__(self, classifier: KeywordClassifier, catalog: ResponseCatalog):
        self.classifier = classifier
        self.catalog = catalog

    def resolve(self, context: ConversationContext) -> str:
        classification = self.classifier.classify(context.latest_user_message)
        logger.info(
            f"Keyword fallback selected {classification.category.value}",
            extra={"strategy": self.name, "topic": classification.category.value},
        )
        return self.catalog.lookup(classification.category)


class CompletionStrategy:
    """Live answer from the chat-completion endpoint."""

    name = "completion"

    def __init__(self, llm_client: LLMClient):
        self.llm_client = llm_client

    def resolve(self, context: ConversationContext) -> str:
        return self.llm_client.complete(context).text


class AssistantStrategy:
    """Live answer from a run on the session's assistant thread."""

    name = "assistant"

    def __init__(self, conversation: AssistantConversation):
        self.conversation = conversation

    def resolve(self, context: ConversationContext) -> str:
        return self.conversation.ask(context.user_id, context.session_id, context.latest_user_message)


class ChatResponseResolver:
    """Tries strategies in order; the first one to return text wins."""

    def __init__(self, strategies: Sequence[ResponseStrategy], last_resort: str = UNAVAILABLE_MESSAGE):
        if not strategies:
            raise ValueError("At least one response strategy is required")
        self.strategies = tuple(strategies)
        self.last_resort = last_resort

    @property
    def strategy_names(self):
        return [strategy.name for strategy in self.strategies]

    def resolve(self, context: ConversationContext) -> str:
        for strategy in self.strategies:
            try:
                text = strategy.resolve(context)
            except RecoverableRemoteError as e:
                logger.warning(
                    f"Strategy {strategy.name} unavailable: {e.error.message}",
                    extra={"strategy": strategy.name, **e.log_extra()},
                )
                continue
            except ProtocolViolation as e:
                logger.error(
                    f"Strategy {strategy.name} protocol violation: {e.error.message}",
                    extra={"strategy": strategy.name, **e.log_extra()},
                )
                continue
            except ChatServiceError as e:
                logger.error(
                    f"Strategy {strategy.name} failed: {e.error.message}",
                    extra={"strategy": strategy.name, **e.log_extra()},
                )
                continue
            except Exception as e:
                logger.error(
                    f"Strategy {strategy.name} raised unexpectedly: {e}",
                    exc_info=True,
                    extra={"strategy": strategy.name, "error_code": "UNKNOWN_ERROR"},
                )
                continue

            if text:
                logger.debug(f"Resolved with strategy {strategy.name}")
                return text
            logger.warning(f"Strategy {strategy.name} returned empty text", extra={"strategy": strategy.name})

        logger.error("All response strategies failed, using last-resort message")
        return self.last_resort


def build_resolver(
    mode: str,
    catalog: ResponseCatalog,
    classifier: Optional[KeywordClassifier] = None,
    llm_client: Optional[LLMClient] = None,
    assistant: Optional[AssistantConversation] = None,
) -> ChatResponseResolver:
    """Assemble the strategy chain for a deployment mode."""
    keyword = KeywordStrategy(classifier or KeywordClassifier(), catalog)

    if mode == CANNED:
        strategies = [keyword]
    elif mode == COMPLETION:
        if llm_client is None:
            raise ValueError("completion mode requires an LLMClient")
        strategies = [CompletionStrategy(llm_client), keyword]
    elif mode == ASSISTANT:
        if assistant is None:
            raise ValueError("assistant mode requires an AssistantConversation")
        strategies = [AssistantStrategy(assistant)]
    else:
        raise ValueError(f"Unknown chat mode: {mode!r} (expected one of {', '.join(MODES)})")

    # Assistant failures end in the generic unavailable text, not a canned topic answer
    last_resort = UNAVAILABLE_MESSAGE if mode == ASSISTANT else catalog.fallback
    return ChatResponseResolver(strategies, last_resort=last_resort)
