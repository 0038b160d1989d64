"""LLM Client for the remote chat-completion endpoint (Groq)."""
import time
import tiktoken
from dataclasses import dataclass
from typing import Callable, Dict, Optional
from groq import Groq
from groq import (
    APIConnectionError,
    APIStatusError,
    APITimeoutError,
    InternalServerError,
    RateLimitError,
)
import logging

from config import (
    COMPLETION_MAX_TOKENS,
    COMPLETION_MODEL,
    COMPLETION_TEMPERATURE,
    GROQ_API_KEY,
    HISTORY_LIMIT,
    MAX_CONTEXT_TOKENS,
)
from models.conversation import ConversationContext, Role
from services.errors import RecoverableRemoteError, RequestError

logger = logging.getLogger(__name__)

# Per-message framing tokens added by chat templates
MESSAGE_OVERHEAD_TOKENS = 4


@dataclass
class LLMResponse:
    """Response from LLM generation."""
    text: str
    tokens_input: int
    tokens_output: int
    latency_ms: int
    model_used: str


class LLMClient:
    """
    Client for the Groq chat-completions API.

    Makes exactly one attempt per call: the SDK's built-in retries are turned
    off and transient failures are reported as RecoverableRemoteError so the
    caller can fall back immediately.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = COMPLETION_MODEL,
        max_tokens: int = COMPLETION_MAX_TOKENS,
        temperature: float = COMPLETION_TEMPERATURE,
        max_history_turns: int = HISTORY_LIMIT * 2,
        max_context_tokens: int = MAX_CONTEXT_TOKENS,
        token_counter: Optional[Callable[[str], int]] = None,
    ):
        """
        Initialize LLM client with Groq API key.

        Args:
            api_key: Groq API key (defaults to GROQ_API_KEY from environment)
            model: Chat-completion model name
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature
            max_history_turns: Most recent history turns kept in the request
            max_context_tokens: Token budget for the whole message list
            token_counter: Callable returning the token count of a string
                (defaults to tiktoken's o200k_base encoding)
        """
        self.api_key = api_key or GROQ_API_KEY
        if not self.api_key:
            raise ValueError("GROQ_API_KEY must be provided or set in environment")

        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.max_history_turns = max_history_turns
        self.max_context_tokens = max_context_tokens
        self._token_counter = token_counter

        self.client = Groq(api_key=self.api_key, max_retries=0)
        logger.info("LLMClient initialized successfully")

    def count_tokens(self, text: str) -> int:
        if self._token_counter is None:
            encoder = tiktoken.get_encoding("o200k_base")
            self._token_counter = lambda s: len(encoder.encode(s))
        return self._token_counter(text)

    def bound_context(self, context: ConversationContext) -> ConversationContext:
        """
        Drop the oldest history turns until the context fits both limits.

        The system instruction and the newest user turn are always kept.
        """
        history = list(context.history)
        if self.max_history_turns >= 0 and len(history) > self.max_history_turns:
            history = history[len(history) - self.max_history_turns:]

        fixed = [context.turns[-1]]
        if context.system_turn:
            fixed.append(context.system_turn)
        budget = self.max_context_tokens - sum(
            self.count_tokens(turn.content) + MESSAGE_OVERHEAD_TOKENS for turn in fixed
        )

        kept = []
        for turn in reversed(history):
            cost = self.count_tokens(turn.content) + MESSAGE_OVERHEAD_TOKENS
            if cost > budget:
                break
            kept.append(turn)
            budget -= cost
        kept.reverse()

        if len(kept) < len(context.history):
            logger.debug(f"Trimmed context history from {len(context.history)} to {len(kept)} turns")
        return context.with_history(kept)

    def complete(self, context: ConversationContext) -> LLMResponse:
        """
        Generate the assistant reply for a conversation.

        Args:
            context: Conversation whose first turn is the system instruction
                and whose last turn is the new user message

        Returns:
            LLMResponse with non-empty text, token counts, and latency

        Raises:
            RecoverableRemoteError: Rate limit, 5xx, timeout, connection failure
                or an empty completion
            RequestError: The endpoint rejected the request (4xx other than 429)
        """
        if context.system_turn is None:
            raise RequestError("Conversation must start with a system instruction")
        if context.turns[-1].role is not Role.USER:
            raise RequestError("Conversation must end with a user message")

        messages = self.bound_context(context).as_messages()
        start_time = time.time()

        try:
            logger.debug(f"Generating response with model: {self.model}")

            response = self.client.chat.completions.create(
                model=self.model,
                messages=messages,
                max_tokens=self.max_tokens,
                temperature=self.temperature,
            )
        except RateLimitError as e:
            raise self._recoverable("RATE_LIMIT_ERROR", "Rate limit exceeded", e, start_time) from e
        except InternalServerError as e:
            raise self._recoverable("SERVER_ERROR", "Completion endpoint returned a server error", e, start_time) from e
        except APITimeoutError as e:
            raise self._recoverable("TIMEOUT_ERROR", "Request timed out", e, start_time) from e
        except APIConnectionError as e:
            raise self._recoverable("CONNECTION_ERROR", "Could not reach the completion endpoint", e, start_time) from e
        except APIStatusError as e:
            if e.status_code >= 500:
                raise self._recoverable("SERVER_ERROR", "Completion endpoint returned a server error", e, start_time) from e
            details = self._details(e, start_time)
            details["status_code"] = e.status_code
            logger.error(
                f"Completion request rejected: model={self.model}, status={e.status_code}, error={e}",
                extra={"error_code": RequestError.code, "error_details": details},
            )
            raise RequestError(f"Completion request rejected with status {e.status_code}", details) from e
        except Exception as e:
            raise self._recoverable("UNKNOWN_ERROR", "Unexpected error during generation", e, start_time) from e

        latency_ms = int((time.time() - start_time) * 1000)
        text = (response.choices[0].message.content or "").strip() if response.choices else ""
        if not text:
            raise RecoverableRemoteError(
                "Completion endpoint returned an empty response",
                {"model": self.model, "latency_ms": latency_ms},
            )

        usage = response.usage
        tokens_input = usage.prompt_tokens if usage else 0
        tokens_output = usage.completion_tokens if usage else 0

        logger.info(
            f"Generated response: model={self.model}, "
            f"input_tokens={tokens_input}, output_tokens={tokens_output}, "
            f"latency={latency_ms}ms"
        )

        return LLMResponse(
            text=text,
            tokens_input=tokens_input,
            tokens_output=tokens_output,
            latency_ms=latency_ms,
            model_used=self.model,
        )

    def _details(self, error: Exception, start_time: float) -> Dict[str, object]:
        return {
            "model": self.model,
            "latency_ms": int((time.time() - start_time) * 1000),
            "original_error": str(error),
            "error_type": type(error).__name__,
        }

    def _recoverable(
        self, reason: str, message: str, error: Exception, start_time: float
    ) -> RecoverableRemoteError:
        details = self._details(error, start_time)
        details["reason"] = reason
        logger.error(
            f"{message}: model={self.model}, latency={details['latency_ms']}ms, error={error}",
            exc_info=True,
            extra={"error_code": RecoverableRemoteError.code, "error_details": details},
        )
        return RecoverableRemoteError(message, details)
