"""Services for the portfolio chat assistant."""
from .keyword_classifier import KeywordClassifier, KeywordRule, Classification
from .response_catalog import ResponseCatalog, UNAVAILABLE_MESSAGE
from .llm_client import LLMClient, LLMResponse
from .assistant_client import AssistantClient
from .run_poller import RunPoller, SystemClock, AssistantConversation
from .conversation_store import ConversationStore, DynamoDBTable, SupabaseTable, InMemoryTable
from .resolver import ChatResponseResolver, build_resolver
from .chat_service import ChatService, ChatExchange, build_chat_service

__all__ = ['KeywordClassifier', 'KeywordRule', 'Classification', 'ResponseCatalog', 'UNAVAILABLE_MESSAGE', 'LLMClient', 'LLMResponse', 'AssistantClient', 'RunPoller', 'SystemClock', 'AssistantConversation', 'ConversationStore', 'DynamoDBTable', 'SupabaseTable', 'InMemoryTable', 'ChatResponseResolver', 'build_resolver', 'ChatService', 'ChatExchange', 'build_chat_service']
