"""Configuration management for the portfolio chat assistant."""
import os
import logging
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Deployment mode: "canned", "completion" or "assistant"
CHAT_MODE = os.getenv("CHAT_MODE", "completion")

# Remote completion (Groq chat-completions)
GROQ_API_KEY = os.getenv("GROQ_API_KEY")
COMPLETION_MODEL = os.getenv("COMPLETION_MODEL", "llama-3.1-8b-instant")
COMPLETION_MAX_TOKENS = int(os.getenv("COMPLETION_MAX_TOKENS", "500"))
COMPLETION_TEMPERATURE = float(os.getenv("COMPLETION_TEMPERATURE", "0.7"))
MAX_CONTEXT_TOKENS = int(os.getenv("MAX_CONTEXT_TOKENS", "3000"))
HISTORY_LIMIT = int(os.getenv("HISTORY_LIMIT", "10"))  # exchanges, not turns

# Stateful assistant API
OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
ASSISTANT_ID = os.getenv("ASSISTANT_ID")
OPENAI_BASE_URL = os.getenv("OPENAI_BASE_URL", "https://api.openai.com/v1")
ASSISTANT_REQUEST_TIMEOUT = float(os.getenv("ASSISTANT_REQUEST_TIMEOUT", "10"))
POLL_INTERVAL_SECONDS = float(os.getenv("POLL_INTERVAL_SECONDS", "1.0"))
POLL_MAX_ATTEMPTS = int(os.getenv("POLL_MAX_ATTEMPTS", "30"))

# Conversation store: "dynamodb", "supabase" or "memory"
CONVERSATION_STORE = os.getenv("CONVERSATION_STORE", "dynamodb")
CHAT_HISTORY_TABLE = os.getenv("CHAT_HISTORY_TABLE", "ChatHistory")
CHAT_THREADS_TABLE = os.getenv("CHAT_THREADS_TABLE", "ChatThreads")
AWS_REGION = os.getenv("AWS_REGION", "us-east-1")
SUPABASE_URL = os.getenv("SUPABASE_URL")
SUPABASE_KEY = os.getenv("SUPABASE_KEY")

# Optional JSON override for the canned responses
RESPONSE_CATALOG_PATH = os.getenv("RESPONSE_CATALOG_PATH")

# Server Configuration
PORT = int(os.getenv("PORT", "8000"))
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# CORS Configuration
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# Logging Configuration
logging.basicConfig(
    level=getattr(logging, LOG_LEVEL),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
