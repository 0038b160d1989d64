"""Main entry point for the portfolio chat assistant API."""
import logging
from fastapi import BackgroundTasks, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from config import CHAT_MODE, CORS_ORIGINS, LOG_LEVEL, PORT
from logger import setup_logging
from models.api import ChatRequest, ChatResponse, ErrorResponse
from services.chat_service import ChatService, build_chat_service
from services.errors import ValidationError

# Initialize logging
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="Portfolio Chat Assistant",
    description="Answers questions about Michael's experience, skills and projects",
    version="1.0.0"
)

# Configure CORS (answers preflight OPTIONS requests)
app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["*"],
)

# Initialized on startup
chat_service: ChatService = None


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup."""
    global chat_service

    setup_logging(LOG_LEVEL)
    logger.info(f"Initializing chat assistant in {CHAT_MODE} mode...")

    try:
        chat_service = build_chat_service(CHAT_MODE)
        logger.info("All services initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize services: {e}", exc_info=True)
        raise


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(status_code=400, content=ErrorResponse(error=exc.error.message).model_dump())


@app.exception_handler(RequestValidationError)
async def malformed_request_handler(request: Request, exc: RequestValidationError):
    logger.info(f"Rejected malformed chat request: {exc.errors()}")
    return JSONResponse(status_code=400, content=ErrorResponse(error="Message is required").model_dump())


@app.get("/")
async def root():
    """Health check endpoint."""
    return {"status": "ok", "message": "Portfolio Chat Assistant API"}


@app.get("/health")
async def health():
    """Detailed health check."""
    return {
        "status": "healthy",
        "service": "portfolio-chat-assistant",
        "mode": CHAT_MODE,
        "version": "1.0.0"
    }


@app.post("/chat", response_model=ChatResponse, responses={400: {"model": ErrorResponse}})
def chat_endpoint(request: ChatRequest, background_tasks: BackgroundTasks) -> ChatResponse:
    """
    Answer one chat message.

    Declared sync so FastAPI runs it in the threadpool: the assistant poller
    sleeps between status checks.

    The reply is always 200 with some text (live, canned or "temporarily
    unavailable"); only a missing message is rejected with 400. Both turns
    are saved after the response is sent.
    """
    exchange = chat_service.reply(request.message, request.user_id, request.session_id)
    background_tasks.add_task(chat_service.persist, exchange, request.user_id, request.session_id)
    return ChatResponse(response=exchange.response, timestamp=exchange.timestamp)


if __name__ == "__main__":
    import uvicorn
    logger.info(f"Starting Portfolio Chat Assistant API on port {PORT}")
    uvicorn.run(app, host="0.0.0.0", port=PORT)
