"""AWS Lambda entry point (API Gateway proxy integration)."""
import json
import logging

from config import CHAT_MODE, LOG_LEVEL
from logger import setup_logging
from models.conversation import isoformat_z, utc_now
from services.chat_service import ChatService, build_chat_service
from services.errors import ValidationError
from services.response_catalog import UNAVAILABLE_MESSAGE

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    'Access-Control-Allow-Origin': '*',
    'Access-Control-Allow-Headers': '*',
    'Access-Control-Allow-Methods': 'GET,POST,OPTIONS',
}

# Reused across warm invocations
_chat_service: ChatService = None


def get_chat_service() -> ChatService:
    global _chat_service
    if _chat_service is None:
        setup_logging(LOG_LEVEL)
        _chat_service = build_chat_service(CHAT_MODE)
    return _chat_service


def _response(status_code, body):
    return {
        'statusCode': status_code,
        'headers': {**CORS_HEADERS, 'Content-Type': 'application/json'},
        'body': json.dumps(body),
    }


def _parse_body(event):
    raw = event.get('body') or '{}'
    try:
        body = json.loads(raw)
    except (TypeError, ValueError):
        raise ValidationError("Message is required", {"reason": "body is not valid JSON"})
    if not isinstance(body, dict):
        raise ValidationError("Message is required", {"reason": "body is not a JSON object"})
    return body


def lambda_handler(event, context):
    method = event.get('httpMethod') or event.get('requestContext', {}).get('http', {}).get('method')
    if method == 'OPTIONS':
        return {'statusCode': 200, 'headers': CORS_HEADERS, 'body': ''}

    try:
        body = _parse_body(event)
        message = body.get('message')
        user_id = body.get('userId') or 'anonymous'
        session_id = body.get('sessionId') or 'default'
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message is required")
    except ValidationError as e:
        logger.info(f"Rejected chat request: {e.error.message}", extra=e.log_extra())
        return _response(400, {'error': e.error.message})

    try:
        service = get_chat_service()
    except Exception as e:
        logger.error(f"Failed to initialize chat service: {e}", exc_info=True)
        return _response(200, {'response': UNAVAILABLE_MESSAGE, 'timestamp': isoformat_z(utc_now())})

    exchange = service.reply(message, user_id, session_id)

    # Lambda freezes after returning, so history is written before responding
    service.persist(exchange, user_id, session_id)

    return _response(200, {'response': exchange.response, 'timestamp': exchange.timestamp})
