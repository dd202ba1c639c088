"""FastAPI routes for the chat endpoint."""
import logging

from fastapi import APIRouter, FastAPI, Request
from fastapi.responses import JSONResponse

from app.core.backend import GeminiBackend
from app.core.chat import FAILURE_MESSAGE, ChatFailure, ChatService
from app.core.errors import ConfigurationError, error_message
from app.models.schemas import ChatRequest, ChatResponse, ErrorResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["chat"])


def error_response(details: str) -> JSONResponse:
    body = ErrorResponse(error=FAILURE_MESSAGE, details=details)
    return JSONResponse(status_code=500, content=body.model_dump())


def get_chat_service(app: FastAPI) -> ChatService:
    """Build the service on first use from the settings/backend injected by create_app."""
    service = getattr(app.state, "chat_service", None)
    if service is None:
        settings = app.state.settings
        backend = app.state.backend
        if backend is None:
            backend = GeminiBackend(
                api_key=settings.require_api_key(),
                api_base=settings.gemini_api_base,
                timeout=settings.catalog_timeout_seconds,
            )
        service = ChatService(backend, settings)
        app.state.chat_service = service
    return service


@router.post("/chat", response_model=ChatResponse, responses={500: {"model": ErrorResponse}})
def chat(req: ChatRequest, request: Request):
    """Send a message plus the full history and get the model reply."""
    try:
        service = get_chat_service(request.app)
    except ConfigurationError as e:
        logger.error("Chat service is not configured: %s", e)
        return error_response(error_message(e))

    result = service.reply(req.message, req.history)
    if isinstance(result, ChatFailure):
        return error_response(result.detail)
    return ChatResponse(response=result.text)


@router.get("/health")
def health() -> dict:
    """Health check."""
    return {"status": "ok"}
