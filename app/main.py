"""FastAPI application entrypoint."""
import logging
import os
import sys
from pathlib import Path

# Project root (parent of app/)
_ROOT = Path(__file__).resolve().parent.parent

# Load .env FIRST so GOOGLE_API_KEY etc. are set before any app code reads them.
# override=True so .env wins (important when uvicorn reload spawns a worker that may not inherit env).
from dotenv import load_dotenv
load_dotenv(_ROOT / ".env", override=True)

# Ensure project root is on path when run as: python app/main.py
if __name__ == "__main__" or "app" not in sys.modules:
    if str(_ROOT) not in sys.path:
        sys.path.insert(0, str(_ROOT))

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes import error_response, router
from app.core.backend import GenerativeBackend
from app.core.config import Settings, get_settings

logging.basicConfig(level=getattr(logging, get_settings().log_level, logging.INFO))
_log = logging.getLogger(__name__)

# Prevent third-party HTTP libs from logging at DEBUG (the catalog URL carries the API key)
for _name in ("httpx", "httpcore", "urllib3", "google_genai"):
    logging.getLogger(_name).setLevel(logging.WARNING)


def _describe_validation_errors(exc: RequestValidationError) -> str:
    parts = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p != "body")
        parts.append(f"{loc}: {err.get('msg', 'invalid')}" if loc else str(err.get("msg", "invalid")))
    return "; ".join(parts) or "Malformed request"


async def malformed_request_handler(request: Request, exc: RequestValidationError):
    # Same envelope and status as every other failure
    details = _describe_validation_errors(exc)
    _log.warning("Malformed chat request: %s", details)
    return error_response(details)


def create_app(settings: Settings | None = None, backend: GenerativeBackend | None = None) -> FastAPI:
    """Build the app. Pass a backend to bypass Gemini (tests); otherwise one is built from settings on first request."""
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.api_title,
        version=settings.api_version,
    )
    app.state.settings = settings
    app.state.backend = backend
    app.state.chat_service = None
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["POST", "OPTIONS", "GET"],
        allow_headers=["Content-Type", "Authorization"],
    )
    app.add_exception_handler(RequestValidationError, malformed_request_handler)
    app.include_router(router)
    return app


app = create_app()

if get_settings().google_api_key:
    _log.info("Gemini credential found; preferred model is %s.", get_settings().gemini_model)
else:
    _log.warning("GOOGLE_API_KEY not set. /api/chat will fail until it is configured.")

if __name__ == "__main__":
    import uvicorn
    host = os.getenv("HOST", "127.0.0.1")  # 127.0.0.1 = localhost only
    port = int(os.getenv("PORT", "8000"))
    uvicorn.run("app.main:app", host=host, port=port, reload=True)
