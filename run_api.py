#!/usr/bin/env python3
"""Run the chat API. Usage: python run_api.py. Set HOST=0.0.0.0 to allow network access, RELOAD=0 to disable reload."""
import os
from pathlib import Path

# Load .env before uvicorn (and the reload worker) start so GOOGLE_API_KEY is visible.
_ROOT = Path(__file__).resolve().parent
from dotenv import load_dotenv
load_dotenv(_ROOT / ".env", override=True)

import uvicorn

if __name__ == "__main__":
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    reload = os.getenv("RELOAD", "1").strip().lower() not in ("0", "false", "no")
    print(f"Chat API on http://{host}:{port}/api/chat")
    uvicorn.run("app.main:app", host=host, port=port, reload=reload)
