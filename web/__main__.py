"""
Entry point for running the web server.

Usage:
    python -m web

Serves the API on http://0.0.0.0:$PORT (default 3000).
"""
import os
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from logging_setup import setup_logging

if __name__ == "__main__":
    # Local dev convenience; never overrides variables already exported.
    root = Path(__file__).parent.parent
    for name in (".env_local", ".env"):
        p = root / name
        if p.exists():
            load_dotenv(p, override=False)

    setup_logging(level=os.getenv("LOG_LEVEL", "INFO"), use_json=True)

    uvicorn.run(
        "web.app:app",
        host="0.0.0.0",
        port=int(os.getenv("PORT", "3000")),
        log_level="info",
    )
