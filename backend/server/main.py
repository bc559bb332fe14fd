"""
Development entry point.

Runs the ASGI app with uvicorn and auto-reload:

    python backend/server/main.py
"""

from __future__ import annotations

from pathlib import Path

import uvicorn

BACKEND_DIR = Path(__file__).resolve().parents[1]


def main() -> None:
    uvicorn.run(
        "server.asgi:app",
        app_dir=str(BACKEND_DIR),
        host="0.0.0.0",
        port=8000,
        log_level="info",
        reload=True,  # Dev mode only
    )


if __name__ == "__main__":
    main()
