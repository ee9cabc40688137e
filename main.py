"""
Brain server entry point.

    python main.py                 # host/port from BRAIN_HOST / BRAIN_PORT
    uvicorn app:app --reload       # equivalent, uvicorn-managed
"""

import os

import uvicorn

from brain.config import Config


def run() -> None:
    config = Config.from_env()
    # Auto-reload is a development convenience; BRAIN_RELOAD=false disables it
    reload = os.getenv("BRAIN_RELOAD", "true").lower() in ("true", "1", "yes")

    uvicorn.run(
        "app:app",
        host=os.getenv("BRAIN_HOST", "127.0.0.1"),
        port=int(os.getenv("BRAIN_PORT", "8000")),
        reload=reload,
        log_level=config.logging.level.lower(),
    )


if __name__ == "__main__":
    run()
