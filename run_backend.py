#!/usr/bin/env python
"""Script to run the task tracker backend server."""
import uvicorn

from tasktrack.config import load_settings
from tasktrack.logging_setup import setup_logging

if __name__ == "__main__":
    # Fails fast when JWT_SECRET, REFRESH_SECRET or PORT is missing.
    settings = load_settings()
    setup_logging(settings.log_level)

    uvicorn.run(
        "tasktrack.main:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
        log_config=None,
    )
