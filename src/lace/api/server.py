"""
ASGI Entry Point for the Lace API.

This module exposes the `app` object required by ASGI servers (Uvicorn).
It loads environment variables from `.env` before the application factory
runs so settings read at import time see them.

Usage
-----
Run via the module entry point:
    $ python -m lace.api.server

Or via uvicorn directly:
    $ uvicorn lace.api.server:app --reload
"""

from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from lace.api.app import create_app
from lace.core.settings import load_settings

# Load .env BEFORE building the app so cached settings pick it up.
load_dotenv(dotenv_path=Path(".env"))

app = create_app()


def main() -> None:
    """Run the API server locally for development."""
    settings = load_settings()
    uvicorn.run(
        "lace.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.is_dev,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
