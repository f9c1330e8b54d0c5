from __future__ import annotations

import os

import uvicorn

from backend.app.main import app


def run() -> None:
    """Serve the ZenJournal API on ``$HOST:$PORT``."""

    host = os.getenv("HOST", "0.0.0.0")
    port = int(os.getenv("PORT", 8000))
    # the lifespan installs JSON logging on the root logger
    uvicorn.run(app, host=host, port=port, log_config=None)


if __name__ == "__main__":
    run()
