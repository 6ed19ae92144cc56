"""ASGI entrypoint: ``uvicorn app.main:app``."""

import uvicorn

from app.core.app_factory import create_app

app = create_app()


def run() -> None:
    """Console entrypoint (``library-api``)."""
    uvicorn.run("app.main:app", host="0.0.0.0", port=3000)


if __name__ == "__main__":
    run()
