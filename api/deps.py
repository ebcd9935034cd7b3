from __future__ import annotations

from fastapi import Request

from services.storage import Storage


def get_storage(request: Request) -> Storage:
    """The store built once in the app lifespan."""
    return request.app.state.storage
