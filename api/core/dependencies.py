"""
FastAPI dependencies for shared resources.
"""

from __future__ import annotations

from fastapi import Request

from .db import Database


def get_database(request: Request) -> Database:
    """The process-wide Database built in the application lifespan."""
    return request.app.state.db
