"""
Post side effects that run outside the request path.
"""

from __future__ import annotations

import logging
from uuid import UUID

from .repository import PostRepository

logger = logging.getLogger(__name__)


async def increment_view_count_background(repo: PostRepository, post_id: UUID) -> None:
    """
    BackgroundTasks entrypoint.

    Runs after the response has been sent, so it must never raise; failures
    are only logged and the view is lost.
    """
    try:
        await repo.increment_view_count(post_id)
    except Exception:
        logger.exception("view_count_increment_failed post_id=%s", post_id)
