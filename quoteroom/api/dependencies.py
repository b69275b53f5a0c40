"""Shared FastAPI dependencies."""

from __future__ import annotations

import uuid

from fastapi import Header


async def get_actor_id(
    x_actor_id: uuid.UUID | None = Header(None, alias="X-Actor-ID"),
) -> uuid.UUID | None:
    """Identify who is acting, for the audit trail.

    Authentication happens upstream; the gateway forwards the caller's id in
    the ``X-Actor-ID`` header. Requests without it are recorded anonymously.
    """
    return x_actor_id
