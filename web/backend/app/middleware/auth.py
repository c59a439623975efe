"""Auth middleware -- FastAPI dependency for the acting admin.

Admin routes sit behind the platform's session layer, which forwards the
authenticated admin's id in the ``X-Admin-Id`` header.  The id is recorded
as ``reviewed_by`` on flags and as the actor in the audit log.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_admin_id(x_admin_id: Optional[str] = Header(None, alias="X-Admin-Id")) -> str:
    """Return the acting admin id or raise ``401 Unauthorized``."""
    if x_admin_id is None or not x_admin_id.strip():
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Admin identity required",
        )
    return x_admin_id.strip()
