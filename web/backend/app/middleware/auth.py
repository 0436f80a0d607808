"""Caller identity -- FastAPI dependencies for extracting the invoking party.

The registry trusts the identity it is given, so this header is expected to
be set by an authenticating proxy in front of the API:

``X-Caller-Id: <caller identity>``
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, HTTPException, status


async def get_caller(
    x_caller_id: Optional[str] = Header(None, alias="X-Caller-Id"),
) -> str:
    """FastAPI dependency that returns the caller identity.

    Raises ``401 Unauthorized`` if the header is missing or blank.
    """
    caller = (x_caller_id or "").strip()
    if not caller:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing X-Caller-Id header",
        )
    return caller
