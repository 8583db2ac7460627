"""
API key authentication dependency.

Routes that need it declare `_auth: AuthDep`. With `API_KEY` unset every
request passes; otherwise the `X-Api-Key` header must match it. Failures
go through the standard error envelope as `unauthorized` (401).
"""

from __future__ import annotations

import hmac
from typing import Annotated

from fastapi import Depends, Security
from fastapi.security import APIKeyHeader

from wardset.core.config import get_settings
from wardset.core.errors import UnauthorizedError

_KEY_HEADER = APIKeyHeader(
    name="X-Api-Key",
    auto_error=False,      # missing header handled below, not by FastAPI
    description="API key for service authentication. "
                "Set the `API_KEY` environment variable on the server to enable.",
)


async def verify_api_key(
    key: Annotated[str | None, Security(_KEY_HEADER)],
) -> None:
    settings = get_settings()
    if not settings.auth_enabled:
        return

    if not key or not hmac.compare_digest(key.encode(), settings.api_key.encode()):
        raise UnauthorizedError()


AuthDep = Annotated[None, Depends(verify_api_key)]
