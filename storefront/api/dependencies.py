"""Request dependencies: bearer-token authentication."""

import logging
from typing import Any, Optional

import jwt
from fastapi import Depends, Request
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from storefront.config import get_settings
from storefront.exceptions import AuthError
from storefront.models.context import RequestContext

logger = logging.getLogger(__name__)
settings = get_settings()

bearer_scheme = HTTPBearer(auto_error=False)


def decode_access_token(token: str) -> dict[str, Any]:
    """Verify an access token issued by the auth backend."""
    try:
        return jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience or None,
        )
    except jwt.ExpiredSignatureError:
        raise AuthError("Session expired. Please sign in again.")
    except jwt.InvalidTokenError as e:
        logger.info("Rejected access token: %s", e)
        raise AuthError("Invalid session.")


async def get_request_context(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> RequestContext:
    """Resolve the authenticated caller. Never trusts a client-supplied user id."""
    if credentials is None:
        raise AuthError()

    payload = decode_access_token(credentials.credentials)
    user_id = payload.get("sub")
    if not user_id:
        raise AuthError("Invalid session.")

    return RequestContext(
        user_id=str(user_id),
        request_id=getattr(request.state, "request_id", None),
    )
