"""Request-scoped caller context."""

from typing import Optional

from pydantic import BaseModel


class RequestContext(BaseModel):
    """Who is calling. Built per request and passed explicitly to services."""

    user_id: Optional[str] = None
    request_id: Optional[str] = None

    model_config = {"frozen": True}
