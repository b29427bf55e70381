"""
Caller identity.

Authentication happens upstream; the fronting proxy forwards the verified
user id in a header (X-User-Id by default).
"""
from typing import Optional

from fastapi import Request

from vibenote.config.settings import get_settings
from vibenote.utils.exceptions import UnauthenticatedError


def get_optional_user_id(request: Request) -> Optional[str]:
    """User id header, or None. The chat turn checks it after parsing the body."""
    return request.headers.get(get_settings().user_id_header) or None


def get_chat_id_header(request: Request) -> Optional[str]:
    return request.headers.get(get_settings().chat_id_header) or None


def require_user_id(request: Request) -> str:
    """Dependency for endpoints that need an authenticated caller."""
    user_id = get_optional_user_id(request)
    if not user_id:
        raise UnauthenticatedError("User authentication missing")
    return user_id
