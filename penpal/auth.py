import logging
from typing import Optional

from descope import AuthException
from descope.descope_client import DescopeClient

import core.config as config
from penpal.errors import NotAuthenticated

logger = logging.getLogger(__name__)

_client: Optional[DescopeClient] = None


def _get_client() -> DescopeClient:
    """Lazily initialize the Descope client with the configured leeway."""
    global _client
    if _client is None:
        _client = DescopeClient(
            project_id=config.DESCOPE_PROJECT_ID,
            jwt_validation_leeway=config.DESCOPE_JWT_LEEWAY,
        )
        logger.info(f"Descope client initialized with JWT leeway: {config.DESCOPE_JWT_LEEWAY}s")
    return _client


def validate_descope_jwt(token: str) -> dict:
    """
    Validate a Descope session JWT and return the caller's identity.

    Returns:
        dict with ``userId`` and ``email`` (email may be None)

    Raises:
        NotAuthenticated: If the token is invalid or carries no user id
    """
    try:
        session = _get_client().validate_session(token)
    except AuthException as e:
        logger.warning(f"Descope session validation failed: {e}")
        raise NotAuthenticated("Invalid or expired session token") from e

    if not isinstance(session, dict):
        logger.error("Descope session validation failed: session is not a dictionary")
        raise NotAuthenticated("Invalid session format")

    user_id = session.get("userId") or session.get("sub")
    if not user_id:
        raise NotAuthenticated("Session token has no user id")

    email = None
    login_ids = session.get("loginIds")
    if isinstance(login_ids, list) and login_ids:
        email = login_ids[0]
    elif session.get("email"):
        email = session["email"]

    return {"userId": user_id, "email": email, "name": session.get("name")}
