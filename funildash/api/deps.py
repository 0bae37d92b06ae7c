"""FunilDash — Request Dependencies.

Authentication and company resolution. Handlers receive a RequestContext;
nothing about the caller is kept at module level.
"""

from typing import Optional

from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from funildash.connectors.auth.client import AuthAPIError, AuthClient
from funildash.core.context import RequestContext
from funildash.core.errors import NotFound, Unauthenticated
from funildash.core.logging import get_logger
from funildash.database import get_session
from funildash.store.entity_store import get_user

logger = get_logger("api.auth")

bearer_scheme = HTTPBearer(auto_error=False)


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> str:
    """Dependency — verify the bearer token and return the user id."""
    if credentials is None or not credentials.credentials:
        raise Unauthenticated()

    client = AuthClient()
    try:
        return await client.get_user_id(credentials.credentials)
    except AuthAPIError as e:
        logger.warning(f"Authentication failed: {e}", extra={"status_code": e.status_code})
        raise Unauthenticated() from e
    finally:
        await client.close()


def get_request_context(
    user_id: str = Depends(get_current_user_id),
    session: Session = Depends(get_session),
) -> RequestContext:
    """Dependency — resolve the caller's company."""
    user = get_user(session, user_id)
    if not user:
        raise NotFound("User not found")
    return RequestContext(user_id=user.id, company_id=user.empresa_id)
