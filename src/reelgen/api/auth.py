"""Bearer-token authentication for the generation API."""

import secrets
from typing import Annotated

from fastapi import Depends, Header

from reelgen.config import Settings, get_settings
from reelgen.domain.models import Caller
from reelgen.errors import AuthenticationError
from reelgen.logging import get_logger

logger = get_logger(__name__)


def require_caller(
    settings: Annotated[Settings, Depends(get_settings)],
    authorization: Annotated[str | None, Header()] = None,
    x_user_id: Annotated[str | None, Header()] = None,
) -> Caller:
    """Check the shared bearer secret and identify the caller.

    Raises:
        AuthenticationError: Header missing, not a bearer token, or wrong token.
        ConfigurationError: API_SECRET_KEY is not configured.
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise AuthenticationError("Authentication required")

    expected = settings.require("api_secret_key")
    token = authorization.removeprefix("Bearer ").strip()
    if not secrets.compare_digest(token.encode(), expected.encode()):
        logger.warning("invalid_auth_token", user_id=x_user_id)
        raise AuthenticationError("Invalid authentication token")

    return Caller(user_id=(x_user_id or "").strip() or "anonymous")


CallerDep = Annotated[Caller, Depends(require_caller)]
