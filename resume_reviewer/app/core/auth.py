import logging

from fastapi import HTTPException, Request, status

from resume_reviewer.app.core.config import get_settings
from resume_reviewer.app.core.security import decode_access_token

log = logging.getLogger(__name__)

ACCESS_TOKEN_COOKIE = "access_token"


def _token_from_request(request: Request) -> str | None:
    """Return the access token from the cookie or the Authorization header."""
    token = request.cookies.get(ACCESS_TOKEN_COOKIE)
    if token:
        return token

    authorization = request.headers.get("Authorization", "")
    scheme, _, credentials = authorization.partition(" ")
    if scheme.lower() == "bearer" and credentials:
        return credentials
    return None


def get_optional_subject(request: Request) -> str | None:
    """Retrieve the authenticated subject, if any, from the request.

    Args:
        request: The request object, used to access cookies and headers.

    Returns:
        str | None: The token subject when the caller is authenticated, otherwise None.

    Notes:
        1. Look for the token in the `access_token` cookie, then in a Bearer Authorization header.
        2. Verify the token with the shared secret; an invalid or expired token counts as unauthenticated.
        3. No database or network access in this function.

    """
    token = _token_from_request(request)
    if not token:
        return None
    return decode_access_token(token, get_settings())


def get_current_subject(request: Request) -> str:
    """Require an authenticated caller before the analysis pipeline may run.

    The identity provider is external: it issues JWTs signed with the shared
    secret key, and this dependency only checks that one is present and valid.

    Args:
        request: The request object, used to access cookies and headers.

    Returns:
        str: The authenticated subject.

    Raises:
        HTTPException: 401 when the caller is not authenticated.

    """
    subject = get_optional_subject(request)
    if subject is None:
        _msg = f"Unauthenticated request to {request.url.path}"
        log.debug(_msg)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return subject
