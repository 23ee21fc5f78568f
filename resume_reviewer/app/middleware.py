import logging
from collections.abc import Awaitable, Callable

from fastapi import Request
from fastapi.responses import Response

from resume_reviewer.app.core.auth import ACCESS_TOKEN_COOKIE
from resume_reviewer.app.core.config import Settings, get_settings
from resume_reviewer.app.core.security import create_access_token, decode_access_token

log = logging.getLogger(__name__)


async def refresh_session_middleware(
    request: Request,
    call_next: Callable[[Request], Awaitable[Response]],
) -> Response:
    """Refreshes session token on each request.

    If a valid, unexpired access token is found in the cookies, a new token
    with a renewed expiration time is issued and set in the response cookies.
    This creates a "sliding session" for active users.

    Args:
        request (Request): The incoming request object.
        call_next: The next middleware or route handler.

    Returns:
        Response: The response from the next middleware or route handler,
                  potentially with a new session cookie.

    Notes:
        1.  Attempt to retrieve the `access_token` from the request cookies.
        2.  If a token is present and decodes to a subject, create a new token
            with a fresh expiration date for the same subject.
        3.  Call `response = await call_next(request)` to pass control to the
            next handler.
        4.  If a new token was generated and the handler did not clear the
            cookie itself (sign-out), set it on the `response`.
        5.  If the token is missing, invalid, or expired, the middleware does
            nothing; the auth dependency will deny access.

    """
    log.debug("refresh_session_middleware: starting")
    new_token: str | None = None
    access_token: str | None = request.cookies.get(ACCESS_TOKEN_COOKIE)

    if not access_token:
        log.debug("refresh_session_middleware: no token, passing through")
        return await call_next(request)

    settings: Settings = get_settings()
    subject = decode_access_token(access_token, settings)
    if subject:
        new_token = create_access_token(data={"sub": subject}, settings=settings)
        _msg = "Token refreshed."
        log.debug(_msg)

    response = await call_next(request)

    cookie_already_set = any(
        header.startswith(f"{ACCESS_TOKEN_COOKIE}=")
        for header in response.headers.getlist("set-cookie")
    )
    if new_token and not cookie_already_set:
        response.set_cookie(
            key=ACCESS_TOKEN_COOKIE,
            value=new_token,
            httponly=True,
            samesite="lax",
            path="/",
            secure=False,  # TODO: drive from settings once HTTPS deployment is configured
        )
        _msg = "New session token set in response cookie."
        log.debug(_msg)

    log.debug("refresh_session_middleware: returning")
    return response
