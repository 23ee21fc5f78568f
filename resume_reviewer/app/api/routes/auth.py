import logging

from fastapi import APIRouter, Depends, Form, HTTPException, status
from fastapi.responses import RedirectResponse

from resume_reviewer.app.api.routes.route_models import SessionResponse
from resume_reviewer.app.core.auth import ACCESS_TOKEN_COOKIE, get_optional_subject
from resume_reviewer.app.core.config import Settings, get_settings
from resume_reviewer.app.core.security import decode_access_token

log = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


def _safe_next(next_url: str | None) -> str:
    """Only allow redirects to local paths."""
    if next_url and next_url.startswith("/") and not next_url.startswith("//"):
        return next_url
    return "/"


@router.get("/session", response_model=SessionResponse)
async def get_session(subject: str | None = Depends(get_optional_subject)):
    """Report whether the caller is authenticated."""
    return SessionResponse(is_authenticated=subject is not None, subject=subject)


@router.post("/sign-in")
async def sign_in(
    token: str = Form(...),
    next_url: str | None = Form(None, alias="next"),
    settings: Settings = Depends(get_settings),
) -> RedirectResponse:
    """
    Start a session from a token issued by the identity provider.

    Args:
        token (str): The JWT issued by the identity provider.
        next_url (str | None): Local path to continue to after sign-in.
        settings (Settings): The application settings.

    Returns:
        RedirectResponse: A 303 redirect to `next` with the `access_token` cookie set.

    Raises:
        HTTPException: 401 if the token does not verify.

    """
    subject = decode_access_token(token, settings)
    if subject is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
        )

    _msg = f"Session started for {subject}"
    log.info(_msg)
    response = RedirectResponse(
        url=_safe_next(next_url),
        status_code=status.HTTP_303_SEE_OTHER,
    )
    response.set_cookie(
        key=ACCESS_TOKEN_COOKIE,
        value=token,
        httponly=True,
        samesite="lax",
        path="/",
    )
    return response


@router.post("/sign-out")
async def sign_out() -> RedirectResponse:
    """End the session by clearing the access token cookie."""
    response = RedirectResponse(url="/", status_code=status.HTTP_303_SEE_OTHER)
    response.delete_cookie(key=ACCESS_TOKEN_COOKIE, path="/")
    return response
