import logging
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt

from resume_reviewer.app.core.config import Settings

log = logging.getLogger(__name__)


def create_access_token(
    data: dict,
    settings: Settings,
    expires_delta: timedelta | None = None,
) -> str:
    """Create a JWT access token.

    Args:
        data (dict): The claims to encode in the token (e.g., the subject).
        settings (Settings): The application settings object.
        expires_delta (timedelta | None): Custom expiration time for the token. If None, uses default value.

    Returns:
        str: The encoded JWT token as a string.

    Notes:
        1. Copy the data to avoid modifying the original.
        2. Set expiration time based on expires_delta or default.
        3. Encode the data with the secret key and algorithm.
        4. No database or network access in this function.

    """
    _msg = "Creating access token"
    log.debug(_msg)
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(UTC) + expires_delta
    else:
        expire = datetime.now(UTC) + timedelta(
            minutes=settings.access_token_expire_minutes,
        )
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(
        to_encode,
        settings.secret_key,
        algorithm=settings.algorithm,
    )
    return encoded_jwt


def decode_access_token(token: str, settings: Settings) -> str | None:
    """Return the subject of a valid access token, or None.

    Args:
        token (str): The encoded JWT.
        settings (Settings): The application settings object.

    Returns:
        str | None: The `sub` claim when the token verifies and has not expired.

    """
    try:
        payload = jwt.decode(
            token,
            settings.secret_key,
            algorithms=[settings.algorithm],
        )
    except JWTError as e:
        _msg = f"Token decoding failed: {e}"
        log.debug(_msg)
        return None

    subject = payload.get("sub")
    if not isinstance(subject, str) or not subject:
        return None
    return subject
