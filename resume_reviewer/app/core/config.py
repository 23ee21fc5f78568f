import logging
from enum import Enum
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

log = logging.getLogger(__name__)

DEFAULT_CONSTRAINED_USER_AGENT_PATTERN = (
    r"android|webos|iphone|ipod|blackberry|iemobile|opera mini"
)


class CapabilityPolicy(str, Enum):
    """How the user-agent and viewport signals combine into a constrained client.

    Attributes:
        ANY: The client is constrained if either signal says so.
        ALL: The client is constrained only if both signals say so.

    """

    ANY = "any"
    ALL = "all"


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    This class defines all configuration values used by the application,
    including the record store connection, blob storage location, security
    parameters, LLM access, and the preview-generation policy.
    Values are loaded from environment variables with fallback defaults.

    Attributes:
        database_url (str): SQLAlchemy URL of the database backing the key-value record store.
        db_echo (bool): Whether SQLAlchemy logs every statement.
        blob_storage_dir (str): Directory where uploaded documents and preview images are kept.
        secret_key (str): Secret key shared with the identity provider for signing JWT tokens.
        algorithm (str): Algorithm used for JWT token encoding.
        access_token_expire_minutes (int): Duration in minutes for which access tokens remain valid.
        llm_endpoint (str | None): Custom OpenAI-compatible endpoint URL.
        llm_api_key (str | None): API key for accessing LLM services.
        llm_model_name (str): Model used for resume feedback.
        llm_temperature (float): Sampling temperature for the feedback request.
        capability_policy (CapabilityPolicy): How client signals combine during capability classification.
        constrained_max_width (int): Viewport width (pixels) at or below which a client counts as narrow.
        constrained_user_agent_pattern (str): Case-insensitive regex matching constrained user agents.
        preview_scale (float): Zoom factor used when rendering the preview image.
        conversion_failure_fatal (bool): Abort the submission when a preview cannot be produced.
        max_upload_bytes (int): Largest accepted resume upload.

    """

    model_config = SettingsConfigDict(
        case_sensitive=True,
        env_file=".env",
        env_file_encoding="utf-8",
        extra="allow",
    )

    # Record store settings
    database_url: str = Field(
        default="sqlite:///./resume_reviewer.db",
        validation_alias="DATABASE_URL",
    )
    db_echo: bool = Field(default=False, validation_alias="DB_ECHO")

    # Blob storage settings
    blob_storage_dir: str = Field(
        default="./blob_storage",
        validation_alias="BLOB_STORAGE_DIR",
    )

    # Security settings
    secret_key: str = Field(
        default="your-secret-key-change-in-production",
        validation_alias="SECRET_KEY",
    )
    algorithm: str = Field(default="HS256", validation_alias="ALGORITHM")
    access_token_expire_minutes: int = Field(
        default=120,
        validation_alias="ACCESS_TOKEN_EXPIRE_MINUTES",
    )

    # LLM settings
    llm_endpoint: str | None = Field(default=None, validation_alias="LLM_ENDPOINT")
    llm_api_key: str | None = Field(default=None, validation_alias="LLM_API_KEY")
    llm_model_name: str = Field(default="gpt-4o", validation_alias="LLM_MODEL_NAME")
    llm_temperature: float = Field(default=0.7, validation_alias="LLM_TEMPERATURE")

    # Preview generation settings
    capability_policy: CapabilityPolicy = Field(
        default=CapabilityPolicy.ANY,
        validation_alias="CAPABILITY_POLICY",
    )
    constrained_max_width: int = Field(
        default=768,
        validation_alias="CONSTRAINED_MAX_WIDTH",
    )
    constrained_user_agent_pattern: str = Field(
        default=DEFAULT_CONSTRAINED_USER_AGENT_PATTERN,
        validation_alias="CONSTRAINED_USER_AGENT_PATTERN",
    )
    preview_scale: float = Field(default=4.0, validation_alias="PREVIEW_SCALE")
    conversion_failure_fatal: bool = Field(
        default=False,
        validation_alias="CONVERSION_FAILURE_FATAL",
    )

    max_upload_bytes: int = Field(
        default=20 * 1024 * 1024,
        validation_alias="MAX_UPLOAD_BYTES",
    )


@lru_cache
def get_settings() -> Settings:
    """
    Get the global settings instance.

    Args:
        None: This function does not take any arguments.

    Returns:
        Settings: The global settings instance, containing all configuration values.

    Raises:
        ValidationError: If environment variables hold invalid values.

    Notes:
        1. Reads configuration from environment variables and the .env file.
        2. If environment variables are not set, default values are used.
        3. The function returns a cached instance to avoid repeated parsing of the .env file.
        4. This function performs disk access to read the .env file on first call.

    """
    return Settings()
