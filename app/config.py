"""
Application configuration using Pydantic settings.
"""
from pydantic_settings import BaseSettings
from pydantic import Field


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Document Store Configuration
    document_store_url: str = Field(
        default="https://treeqrsystem-default-rtdb.firebaseio.com",
        description="Root URL of the realtime document database"
    )
    document_store_auth_token: str = Field(
        default="",
        description="Database secret or ID token sent as the 'auth' query parameter"
    )

    # Media Store Configuration
    media_api_url: str = Field(
        default="https://api.cloudinary.com/v1_1",
        description="Base URL for the media host API"
    )
    media_cloud_name: str = Field(
        default="",
        description="Media host cloud (account) name"
    )
    media_api_key: str = Field(
        default="",
        description="Media host API key"
    )
    media_api_secret: str = Field(
        default="",
        description="Media host API secret used for request signing"
    )
    media_upload_folder: str = Field(
        default="treeqr",
        description="Folder prefix for uploaded tree photos"
    )

    # Text Generation Configuration
    ai_api_url: str = Field(
        default="https://openrouter.ai/api/v1",
        description="Base URL for the chat-completion API"
    )
    ai_api_key: str = Field(
        default="",
        description="API key for the chat-completion API"
    )
    ai_model: str = Field(
        default="mistralai/mistral-7b-instruct:free",
        description="Model used to describe trees"
    )
    ai_max_tokens: int = Field(
        default=700,
        description="Maximum tokens generated per tree description"
    )

    # Plant Identification Configuration
    plant_id_api_url: str = Field(
        default="https://my-api.plantnet.org/v2",
        description="Base URL for the plant identification API"
    )
    plant_id_api_key: str = Field(
        default="",
        description="API key for the plant identification API"
    )
    plant_id_organ: str = Field(
        default="leaf",
        description="Organ hint sent with identification photos"
    )
    plant_id_max_suggestions: int = Field(
        default=10,
        description="Maximum number of species suggestions shown to a volunteer"
    )

    # Identity Provider Configuration
    identity_api_url: str = Field(
        default="https://identitytoolkit.googleapis.com/v1",
        description="Base URL for the identity provider"
    )
    identity_api_key: str = Field(
        default="",
        description="Web API key for the identity provider"
    )

    # Mail Configuration
    smtp_host: str = Field(
        default="smtp.gmail.com",
        description="SMTP server for feedback reports"
    )
    smtp_port: int = Field(
        default=587,
        description="SMTP port (STARTTLS)"
    )
    smtp_username: str = Field(
        default="",
        description="SMTP login, also used as the sender address"
    )
    smtp_password: str = Field(
        default="",
        description="SMTP password"
    )
    report_recipients: list[str] = Field(
        default=[],
        description="Addresses that receive feedback reports"
    )

    # QR Configuration
    qr_base_url: str = Field(
        default="https://geo-tagging-user.onrender.com",
        description="Public viewer URL prefix encoded in QR codes"
    )
    qr_size: int = Field(
        default=256,
        description="Edge length in pixels of generated QR images"
    )

    # Workflow Parameters
    max_images_per_tree: int = Field(
        default=4,
        description="Maximum number of photos stored per tree"
    )
    public_id_max_attempts: int = Field(
        default=10,
        description="Attempts to find an unused public ID before giving up"
    )

    # HTTP / Retry Configuration
    http_timeout: float = Field(
        default=30.0,
        description="Timeout in seconds for outbound HTTP calls"
    )
    max_retry_attempts: int = Field(
        default=3,
        description="Maximum number of attempts for idempotent reads"
    )
    retry_backoff_multiplier: int = Field(
        default=1,
        description="Multiplier for exponential backoff"
    )
    retry_min_wait: int = Field(
        default=1,
        description="Minimum wait time in seconds between retries"
    )
    retry_max_wait: int = Field(
        default=10,
        description="Maximum wait time in seconds between retries"
    )

    # Logging
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )

    # CORS Configuration
    cors_origins: list[str] = Field(
        default=["*"],
        description="Allowed CORS origins (use specific origins in production)"
    )

    # Rate Limiting
    rate_limit_requests: int = Field(
        default=100,
        description="Maximum requests per minute per client on upload endpoints"
    )

    # Application Settings
    app_name: str = Field(
        default="Tree Tagging Service",
        description="Application name"
    )
    app_version: str = Field(
        default="1.0.0",
        description="Application version"
    )
    debug: bool = Field(
        default=False,
        description="Debug mode"
    )

    class Config:
        env_file = ".env"
        case_sensitive = False


# Global settings instance
settings = Settings()
