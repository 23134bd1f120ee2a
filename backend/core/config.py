"""
Application configuration settings
"""

from pydantic_settings import BaseSettings
from pathlib import Path
from typing import List, Optional

BACKEND_DIR = Path(__file__).resolve().parent.parent

class Settings(BaseSettings):
    """Application settings"""

    # Application
    APP_NAME: str = "Gutachterportal"
    DEBUG: bool = False
    TESTING: bool = False
    VERSION: str = "1.0.0"

    # API
    API_V1_STR: str = "/api/v1"
    ALLOWED_HOSTS: List[str] = ["*"]

    # Database - Individual components for RDS secret compatibility
    DB_HOST: str = "localhost"
    DB_PORT: str = "5432"
    DB_USER: str = "user"
    DB_PASSWORD: str = "password"
    DB_NAME: str = "gutachterportal"
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20

    # Constructed DATABASE_URL from individual components
    @property
    def DATABASE_URL(self) -> str:
        """Construct PostgreSQL connection URL from individual components"""
        return f"postgresql://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    # Object storage (S3 or MinIO through endpoint URL)
    AWS_REGION: str = "us-east-1"
    AWS_ACCESS_KEY_ID: Optional[str] = None
    AWS_SECRET_ACCESS_KEY: Optional[str] = None
    S3_ENDPOINT_URL: Optional[str] = None
    S3_BUCKET_NAME: str = "gutachten"
    OBJECT_KEY_PREFIX: str = "GUTACHTER"
    PRESIGNED_URL_TTL_SECONDS: int = 24 * 60 * 60

    # JWT Configuration
    SECRET_KEY: str = "your-secret-key-change-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 30

    # Mail transport
    SMTP_HOST: str = "smtp.example.com"
    SMTP_PORT: int = 587
    SMTP_USE_TLS: bool = False  # implicit TLS (port 465)
    SMTP_STARTTLS: bool = True
    SMTP_USER: Optional[str] = None
    SMTP_PASSWORD: Optional[str] = None
    EMAIL_FROM: str = "Gutachterportal <noreply@gutachterportal.de>"

    # Case transmission
    BACKOFFICE_EMAIL: str = "anfragen@rechtly.de"
    MAX_DOC_ATTACHMENTS: int = 20
    SUMMARY_PDF_FILENAME: str = "Falluebersicht.pdf"
    LOGO_PATH: str = "assets/logo.png"
    LOGO_CONTENT_ID: str = "logo"
    REPORT_TIMEZONE: str = "Europe/Berlin"

    @property
    def LOGO_FILE(self) -> Path:
        """Logo path, relative paths resolved against the backend directory"""
        path = Path(self.LOGO_PATH)
        return path if path.is_absolute() else BACKEND_DIR / path

    # Document uploads
    MAX_FILE_SIZE: int = 10 * 1024 * 1024  # 10MB
    ALLOWED_MIME_TYPES: List[str] = [
        "application/pdf",
        "image/jpeg",
        "image/png",
        "application/msword",
        "application/vnd.openxmlformats-officedocument.wordprocessingml.document",
        "application/vnd.ms-excel",
        "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    ]

    # Practitioners
    FIRST_PRACTITIONER_NUMBER: int = 25001

    # Logging
    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = ".env"
        case_sensitive = True

# Create settings instance
settings = Settings()

def get_settings() -> Settings:
    """Get application settings"""
    return settings
