"""
app/core/config.py

Purpose: Application configuration

- Loads environment variables
- Centralizes config values (DB URI, secrets, paging limits, etc.)
- Validates configuration on startup
- Environment-specific settings
"""

from pydantic import Field, validator
from pydantic_settings import BaseSettings
from typing import Literal


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.
    Validates all required configs on startup.
    """
    
    # Environment
    ENVIRONMENT: Literal["development", "staging", "production"] = "development"
    
    # MongoDB
    MONGODB_URL: str = Field(
        default="mongodb://localhost:27017",
        description="MongoDB connection URI"
    )
    MONGODB_DB_NAME: str = Field(
        default="yfa",
        description="MongoDB database name"
    )
    
    # Authentication gateway
    AUTH_HEADER: str = Field(
        default="X-External-Id",
        description="Header carrying the authenticated user's third-party id"
    )
    
    # Paging
    DEFAULT_PAGE_SIZE: int = Field(
        default=20,
        description="Number of users returned when 'take' is omitted"
    )
    MAX_PAGE_SIZE: int = Field(
        default=100,
        description="Upper bound accepted for 'take'"
    )
    
    # Messages endpoint reports store errors as 204 like an empty inbox
    MESSAGES_ERROR_AS_NO_CONTENT: bool = Field(
        default=True,
        description="Fold store errors on the messages endpoint into 204 No Content"
    )
    
    # Application
    DEBUG: bool = Field(
        default=False,
        description="Enable debug mode"
    )
    LOG_LEVEL: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)"
    )
    API_PREFIX: str = Field(
        default="/api/v1",
        description="API route prefix"
    )
    CORS_ORIGINS: list = Field(
        default=["*"],
        description="Allowed CORS origins"
    )
    
    # Security
    SECRET_KEY: str = Field(
        default="change-me-in-production",
        description="Application secret key"
    )
    
    @validator("SECRET_KEY")
    def validate_secret_key(cls, v, values):
        """Ensure secret key is changed in production."""
        if values.get("ENVIRONMENT") == "production" and v == "change-me-in-production":
            raise ValueError("SECRET_KEY must be changed in production environment")
        return v
    
    @validator("MAX_PAGE_SIZE")
    def validate_max_page_size(cls, v, values):
        """Page size ceiling must admit the default page size."""
        default = values.get("DEFAULT_PAGE_SIZE", 1)
        if v < default:
            raise ValueError("MAX_PAGE_SIZE must be >= DEFAULT_PAGE_SIZE")
        return v
    
    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"
    
    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"
    
    class Config:
        env_file = ".env"
        case_sensitive = True
        env_file_encoding = "utf-8"


# Global settings instance
settings = Settings()


def validate_settings():
    """
    Validates critical settings on application startup.
    Raises ValueError if any required setting is missing or invalid.
    """
    errors = []
    
    if not settings.MONGODB_URL:
        errors.append("MONGODB_URL is required")
    
    if not settings.MONGODB_DB_NAME:
        errors.append("MONGODB_DB_NAME is required")
    
    if not settings.AUTH_HEADER:
        errors.append("AUTH_HEADER is required")
    
    if settings.DEFAULT_PAGE_SIZE < 1:
        errors.append("DEFAULT_PAGE_SIZE must be positive")
    
    if errors:
        raise ValueError(f"Configuration validation failed: {', '.join(errors)}")
    
    return True
