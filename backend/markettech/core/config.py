"""
Configuración centralizada de la aplicación

Author: TM3
Date: 2025-10-17
Updated: 2026-02-09 (storefront settings: JWT, uploads, rate limits)
"""
import json
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "MarketTech API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "API de la tienda MarketTech y su panel administrativo"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    API_DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./markettech.db"

    # Auth (JWT firmado con HS256)
    JWT_SECRET: str = "markettech-dev-secret"
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRATION_DAYS: int = 7

    # CORS - Can be string (comma-separated) or JSON array
    # Example: "http://localhost:3000,https://yourdomain.com" or '["http://localhost:3000"]'
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:3000,http://localhost:3001"

    # Archivos subidos (imágenes de productos)
    UPLOAD_DIR: str = "uploads"

    # Logging / monitoring
    LOG_LEVEL: str = "INFO"
    SLOW_REQUEST_MS: int = 2000

    # Rate limiting
    RATE_LIMIT_ENABLED: bool = True
    LOGIN_RATE_LIMIT: int = 5

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:3000"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",") if origin.strip()]

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
