from pydantic_settings import BaseSettings
from typing import List, Any
import json
from pathlib import Path


def parse_cors_origins(v: Any) -> List[str]:
    """Parse CORS origins from string or list"""
    if isinstance(v, list):
        return v
    if isinstance(v, str):
        # Try JSON parsing first
        if v.startswith('['):
            try:
                return json.loads(v)
            except json.JSONDecodeError:
                pass
        # Fall back to comma-separated
        return [origin.strip() for origin in v.split(',') if origin.strip()]
    return []


def parse_extensions(v: Any) -> List[str]:
    """Parse allowed extensions from string or list, normalised to lowercase without dots"""
    if isinstance(v, list):
        items = v
    elif isinstance(v, str):
        items = None
        if v.startswith('['):
            try:
                items = json.loads(v)
            except json.JSONDecodeError:
                pass
        if items is None:
            items = v.split(',')
    else:
        return []
    return [str(ext).strip().lstrip('.').lower() for ext in items if str(ext).strip()]


class Settings(BaseSettings):
    """Application settings - all configurable via environment variables"""

    # ==========================================
    # Application
    # ==========================================
    APP_NAME: str = "Disserto"
    ENVIRONMENT: str = "development"
    DEBUG: bool = False
    API_VERSION: str = "v1"

    # Server Configuration
    SERVER_HOST: str = "0.0.0.0"
    SERVER_PORT: int = 8000

    # ==========================================
    # Database
    # ==========================================
    DATABASE_URL: str = "sqlite+aiosqlite:///./disserto.db"
    DB_ECHO: bool = False

    # ==========================================
    # Authentication
    # ==========================================
    JWT_SECRET_KEY: str
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 43200  # 30 days
    BCRYPT_ROUNDS: int = 12  # 4 for tests (fast), 12 for prod (secure)

    # Seed admin (app/scripts/seed_admin.py)
    DEFAULT_ADMIN_EMAIL: str = "admin@disserto.com"
    DEFAULT_ADMIN_PASSWORD: str = "admin123"
    DEFAULT_ADMIN_NAME: str = "System Administrator"

    # ==========================================
    # CORS (stored as comma-separated string, parsed to list)
    # ==========================================
    CORS_ORIGINS_STR: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"

    @property
    def CORS_ORIGINS(self) -> List[str]:
        """Parse CORS origins from comma-separated string"""
        return parse_cors_origins(self.CORS_ORIGINS_STR)

    # ==========================================
    # Rate Limiting
    # ==========================================
    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_PER_MINUTE: int = 120
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    AUTH_RATE_LIMIT: str = "10/minute"

    # ==========================================
    # Final submission uploads
    # ==========================================
    UPLOAD_PATH: str = "uploads"
    MAX_SUBMISSION_SIZE: int = 20 * 1024 * 1024  # 20MB
    ALLOWED_SUBMISSION_EXTENSIONS_STR: str = "pdf"

    @property
    def ALLOWED_SUBMISSION_EXTENSIONS(self) -> List[str]:
        return parse_extensions(self.ALLOWED_SUBMISSION_EXTENSIONS_STR)

    @property
    def UPLOAD_DIR(self) -> Path:
        return Path(self.UPLOAD_PATH)

    # ==========================================
    # Logging / error reporting
    # ==========================================
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "logs/disserto.log"  # empty string disables the file handler
    EXPOSE_ERROR_DETAILS: bool = False  # adds the raw error string to 500 responses

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"  # Ignore extra fields in .env that aren't defined in Settings

    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"


# Create settings instance
settings = Settings()
