# config/settings.py
from pydantic_settings import BaseSettings
from typing import List, Optional

class Settings(BaseSettings):
    # API
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "Card Template Service"

    # CORS
    ALLOWED_HOSTS: List[str] = ["*"]

    # Auth
    BASIC_AUTH_USERNAME: str = "admin"
    BASIC_AUTH_PASSWORD: str = "secret"

    # Env
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Field defaults (image-space pixels)
    DEFAULT_FIELD_X: float = 50
    DEFAULT_FIELD_Y: float = 50
    PHOTO_FIELD_WIDTH: float = 100
    PHOTO_FIELD_HEIGHT: float = 130
    PHOTO_FIELD_LABEL: str = "FOTO"
    DEFAULT_FONT_SIZE: int = 20
    MIN_FIELD_SIZE: float = 5
    TEXT_SELECTION_WIDTH: float = 100

    # Rendering
    FONT_PATH: Optional[str] = None  # TTF/OTF; Pillow's built-in font when unset

    # Export
    EXPORT_FILENAME: str = "carteirinha-oab.pdf"
    EXPORT_FORMAT: str = "pdf"  # pdf | png | jpeg
    JPEG_QUALITY: int = 95

    # Uploads
    MAX_ASSET_BYTES: int = 10 * 1024 * 1024

    class Config:
        env_file = ".env"
        case_sensitive = True

settings = Settings()
