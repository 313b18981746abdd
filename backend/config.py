# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    DATABASE_URL: str = "sqlite:///./atelier_pos.db"

    FRONTEND_URL: str = "http://localhost:5173"

    # Product images are stored under UPLOAD_DIR/<bucket> and served from /uploads
    UPLOAD_DIR: str = "static/uploads"
    PRODUCT_IMAGE_BUCKET: str = "products"
    MAX_IMAGE_BYTES: int = 5 * 1024 * 1024

    RECEIPT_DIR: str = "storage/receipts"

    LOW_STOCK_THRESHOLD: int = 5
    CURRENCY: str = "DH"
    LOG_LEVEL: str = "INFO"

    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

settings = Settings()
