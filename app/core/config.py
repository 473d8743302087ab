from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"
    log_format: str = "json"  # json | console
    port: int = 4000
    cors_origins: list[str] = ["*"]

    # OCR provider: mock | tesseract
    ocr_provider: str = "tesseract"
    ocr_lang: str = "eng"
    ocr_char_whitelist: str = "0123456789.,"
    tesseract_psm: int = 6

    # Seconds shutdown waits for queued recognition jobs to drain
    engine_shutdown_timeout: float = 10.0

    # Upload + preprocessing
    max_upload_bytes: int = 8 * 1024 * 1024
    preprocess_max_width: int = 1400

    # Fixed rate: BGN per 1 EUR
    exchange_rate: float = 1.95583


settings = Settings()
