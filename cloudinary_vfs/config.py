from pathlib import Path
from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from urllib.parse import urlparse
import logging
from functools import lru_cache


class Settings(BaseSettings):
    """
    Centralized application configuration with type validation.
    Automatically reads variables from the environment and the .env file.
    """
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # --- Cloudinary credentials ---
    # Either the three parts, or a single cloudinary://<key>:<secret>@<cloud> URL
    CLOUDINARY_URL: Optional[str] = None
    CLOUDINARY_CLOUD_NAME: str
    CLOUDINARY_API_KEY: str
    CLOUDINARY_API_SECRET: str

    # --- Adapter Settings ---
    CLOUDINARY_DYNAMIC_FOLDERS: bool = True
    CLOUDINARY_PATH_PREFIX: str = ""
    HTTP_TIMEOUT_SECONDS: int = 30

    # --- General Settings ---
    LOG_LEVEL: str = "INFO"

    # --- Constants and Computed Paths ---
    BASE_DIR: Path = Path(__file__).resolve().parent

    @model_validator(mode='before')
    @classmethod
    def split_cloudinary_url(cls, values):
        url = values.get('CLOUDINARY_URL')
        if not url:
            return values

        parsed = urlparse(url)
        if parsed.scheme != "cloudinary" or not parsed.hostname:
            raise ValueError("CLOUDINARY_URL must look like cloudinary://<api_key>:<api_secret>@<cloud_name>")

        # Explicitly set parts take precedence over the URL
        parts = {
            "CLOUDINARY_CLOUD_NAME": parsed.hostname,
            "CLOUDINARY_API_KEY": parsed.username,
            "CLOUDINARY_API_SECRET": parsed.password,
        }
        for key, value in parts.items():
            if not values.get(key):
                if not value:
                    raise ValueError(f"CLOUDINARY_URL is missing the part needed for {key}")
                values[key] = value
            else:
                logging.info(f"{key} is set explicitly; ignoring the value from CLOUDINARY_URL.")
        return values

    @property
    def folder_mode(self) -> str:
        return "dynamic" if self.CLOUDINARY_DYNAMIC_FOLDERS else "fixed"

    @property
    def LOG_FILE(self) -> Path:
        return self.BASE_DIR / "app.log"


@lru_cache()
def get_settings() -> Settings:
    """
    Returns a cached instance of the application settings.
    The first call to this function will initialize the settings.
    """
    return Settings()
