import os
from pydantic_settings import BaseSettings
from pydantic import field_validator
from dotenv import load_dotenv
import logging
from typing import List

# Load variables from .env file located in the project root directory
dotenv_path = os.path.join(os.path.dirname(os.path.dirname(__file__)), '.env')
if os.path.exists(dotenv_path):
    load_dotenv(dotenv_path=dotenv_path)
else:
    load_dotenv() # Fallback


class ConfigurationError(RuntimeError):
    """Raised when a setting the service cannot start without is missing."""


class Settings(BaseSettings):
    """Loads configuration settings from environment variables and .env file."""

    # --- Supabase Configuration ---
    SUPABASE_URL: str | None = None
    SUPABASE_KEY: str | None = None # public ANON key

    # --- Storage Configuration ---
    STORAGE_BUCKET: str = "storage"
    STORAGE_PUBLIC_BASE_URL: str | None = None # Derived from SUPABASE_URL when unset
    PROFILE_PHOTO_PREFIX: str = "profile_photos"
    GENERIC_UPLOAD_PREFIX: str = "cloud"
    UPLOAD_CACHE_CONTROL_SECONDS: int = 3600

    # --- Table Configuration ---
    PROFILE_TABLE: str = "Profile"
    PROFILE_CONFLICT_COLUMN: str = "email"

    # --- Image Compression ---
    IMAGE_COMPRESSION_QUALITY: float = 0.6
    IMAGE_CONVERT_SIZE: int = 5_000_000 # PNG output above this many bytes is converted to JPEG

    # --- UI ---
    SUCCESS_CLOSE_DELAY_SECONDS: float = 1.5

    LOG_LEVEL: str = "INFO"

    class Config:
        env_file = '.env'
        env_file_encoding = 'utf-8'
        extra = 'ignore'

    @field_validator("IMAGE_COMPRESSION_QUALITY")
    @classmethod
    def check_quality(cls, value: float) -> float:
        if not 0 < value <= 1:
            raise ValueError("IMAGE_COMPRESSION_QUALITY must be in (0, 1]")
        return value

    @property
    def public_base_url(self) -> str:
        """Base URL under which objects of the bucket are publicly readable."""
        if self.STORAGE_PUBLIC_BASE_URL:
            return self.STORAGE_PUBLIC_BASE_URL.rstrip("/")
        base = (self.SUPABASE_URL or "").rstrip("/")
        return f"{base}/storage/v1/object/public/{self.STORAGE_BUCKET}"

    def missing_required(self) -> List[str]:
        missing = []
        if not self.SUPABASE_URL: missing.append("SUPABASE_URL")
        if not self.SUPABASE_KEY: missing.append("SUPABASE_KEY")
        return missing

# Instantiate settings once for import
settings = Settings()


def check_required_settings(current: Settings | None = None) -> None:
    """Fails fast when the Supabase endpoint or public key is not configured."""
    current = settings if current is None else current
    missing = current.missing_required()
    if missing:
        logger.critical(f"Missing required configuration: {', '.join(missing)}. Refusing to start.")
        raise ConfigurationError(f"Missing required configuration: {', '.join(missing)}")


# --- Logging Setup ---
log_level_str = settings.LOG_LEVEL.upper(); log_level = getattr(logging, log_level_str, logging.INFO)
logging.basicConfig(level=log_level, format='%(asctime)s - %(name)s - [%(levelname)s] - %(message)s', datefmt='%Y-%m-%d %H:%M:%S')
logger = logging.getLogger("CloudStorage_Core")
logging.getLogger("httpx").setLevel(logging.WARNING); logging.getLogger("supabase").setLevel(logging.WARNING)
logging.getLogger("watchfiles").setLevel(logging.WARNING); logging.getLogger("PIL").setLevel(logging.WARNING)

# --- Configuration Validation Checks ---
logger.info(f"Core Settings loaded. Log Level: {log_level_str}")
if settings.missing_required(): logger.warning("Supabase URL/Key missing. The storage UI will refuse to start.")
else: logger.info(f"Using Supabase Storage Bucket: {settings.STORAGE_BUCKET} (public base: {settings.public_base_url})")
logger.info(f"Profile Table: {settings.PROFILE_TABLE} (conflict column: {settings.PROFILE_CONFLICT_COLUMN})")
logger.info(f"Image Compression Config: Quality={settings.IMAGE_COMPRESSION_QUALITY}, Convert Size={settings.IMAGE_CONVERT_SIZE}")
