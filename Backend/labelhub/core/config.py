import os
from typing import Optional
from pydantic_settings import BaseSettings, SettingsConfigDict

# Calculate the absolute path to the .env file.
# It finds this file's location and navigates up to the project root.
_config_dir = os.path.dirname(os.path.abspath(__file__))
_backend_dir = os.path.dirname(os.path.dirname(_config_dir))
_project_root = os.path.dirname(_backend_dir)
_dotenv_path = os.path.join(_project_root, '.env')



class Settings(BaseSettings):
    DATABASE_URL: str = "postgresql+asyncpg://localhost:5432/labelhub"
    DATABASE_ECHO: bool = False

    # Object storage gateway (S3-style PUT/DELETE by key)
    STORAGE_BASE_URL: str = "http://localhost:8787/storage"
    STORAGE_PUBLIC_URL: str = "http://localhost:8787/public"
    STORAGE_API_TOKEN: Optional[str] = None
    STORAGE_TIMEOUT_S: float = 120.0

    # Upload safety limits
    MAX_TRACK_SIZE_MB: int = 250
    MAX_ARTWORK_SIZE_MB: int = 15

    # Artist cap applied to newly onboarded labels
    DEFAULT_MAX_ARTISTS: int = 10

    model_config = SettingsConfigDict(
        env_file=_dotenv_path,
        env_file_encoding='utf-8',
        extra='ignore'
    )

settings = Settings()
