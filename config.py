from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Read from the environment (DATABASE_URL, SECRET_KEY, ...) or a local .env file."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    database_url: str = Field("mongodb://localhost:27017", description="MongoDB connection string")
    database_name: str = Field("restaurant", description="Database name")
    secret_key: str = Field("restaurant-management-secret-key", description="JWT signing key")
    jwt_algorithm: str = "HS256"
    access_token_hours: int = Field(24, ge=1)
    refresh_token_hours: int = Field(168, ge=1)
    bcrypt_rounds: int = Field(14, ge=4, le=31)
    request_timeout_seconds: float = Field(10.0, gt=0, description="Deadline for store calls made by one request")
    port: int = 8000


@lru_cache
def get_settings() -> Settings:
    return Settings()
