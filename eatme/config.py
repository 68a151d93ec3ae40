"""
Configuration management for the EatMe restaurant portal backend
"""
from pydantic_settings import BaseSettings
from functools import lru_cache


class Settings(BaseSettings):
    # Application
    APP_NAME: str = "EatMe Portal API"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite:///./eatme.db"

    # Ingredient search-as-you-type
    INGREDIENT_SEARCH_LIMIT: int = 10
    INGREDIENT_SEARCH_MAX_LIMIT: int = 50

    # Nearby-restaurant search function (hosted, consumed as a black box)
    NEARBY_SEARCH_URL: str = "http://localhost:54321/functions/v1/nearby-restaurants"
    NEARBY_SEARCH_API_KEY: str = ""
    NEARBY_SEARCH_TIMEOUT: float = 15.0
    NEARBY_DEFAULT_RADIUS_KM: float = 5.0
    NEARBY_DEFAULT_LIMIT: int = 50

    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://127.0.0.1:3000"]

    class Config:
        env_file = ".env"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    return Settings()
