from pydantic_settings import BaseSettings
from functools import lru_cache

class Settings(BaseSettings):
    # MongoDB Configuration
    mongo_url: str = "mongodb://localhost:27017"
    db_name: str = "fleet_semaforo"

    # Application Configuration
    environment: str = "development"
    log_level: str = "INFO"

    # Usage propagation
    allow_usage_decrease: bool = True  # Downward corrections are an operator action
    propagation_concurrency: int = 8   # Max components saved in parallel per update

    class Config:
        env_file = ".env"
        case_sensitive = False

@lru_cache()
def get_settings():
    return Settings()
