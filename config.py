"""
Configuration management for DoseTrack
"""

from pydantic_settings import BaseSettings
from functools import lru_cache

from tools import adherence_aggregator


class Settings(BaseSettings):
    """Application settings loaded from environment variables"""
    
    # Application
    APP_NAME: str = "DoseTrack"
    APP_VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENV: str = "development"
    
    # API
    API_PREFIX: str = "/api/v1"
    HOST: str = "0.0.0.0"
    PORT: int = 8000
    
    # Database
    DATABASE_URL: str = "sqlite:///./dosetrack.db"
    DATABASE_ECHO: bool = False
    
    # Adherence
    ADHERENT_DAY_THRESHOLD: int = adherence_aggregator.ADHERENT_DAY_THRESHOLD
    STRICT_FREQUENCY_VALIDATION: bool = False
    
    # CORS
    CORS_ORIGINS: list[str] = ["http://localhost:3000", "http://localhost:5173"]
    
    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    
    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = True


@lru_cache()
def get_settings() -> Settings:
    """Get cached settings instance"""
    return Settings()


class AdherenceConfig:
    """Windows used by adherence reporting"""
    
    # Caretaker patient list looks back this many days
    RECENT_ACTIVITY_DAYS: int = adherence_aggregator.RECENT_ACTIVITY_DAYS
    # Patients whose metrics are computed concurrently
    MAX_PATIENTS_PER_REQUEST: int = 50


# Database table names
class TableNames:
    MEDICATIONS = "medications"
    MEDICATION_ACTIVITY = "medication_activity"


settings = get_settings()
adherence_config = AdherenceConfig()
