from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # App
    APP_NAME: str = "Consignment Shop API"
    ENVIRONMENT: str = "development"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = "postgresql://consign_user:consign_pass@db:5432/consign_db"

    # Frontend URL (added to CORS origins)
    FRONTEND_URL: Optional[str] = None

    # Receipt header
    STORE_NAME: str = "Second Chance Consignment"
    STORE_ADDRESS: Optional[str] = None
    STORE_PHONE: Optional[str] = None

    class Config:
        env_file = ".env"
        case_sensitive = True

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"


settings = Settings()
