from pydantic_settings import BaseSettings
from dotenv import load_dotenv

load_dotenv()

class Settings(BaseSettings):
    DATABASE_URL: str = "sqlite:///./delphi.db"
    SECRET_KEY: str = "change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24
    ENV: str = "local"  # local | development | prod

    LOG_LEVEL: str = "INFO"

    # Expired access token purge
    ENABLE_SCHEDULER: bool = True
    TOKEN_CLEANUP_INTERVAL_MINUTES: int = 60

    # Comma separated list, "*" allows any origin
    CORS_ORIGINS: str = "*"

    @property
    def is_development(self) -> bool:
        return self.ENV.lower() in ("local", "development", "dev")

    class Config:
        env_file = ".env"

settings = Settings()
