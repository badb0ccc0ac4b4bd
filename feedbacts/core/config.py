from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_JWT_SECRET = "your-super-secret-jwt-key-change-in-production"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    PROJECT_NAME: str = "FeedbACTS"
    ENV: str = "dev"
    DATABASE_URL: str = "mysql+pymysql://root@localhost:3306/feedback_system"
    DB_POOL_SIZE: int = 5
    DB_MAX_OVERFLOW: int = 10
    DB_POOL_RECYCLE: int = 1800

    JWT_SECRET_KEY: str = DEFAULT_JWT_SECRET
    JWT_ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24

    # comma separated, empty means "*"
    CORS_ORIGINS: str = ""
    LOG_LEVEL: str = "INFO"

    RATE_LIMIT_ENABLED: bool = True
    RATE_LIMIT_WINDOW_MINUTES: int = 15
    AUTH_RATE_LIMIT_MAX: int = 10
    FORM_SUBMIT_RATE_LIMIT_PER_HOUR: int = 100

    @property
    def cors_list(self) -> list[str]:
        if not self.CORS_ORIGINS:
            return ["*"]
        return [o.strip() for o in self.CORS_ORIGINS.split(",") if o.strip()]

    @property
    def uses_default_secret(self) -> bool:
        return self.JWT_SECRET_KEY == DEFAULT_JWT_SECRET


settings = Settings()
