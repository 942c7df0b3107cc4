from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    ENV: str = "dev"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    SCHOOL_NAME: str = "School Records"

    DATABASE_URL: str

    JWT_SECRET: str
    JWT_ALG: str = "HS256"
    JWT_EXPIRES_MINUTES: int = 60

    # Seconds a resolved bearer user stays in the in-process lookup cache
    USER_CACHE_TTL_SECONDS: int = 600

    REPORT_BATCH_SIZE: int = 10
    REPORT_MAX_WORKERS: int = 4

    # Legacy -> CompetencyBased curriculum changeover window (inclusive)
    TRANSITION_START_YEAR: int = 2025
    TRANSITION_END_YEAR: int = 2030

    SEED_ADMIN_USERNAME: str = "admin"
    SEED_ADMIN_PASSWORD: str = "admin123"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

settings = Settings()
