from typing import List, Optional
from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
import json

class Settings(BaseSettings):
    # Application Settings
    app_name: str = Field(default="Colmena Visits API", alias="APP_NAME")
    app_version: str = Field(default="1.0.0", alias="APP_VERSION")
    ENVIRONMENT: str = Field(default="development", alias="ENVIRONMENT")
    debug: bool = Field(default=True, alias="DEBUG")

    # Server Configuration
    host: str = Field(default="0.0.0.0", alias="HOST")
    port: int = Field(default=8000, alias="PORT")
    reload: bool = Field(default=True, alias="RELOAD")

    # Database Configuration
    DB_HOST: str = Field(default="localhost", alias="DB_HOST")
    DB_PORT: int = Field(default=5432, alias="DB_PORT")
    DB_NAME: str = Field(default="condominio_management", alias="DB_NAME")
    DB_USER: str = Field(default="postgres", alias="DB_USER")
    DB_PASSWORD: str = Field(default="postgres", alias="DB_PASSWORD")
    database_url: str = Field(default="sqlite:///./colmena.db", alias="DATABASE_URL")

    # JWT Authentication
    JWT_SECRET: str = Field(default="change-this-secret", alias="JWT_SECRET")
    JWT_ALGORITHM: str = Field(default="HS256", alias="JWT_ALGORITHM")
    JWT_EXPIRATION_HOURS: int = Field(default=168, alias="JWT_EXPIRATION_HOURS")

    # Password Hashing
    bcrypt_rounds: int = Field(default=12, alias="BCRYPT_ROUNDS")

    # Seed admin (created by init_db when the users table is empty)
    seed_admin_email: str = Field(default="admin@colmena.com", alias="SEED_ADMIN_EMAIL")
    seed_admin_password: str = Field(default="admin123", alias="SEED_ADMIN_PASSWORD")

    # CORS Configuration
    API_CORS_ORIGINS: Optional[str] = Field(default=None, alias="API_CORS_ORIGINS")
    cors_origins: List[str] = Field(default_factory=lambda: ["http://localhost:3000", "http://localhost:3001", "http://127.0.0.1:3000"])

    # Logging Configuration
    LOG_LEVEL: str = Field(default="INFO", alias="LOG_LEVEL")
    log_format: str = Field(default="%(asctime)s - %(name)s - %(levelname)s - %(message)s", alias="LOG_FORMAT")

    # Visits
    # Unset means pending QR tokens are honored indefinitely
    visit_pending_ttl_hours: Optional[int] = Field(default=None, ge=1, alias="VISIT_PENDING_TTL_HOURS")
    qr_box_size: int = Field(default=10, ge=1, alias="QR_BOX_SIZE")
    qr_border: int = Field(default=4, ge=0, alias="QR_BORDER")

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        if isinstance(v, str):
            if v.strip() == "*":
                return ["*"]
            try:
                return json.loads(v)
            except ValueError:
                return [origin.strip() for origin in v.split(',')]
        return v

    @field_validator('visit_pending_ttl_hours', mode='before')
    @classmethod
    def empty_ttl_is_unset(cls, v):
        if isinstance(v, str) and not v.strip():
            return None
        return v

    @property
    def DATABASE_URL(self) -> str:
        if self.database_url.startswith(("sqlite", "postgresql")):
            return self.database_url
        return (
            f"postgresql+psycopg2://{self.DB_USER}:{self.DB_PASSWORD}"
            f"@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"
        )

    @property
    def is_development(self) -> bool:
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT == "production"

    @property
    def database_echo(self) -> bool:
        return self.debug and self.is_development

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"
        case_sensitive = False
        populate_by_name = True

# Global settings instance
settings = Settings()
