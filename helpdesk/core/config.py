# helpdesk/core/config.py
import json
from typing import List, Union

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    # ==== Сервер / БД ====
    port: int = 8000
    database_url: str = "postgresql+asyncpg://app:app@db:5432/helpdesk"
    sql_echo: bool = False

    # ==== JWT ====
    jwt_secret: str = "changeme"
    jwt_alg: str = "HS256"
    # хвилини; за замовчуванням тиждень
    jwt_expires_min: int = Field(default=60 * 24 * 7, gt=0)

    # ==== CORS ====
    # CORS_ORIGINS=http://localhost:5173,http://localhost:3000 або JSON-список
    cors_origins: Union[str, List[str]] = [
        "http://localhost:5173",
        "http://127.0.0.1:5173",
        "http://localhost:3000",
    ]

    # ==== Реєстрація ====
    # false: поле role у /auth/register ігнорується, всі стають customer
    allow_role_on_signup: bool = True

    # ==== Bootstrap (helpdesk-bootstrap) ====
    admin_email: str = "admin@example.com"
    admin_password: str = "ChangeMe123!"
    admin_name: str = "Admin"
    create_demo_agent: bool = True
    create_demo_customer: bool = True

    # ==== Оточення / логи ====
    env: str = "dev"          # dev|staging|prod
    log_level: str = "INFO"   # DEBUG|INFO|WARNING|ERROR

    model_config = SettingsConfigDict(
        env_file=".env",
        extra="ignore",
        case_sensitive=False,
    )

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_cors_origins(cls, v):
        if not isinstance(v, str):
            return v
        raw = v.strip()
        if raw.startswith("["):
            try:
                return [str(i).strip() for i in json.loads(raw) if str(i).strip()]
            except ValueError:
                pass
        return [i.strip() for i in raw.split(",") if i.strip()]

    @field_validator("log_level")
    @classmethod
    def _upper_log_level(cls, v: str) -> str:
        return v.upper()

    @property
    def is_production(self) -> bool:
        return self.env.lower() in {"prod", "production"}


settings = Settings()
