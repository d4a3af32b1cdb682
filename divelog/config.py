from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    database_url: str
    jwt_secret: str
    jwt_algorithm: str = "HS256"
    jwt_expiry_hours: int = 8
    reset_token_expiry_minutes: int = 30
    default_signup_role: str = "supervisor"
    minio_endpoint: str = ""   # when empty, report sharing falls back to direct download
    minio_root_user: str = ""
    minio_root_password: str = ""
    minio_bucket: str = "dive-reports"
    share_url_expiry_seconds: int = 7 * 24 * 3600
    smtp_host: str = ""   # when empty, reset mails are not sent
    smtp_port: int = 587
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_starttls: bool = True
    mail_from: str = "divelog@localhost"
    password_reset_url: str = "http://localhost:5173/update-password"
    cors_origins: str = "http://localhost,http://localhost:3000,http://localhost:5173"
    log_level: str = "INFO"

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")


settings = Settings()
