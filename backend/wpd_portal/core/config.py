from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import List

class Settings(BaseSettings):
    # Application
    PROJECT_NAME: str = "World Pest Day Portal"
    VERSION: str = "1.0.0"
    DEBUG: bool = False
    ENVIRONMENT: str = "production"
    BASE_URL: str = "http://localhost:8000"  # Public URL of this backend
    FRONTEND_URL: str = "https://wpd.webconnectipca.com"
    CORS_ORIGINS: List[str] = [
        "http://localhost:5173",
        "http://localhost:8080",
        "https://world-pest-day-client.onrender.com",
        "https://wpd.webconnectipca.com",
    ]

    # Database
    DATABASE_URL: str = "sqlite:///./wpd_portal.db"

    # Security
    SECRET_KEY: str = "change-me-in-production"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60
    VERIFICATION_TOKEN_EXPIRE_MINUTES: int = 60

    # Mail
    EMAIL_BACKEND: str = "smtp"  # "smtp" or "console"
    SMTP_HOST: str = "smtp.gmail.com"
    SMTP_PORT: int = 587
    SMTP_USER: str = ""
    SMTP_PASS: str = ""
    SMTP_USE_TLS: bool = True
    SMTP_FROM_NAME: str = "World Pest Day Team"

    # Media storage
    STORAGE_BACKEND: str = "local"  # "local" or "cloudinary"
    MEDIA_ROOT: str = "media"
    MEDIA_URL: str = "/media/"
    VIDEO_FOLDER: str = "wpd_videos"
    CERTIFICATE_FOLDER: str = "wpd_certificates"
    CLOUDINARY_CLOUD_NAME: str = ""
    CLOUDINARY_API_KEY: str = ""
    CLOUDINARY_API_SECRET: str = ""

    # Video upload
    MAX_UPLOAD_SIZE_MB: int = 100
    ALLOWED_VIDEO_FORMATS: List[str] = ["mp4", "mov", "avi", "mkv", "webm"]

    # Certificates
    CERTIFICATE_RENDERER: str = "weasyprint"  # "weasyprint" or "convertapi"
    CONVERTAPI_SECRET: str = ""
    CONVERTAPI_URL: str = "https://v2.convertapi.com/convert/html/to/pdf"
    CONVERTAPI_TIMEOUT_SECONDS: int = 120
    CERTIFICATE_LOGO_URL: str = "https://res.cloudinary.com/dbzucdgf0/image/upload/v1748840762/IPCA_LOGO_ckfv6q.jpg"
    CERTIFICATE_PRESIDENT_SIGNATURE_URL: str = "https://res.cloudinary.com/dbzucdgf0/image/upload/v1748840796/IPCA_PRESIDENT_SIGN_tnotye.png"
    CERTIFICATE_VP_SIGNATURE_URL: str = "https://res.cloudinary.com/dbzucdgf0/image/upload/v1748840827/IPCA_VP_SIGN_chsync.png"
    CERTIFICATE_SECRETARY_SIGNATURE_URL: str = "https://res.cloudinary.com/dbzucdgf0/image/upload/v1748840804/IPCA_SECRETARY_SIGN_qr62py.png"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"  # Empty string disables the file handler

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=True,
        extra="ignore",  # allows extra env vars without crashing
        frozen=True,
    )

    @property
    def max_upload_bytes(self) -> int:
        return self.MAX_UPLOAD_SIZE_MB * 1024 * 1024

settings = Settings()
