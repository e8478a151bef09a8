from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    BACKEND_URL: str = "http://localhost:5000"
    ENVIRONMENT: str = "development"  # development | production
    S3_BUCKET_NAME: str | None = None
    S3_REGION: str = "ap-south-1"
    PDF_VIEWER_URL: str = "https://mozilla.github.io/pdf.js/web/viewer.html"
    REQUEST_TIMEOUT: float = 10.0  # seconds
    LOG_LEVEL: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.ENVIRONMENT.lower() == "production"

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
