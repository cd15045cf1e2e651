from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    DATABASE_URL: str

    # Hosted identity provider (HS256 JWTs signed with the project secret)
    AUTH_JWT_SECRET: str
    AUTH_JWT_ALGORITHM: str = "HS256"
    AUTH_JWT_AUDIENCE: str | None = "authenticated"

    FRONTEND_URL: str = "http://localhost:3000"
    SIGNATURE_EXPIRE_DAYS: int = 7
    SIGNATURE_LOCALE: str = "en"

    # Resend e-mail API
    RESEND_API_KEY: str = ""
    RESEND_API_URL: str = "https://api.resend.com/emails"
    RESEND_FROM_EMAIL: str = "onboarding@resend.dev"
    RESEND_FROM_NAME: str = "Invoice App"

    # AWS S3 Configuration
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_BUCKET_NAME: str = ""
    AWS_REGION: str = "us-east-1"

    EXPIRY_SWEEP_ENABLED: bool = False
    EXPIRY_SWEEP_MINUTES: int = 60

    TIMEZONE: str = "America/Lima"

    class Config:
        env_file = ".env"


settings = Settings()
