# backend/config.py
from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional
from pathlib import Path

# Resolve absolute path to the .env file for reliable loading
env_path = Path(__file__).parent.parent / ".env"

class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=str(env_path), extra="ignore")

    SECRET_KEY: str = "dev-secret-change-me"
    ALGORITHM: str = "HS256"
    ACCESS_TOKEN_EXPIRE_MINUTES: int = 60 * 24 * 7
    DATABASE_URL: str = "sqlite:///./ninehood.db"

    # Razorpay credentials; the key id is public, both secrets stay on the server
    RAZORPAY_API_URL: str = "https://api.razorpay.com/v1"
    RAZORPAY_KEY_ID: str = "rzp_test_dummykey"
    RAZORPAY_KEY_SECRET: str = "dummysecret"
    RAZORPAY_WEBHOOK_SECRET: str = "dummywebhooksecret"

    # "razorpay" or "fake" (local development without gateway credentials)
    PAYMENT_GATEWAY: str = "razorpay"
    GATEWAY_TIMEOUT_SECONDS: float = 10.0
    DEFAULT_CURRENCY: str = "INR"

    FRONTEND_URL: Optional[str] = None
    LOG_LEVEL: str = "INFO"

settings = Settings()
