from pydantic_settings import BaseSettings
from typing import Optional
import os
from dotenv import load_dotenv

load_dotenv()


class Settings(BaseSettings):
    DEBUG: bool = False

    # DATABASE_URL is injected by the platform (Supabase/Postgres). The SQLite
    # default only exists for local development and the test-suite.
    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./offerhub.db")

    # When True, missing tables are created on startup if Alembic could not run.
    AUTO_CREATE_TABLES: bool = True

    # Supabase API Configuration
    SUPABASE_URL: Optional[str] = None
    SUPABASE_KEY: Optional[str] = None  # Anon key
    SUPABASE_SERVICE_ROLE_KEY: Optional[str] = None  # Service role key

    # Storage layout. Every offer gets its own folder under OFFER_FOLDER_ROOT,
    # named after the offer id; avatars live under AVATAR_FOLDER_ROOT/<account id>.
    # Fresh uploads land in UPLOAD_TMP_ROOT until they are relocated.
    STORAGE_BUCKET: str = "offers"
    OFFER_FOLDER_ROOT: str = "vinted/offers"
    AVATAR_FOLDER_ROOT: str = "vinted/avatar"
    UPLOAD_TMP_ROOT: str = "tmp"
    STORAGE_TIMEOUT_SECONDS: int = 20

    # Stripe PaymentIntent pass-through
    STRIPE_API_KEY: Optional[str] = None
    STRIPE_API_BASE_URL: str = "https://api.stripe.com"
    PAYMENT_CURRENCY: str = "eur"
    PAYMENT_TIMEOUT_SECONDS: float = 15.0

    ALLOWED_ORIGINS: str = "http://localhost:5173,http://localhost:3000"

    class Config:
        env_file = None
        env_file_encoding = "utf-8"
        extra = "ignore"

    @property
    def supabase_key(self) -> Optional[str]:
        return self.SUPABASE_SERVICE_ROLE_KEY or self.SUPABASE_KEY

    @property
    def is_postgres(self) -> bool:
        return self.DATABASE_URL.startswith("postgres")


settings = Settings()
