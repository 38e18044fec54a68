"""
Configuración centralizada de la aplicación
"""
import json
from decimal import Decimal
from typing import List, Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Configuración de la aplicación"""

    # API Settings
    API_TITLE: str = "Marketplace API"
    API_VERSION: str = "1.0.0"
    API_DESCRIPTION: str = "Order settlement and supplier trust API for the multi-vendor marketplace"
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8000
    LOG_LEVEL: str = "INFO"

    # Database
    DATABASE_URL: str = ""
    DB_CONNECT_RETRIES: int = 3
    DB_RETRY_DELAY: float = 1.0
    DB_CONNECTION_TIMEOUT: int = 10
    AUTO_CREATE_SCHEMA: bool = False

    # Supabase (notifications table)
    SUPABASE_URL: str = ""
    SUPABASE_SERVICE_ROLE_KEY: str = ""

    # Auth (tokens issued by the external identity provider)
    AUTH_SECRET: str = ""
    JWT_ALGORITHM: str = "HS256"

    # CORS - Can be string (comma-separated) or JSON array
    ALLOWED_ORIGINS: Optional[str] = "http://localhost:8081,http://localhost:19006"

    # Settlement policy
    DEFAULT_COMMISSION_RATE: Decimal = Decimal("10")
    ORDER_NUMBER_PREFIX: str = "ORD"
    ORDER_NUMBER_MAX_ATTEMPTS: int = 5
    PAYMENT_GATEWAY: str = "stripe"

    # Supplier KYC
    REQUIRED_KYC_DOCUMENTS: List[str] = ["business_registration", "identity", "bank_account"]

    # Reports
    REVENUE_WINDOW_DAYS: int = 7
    TOP_SUPPLIERS_LIMIT: int = 5

    def get_allowed_origins(self) -> List[str]:
        """Parse ALLOWED_ORIGINS string into list"""
        if not self.ALLOWED_ORIGINS:
            return ["http://localhost:8081"]

        # Try JSON parse first (for array format)
        try:
            origins = json.loads(self.ALLOWED_ORIGINS)
            if isinstance(origins, list):
                return origins
        except (json.JSONDecodeError, ValueError):
            pass

        # Fall back to comma-separated string
        return [origin.strip() for origin in self.ALLOWED_ORIGINS.split(",")]

    class Config:
        env_file = ".env"
        case_sensitive = True


settings = Settings()
