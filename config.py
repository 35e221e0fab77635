from pydantic_settings import BaseSettings
from dotenv import load_dotenv
import os

load_dotenv()

class Settings(BaseSettings):
    # Remote API Configuration
    API_BASE_URL: str = os.getenv("API_BASE_URL", "http://localhost:5000/api")
    API_TIMEOUT: float = float(os.getenv("API_TIMEOUT", "10"))
    API_AUTH_TOKEN: str = os.getenv("API_AUTH_TOKEN", "")
    API_LOG_REQUESTS: bool = os.getenv("API_LOG_REQUESTS", "false").lower() == "true"

    DATABASE_URL: str = os.getenv("DATABASE_URL", "sqlite:///./pi_desk.db")
    ORIGINS: str = os.getenv("ORIGINS", "")

    # Desk API Configuration
    API_V1_PREFIX: str = "/api/v1"
    PROJECT_NAME: str = "PI Desk API"

    # Business defaults
    DEFAULT_EXCHANGE_RATE: float = float(os.getenv("DEFAULT_EXCHANGE_RATE", "83.5"))
    DEFAULT_TAX_RATE: float = float(os.getenv("DEFAULT_TAX_RATE", "10"))
    MAX_PROOF_FILE_SIZE: int = 5 * 1024 * 1024
    DEFAULT_VALIDITY_DAYS: int = 30
    INVOICE_DUE_DAYS: int = 30

    # Printed on documents
    COMPANY_NAME: str = os.getenv("COMPANY_NAME", "")
    COMPANY_ADDRESS: str = os.getenv("COMPANY_ADDRESS", "")
    COMPANY_GSTIN: str = os.getenv("COMPANY_GSTIN", "")
    COMPANY_IEC: str = os.getenv("COMPANY_IEC", "")
    BANK_NAME: str = os.getenv("BANK_NAME", "")
    BANK_BRANCH: str = os.getenv("BANK_BRANCH", "")
    BANK_ACCOUNT_NO: str = os.getenv("BANK_ACCOUNT_NO", "")
    BANK_IFSC: str = os.getenv("BANK_IFSC", "")

    class Config:
        case_sensitive = True

settings = Settings()
