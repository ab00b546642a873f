import os
from dotenv import load_dotenv
load_dotenv()

class Settings:
    APP_NAME = os.getenv("APP_NAME", "matka-client")
    APP_ENV = os.getenv("APP_ENV", "dev")
    APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
    APP_HOST = os.getenv("APP_HOST", "0.0.0.0")
    APP_PORT = int(os.getenv("APP_PORT", "3000"))
    TZ = os.getenv("TZ", "Asia/Kolkata")

    # 上游 REST API
    API_URL = os.getenv("API_URL", "http://localhost:5000/api").rstrip("/")
    # 0 = 不设超时（与浏览器端行为一致）
    API_TIMEOUT_SECONDS = float(os.getenv("API_TIMEOUT_SECONDS", "0"))

    # 本地存储（对应浏览器 localStorage）
    LOCAL_STORE_DSN = os.getenv("LOCAL_STORE_DSN", "sqlite+aiosqlite:///./matka_client.db")
    TOKEN_STORAGE_KEY = os.getenv("TOKEN_STORAGE_KEY", "token")
    INSTALL_DISMISSED_KEY = os.getenv("INSTALL_DISMISSED_KEY", "pwa-install-dismissed")
    INSTALL_PROMPT_SUPPRESS_HOURS = int(os.getenv("INSTALL_PROMPT_SUPPRESS_HOURS", "24"))

    BET_MIN_AMOUNT = float(os.getenv("BET_MIN_AMOUNT", "10"))
    BET_MAX_AMOUNT = float(os.getenv("BET_MAX_AMOUNT", "10000"))
    BET_REDIRECT_DELAY_SECONDS = float(os.getenv("BET_REDIRECT_DELAY_SECONDS", "1.5"))

    GAMES_POLL_SECONDS = int(os.getenv("GAMES_POLL_SECONDS", "30"))
    BALANCE_POLL_SECONDS = int(os.getenv("BALANCE_POLL_SECONDS", "30"))
    STARLINE_POLL_SECONDS = int(os.getenv("STARLINE_POLL_SECONDS", "60"))

    MIN_WITHDRAW = float(os.getenv("MIN_WITHDRAW", "1000"))
    MIN_DEPOSIT = float(os.getenv("MIN_DEPOSIT", "1"))
    DEFAULT_UPI_ID = os.getenv("DEFAULT_UPI_ID", "787794312@kbl")
    PAYEE_NAME = os.getenv("PAYEE_NAME", "RAJ KALYAN MATKA")
    DEFAULT_APP_LINK = os.getenv(
        "DEFAULT_APP_LINK",
        "https://play.google.com/store/apps/details?id=com.superstar.starkalyan",
    )
    DEFAULT_WHATSAPP_NUMBER = os.getenv("DEFAULT_WHATSAPP_NUMBER", "91766500780")

    HISTORY_PAGE_SIZE = int(os.getenv("HISTORY_PAGE_SIZE", "10"))

settings = Settings()
