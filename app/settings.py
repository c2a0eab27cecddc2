import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    API_KEY: str = os.getenv("API_KEY", "")

    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    # Durable key for the active checkout session id (namespaced per wizard client)
    CHECKOUT_ID_KEY: str = os.getenv("CHECKOUT_ID_KEY", "checkout_id")
    CHECKOUT_ID_TTL_SEC: int = int(os.getenv("CHECKOUT_ID_TTL_SEC", "0"))  # 0 = no expiry

    # Collaborators
    CHECKOUT_API_URL: str = os.getenv("CHECKOUT_API_URL", "https://pay.prosecurelsp.com")
    MFA_API_URL: str = os.getenv("MFA_API_URL", "http://localhost:7080")
    ZIP_LOOKUP_URL: str = os.getenv("ZIP_LOOKUP_URL", "https://api.zippopotam.us")
    HTTP_TIMEOUT_SEC: float = float(os.getenv("HTTP_TIMEOUT_SEC", "10.0"))

    # Personal step
    DEFAULT_COUNTRY: str = os.getenv("DEFAULT_COUNTRY", "US")
    EMAIL_CHECK_DEBOUNCE_SEC: float = float(os.getenv("EMAIL_CHECK_DEBOUNCE_SEC", "0.5"))
    MFA_RESEND_COOLDOWN_SEC: int = int(os.getenv("MFA_RESEND_COOLDOWN_SEC", "30"))
    MFA_CODE_LENGTH: int = int(os.getenv("MFA_CODE_LENGTH", "6"))

    # Plan step
    PLAN_STAGE_DELAY_SEC: float = float(os.getenv("PLAN_STAGE_DELAY_SEC", "0.8"))
    PLAN_ADVANCE_DELAY_SEC: float = float(os.getenv("PLAN_ADVANCE_DELAY_SEC", "2.0"))
    ADD_PLANS_URL: str = os.getenv("ADD_PLANS_URL", "https://prosecurelsp.com/plans")

    # Payment step
    PAYMENT_STAGE_DELAY_SEC: float = float(os.getenv("PAYMENT_STAGE_DELAY_SEC", "1.5"))
    # Observed front-ends used 5s and 10s; keep it configurable.
    PAYMENT_REDIRECT_DELAY_SEC: float = float(os.getenv("PAYMENT_REDIRECT_DELAY_SEC", "5"))
    PAYMENT_REDIRECT_URL: str = os.getenv(
        "PAYMENT_REDIRECT_URL", "https://prosecurelsp.com/users/index.php?err3=true"
    )
    ROTATE_CHECKOUT_ID_BEFORE_PAYMENT: bool = os.getenv(
        "ROTATE_CHECKOUT_ID_BEFORE_PAYMENT", "true"
    ).lower() == "true"

    # Live wizards idle longer than this are closed and dropped (0 = never)
    WIZARD_IDLE_TTL_SEC: float = float(os.getenv("WIZARD_IDLE_TTL_SEC", "1800"))
    WIZARD_SWEEP_INTERVAL_SEC: float = float(os.getenv("WIZARD_SWEEP_INTERVAL_SEC", "60"))

    # Notifications
    NOTIFICATION_TTL_SEC: float = float(os.getenv("NOTIFICATION_TTL_SEC", "5.0"))

    # Restore form fields from the saved checkout record when a cached id exists
    RESTORE_SAVED_CHECKOUT: bool = os.getenv("RESTORE_SAVED_CHECKOUT", "true").lower() == "true"

    # Security & Privacy
    ENABLE_PII_REDACTION: bool = os.getenv("ENABLE_PII_REDACTION", "true").lower() == "true"
    CORS_ORIGINS: str = os.getenv("CORS_ORIGINS", "*")

settings = Settings()
