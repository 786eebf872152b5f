import os


class Settings:
    def __init__(self):
        self.app_name = "FeeLedger"
        self.api_version = "1.0.0"
        self.environment = os.getenv("FEELEDGER_ENVIRONMENT", "development")
        self.secret_key = os.getenv("FEELEDGER_SECRET_KEY", "CHANGE_ME")
        self.SECRET_KEY = self.secret_key
        self.access_token_expire_minutes = int(os.getenv("FEELEDGER_ACCESS_TOKEN_EXPIRE_MINUTES", "30"))
        self.ACCESS_TOKEN_EXPIRE_MINUTES = self.access_token_expire_minutes
        self.database_url = os.getenv("FEELEDGER_DATABASE_URL", "sqlite:///./feeledger.db")
        self.log_level = os.getenv("FEELEDGER_LOG_LEVEL", "INFO")
        self.service_cache_ttl_seconds = int(os.getenv("FEELEDGER_SERVICE_CACHE_TTL", "300"))
        self.ledger_max_retries = int(os.getenv("FEELEDGER_LEDGER_MAX_RETRIES", "3"))
        self.default_currency = os.getenv("FEELEDGER_DEFAULT_CURRENCY", "TRY")
        self.fee_income_category_name = "Student Fee"
        self.fee_income_category_icon = "🎓"
        self.fee_refund_category_name = "Student Fee Refund"
        self.fee_refund_category_icon = "↩"
        self.tuition_bucket_name = "Eğitim Hizmetleri"
        self.tuition_bucket_icon = "school"


_settings_instance = None


def get_settings():
    """Return a singleton Settings instance."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance
