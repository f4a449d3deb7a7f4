import os


def _env_list(name, default):
    raw = os.environ.get(name)
    if raw is None:
        return default
    return tuple(code.strip().upper() for code in raw.split(",") if code.strip())


class Config:
    """Base configuration. Shared across all environments."""

    # Handle DATABASE_URL: Supabase and most PaaS providers hand out
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or None

    # --- Lenco webhooks ---
    # Shared secret used only to derive the signature key. Never logged.
    LENCO_WEBHOOK_SECRET = os.environ.get("LENCO_WEBHOOK_SECRET")
    LENCO_SIGNATURE_HEADER = os.environ.get(
        "LENCO_SIGNATURE_HEADER", "x-lenco-signature"
    )
    LENCO_WEBHOOK_MAX_BYTES = int(os.environ.get("LENCO_WEBHOOK_MAX_BYTES", 32 * 1024))
    # created_at must fall within this many seconds of now; 0 disables the check
    LENCO_WEBHOOK_TOLERANCE_SECONDS = int(
        os.environ.get("LENCO_WEBHOOK_TOLERANCE_SECONDS", 300)
    )
    LENCO_WEBHOOK_RATE_LIMIT = os.environ.get(
        "LENCO_WEBHOOK_RATE_LIMIT", "300 per minute"
    )

    # --- Notifications ---
    # Currencies rendered with the local "K" prefix (Zambian kwacha, old and new code)
    LOCAL_CURRENCY_CODES = _env_list("LOCAL_CURRENCY_CODES", ("ZMW", "ZMK"))
    LOCAL_CURRENCY_SYMBOL = os.environ.get("LOCAL_CURRENCY_SYMBOL", "K")

    # --- Supabase Realtime (push channel) ---
    SUPABASE_URL = os.environ.get("SUPABASE_URL")                # e.g. https://xyz.supabase.co
    SUPABASE_SERVICE_KEY = os.environ.get("SUPABASE_SERVICE_KEY") # service_role key
    REALTIME_PUSH_TIMEOUT = float(os.environ.get("REALTIME_PUSH_TIMEOUT", 5))

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    @staticmethod
    def validate():
        """Fail fast if required env vars are missing."""
        required = [
            "DATABASE_URL",
            "LENCO_WEBHOOK_SECRET",
        ]
        missing = [v for v in required if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SQLALCHEMY_DATABASE_URI = Config.SQLALCHEMY_DATABASE_URI or "sqlite:///wathaci-dev.db"


class TestConfig(Config):
    """Testing: in-memory SQLite, fixed webhook secret."""

    TESTING = True
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    SQLALCHEMY_ENGINE_OPTIONS = {}
    LENCO_WEBHOOK_SECRET = "lenco_test_webhook_secret"
    LENCO_SIGNATURE_HEADER = "x-lenco-signature"
    LENCO_WEBHOOK_MAX_BYTES = 32 * 1024
    LENCO_WEBHOOK_TOLERANCE_SECONDS = 300
    LOCAL_CURRENCY_CODES = ("ZMW", "ZMK")
    LOCAL_CURRENCY_SYMBOL = "K"
    SUPABASE_URL = None  # push disabled unless a test sets it
    SUPABASE_SERVICE_KEY = None
    RATELIMIT_ENABLED = False  # disable rate limiting in tests
    SERVER_NAME = "localhost"

    @staticmethod
    def validate():
        """Skip validation in test mode, everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
