import os


def _env_flag(name, default=""):
    return os.environ.get(name, default).lower() in ("1", "true", "yes")


class Config:
    """Base configuration. Shared across all environments."""

    # --- Required ---
    SECRET_KEY = os.environ.get("SECRET_KEY")

    # Handle DATABASE_URL: some PaaS providers (Railway, Heroku) use
    # "postgres://" which SQLAlchemy 1.4+ doesn't accept.
    _db_url = os.environ.get("DATABASE_URL", "")
    if _db_url.startswith("postgres://"):
        _db_url = _db_url.replace("postgres://", "postgresql://", 1)
    SQLALCHEMY_DATABASE_URI = _db_url or "sqlite:///onepage.db"

    # --- Gemini ---
    GEMINI_API_KEY = os.environ.get("GEMINI_API_KEY")
    GEMINI_MODEL = os.environ.get("GEMINI_MODEL", "gemini-2.0-flash")
    # Retries apply to transport errors only (429 / 5xx / network).
    MODEL_MAX_RETRIES = int(os.environ.get("MODEL_MAX_RETRIES", 3))
    MODEL_RETRY_BACKOFF = float(os.environ.get("MODEL_RETRY_BACKOFF", 2.0))

    # --- Stripe ---
    STRIPE_SECRET_KEY = os.environ.get("STRIPE_SECRET_KEY")
    STRIPE_WEBHOOK_SECRET = os.environ.get("STRIPE_WEBHOOK_SECRET")
    INITIAL_FEE = int(os.environ.get("INITIAL_FEE", 2980))  # one-time, JPY
    MONTHLY_FEE = int(os.environ.get("MONTHLY_FEE", 380))   # per month, JPY
    CURRENCY = os.environ.get("CURRENCY", "jpy")

    # --- Site worker (serves published sites, owns credentials) ---
    WORKER_URL = os.environ.get("WORKER_URL")
    UPLOAD_SECRET = os.environ.get("UPLOAD_SECRET")
    WORKER_TIMEOUT = int(os.environ.get("WORKER_TIMEOUT", 30))
    SITE_DOMAIN = os.environ.get("SITE_DOMAIN", "oneflash.net")

    APP_BASE_URL = os.environ.get("APP_BASE_URL", "http://localhost:3000")

    # Drafts older than this are orphans of abandoned checkouts.
    DRAFT_MAX_AGE_HOURS = int(os.environ.get("DRAFT_MAX_AGE_HOURS", 24))

    # Revisions past this count answer 402.
    FREE_REVISION_LIMIT = int(os.environ.get("FREE_REVISION_LIMIT", 2))

    # --- Email (SMTP) ---
    MAIL_SMTP_HOST = os.environ.get("MAIL_SMTP_HOST", "smtp.gmail.com")
    MAIL_SMTP_PORT = int(os.environ.get("MAIL_SMTP_PORT", 587))
    MAIL_USERNAME = os.environ.get("MAIL_USERNAME")
    MAIL_PASSWORD = os.environ.get("MAIL_PASSWORD")
    MAIL_FROM_NAME = os.environ.get("MAIL_FROM_NAME", "OnePage-Flash")
    MAIL_FROM_ADDRESS = os.environ.get("MAIL_FROM_ADDRESS")  # defaults to MAIL_USERNAME
    MAIL_ENABLED = not _env_flag("MAIL_DISABLED")

    # --- SQLAlchemy ---
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ENGINE_OPTIONS = {
        "pool_pre_ping": True,
        "pool_recycle": 300,
    }

    REQUIRED = [
        "SECRET_KEY",
        "DATABASE_URL",
        "GEMINI_API_KEY",
        "STRIPE_SECRET_KEY",
        "STRIPE_WEBHOOK_SECRET",
        "WORKER_URL",
        "UPLOAD_SECRET",
        "APP_BASE_URL",
    ]

    @classmethod
    def validate(cls):
        """Raise RuntimeError listing every required env var that is missing."""
        missing = [v for v in cls.REQUIRED if not os.environ.get(v)]
        if missing:
            raise RuntimeError(
                f"Missing required environment variables: {', '.join(missing)}"
            )


class DevConfig(Config):
    """Local development."""

    DEBUG = True
    SECRET_KEY = Config.SECRET_KEY or "dev-secret-key"


class TestConfig(Config):
    """Testing — in-memory SQLite, fake collaborators, no retries delay."""

    TESTING = True
    DEBUG = True
    SECRET_KEY = "test-secret-key-not-for-production"
    SQLALCHEMY_DATABASE_URI = "sqlite:///:memory:"
    GEMINI_API_KEY = None  # tests install a fake model client
    MODEL_MAX_RETRIES = 2
    MODEL_RETRY_BACKOFF = 0
    STRIPE_SECRET_KEY = "sk_test_fake"
    STRIPE_WEBHOOK_SECRET = "whsec_test_fake"
    WORKER_URL = "https://worker.test"
    UPLOAD_SECRET = "upload-secret-test"
    APP_BASE_URL = "http://localhost:3000"
    MAIL_ENABLED = False
    RATELIMIT_ENABLED = False  # disable rate limiting in tests

    @classmethod
    def validate(cls):
        """Skip validation in test mode — everything is hardcoded."""
        pass


class ProdConfig(Config):
    """Production."""

    DEBUG = False


config_by_name = {
    "development": DevConfig,
    "production": ProdConfig,
    "testing": TestConfig,
}
