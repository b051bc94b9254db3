import os
import yaml

ROOT_PATH = os.path.dirname(__file__)
CONFIG_FILE_PATH = os.path.join(ROOT_PATH, "env.yaml")

if os.path.exists(CONFIG_FILE_PATH):
    with open(CONFIG_FILE_PATH, "r") as r_file:
        data = yaml.safe_load(r_file) or dict()
else:
    data = dict()


class ApplicationConfig:
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./payments.db")
    CREATE_TABLES_ON_STARTUP = bool(data.get("CREATE_TABLES_ON_STARTUP", True))
    API_PREFIX = data.get("API_PREFIX", "")
    API_PORT = data.get("API_PORT", 3000)
    API_HOST = data.get("API_HOST", "0.0.0.0")
    CORS_ORIGINS = data.get("CORS_ORIGINS", [
        "http://localhost:5000",
        "http://0.0.0.0:5000",
        "http://127.0.0.1:5000",
    ])
    CORS_ALLOW_CREDENTIALS = data.get("CORS_ALLOW_CREDENTIALS", True)
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")
    ENABLE_LOGGING_MIDDLEWARE = bool(data.get("ENABLE_LOGGING_MIDDLEWARE", 1))
    ENABLE_SENTRY = data.get("ENABLE_SENTRY", 0)
    DSN_SENTRY = data.get("DSN_SENTRY", "")
    SENTRY_ENVIRONMENT = data.get("SENTRY_ENVIRONMENT", "dev")

    # Payment gateway (Spawiko STK push API)
    GATEWAY_BASE_URL = data.get("GATEWAY_BASE_URL", "https://pay.spawiko.co.ke/api/v2")
    GATEWAY_API_KEY = data.get("GATEWAY_API_KEY", os.environ.get("SPAWIKO_API_KEY", ""))
    GATEWAY_API_SECRET = data.get("GATEWAY_API_SECRET", os.environ.get("SPAWIKO_API_SECRET", ""))
    GATEWAY_ACCOUNT_ID = data.get("GATEWAY_ACCOUNT_ID", os.environ.get("SPAWIKO_ACCOUNT_ID", 17))
    GATEWAY_TIMEOUT_SECONDS = data.get("GATEWAY_TIMEOUT_SECONDS", 15.0)
    PAYMENT_DESCRIPTION = data.get("PAYMENT_DESCRIPTION", "Payment via Spawiko API")

    # Payment lifecycle
    POLL_MAX_ATTEMPTS = data.get("POLL_MAX_ATTEMPTS", 24)
    POLL_INTERVAL_SECONDS = data.get("POLL_INTERVAL_SECONDS", 5.0)  # 24 * 5s = 2 minutes
    MIN_PAYMENT_AMOUNT = data.get("MIN_PAYMENT_AMOUNT", 1)  # KES
    MAX_PAYMENT_AMOUNT = data.get("MAX_PAYMENT_AMOUNT", 150000)  # KES, per STK push
    CREDIT_POLICY = data.get("CREDIT_POLICY", "on_confirm")  # on_confirm | on_initiate
    RESOLVE_TIMED_OUT_PAYMENTS = bool(data.get("RESOLVE_TIMED_OUT_PAYMENTS", True))
    SHUTDOWN_DRAIN_SECONDS = data.get("SHUTDOWN_DRAIN_SECONDS", 30.0)

    # Stale payment sweeper
    SWEEPER_ENABLED = bool(data.get("SWEEPER_ENABLED", True))
    SWEEPER_INTERVAL_SECONDS = data.get("SWEEPER_INTERVAL_SECONDS", 60)
    SWEEPER_MIN_AGE_SECONDS = data.get("SWEEPER_MIN_AGE_SECONDS", 300)
    SWEEPER_BATCH_SIZE = data.get("SWEEPER_BATCH_SIZE", 50)

    # Ledger reconciliation
    RECONCILIATION_ENABLED = bool(data.get("RECONCILIATION_ENABLED", True))
    RECONCILIATION_INTERVAL_SECONDS = data.get("RECONCILIATION_INTERVAL_SECONDS", 86400)  # Daily
