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
    DB_URI = data.get("DB_URI", "sqlite+aiosqlite:///./test.db")
    LOG_LEVEL = data.get("LOG_LEVEL", "INFO")

    # Payment gateway (NMI three-step)
    NMI_API_KEY = data.get("NMI_API_KEY", "")
    NMI_GATEWAY_URL = data.get("NMI_GATEWAY_URL", "https://secure.nmi.com/api/v2/three-step")
    GATEWAY_TIMEOUT_SECONDS = float(data.get("GATEWAY_TIMEOUT_SECONDS", 30))
    GATEWAY_IP_ADDRESS = data.get("GATEWAY_IP_ADDRESS", "127.0.0.1")

    # Subscriptions
    SUBSCRIPTION_MAX_AMOUNT = data.get("SUBSCRIPTION_MAX_AMOUNT", "999999.99")

    # Billing Scheduler
    BILLING_SCHEDULER_ENABLED = bool(data.get("BILLING_SCHEDULER_ENABLED", True))
    BILLING_SCHEDULER_INTERVAL_SECONDS = data.get("BILLING_SCHEDULER_INTERVAL_SECONDS", 3600)  # Hourly

    # Vault Cleanup
    VAULT_CLEANUP_ENABLED = bool(data.get("VAULT_CLEANUP_ENABLED", True))
    VAULT_CLEANUP_INTERVAL_SECONDS = data.get("VAULT_CLEANUP_INTERVAL_SECONDS", 86400)  # Daily

    # Rate limiting (requests per window)
    RATE_LIMIT_DEFAULT = data.get("RATE_LIMIT_DEFAULT", 100)
    RATE_LIMIT_WINDOW_SECONDS = data.get("RATE_LIMIT_WINDOW_SECONDS", 3600)

    # Performance monitoring
    SLOW_REQUEST_THRESHOLD_MS = data.get("SLOW_REQUEST_THRESHOLD_MS", 1000)
