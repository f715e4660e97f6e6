import os

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "credit_ledger"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

TRANSACTION_MAX_ATTEMPTS = int(os.getenv("TRANSACTION_MAX_ATTEMPTS", "5"))
PREVENT_DUPLICATE_CHECKIN = bool(int(os.getenv("PREVENT_DUPLICATE_CHECKIN", "0")))
LOW_CREDIT_THRESHOLD = int(os.getenv("LOW_CREDIT_THRESHOLD", "3"))
