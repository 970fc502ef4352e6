import os

from config import parse_id_list

SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-key")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "exeat_db"),
}

DEBUG = True
LOG_LEVEL = os.getenv("LOG_LEVEL", "DEBUG")

# If enabled, app will apply schema.sql on startup (idempotent: CREATE IF NOT EXISTS)
AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "1")))
AUTO_SEED_DB = bool(int(os.getenv("AUTO_SEED_DB", "0")))

EXEAT_TIMEZONE = os.getenv("EXEAT_TIMEZONE", "Africa/Lagos")
EXEAT_BASE_DEBT_UNIT = int(os.getenv("EXEAT_BASE_DEBT_UNIT", "10000"))
HOSTEL_STAGES_ENABLED = bool(int(os.getenv("HOSTEL_STAGES_ENABLED", "1")))

# Staff ids allowed to act under any role.
PRIVILEGED_STAFF_IDS = parse_id_list(os.getenv("PRIVILEGED_STAFF_IDS", ""))
