import os

from config import parse_id_list

SECRET_KEY = os.getenv("SECRET_KEY", "please-set-SECRET_KEY")

DB_CONFIG = {
    "host": os.getenv("DB_HOST", "localhost"),
    "port": int(os.getenv("DB_PORT", "3306")),
    "user": os.getenv("DB_USER", "root"),
    "password": os.getenv("DB_PASSWORD", ""),
    "database": os.getenv("DB_NAME", "exeat_db"),
}

DEBUG = False
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

AUTO_INIT_DB = bool(int(os.getenv("AUTO_INIT_DB", "0")))
AUTO_SEED_DB = False

EXEAT_TIMEZONE = os.getenv("EXEAT_TIMEZONE", "Africa/Lagos")
EXEAT_BASE_DEBT_UNIT = int(os.getenv("EXEAT_BASE_DEBT_UNIT", "10000"))
HOSTEL_STAGES_ENABLED = bool(int(os.getenv("HOSTEL_STAGES_ENABLED", "1")))
PRIVILEGED_STAFF_IDS = parse_id_list(os.getenv("PRIVILEGED_STAFF_IDS", ""))
