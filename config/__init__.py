import os


def get_settings_module() -> str:
    # APP_ENV picks the settings module; anything unrecognised falls back to development.
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"


def parse_id_list(raw: str) -> tuple[int, ...]:
    """'596, 2' -> (596, 2); blanks are ignored."""
    return tuple(int(part) for part in (raw or "").split(",") if part.strip())
