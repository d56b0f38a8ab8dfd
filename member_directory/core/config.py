# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Centralised settings, read from env vars once."""
import os


def _flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    SERVICE_NAME: str = os.getenv("SERVICE_NAME", "member-directory")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    PORT: int = int(os.getenv("PORT", "5010"))

    # mongo | sheet | memory
    STORE_BACKEND: str = os.getenv("STORE_BACKEND", "mongo").strip().lower()
    # mongo | memory
    GROUP_BACKEND: str = os.getenv("GROUP_BACKEND", "mongo").strip().lower()

    MONGO_URI: str = os.getenv("MONGO_URI", "mongodb://localhost:27017")
    DB_NAME: str = os.getenv("DB_NAME", "app")
    MONGO_SERVER_SELECTION_TIMEOUT_MS: int = int(os.getenv("MONGO_SERVER_SELECTION_TIMEOUT_MS", "5000"))

    MOD_LINK_SECRET: str = os.getenv("MOD_LINK_SECRET", "")
    MOD_KEY_LENGTH: int = int(os.getenv("MOD_KEY_LENGTH", "12"))
    PUBLIC_BASE_URL: str = os.getenv("PUBLIC_BASE_URL", "")
    CLIENT_MODIFY_PATH: str = os.getenv("CLIENT_MODIFY_PATH", "/modifyRecord")

    SHEET_ID: str = os.getenv("SHEET_ID", "")
    SHEET_TAB: str = os.getenv("SHEET_TAB", "Arkusz1")
    GOOGLE_SERVICE_ACCOUNT_JSON: str = os.getenv("GOOGLE_SERVICE_ACCOUNT_JSON", "")
    SHEET_MIRROR: bool = _flag("SHEET_MIRROR")


settings = Settings()
