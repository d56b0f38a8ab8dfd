# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Google Sheets worksheet factory (service-account auth)."""
import json

import gspread

from member_directory.core.config import Settings
from member_directory.core.errors import ConfigurationError

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]


def load_service_account(raw: str) -> dict:
    if not raw:
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is missing")
    try:
        return json.loads(raw)
    except json.JSONDecodeError:
        raise ConfigurationError("GOOGLE_SERVICE_ACCOUNT_JSON is not valid JSON")


def open_worksheet(cfg: Settings) -> gspread.Worksheet:
    if not cfg.SHEET_ID:
        raise ConfigurationError("SHEET_ID is missing")
    credentials = load_service_account(cfg.GOOGLE_SERVICE_ACCOUNT_JSON)
    client = gspread.service_account_from_dict(credentials, scopes=SCOPES)
    return client.open_by_key(cfg.SHEET_ID).worksheet(cfg.SHEET_TAB)
