# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Members stored in a Google Sheet.

Layout (one member per row, header in row 1):

    A: NAME | B: LAW FIRM | C: E-MAIL | D: PHONE | E: COUNTRY | F: GROUP

GROUP holds a comma-separated list ("A, B"); ";" is accepted on read.
A row is located by scanning column C top-to-bottom. When an email occurs on
several rows the first one wins and later duplicates are left untouched.
"""
import re
from contextlib import contextmanager
from typing import Any, Dict, List, Optional, Sequence

import gspread
from gspread.exceptions import GSpreadException

from member_directory.core.errors import UpstreamError
from member_directory.core.logging import get_logger
from member_directory.models.domain import Member, normalize_email
from member_directory.repositories.base import CREATED, UPDATED, scan_for_key

logger = get_logger(__name__)

HEADERS = ["NAME", "LAW FIRM", "E-MAIL", "PHONE", "COUNTRY", "GROUP"]
HEADER_RANGE = "A1:F1"
DATA_RANGE = "A2:F"
EMAIL_COLUMN = 3
FIRST_DATA_ROW = 2

_GROUP_SPLIT = re.compile(r"[,;]+")


@contextmanager
def sheet_errors(operation: str):
    try:
        yield
    except GSpreadException as exc:
        logger.error("Google Sheets %s failed: %s", operation, exc)
        raise UpstreamError(f"Spreadsheet error during {operation}") from exc


def split_groups(cell: Any) -> List[str]:
    text = str(cell or "").strip()
    if not text:
        return []
    return [g.strip() for g in _GROUP_SPLIT.split(text) if g.strip()]


def join_groups(groups: Sequence[str]) -> str:
    return ", ".join(str(g).strip() for g in groups if str(g).strip())


def to_row(member: Member) -> List[str]:
    return [
        member.name.strip(),
        member.law_firm.strip(),
        normalize_email(member.email),
        member.phone.strip(),
        member.country.strip(),
        join_groups(member.groups),
    ]


def from_row(row: Sequence[Any]) -> Member:
    cells = list(row) + [""] * (len(HEADERS) - len(row))
    return Member(
        name=str(cells[0] or "").strip(),
        law_firm=str(cells[1] or "").strip(),
        email=normalize_email(cells[2]),
        phone=str(cells[3] or "").strip(),
        country=str(cells[4] or "").strip(),
        groups=split_groups(cells[5]),
    )


class SheetMemberRepository:
    def __init__(self, worksheet: gspread.Worksheet):
        self._ws = worksheet

    # ── Layout ─────────────────────────────────────────────────────────

    def ensure_header(self) -> None:
        with sheet_errors("read_header"):
            values = self._ws.get(HEADER_RANGE)
        current = list(values[0]) if values else []
        ok = all(
            str(current[i] if i < len(current) else "").strip().upper() == h
            for i, h in enumerate(HEADERS)
        )
        if not ok:
            logger.info("Rewriting sheet header row")
            with sheet_errors("write_header"):
                self._ws.update(values=[HEADERS], range_name=HEADER_RANGE, value_input_option="RAW")

    def _rows(self) -> List[List[Any]]:
        self.ensure_header()
        with sheet_errors("read_rows"):
            return self._ws.get_values(DATA_RANGE)

    def email_row_index(self) -> Dict[str, int]:
        """Normalized email → sheet row number; first occurrence wins."""
        with sheet_errors("read_emails"):
            column = self._ws.col_values(EMAIL_COLUMN)
        index: Dict[str, int] = {}
        for row_number, cell in enumerate(column[FIRST_DATA_ROW - 1:], start=FIRST_DATA_ROW):
            email = normalize_email(cell)
            if email and email not in index:
                index[email] = row_number
        return index

    # ── Read ───────────────────────────────────────────────────────────

    def list_members(self) -> List[Member]:
        return [from_row(r) for r in self._rows() if any(str(c).strip() for c in r)]

    def find_by_email(self, email: str) -> Optional[Member]:
        email = normalize_email(email)
        for member in self.list_members():
            if member.email == email:
                return member
        return None

    def find_by_key(self, key: str, deriver) -> Optional[Member]:
        members = self.list_members()
        email = scan_for_key((m.email for m in members), key, deriver)
        if not email:
            return None
        return next(m for m in members if m.email == email)

    def count_with_group(self, name: str) -> int:
        return sum(1 for m in self.list_members() if name in m.groups)

    def verify_connection(self) -> int:
        return len(self.list_members())

    # ── Write ──────────────────────────────────────────────────────────

    def upsert(self, member: Member) -> str:
        email = normalize_email(member.email)
        if not email:
            raise UpstreamError("User email missing (cannot sync to sheet)")
        self.ensure_header()
        row_number = self.email_row_index().get(email)
        values = to_row(member.model_copy(update={"email": email}))

        if row_number:
            with sheet_errors("update_row"):
                self._ws.update(
                    values=[values],
                    range_name=f"A{row_number}:F{row_number}",
                    value_input_option="RAW",
                )
            logger.info("Sheet row %d updated for %s", row_number, email)
            return UPDATED

        with sheet_errors("append_row"):
            self._ws.append_row(
                values,
                value_input_option="RAW",
                insert_data_option="INSERT_ROWS",
                table_range="A:F",
            )
        logger.info("Sheet row appended for %s", email)
        return CREATED

    def rename_group(self, old_name: str, new_name: str) -> int:
        updates = []
        for offset, row in enumerate(self._rows()):
            member = from_row(row)
            if old_name not in member.groups:
                continue
            groups = [new_name if g == old_name else g for g in member.groups]
            row_number = offset + FIRST_DATA_ROW
            updates.append({
                "range": f"A{row_number}:F{row_number}",
                "values": [to_row(member.model_copy(update={"groups": groups}))],
            })
        if updates:
            with sheet_errors("rename_group"):
                self._ws.batch_update(updates, value_input_option="RAW")
        return len(updates)
