# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Decides what a modification key is allowed to touch."""
from dataclasses import dataclass
from typing import Optional

from member_directory.core.errors import ValidationError
from member_directory.core.logging import get_logger
from member_directory.metrics import ACCESS_DECISIONS, KEY_SCAN_SECONDS
from member_directory.models.domain import Member, normalize_email
from member_directory.repositories.base import MemberRepository
from member_directory.services.key_deriver import KeyDeriver

logger = get_logger(__name__)

EXISTING = "existing"
PROVISION = "provision"
DENIED = "denied"


@dataclass(frozen=True)
class AccessDecision:
    outcome: str
    email: Optional[str] = None
    member: Optional[Member] = None

    @property
    def allowed(self) -> bool:
        return self.outcome != DENIED


class AccessResolver:
    def __init__(self, store: MemberRepository, deriver: KeyDeriver):
        self._store = store
        self._deriver = deriver

    def resolve(self, key: str, claimed_email: Optional[str] = None) -> AccessDecision:
        """
        Map ``key`` to a member.

        A key that belongs to a stored member binds the request to that
        member's email; a differing ``claimed_email`` raises ValidationError.
        With no stored match, a ``claimed_email`` whose derived key equals
        ``key`` may provision a new record. Everything else is denied.
        """
        key = (key or "").strip()
        if not key:
            raise ValidationError("key is required")
        claimed = normalize_email(claimed_email) or None

        with KEY_SCAN_SECONDS.time():
            member = self._store.find_by_key(key, self._deriver)

        if member is not None:
            if claimed is not None and claimed != member.email:
                ACCESS_DECISIONS.labels(outcome="email_mismatch").inc()
                logger.warning("Email change attempted via modify link for %s", member.email)
                raise ValidationError("Email cannot be changed via modify link")
            decision = AccessDecision(EXISTING, member.email, member)
        elif claimed is not None and self._deriver.matches(claimed, key):
            decision = AccessDecision(PROVISION, claimed)
        else:
            decision = AccessDecision(DENIED)

        ACCESS_DECISIONS.labels(outcome=decision.outcome).inc()
        logger.debug("Access decision outcome=%s email=%s", decision.outcome, decision.email)
        return decision
