# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Domain models: plain data structures with no FastAPI dependency.
"""

from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field

MEMBER_FIELDS = ("name", "lawFirm", "email", "phone", "country", "groups")


def normalize_email(value: Any) -> str:
    return str(value or "").strip().lower()


class Member(BaseModel):
    """A directory member; ``email`` is the identity."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = ""
    law_firm: str = Field(default="", alias="lawFirm")
    email: str = ""
    phone: str = ""
    country: str = ""
    groups: List[str] = Field(default_factory=list)

    @classmethod
    def from_document(cls, doc: Dict[str, Any]) -> "Member":
        return cls(
            name=str(doc.get("name") or "").strip(),
            law_firm=str(doc.get("lawFirm") or "").strip(),
            email=normalize_email(doc.get("email")),
            phone=str(doc.get("phone") or "").strip(),
            country=str(doc.get("country") or "").strip(),
            groups=[str(g).strip() for g in (doc.get("groups") or []) if str(g).strip()],
        )

    def to_document(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True)


class Group(BaseModel):
    id: str
    name: str
