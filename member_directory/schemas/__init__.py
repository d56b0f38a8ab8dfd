# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Pydantic request/response schemas."""
import re
from typing import Any, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from member_directory.models.domain import Member, normalize_email

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
MIN_KEY_LENGTH = 6


class MemberPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., min_length=1, max_length=255)
    law_firm: str = Field(..., alias="lawFirm", min_length=1, max_length=255)
    email: str = Field(..., min_length=3, max_length=320)
    phone: Optional[str] = Field(default="", max_length=64)
    country: str = Field(..., min_length=1, max_length=255)
    groups: List[str] = Field(..., min_length=1)

    @field_validator("name", "law_firm", "country")
    @classmethod
    def strip_required(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def normalise_email(cls, v: str) -> str:
        v = normalize_email(v)
        if not EMAIL_RE.match(v):
            raise ValueError("must be a valid email address")
        return v

    @field_validator("phone")
    @classmethod
    def normalise_phone(cls, v: Optional[str]) -> str:
        return (v or "").strip()

    @field_validator("groups")
    @classmethod
    def normalise_groups(cls, v: List[str]) -> List[str]:
        cleaned = [g.strip() for g in v]
        if any(not g for g in cleaned):
            raise ValueError("group names must not be blank")
        return list(dict.fromkeys(cleaned))

    def to_member(self) -> Member:
        return Member(
            name=self.name, law_firm=self.law_firm, email=self.email,
            phone=self.phone or "", country=self.country, groups=self.groups,
        )


class ModifyMemberRequest(MemberPayload):
    key: str = Field(..., min_length=MIN_KEY_LENGTH, max_length=128)

    @field_validator("key")
    @classmethod
    def strip_key(cls, v: str) -> str:
        return v.strip()


class ModLinkRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    email: Optional[str] = None
    source: Optional[Any] = None
    wp_user: Optional[Any] = Field(default=None, alias="wpUser")


class ModLinkResponse(BaseModel):
    key: str
    link: str


class MemberOut(BaseModel):
    name: str
    lawFirm: str
    email: str
    phone: str = ""
    country: str
    groups: List[str]

    @classmethod
    def from_member(cls, member: Member) -> "MemberOut":
        return cls(**member.to_document())


class UserResponse(BaseModel):
    user: MemberOut


class UsersResponse(BaseModel):
    users: List[MemberOut]


class WriteResult(BaseModel):
    ok: bool = True
    mode: str


class GroupNameRequest(BaseModel):
    name: str = ""


class GroupRenameRequest(BaseModel):
    old_name: str = Field(default="", alias="oldName")
    new_name: str = Field(default="", alias="newName")


class GroupOut(BaseModel):
    id: str
    name: str


class GroupsResponse(BaseModel):
    groups: List[GroupOut]


class GroupNamesResponse(BaseModel):
    groups: List[str]


class GroupCreated(BaseModel):
    ok: bool = True
    group: GroupOut


class GroupRenamed(BaseModel):
    ok: bool = True
    updatedUsers: int


class OkResponse(BaseModel):
    ok: bool = True


class ErrorResponse(BaseModel):
    error: str
    detail: Optional[Any] = None
    request_id: Optional[str] = None
