# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: modification links, member listing, create and key-based modify."""
from fastapi import APIRouter, Depends, Query

from member_directory.schemas import (
    MemberOut, MemberPayload, ModifyMemberRequest, ModLinkRequest,
    ModLinkResponse, UserResponse, UsersResponse, WriteResult,
)
from member_directory.services.member_service import MemberService
from member_directory.core.dependencies import get_member_service

router = APIRouter(prefix="/api", tags=["Members"])


@router.post("/getModLink", response_model=ModLinkResponse)
def get_mod_link(body: ModLinkRequest,
                 service: MemberService = Depends(get_member_service)):
    result = service.issue_mod_link(body.email, source=body.source, wp_user=body.wp_user)
    return ModLinkResponse(**result)


@router.get("/users", response_model=UsersResponse)
def list_users(service: MemberService = Depends(get_member_service)):
    return UsersResponse(users=[MemberOut.from_member(m) for m in service.list_members()])


@router.get("/getUserByKey", response_model=UserResponse)
def get_user_by_key(key: str = Query(default=""),
                    service: MemberService = Depends(get_member_service)):
    member = service.get_member_by_key(key)
    return UserResponse(user=MemberOut.from_member(member))


@router.post("/createUser", response_model=WriteResult)
def create_user(body: MemberPayload,
                service: MemberService = Depends(get_member_service)):
    mode = service.create_member(body.to_member())
    return WriteResult(mode=mode)


@router.post("/modifyUser", response_model=WriteResult)
def modify_user(body: ModifyMemberRequest,
                service: MemberService = Depends(get_member_service)):
    mode = service.modify_member(body.key, body.to_member())
    return WriteResult(mode=mode)
