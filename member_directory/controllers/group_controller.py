# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""Controller: group listing, create, rename and delete."""
from fastapi import APIRouter, Depends

from member_directory.schemas import (
    GroupCreated, GroupNameRequest, GroupNamesResponse, GroupOut,
    GroupRenamed, GroupRenameRequest, GroupsResponse, OkResponse,
)
from member_directory.services.group_service import GroupService
from member_directory.core.dependencies import get_group_service

router = APIRouter(prefix="/api", tags=["Groups"])


@router.get("/getGroups", response_model=GroupNamesResponse)
def get_group_names(service: GroupService = Depends(get_group_service)):
    return GroupNamesResponse(groups=service.list_group_names())


@router.get("/groups", response_model=GroupsResponse)
def list_groups(service: GroupService = Depends(get_group_service)):
    return GroupsResponse(groups=[GroupOut(**g.model_dump()) for g in service.list_groups()])


@router.post("/groups", response_model=GroupCreated)
def create_group(body: GroupNameRequest,
                 service: GroupService = Depends(get_group_service)):
    group = service.create_group(body.name)
    return GroupCreated(group=GroupOut(**group.model_dump()))


@router.post("/groups/rename", response_model=GroupRenamed)
def rename_group(body: GroupRenameRequest,
                 service: GroupService = Depends(get_group_service)):
    touched = service.rename_group(body.old_name, body.new_name)
    return GroupRenamed(updatedUsers=touched)


@router.put("/groups/{group_id}", response_model=GroupRenamed)
def update_group(group_id: str, body: GroupNameRequest,
                 service: GroupService = Depends(get_group_service)):
    touched = service.update_group(group_id, body.name)
    return GroupRenamed(updatedUsers=touched)


@router.delete("/groups/{group_id}", response_model=OkResponse)
def delete_group(group_id: str, service: GroupService = Depends(get_group_service)):
    service.delete_group(group_id)
    return OkResponse()
