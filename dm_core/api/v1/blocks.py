"""
Block API routes.
"""
from typing import List

from fastapi import APIRouter, Depends

from dm_core.dependencies import get_block_service, get_current_user_id
from dm_core.schemas.block import BlockedUserResponse, BlockStatusResponse
from dm_core.services.block_service import BlockService, BlockStatus

router = APIRouter()


def _status_response(other_id: str, block_status: BlockStatus) -> dict:
    return {
        "user_id": other_id,
        "blocked_by_me": block_status.blocked_by_me,
        "blocked_me": block_status.blocked_me,
    }


@router.get("/", response_model=List[BlockedUserResponse], summary="List blocked users")
async def list_blocked(
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service)
):
    return await service.list_blocked(user_id)


@router.get("/{other_id}", response_model=BlockStatusResponse, summary="Block status with a user")
async def get_block_status(
    other_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service)
):
    return _status_response(other_id, await service.is_blocked(user_id, other_id))


@router.put("/{other_id}", response_model=BlockStatusResponse, summary="Block a user")
async def block_user(
    other_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service)
):
    return _status_response(other_id, await service.block(user_id, other_id))


@router.delete("/{other_id}", response_model=BlockStatusResponse, summary="Unblock a user")
async def unblock_user(
    other_id: str,
    user_id: str = Depends(get_current_user_id),
    service: BlockService = Depends(get_block_service)
):
    return _status_response(other_id, await service.unblock(user_id, other_id))
