"""Read-only room state endpoints."""

from fastapi import APIRouter

from livecode.dependencies import EventRouterDep
from livecode.schemas import EditLockResponse, MembersResponse

router = APIRouter(prefix="/v1/rooms/{room_id}", tags=["rooms"])


@router.get("/edit-lock")
async def get_edit_lock(room_id: str, events: EventRouterDep) -> EditLockResponse:
    """Get current edit lock status for a room. Unknown rooms are unlocked."""
    lock = events.arbiter.status(room_id)
    return EditLockResponse(
        room_id=room_id,
        locked=lock.locked,
        locked_by=lock.holder,
        username=lock.display_name,
    )


@router.get("/members")
async def get_members(room_id: str, events: EventRouterDep) -> MembersResponse:
    """List the connections in a room. Unknown rooms are empty."""
    return MembersResponse(room_id=room_id, clients=events.membership.members_of(room_id))
