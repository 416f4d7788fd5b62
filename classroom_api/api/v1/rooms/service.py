from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.api.v1.classes import service as class_service
from classroom_api.auth import policy
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import NotFoundError
from classroom_api.core.models import Room

from .schemas import RoomCreate, RoomResponse


def _room_to_response(r: Room) -> RoomResponse:
    return RoomResponse(
        room_id=r.id,
        class_id=r.class_id,
        name=r.name,
        description=r.description,
        created_at=r.created_at,
    )


async def create_room(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    payload: RoomCreate,
) -> RoomResponse:
    classroom = await class_service.get_class_or_404(db, class_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    room = Room(class_id=class_id, name=payload.name, description=payload.description)
    db.add(room)
    await db.commit()
    await db.refresh(room)
    return _room_to_response(room)


async def delete_room(
    db: AsyncSession,
    actor: CurrentUser,
    room_id: UUID,
) -> None:
    room = await db.get(Room, room_id)
    if not room:
        raise NotFoundError("Room not found")
    classroom = await class_service.get_class_or_404(db, room.class_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    await db.delete(room)
    await db.commit()
