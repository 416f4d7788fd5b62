from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from classroom_api.api.v1.classes import service as class_service
from classroom_api.auth import policy
from classroom_api.auth.schemas import CurrentUser
from classroom_api.core.exceptions import NotFoundError
from classroom_api.core.models import Material

from .schemas import (
    ClassMaterialsResponse,
    MaterialCreate,
    MaterialResponse,
    MaterialSummary,
    MaterialUpdate,
)


def _material_to_response(m: Material, class_name: Optional[str] = None) -> MaterialResponse:
    return MaterialResponse(
        material_id=m.id,
        class_id=m.class_id,
        title=m.title,
        description=m.description,
        content=m.content,
        class_name=class_name,
        created_at=m.created_at,
        updated_at=m.updated_at,
    )


async def _get_material_with_class(db: AsyncSession, material_id: UUID):
    material = await db.get(Material, material_id)
    if not material:
        raise NotFoundError("Material not found")
    classroom = await class_service.get_class_or_404(db, material.class_id)
    return material, classroom


async def create_material(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    payload: MaterialCreate,
) -> MaterialResponse:
    classroom = await class_service.get_class_or_404(db, class_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    material = Material(
        class_id=class_id,
        title=payload.title,
        description=payload.description,
        content=payload.content,
    )
    db.add(material)
    await db.commit()
    await db.refresh(material)
    return _material_to_response(material, classroom.name)


async def list_class_materials(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
) -> ClassMaterialsResponse:
    classroom = await class_service.get_class_or_404(db, class_id)
    policy.can_view_content(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    result = await db.execute(
        select(Material).where(Material.class_id == class_id).order_by(Material.created_at.desc())
    )
    return ClassMaterialsResponse(
        class_id=classroom.id,
        class_name=classroom.name,
        materials=[
            MaterialSummary(
                material_id=m.id,
                title=m.title,
                description=m.description,
                created_at=m.created_at,
                updated_at=m.updated_at,
            )
            for m in result.scalars().all()
        ],
    )


async def get_material(
    db: AsyncSession,
    actor: CurrentUser,
    material_id: UUID,
) -> MaterialResponse:
    material, classroom = await _get_material_with_class(db, material_id)
    policy.can_view_content(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    return _material_to_response(material, classroom.name)


async def update_material(
    db: AsyncSession,
    actor: CurrentUser,
    material_id: UUID,
    payload: MaterialUpdate,
) -> MaterialResponse:
    material, classroom = await _get_material_with_class(db, material_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    if payload.title is not None:
        material.title = payload.title
    if payload.description is not None:
        material.description = payload.description
    if payload.content is not None:
        material.content = payload.content
    await db.commit()
    await db.refresh(material)
    return _material_to_response(material, classroom.name)


async def delete_material(
    db: AsyncSession,
    actor: CurrentUser,
    material_id: UUID,
) -> None:
    material, classroom = await _get_material_with_class(db, material_id)
    policy.can_manage_class(actor, await class_service.load_class_facts(db, actor, classroom)).enforce()
    await db.delete(material)
    await db.commit()
