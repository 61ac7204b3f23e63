"""
portal/routes/course_materials.py
Files and links attached to scheduled courses
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import BadRequestError, NotFoundError
from portal.orm.course_material import CourseMaterial, MaterialType
from portal.orm.user import User
from portal.schemas.scheduling_schemas import CourseMaterialCreate, CourseMaterialUpdate, CourseMaterialResponse
from portal.security import actor_name, get_optional_user
from portal.services import enrollment_service
from portal.services.audit_service import AuditAction, client_ip, record_audit

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/course-materials", tags=["Course Materials"])


def default_file_path(title: str) -> str:
    return f"/uploads/{title.replace(' ', '_')}.pdf"


def _dump(material: CourseMaterial) -> dict:
    return CourseMaterialResponse.model_validate(material).model_dump(mode="json")


async def _get_material(db: AsyncSession, material_id: str) -> CourseMaterial:
    material = await db.get(CourseMaterial, material_id)
    if not material:
        raise NotFoundError("Course material", material_id)
    return material


@router.get("")
async def list_materials(
    scheduled_course_id: str = Query(..., min_length=1),
    db: AsyncSession = Depends(get_db),
):
    result = await db.execute(
        select(CourseMaterial)
        .where(CourseMaterial.scheduled_course_id == scheduled_course_id)
        .order_by(CourseMaterial.created_at)
    )
    return [_dump(m) for m in result.scalars().all()]


@router.post("", status_code=201)
async def create_material(
    request: Request,
    payload: CourseMaterialCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await enrollment_service.get_scheduled_course(db, payload.scheduled_course_id)

    fields = payload.model_dump()
    if payload.material_type == MaterialType.FILE and not payload.file_path:
        fields["file_path"] = default_file_path(payload.title)

    material = CourseMaterial(**fields)
    db.add(material)
    await db.commit()
    await db.refresh(material)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "CourseMaterial", material.id,
                       details=material.title, ip_address=client_ip(request))
    return {"success": True, "message": "Course material created successfully.", "data": _dump(material)}


@router.get("/{material_id}")
async def get_material(material_id: str, db: AsyncSession = Depends(get_db)):
    return _dump(await _get_material(db, material_id))


@router.put("/{material_id}")
async def update_material(
    request: Request,
    material_id: str,
    payload: CourseMaterialUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    material = await _get_material(db, material_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    material_type = changes.get("material_type", material.material_type)
    if material_type == MaterialType.LINK and not changes.get("url", material.url):
        raise BadRequestError("url is required for Link materials")

    for field, value in changes.items():
        setattr(material, field, value)
    if material.material_type == MaterialType.FILE and not material.file_path:
        material.file_path = default_file_path(material.title)
    await db.commit()
    await db.refresh(material)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "CourseMaterial", material_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Course material updated successfully.", "data": _dump(material)}


@router.delete("/{material_id}")
async def delete_material(
    request: Request,
    material_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    material = await _get_material(db, material_id)
    await db.delete(material)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "CourseMaterial", material_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Course material deleted successfully."}
