"""
portal/routes/facilities.py
Buildings and rooms
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from portal.database import get_db
from portal.errors import ConflictError, NotFoundError
from portal.orm.facility import Building, Room
from portal.orm.user import User
from portal.schemas.catalog_schemas import (
    BuildingCreate,
    BuildingUpdate,
    BuildingResponse,
    RoomCreate,
    RoomUpdate,
)
from portal.security import actor_name, get_optional_user
from portal.services.audit_service import AuditAction, client_ip, record_audit
from portal.services.catalog_service import enrich_rooms

logger = logging.getLogger(__name__)

buildings_router = APIRouter(prefix="/api/buildings", tags=["Buildings"])
rooms_router = APIRouter(prefix="/api/rooms", tags=["Rooms"])


# ============================================================================
# BUILDINGS
# ============================================================================

def _dump_building(building: Building) -> dict:
    return BuildingResponse.model_validate(building).model_dump(mode="json")


async def _get_building(db: AsyncSession, building_id: str) -> Building:
    building = await db.get(Building, building_id)
    if not building:
        raise NotFoundError("Building", building_id)
    return building


async def _ensure_unique_building(db: AsyncSession, name: str, exclude_id: Optional[str] = None) -> None:
    query = select(Building.id).where(Building.name == name)
    if exclude_id:
        query = query.where(Building.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Building '{name}' already exists.")


@buildings_router.get("")
async def list_buildings(db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(Building).order_by(Building.name))
    return [_dump_building(b) for b in result.scalars().all()]


@buildings_router.post("", status_code=201)
async def create_building(
    request: Request,
    payload: BuildingCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await _ensure_unique_building(db, payload.name)
    building = Building(**payload.model_dump())
    db.add(building)
    await db.commit()
    await db.refresh(building)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Building", building.id,
                       details=building.name, ip_address=client_ip(request))
    return {"success": True, "message": "Building created successfully.", "data": _dump_building(building)}


@buildings_router.get("/{building_id}")
async def get_building(building_id: str, db: AsyncSession = Depends(get_db)):
    return _dump_building(await _get_building(db, building_id))


@buildings_router.put("/{building_id}")
async def update_building(
    request: Request,
    building_id: str,
    payload: BuildingUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    building = await _get_building(db, building_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    if changes.get("name"):
        await _ensure_unique_building(db, changes["name"], exclude_id=building_id)

    for field, value in changes.items():
        setattr(building, field, value)
    await db.commit()
    await db.refresh(building)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Building", building_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Building updated successfully.", "data": _dump_building(building)}


@buildings_router.delete("/{building_id}")
async def delete_building(
    request: Request,
    building_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    building = await _get_building(db, building_id)
    await db.delete(building)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Building", building_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Building deleted successfully."}


# ============================================================================
# ROOMS
# ============================================================================

async def _get_room(db: AsyncSession, room_id: str) -> Room:
    room = await db.get(Room, room_id)
    if not room:
        raise NotFoundError("Room", room_id)
    return room


async def _ensure_unique_room(
    db: AsyncSession,
    building_id: str,
    room_number: str,
    exclude_id: Optional[str] = None,
) -> None:
    query = select(Room.id).where(Room.building_id == building_id, Room.room_number == room_number)
    if exclude_id:
        query = query.where(Room.id != exclude_id)
    if (await db.execute(query)).first():
        raise ConflictError(f"Room {room_number} already exists in this building.")


@rooms_router.get("")
async def list_rooms(
    building_id: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db),
):
    query = select(Room)
    if building_id:
        query = query.where(Room.building_id == building_id)
    result = await db.execute(query.order_by(Room.building_id, Room.room_number))
    return await enrich_rooms(db, list(result.scalars().all()))


@rooms_router.post("", status_code=201)
async def create_room(
    request: Request,
    payload: RoomCreate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    await _get_building(db, payload.building_id)
    await _ensure_unique_room(db, payload.building_id, payload.room_number)

    room = Room(**payload.model_dump())
    db.add(room)
    await db.commit()
    await db.refresh(room)

    await record_audit(db, actor_name(actor), AuditAction.CREATE, "Room", room.id,
                       details=room.room_number, ip_address=client_ip(request))
    data = (await enrich_rooms(db, [room]))[0]
    return {"success": True, "message": "Room created successfully.", "data": data}


@rooms_router.get("/{room_id}")
async def get_room(room_id: str, db: AsyncSession = Depends(get_db)):
    return (await enrich_rooms(db, [await _get_room(db, room_id)]))[0]


@rooms_router.put("/{room_id}")
async def update_room(
    request: Request,
    room_id: str,
    payload: RoomUpdate,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    room = await _get_room(db, room_id)
    changes = payload.model_dump(exclude_unset=True, exclude_none=True)

    building_id = changes.get("building_id", room.building_id)
    room_number = changes.get("room_number", room.room_number)
    if "building_id" in changes:
        await _get_building(db, building_id)
    if (building_id, room_number) != (room.building_id, room.room_number):
        await _ensure_unique_room(db, building_id, room_number, exclude_id=room_id)

    for field, value in changes.items():
        setattr(room, field, value)
    await db.commit()
    await db.refresh(room)

    await record_audit(db, actor_name(actor), AuditAction.UPDATE, "Room", room_id,
                       ip_address=client_ip(request))
    data = (await enrich_rooms(db, [room]))[0]
    return {"success": True, "message": "Room updated successfully.", "data": data}


@rooms_router.delete("/{room_id}")
async def delete_room(
    request: Request,
    room_id: str,
    db: AsyncSession = Depends(get_db),
    actor: Optional[User] = Depends(get_optional_user),
):
    room = await _get_room(db, room_id)
    await db.delete(room)
    await db.commit()

    await record_audit(db, actor_name(actor), AuditAction.DELETE, "Room", room_id,
                       ip_address=client_ip(request))
    return {"success": True, "message": "Room deleted successfully."}
