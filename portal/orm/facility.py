"""
portal/orm/facility.py
Buildings and the rooms inside them
"""
from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint, CheckConstraint

from portal.orm.base import BaseModel, id_factory


class Building(BaseModel):
    __tablename__ = "buildings"

    id = Column(String(64), primary_key=True, default=id_factory("bldg"))
    name = Column(String(150), nullable=False, unique=True, index=True)
    address = Column(String(255), nullable=True)


class Room(BaseModel):
    """
    A teaching room. room_number is unique within its building only.
    """
    __tablename__ = "rooms"
    __table_args__ = (
        UniqueConstraint("building_id", "room_number", name="uq_room_building_number"),
        CheckConstraint("capacity >= 0", name="ck_room_capacity_non_negative"),
    )

    id = Column(String(64), primary_key=True, default=id_factory("room"))
    building_id = Column(
        String(64),
        ForeignKey("buildings.id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    room_number = Column(String(32), nullable=False)
    capacity = Column(Integer, nullable=False, default=0)
    type = Column(String(64), nullable=True)
