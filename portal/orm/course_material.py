"""
portal/orm/course_material.py
Files and links attached to a scheduled course
"""
from enum import Enum

from sqlalchemy import Column, String, Text, ForeignKey

from portal.orm.base import BaseModel, id_factory, value_enum


class MaterialType(str, Enum):
    FILE = "File"
    LINK = "Link"


class CourseMaterial(BaseModel):
    __tablename__ = "course_materials"

    id = Column(String(64), primary_key=True, default=id_factory("cm"))
    title = Column(String(200), nullable=False)
    description = Column(Text, nullable=True)
    material_type = Column(value_enum(MaterialType), nullable=False)
    file_path = Column(String(500), nullable=True)
    url = Column(String(1000), nullable=True)
    scheduled_course_id = Column(
        String(64),
        ForeignKey("scheduled_courses.scheduled_course_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
