"""
portal/orm/department.py
Academic departments
"""
from sqlalchemy import Column, String, Text

from portal.orm.base import BaseModel, id_factory


class Department(BaseModel):
    __tablename__ = "departments"

    id = Column(String(64), primary_key=True, default=id_factory("dept"))
    name = Column(String(150), nullable=False, unique=True, index=True)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Department(id='{self.id}', name='{self.name}')>"
