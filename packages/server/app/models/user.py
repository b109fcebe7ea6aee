"""User model.

``id`` equals the identity provider's subject id; rows are provisioned from
identity metadata outside this service.
"""

from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, OrgScopedMixin


class User(OrgScopedMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "users"

    id: uuid.UUID = Field(primary_key=True, nullable=False)
    name: Optional[str] = None
    role: str = Field(default="staff", nullable=False, sa_column_kwargs={"server_default": "staff"})
