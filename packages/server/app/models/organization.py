"""Organization model (tenant root, not RLS-forced)."""

from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, UUIDMixin


class Organization(UUIDMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "orgs"

    name: str = Field(nullable=False)
