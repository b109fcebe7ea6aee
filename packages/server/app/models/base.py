"""Base mixins for SQLModel tables."""

from datetime import datetime, timezone
from typing import Optional
import uuid

import sqlalchemy as sa
from sqlmodel import Field, SQLModel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CreatedAtMixin(SQLModel):
    created_at: Optional[datetime] = Field(
        default_factory=_utcnow,
        index=True,
        sa_column_kwargs={"server_default": sa.text("now()")},
        sa_type=sa.DateTime(timezone=True),
    )


class UUIDMixin(SQLModel):
    id: uuid.UUID = Field(
        default_factory=uuid.uuid4,
        primary_key=True,
        nullable=False,
        sa_column_kwargs={"server_default": sa.text("gen_random_uuid()")},
    )


class OrgScopedMixin(SQLModel):
    """Tenant-scoped rows: owned by one org, removed with it."""

    org_id: uuid.UUID = Field(
        foreign_key="orgs.id",
        ondelete="CASCADE",
        nullable=False,
        index=True,
    )
