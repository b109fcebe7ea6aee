"""Customer model."""

from typing import Optional

import sqlalchemy as sa
from sqlmodel import Field, SQLModel

from .base import CreatedAtMixin, OrgScopedMixin, UUIDMixin


class Customer(UUIDMixin, OrgScopedMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "customers"
    __table_args__ = (
        # one customer per phone number within an org
        sa.UniqueConstraint("org_id", "phone", name="u_customers_org_phone"),
    )

    name: str = Field(nullable=False)
    phone: str = Field(nullable=False)
    email: Optional[str] = None
    addr1: Optional[str] = None
    addr2: Optional[str] = None
    memo: Optional[str] = None
