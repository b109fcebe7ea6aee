"""Deal model: a signed (or in-progress) contract with a customer."""

from datetime import date
from typing import Optional
import uuid

from sqlmodel import Field, SQLModel

from wedding_crm_shared.schemas.common import DealStage

from .base import CreatedAtMixin, OrgScopedMixin, UUIDMixin


class Deal(UUIDMixin, OrgScopedMixin, CreatedAtMixin, SQLModel, table=True):
    __tablename__ = "deals"

    customer_id: uuid.UUID = Field(
        foreign_key="customers.id", ondelete="CASCADE", nullable=False, index=True
    )
    planner_id: Optional[uuid.UUID] = Field(
        default=None, foreign_key="users.id", ondelete="SET NULL", index=True
    )
    stage: str = Field(
        default=DealStage.LEAD.value,
        nullable=False,
        sa_column_kwargs={"server_default": DealStage.LEAD.value},
    )
    amount: Optional[int] = Field(default=0, sa_column_kwargs={"server_default": "0"})
    contract_date: Optional[date] = None
    memo: Optional[str] = None
