"""Costume order models."""

from datetime import date, datetime, timezone
from decimal import Decimal

from sqlalchemy import Boolean, Date, DateTime, ForeignKey, Index, Integer, Numeric, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.db.base import Base
from app.services.stage_catalog import classify_order


class Order(Base):
    """Custom costume order moving through the manufacturing pipeline."""

    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(primary_key=True)
    order_number: Mapped[str] = mapped_column(String(50), nullable=False)
    order_year: Mapped[int] = mapped_column(Integer, nullable=False)
    order_seq: Mapped[int] = mapped_column(Integer, nullable=False)
    organization_id: Mapped[int] = mapped_column(ForeignKey("organizations.id"), nullable=False, index=True)
    description: Mapped[str] = mapped_column(String(500), nullable=False)
    current_stage: Mapped[str] = mapped_column(String(50), nullable=False, default="Initial Consultation")
    original_ship_date: Mapped[date] = mapped_column(Date, nullable=False)
    current_ship_date: Mapped[date] = mapped_column(Date, nullable=False)
    total_amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    payment_status: Mapped[str] = mapped_column(String(50), nullable=False, default="Pending")
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
    )
    version_id: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    organization: Mapped["Organization"] = relationship(back_populates="orders")
    stage_history: Mapped[list["OrderStageHistory"]] = relationship(
        back_populates="order",
        order_by="OrderStageHistory.entered_at",
    )

    __mapper_args__ = {"version_id_col": version_id}
    __table_args__ = (
        Index("uq_orders_order_number", "order_number", unique=True),
        Index("uq_orders_order_year_seq", "order_year", "order_seq", unique=True),
    )

    @property
    def status(self) -> str:
        """Active, Completed or Cancelled as shown to clients."""
        return classify_order(self.is_active, self.current_stage)
