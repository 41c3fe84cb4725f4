import enum
from datetime import datetime
from typing import NamedTuple

from flask import current_app, has_app_context

from rental_ledger.extensions import db
from rental_ledger.utils.errors import LedgerValidationError


class PaymentType(str, enum.Enum):
    RENT = "rent"
    ELECTRICITY = "electricity"
    WATER = "water"

    @classmethod
    def utilities(cls) -> tuple["PaymentType", ...]:
        return (cls.ELECTRICITY, cls.WATER)


class Period(NamedTuple):
    """Billing cycle. Build it with make_period() to get range checks."""

    month: int
    year: int

    def as_dict(self) -> dict:
        return {"month": self.month, "year": self.year}


def make_period(month, year) -> Period:
    try:
        month_int = int(month)
        year_int = int(year)
    except (TypeError, ValueError):
        raise LedgerValidationError("Period month and year must be integers.")

    min_year, max_year = 2000, 9999
    if has_app_context():
        min_year = int(current_app.config.get("LEDGER_MIN_YEAR", min_year))
        max_year = int(current_app.config.get("LEDGER_MAX_YEAR", max_year))

    if month_int < 1 or month_int > 12:
        raise LedgerValidationError(
            "Month must be between 1 and 12.",
            errors={"month": [f"{month_int} is out of range"]},
        )
    if year_int < min_year or year_int > max_year:
        raise LedgerValidationError(
            f"Year must be between {min_year} and {max_year}.",
            errors={"year": [f"{year_int} is out of range"]},
        )
    return Period(month_int, year_int)


def check_period(period) -> Period:
    """Re-validate a Period built without make_period()."""
    return make_period(period[0], period[1])


def parse_payment_type(value) -> PaymentType:
    if isinstance(value, PaymentType):
        return value
    try:
        return PaymentType(str(value or "").strip().lower())
    except ValueError:
        allowed = ", ".join(t.value for t in PaymentType)
        raise LedgerValidationError(
            f"Unknown payment type '{value}'. Expected one of: {allowed}.",
            errors={"type": [f"must be one of: {allowed}"]},
        )


class Payment(db.Model):
    """Ledger row: one renter, one period, one payment type."""

    __tablename__ = "payments"
    __table_args__ = (
        db.UniqueConstraint(
            "renter_id", "month", "year", "type",
            name="uq_payments_renter_period_type",
        ),
        db.CheckConstraint("month BETWEEN 1 AND 12", name="ck_payments_month"),
        db.CheckConstraint("type IN ('rent', 'electricity', 'water')", name="ck_payments_type"),
        db.Index("ix_payments_period", "year", "month"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    renter_id = db.Column(
        db.Integer,
        db.ForeignKey("renters.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    month = db.Column(db.Integer, nullable=False)
    year = db.Column(db.Integer, nullable=False)

    # 'rent' | 'electricity' | 'water' (PaymentType values)
    type = db.Column(db.String(20), nullable=False, default=PaymentType.RENT.value)

    amount = db.Column(db.Numeric(10, 2), nullable=False, default=0)
    is_paid = db.Column(db.Boolean, nullable=False, default=False)
    paid_date = db.Column(db.DateTime, nullable=True)

    # Only stamped on the rent record
    whatsapp_sent_at = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    renter = db.relationship("Renter", back_populates="payments")

    @property
    def payment_type(self) -> PaymentType:
        return PaymentType(self.type)

    @property
    def period(self) -> Period:
        return Period(self.month, self.year)

    def __repr__(self) -> str:
        return (
            f"<Payment id={self.id} renter={self.renter_id} "
            f"{self.month:02d}/{self.year} type={self.type} paid={self.is_paid}>"
        )
