from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Callable, Iterable, TypeVar

from flask import current_app
from sqlalchemy.exc import IntegrityError, OperationalError

from rental_ledger.extensions import db
from rental_ledger.models.payment import Payment, PaymentType, Period, parse_payment_type
from rental_ledger.utils import clock
from rental_ledger.utils.errors import ConflictError, LedgerValidationError, UnavailableError


T = TypeVar("T")

ZERO = Decimal("0.00")
CENT = Decimal("0.01")


def _debug() -> bool:
    return bool(current_app.config.get("LEDGER_DEBUG", False))


def normalize_amount(amount, *, required: bool = True) -> Decimal | None:
    """Two-decimal, non-negative Decimal. None passes through when not required."""

    if amount is None or (isinstance(amount, str) and not amount.strip()):
        if required:
            raise LedgerValidationError("Amount is required.", errors={"amount": ["required"]})
        return None

    if isinstance(amount, bool):
        raise LedgerValidationError("Amount must be a number.", errors={"amount": ["not a number"]})

    try:
        value = Decimal(str(amount).strip())
    except (InvalidOperation, ValueError):
        raise LedgerValidationError("Amount must be a number.", errors={"amount": ["not a number"]})

    if not value.is_finite():
        raise LedgerValidationError("Amount must be a number.", errors={"amount": ["not a number"]})
    if value < 0:
        raise LedgerValidationError("Amount cannot be negative.", errors={"amount": ["must be >= 0"]})

    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _is_key_collision(err: IntegrityError) -> bool:
    # sqlite: "UNIQUE constraint failed", mysql: "Duplicate entry ... for key"
    text = str(err.orig)
    return (
        "uq_payments_renter_period_type" in text
        or "UNIQUE constraint failed" in text
        or "Duplicate entry" in text
    )


def run_in_transaction(work: Callable[..., T], *, label: str = "write") -> T:
    """Unit of work around find-or-create-then-update sequences.

    `work` receives the session and must be safe to run twice: when a
    concurrent request inserted the same (renter, period, type) key first,
    the commit fails on the unique constraint, the session is rolled back
    and `work` runs again, this time finding the row and updating it.
    Any other integrity failure (foreign key, check) is not retried.
    """

    session = db.session
    for attempt in (1, 2):
        try:
            result = work(session)
            session.commit()
            return result
        except IntegrityError as err:
            session.rollback()
            if not _is_key_collision(err):
                current_app.logger.warning("[ledger] %s: write rejected by constraint: %s", label, err.orig)
                raise ConflictError("Write rejected by a store constraint")
            if attempt == 2:
                current_app.logger.warning("[ledger] %s: unique key conflict persisted after retry: %s", label, err.orig)
                raise ConflictError()
            current_app.logger.warning("[ledger] %s: unique key collision, retrying as update", label)
        except OperationalError as err:
            session.rollback()
            current_app.logger.error("[ledger] %s: store unavailable: %s", label, err.orig)
            raise UnavailableError()

    raise ConflictError()  # pragma: no cover


def find(renter_id: int, period: Period, payment_type: PaymentType, session=None) -> Payment | None:
    session = session or db.session
    return (
        session.query(Payment)
        .filter_by(
            renter_id=renter_id,
            month=period.month,
            year=period.year,
            type=PaymentType(payment_type).value,
        )
        .first()
    )


def _new_payment(renter_id: int, period: Period, payment_type: PaymentType, amount: Decimal) -> Payment:
    return Payment(
        renter_id=renter_id,
        month=period.month,
        year=period.year,
        type=payment_type.value,
        amount=amount,
        is_paid=False,
        paid_date=None,
        created_at=clock.now(),
    )


def upsert_amount(renter_id: int, period: Period, payment_type, amount, session=None) -> Payment:
    """Record a bill amount. Paid status and paid_date are left alone."""

    payment_type = parse_payment_type(payment_type)
    value = normalize_amount(amount)
    session = session or db.session

    payment = find(renter_id, period, payment_type, session=session)
    if payment is None:
        payment = _new_payment(renter_id, period, payment_type, value)
        session.add(payment)
    else:
        payment.amount = value

    if _debug():
        current_app.logger.info(
            "[ledger] amount renter=%s period=%02d/%s type=%s amount=%s",
            renter_id, period.month, period.year, payment_type.value, value,
        )
    return payment


def upsert_paid_status(
    renter_id: int,
    period: Period,
    payment_type,
    amount,
    is_paid: bool,
    now=None,
    session=None,
) -> Payment:
    """Create or update a record's paid flag.

    A strictly positive `amount` overwrites the stored one; None or zero
    keeps whatever positive amount was recorded before. paid_date is set on
    the unpaid -> paid transition and cleared when unpaid.
    """

    payment_type = parse_payment_type(payment_type)
    value = normalize_amount(amount, required=False)
    session = session or db.session
    stamp = now or clock.now()

    payment = find(renter_id, period, payment_type, session=session)
    if payment is None:
        payment = _new_payment(renter_id, period, payment_type, value or ZERO)
        session.add(payment)
    elif value is not None and value > 0:
        payment.amount = value

    if is_paid:
        if not payment.is_paid or payment.paid_date is None:
            payment.paid_date = stamp
        payment.is_paid = True
    else:
        payment.is_paid = False
        payment.paid_date = None

    if _debug():
        current_app.logger.info(
            "[ledger] status renter=%s period=%02d/%s type=%s paid=%s",
            renter_id, period.month, period.year, payment_type.value, payment.is_paid,
        )
    return payment


def list_for_renters(renter_ids: Iterable[int], period: Period) -> list[Payment]:
    ids = list({int(r) for r in renter_ids})
    if not ids:
        return []

    try:
        return (
            Payment.query.filter(Payment.renter_id.in_(ids))
            .filter(Payment.month == period.month, Payment.year == period.year)
            .order_by(Payment.renter_id.asc(), Payment.type.asc())
            .all()
        )
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[ledger] list_for_renters: store unavailable: %s", err.orig)
        raise UnavailableError()


def record_notification_sent(renter_id: int, period: Period, now=None, session=None) -> Payment | None:
    """Stamp whatsapp_sent_at on the rent record. No rent record yet: no-op."""

    session = session or db.session
    payment = find(renter_id, period, PaymentType.RENT, session=session)
    if payment is None:
        if _debug():
            current_app.logger.info(
                "[ledger] notification skip renter=%s period=%02d/%s (no rent record)",
                renter_id, period.month, period.year,
            )
        return None

    payment.whatsapp_sent_at = now or clock.now()
    return payment
