from __future__ import annotations

from decimal import Decimal

from flask import current_app

from rental_ledger.models.payment import Payment, PaymentType, Period, check_period, parse_payment_type
from rental_ledger.services import directory_service, payment_store
from rental_ledger.services.payment_store import normalize_amount, run_in_transaction
from rental_ledger.utils import clock
from rental_ledger.utils.errors import LedgerValidationError


def payment_to_dict(p: Payment) -> dict:
    return {
        "id": p.id,
        "renter_id": p.renter_id,
        "month": p.month,
        "year": p.year,
        "type": p.type,
        "amount": float(p.amount) if p.amount is not None else 0.0,
        "is_paid": bool(p.is_paid),
        "paid_date": p.paid_date.isoformat() if p.paid_date else None,
        "whatsapp_sent_at": p.whatsapp_sent_at.isoformat() if p.whatsapp_sent_at else None,
    }


def set_amount(renter_id: int, period: Period, payment_type, amount, block_id: int | None = None) -> dict:
    """Inline bill edit. Paid status is kept as is, including on paid records."""

    period = check_period(period)
    payment_type = parse_payment_type(payment_type)
    value = normalize_amount(amount)
    directory_service.require_renter(renter_id, block_id=block_id)

    payment = run_in_transaction(
        lambda session: payment_store.upsert_amount(renter_id, period, payment_type, value, session=session),
        label="set_amount",
    )
    return payment_to_dict(payment)


def set_paid_status(
    renter_id: int,
    period: Period,
    payment_type,
    amount,
    is_paid: bool,
    block_id: int | None = None,
) -> dict:
    """Per-type toggle.

    A utility bill cannot be marked paid while it has no amount: the caller
    has to collect one first (either in this call or through set_amount).
    """

    period = check_period(period)
    payment_type = parse_payment_type(payment_type)
    value = normalize_amount(amount, required=False)
    directory_service.require_renter(renter_id, block_id=block_id)

    if is_paid and payment_type in PaymentType.utilities() and not (value and value > 0):
        existing = payment_store.find(renter_id, period, payment_type)
        if existing is None or not existing.amount or Decimal(existing.amount) <= 0:
            raise LedgerValidationError(
                f"Enter the {payment_type.value} bill amount before marking it paid.",
                errors={"amount": ["required to mark a utility bill paid"]},
                code="AMOUNT_REQUIRED",
            )

    stamp = clock.now()
    payment = run_in_transaction(
        lambda session: payment_store.upsert_paid_status(
            renter_id, period, payment_type, value, is_paid, now=stamp, session=session
        ),
        label="set_paid_status",
    )
    return payment_to_dict(payment)


def sync_toggle_paid(renter_id: int, period: Period, is_paid: bool, block_id: int | None = None) -> dict:
    """Mark the whole period paid/unpaid.

    Rent is written with the renter's configured price. Electricity and water
    only get their status synced when a record already exists; no utility
    amount is ever made up here.
    """

    period = check_period(period)
    renter = directory_service.require_renter(renter_id, block_id=block_id)
    rent_price = normalize_amount(renter.rent_price or 0)
    stamp = clock.now()

    def _work(session):
        rent = payment_store.upsert_paid_status(
            renter_id, period, PaymentType.RENT, rent_price, is_paid, now=stamp, session=session
        )
        synced = []
        for ptype in PaymentType.utilities():
            record = payment_store.find(renter_id, period, ptype, session=session)
            if record is None:
                continue
            record.is_paid = rent.is_paid
            record.paid_date = rent.paid_date
            synced.append(record)
        return rent, synced

    rent, synced = run_in_transaction(_work, label="sync_toggle_paid")

    if current_app.config.get("LEDGER_DEBUG"):
        current_app.logger.info(
            "[ledger] sync renter=%s period=%02d/%s paid=%s synced=%s",
            renter_id, period.month, period.year, rent.is_paid, [p.type for p in synced],
        )

    return {
        "renter_id": renter_id,
        "month": period.month,
        "year": period.year,
        "is_paid": bool(rent.is_paid),
        "paid_date": rent.paid_date.isoformat() if rent.paid_date else None,
        "payments": [payment_to_dict(rent)] + [payment_to_dict(p) for p in synced],
    }


def record_notification_sent(renter_id: int, period: Period, block_id: int | None = None) -> dict:
    period = check_period(period)
    directory_service.require_renter(renter_id, block_id=block_id)
    stamp = clock.now()

    payment = run_in_transaction(
        lambda session: payment_store.record_notification_sent(renter_id, period, now=stamp, session=session),
        label="record_notification_sent",
    )
    return {
        "renter_id": renter_id,
        "month": period.month,
        "year": period.year,
        "recorded": payment is not None,
        "whatsapp_sent_at": payment.whatsapp_sent_at.isoformat() if payment is not None else None,
    }
