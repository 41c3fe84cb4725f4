from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from flask import current_app

from rental_ledger.models.payment import Payment, PaymentType, Period, check_period
from rental_ledger.models.renter import Renter
from rental_ledger.services import directory_service, payment_store


ZERO = Decimal("0.00")


def _iso(dt):
    return dt.isoformat() if dt else None


def index_records(records: Iterable[Payment], period: Period) -> dict[tuple[int, PaymentType], Payment]:
    """(renter_id, type) -> record, keeping only rows of `period`."""

    out: dict[tuple[int, PaymentType], Payment] = {}
    for p in records:
        if p.month != period.month or p.year != period.year:
            continue
        try:
            ptype = PaymentType(p.type)
        except ValueError:
            current_app.logger.warning(
                "[ledger] skipping payment id=%s with unknown type %r", getattr(p, "id", None), p.type
            )
            continue
        out[(p.renter_id, ptype)] = p
    return out


def effective_amount(renter: Renter, payment_type: PaymentType, record: Payment | None) -> Decimal:
    """Amount of record for one type.

    Rent falls back to the renter's contractual price when there is no
    record or the record only carries status (amount 0). Utilities have no
    contractual default and show 0 until a bill is entered.
    """

    amount = Decimal(record.amount) if record is not None and record.amount is not None else ZERO
    if payment_type is PaymentType.RENT and amount <= 0:
        return Decimal(renter.rent_price or ZERO)
    return amount


def build_item(renter: Renter, payment_type: PaymentType, record: Payment | None) -> dict:
    item = {
        "amount": float(effective_amount(renter, payment_type, record)),
        "is_paid": bool(record.is_paid) if record is not None else False,
        "paid_date": _iso(record.paid_date) if record is not None else None,
    }
    if payment_type is PaymentType.RENT:
        item["whatsapp_sent_at"] = _iso(record.whatsapp_sent_at) if record is not None else None
    return item


def build_view(renter: Renter, period: Period, records: Iterable[Payment]) -> dict:
    by_key = index_records(records, period)

    view = {
        "renter_id": renter.id,
        "name": renter.name,
        "phone_number": renter.phone_number or "",
        "rent_price": float(renter.rent_price or 0),
        "month": period.month,
        "year": period.year,
    }
    total = ZERO
    for ptype in PaymentType:
        record = by_key.get((renter.id, ptype))
        view[ptype.value] = build_item(renter, ptype, record)
        total += effective_amount(renter, ptype, record)

    view["total_amount"] = float(total)
    return view


def get_renter_payments_view(block_id: int, period: Period) -> list[dict]:
    period = check_period(period)
    directory_service.require_block(block_id)
    renters = directory_service.list_renters(block_id)
    records = payment_store.list_for_renters([r.id for r in renters], period)
    return [build_view(r, period, records) for r in renters]
