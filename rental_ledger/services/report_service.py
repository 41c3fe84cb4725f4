from __future__ import annotations

from decimal import Decimal
from typing import Iterable

from flask import current_app
from sqlalchemy import case, func
from sqlalchemy.exc import OperationalError

from rental_ledger.extensions import db
from rental_ledger.models.block import Block
from rental_ledger.models.payment import Payment, PaymentType, Period, check_period
from rental_ledger.models.renter import Renter
from rental_ledger.services import directory_service, payment_store
from rental_ledger.services.payment_view_service import build_item, effective_amount, index_records
from rental_ledger.utils.errors import UnavailableError


ZERO = Decimal("0.00")


def _sorted_renters(renters: Iterable[Renter]) -> list[Renter]:
    return sorted(renters, key=lambda r: (r.name or "", r.id or 0))


def _sorted_blocks(blocks: Iterable[Block]) -> list[Block]:
    return sorted(blocks, key=lambda b: (b.name or "", b.id or 0))


def build_block_report(block: Block, renters: Iterable[Renter], records: Iterable[Payment], period: Period) -> dict:
    renters = _sorted_renters(renters)
    by_key = index_records(records, period)
    renter_count = len(renters)
    total_rent = sum((Decimal(r.rent_price or ZERO) for r in renters), ZERO)

    report = {
        "block_id": block.id,
        "block_name": block.name,
        "month": period.month,
        "year": period.year,
        "renter_count": renter_count,
        "total_rent": float(total_rent),
    }

    total_collected = ZERO
    for ptype in PaymentType:
        paid_count = 0
        collected = ZERO
        for r in renters:
            record = by_key.get((r.id, ptype))
            if record is None or not record.is_paid:
                continue
            paid_count += 1
            collected += effective_amount(r, ptype, record)

        report[ptype.value] = {
            "paid_count": paid_count,
            "unpaid_count": renter_count - paid_count,
            "collected_amount": float(collected),
        }
        total_collected += collected

    report["total_collected"] = float(total_collected)
    return report


def build_renter_report(renter: Renter, period: Period, records: Iterable[Payment]) -> dict:
    by_key = index_records(records, period)

    report = {
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
        report[ptype.value] = build_item(renter, ptype, record)
        total += effective_amount(renter, ptype, record)

    report["total_amount"] = float(total)
    # Overall status follows the rent record
    report["is_paid"] = report[PaymentType.RENT.value]["is_paid"]
    return report


def build_report_summary(blocks: Iterable[Block], period: Period) -> list[dict]:
    summary = []
    for block in _sorted_blocks(blocks):
        renters = directory_service.list_renters(block.id)
        records = payment_store.list_for_renters([r.id for r in renters], period)
        summary.append(build_block_report(block, renters, records, period))
    return summary


def get_block_report(block_id: int, period: Period) -> dict:
    period = check_period(period)
    block = directory_service.require_block(block_id)
    renters = directory_service.list_renters(block_id)
    records = payment_store.list_for_renters([r.id for r in renters], period)
    return build_block_report(block, renters, records, period)


def get_report_summary(period: Period) -> list[dict]:
    period = check_period(period)
    return build_report_summary(directory_service.list_blocks(), period)


def get_renter_report(block_id: int, period: Period) -> list[dict]:
    period = check_period(period)
    directory_service.require_block(block_id)
    renters = directory_service.list_renters(block_id)
    records = payment_store.list_for_renters([r.id for r in renters], period)
    return [build_renter_report(r, period, records) for r in _sorted_renters(renters)]


def get_block_summary(block_id: int, period: Period) -> dict:
    """Block header figures: who paid rent this period and how much that is
    against the contractual total."""

    period = check_period(period)
    block = directory_service.require_block(block_id)
    renters = directory_service.list_renters(block_id)
    records = payment_store.list_for_renters([r.id for r in renters], period)
    by_key = index_records(records, period)

    total_rent = sum((Decimal(r.rent_price or ZERO) for r in renters), ZERO)
    paid = []
    for r in renters:
        rent = by_key.get((r.id, PaymentType.RENT))
        if rent is not None and rent.is_paid:
            paid.append(r)
    paid_amount = sum((Decimal(r.rent_price or ZERO) for r in paid), ZERO)

    return {
        "block_id": block.id,
        "block_name": block.name,
        "month": period.month,
        "year": period.year,
        "total_renters": len(renters),
        "total_rent_price": float(total_rent),
        "paid_renters": len(paid),
        "total_paid_amount": float(paid_amount),
        "unpaid_renters": len(renters) - len(paid),
        "total_unpaid_amount": float(total_rent - paid_amount),
    }


def list_payment_months(block_id: int) -> list[dict]:
    """Every period with at least one record in the block, newest first."""

    directory_service.require_block(block_id)
    try:
        rows = (
            db.session.query(
                Payment.year,
                Payment.month,
                func.count(Payment.id),
                func.sum(case((Payment.is_paid.is_(True), 1), else_=0)),
            )
            .join(Renter, Renter.id == Payment.renter_id)
            .filter(Renter.block_id == block_id)
            .group_by(Payment.year, Payment.month)
            .order_by(Payment.year.desc(), Payment.month.desc())
            .all()
        )
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[reports] list_payment_months: store unavailable: %s", err.orig)
        raise UnavailableError()

    return [
        {
            "month": int(month),
            "year": int(year),
            "paid_count": int(paid or 0),
            "unpaid_count": int(total or 0) - int(paid or 0),
        }
        for year, month, total, paid in rows
    ]
