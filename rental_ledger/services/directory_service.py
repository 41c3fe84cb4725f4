from __future__ import annotations

from decimal import Decimal

from flask import current_app
from sqlalchemy.exc import OperationalError

from rental_ledger.extensions import db
from rental_ledger.models.block import Block
from rental_ledger.models.renter import Renter
from rental_ledger.services.payment_store import normalize_amount, run_in_transaction
from rental_ledger.utils import clock
from rental_ledger.utils.errors import LedgerValidationError, NotFoundError, UnavailableError


def _money(value) -> float:
    return float(value) if value is not None else 0.0


def block_to_dict(b: Block) -> dict:
    renters = list(b.renters or [])
    return {
        "id": b.id,
        "name": b.name,
        "created_at": b.created_at.isoformat() if b.created_at else None,
        "renter_count": len(renters),
        "total_rent": _money(sum((r.rent_price or Decimal("0")) for r in renters)),
    }


def renter_to_dict(r: Renter) -> dict:
    return {
        "id": r.id,
        "block_id": r.block_id,
        "name": r.name,
        "phone_number": r.phone_number or "",
        "rent_price": _money(r.rent_price),
        "created_at": r.created_at.isoformat() if r.created_at else None,
        "updated_at": r.updated_at.isoformat() if r.updated_at else None,
    }


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------

def get_block(block_id: int) -> Block | None:
    try:
        return db.session.get(Block, block_id)
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[directory] get_block: store unavailable: %s", err.orig)
        raise UnavailableError()


def get_renter(renter_id: int) -> Renter | None:
    try:
        return db.session.get(Renter, renter_id)
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[directory] get_renter: store unavailable: %s", err.orig)
        raise UnavailableError()


def require_block(block_id: int) -> Block:
    block = get_block(block_id)
    if block is None:
        raise NotFoundError("Block not found.", payload={"block_id": block_id})
    return block


def require_renter(renter_id: int, block_id: int | None = None) -> Renter:
    """Renter must exist and, when block_id is given, belong to that block."""

    renter = get_renter(renter_id)
    if renter is None or (block_id is not None and renter.block_id != block_id):
        raise NotFoundError("Renter not found.", payload={"renter_id": renter_id})
    return renter


def list_blocks() -> list[Block]:
    try:
        return Block.query.order_by(Block.name.asc(), Block.id.asc()).all()
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[directory] list_blocks: store unavailable: %s", err.orig)
        raise UnavailableError()


def list_renters(block_id: int) -> list[Renter]:
    try:
        return (
            Renter.query.filter_by(block_id=block_id)
            .order_by(Renter.name.asc(), Renter.id.asc())
            .all()
        )
    except OperationalError as err:
        db.session.rollback()
        current_app.logger.error("[directory] list_renters: store unavailable: %s", err.orig)
        raise UnavailableError()


# ---------------------------------------------------------------------------
# Block CRUD
# ---------------------------------------------------------------------------

def _clean_name(name, what: str) -> str:
    value = (name or "").strip()
    if not value:
        raise LedgerValidationError(f"{what} name is required.", errors={"name": ["required"]})
    return value


def create_block(data: dict) -> dict:
    name = _clean_name(data.get("name"), "Block")

    def _work(session):
        block = Block(name=name, created_at=clock.now())
        session.add(block)
        return block

    block = run_in_transaction(_work, label="create_block")
    current_app.logger.info("[directory] block created id=%s name=%s", block.id, block.name)
    return block_to_dict(block)


def update_block(block_id: int, data: dict) -> dict:
    block = require_block(block_id)
    name = _clean_name(data.get("name"), "Block")

    def _work(session):
        block.name = name
        return block

    run_in_transaction(_work, label="update_block")
    return block_to_dict(block)


def delete_block(block_id: int) -> None:
    block = require_block(block_id)

    def _work(session):
        session.delete(block)

    run_in_transaction(_work, label="delete_block")
    current_app.logger.info("[directory] block deleted id=%s", block_id)


# ---------------------------------------------------------------------------
# Renter CRUD
# ---------------------------------------------------------------------------

def create_renter(block_id: int, data: dict) -> dict:
    require_block(block_id)
    name = _clean_name(data.get("name"), "Renter")
    phone = (data.get("phone_number") or "").strip()
    rent_price = normalize_amount(data.get("rent_price", 0))

    def _work(session):
        renter = Renter(
            block_id=block_id,
            name=name,
            phone_number=phone,
            rent_price=rent_price,
            created_at=clock.now(),
        )
        session.add(renter)
        return renter

    renter = run_in_transaction(_work, label="create_renter")
    return renter_to_dict(renter)


def update_renter(block_id: int, renter_id: int, data: dict) -> dict:
    renter = require_renter(renter_id, block_id=block_id)

    name = data.get("name")
    name = _clean_name(name, "Renter") if name is not None else renter.name
    phone = data.get("phone_number")
    phone = phone.strip() if phone is not None else renter.phone_number
    rent_price = data.get("rent_price")
    rent_price = normalize_amount(rent_price) if rent_price is not None else renter.rent_price

    def _work(session):
        renter.name = name
        renter.phone_number = phone
        renter.rent_price = rent_price
        renter.updated_at = clock.now()
        return renter

    run_in_transaction(_work, label="update_renter")
    return renter_to_dict(renter)


def delete_renter(block_id: int, renter_id: int) -> None:
    renter = require_renter(renter_id, block_id=block_id)

    def _work(session):
        session.delete(renter)

    run_in_transaction(_work, label="delete_renter")
    current_app.logger.info("[directory] renter deleted id=%s block=%s", renter_id, block_id)
