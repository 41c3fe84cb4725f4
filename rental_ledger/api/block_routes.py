from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from rental_ledger.models.payment import make_period
from rental_ledger.schemas.block_schemas import BlockSchema, RenterCreateSchema, RenterUpdateSchema
from rental_ledger.schemas.payment_schemas import (
    NotificationSentSchema,
    PeriodSchema,
    SetAmountSchema,
    SetPaidStatusSchema,
    SyncTogglePaidSchema,
)
from rental_ledger.services import directory_service, payment_service, payment_view_service, report_service
from rental_ledger.utils.responses import success_response

bp = Blueprint("blocks", __name__)

block_schema = BlockSchema()
renter_create_schema = RenterCreateSchema()
renter_update_schema = RenterUpdateSchema()
period_schema = PeriodSchema()
set_amount_schema = SetAmountSchema()
set_paid_status_schema = SetPaidStatusSchema()
sync_toggle_schema = SyncTogglePaidSchema()
notification_sent_schema = NotificationSentSchema()


def _period_from_args():
    data = period_schema.load(request.args)
    return make_period(data["month"], data["year"])


# ── Blocks ───────────────────────────────────────────────────


@bp.get("")
@jwt_required()
def list_blocks():
    blocks = directory_service.list_blocks()
    return success_response(data=[directory_service.block_to_dict(b) for b in blocks])


@bp.post("")
@jwt_required()
def create_block():
    data = block_schema.load(request.get_json() or {})
    block = directory_service.create_block(data)
    return success_response(data=block, message="Block created", status_code=201)


@bp.get("/<int:block_id>")
@jwt_required()
def get_block(block_id: int):
    block = directory_service.require_block(block_id)
    return success_response(data=directory_service.block_to_dict(block))


@bp.put("/<int:block_id>")
@jwt_required()
def update_block(block_id: int):
    data = block_schema.load(request.get_json() or {})
    block = directory_service.update_block(block_id, data)
    return success_response(data=block, message="Block updated")


@bp.delete("/<int:block_id>")
@jwt_required()
def delete_block(block_id: int):
    directory_service.delete_block(block_id)
    return success_response(message="Block deleted")


@bp.get("/<int:block_id>/summary")
@jwt_required()
def block_summary(block_id: int):
    """Paid/unpaid renters and amounts for ?month=&year="""
    period = _period_from_args()
    return success_response(data=report_service.get_block_summary(block_id, period))


@bp.get("/<int:block_id>/payment-months")
@jwt_required()
def payment_months(block_id: int):
    return success_response(data=report_service.list_payment_months(block_id))


# ── Renters ──────────────────────────────────────────────────


@bp.get("/<int:block_id>/renters")
@jwt_required()
def list_renters(block_id: int):
    directory_service.require_block(block_id)
    renters = directory_service.list_renters(block_id)
    return success_response(data=[directory_service.renter_to_dict(r) for r in renters])


@bp.post("/<int:block_id>/renters")
@jwt_required()
def add_renter(block_id: int):
    data = renter_create_schema.load(request.get_json() or {})
    renter = directory_service.create_renter(block_id, data)
    return success_response(data=renter, message="Renter created", status_code=201)


@bp.put("/<int:block_id>/renters/<int:renter_id>")
@jwt_required()
def update_renter(block_id: int, renter_id: int):
    data = renter_update_schema.load(request.get_json() or {})
    renter = directory_service.update_renter(block_id, renter_id, data)
    return success_response(data=renter, message="Renter updated")


@bp.delete("/<int:block_id>/renters/<int:renter_id>")
@jwt_required()
def delete_renter(block_id: int, renter_id: int):
    directory_service.delete_renter(block_id, renter_id)
    return success_response(message="Renter deleted")


# ── Payments ─────────────────────────────────────────────────


@bp.get("/<int:block_id>/payments")
@jwt_required()
def renter_payments(block_id: int):
    """
    Rent/electricity/water state of every renter in the block.
    Query: ?month=3&year=2025
    """
    period = _period_from_args()
    data = payment_view_service.get_renter_payments_view(block_id, period)
    return success_response(data=data)


@bp.put("/<int:block_id>/renters/<int:renter_id>/bill")
@jwt_required()
def set_bill_amount(block_id: int, renter_id: int):
    data = set_amount_schema.load(request.get_json() or {})
    period = make_period(data["month"], data["year"])
    payment = payment_service.set_amount(
        renter_id, period, data["type"], data["amount"], block_id=block_id
    )
    return success_response(data=payment, message="Amount saved")


@bp.put("/<int:block_id>/renters/<int:renter_id>/payment")
@jwt_required()
def set_payment(block_id: int, renter_id: int):
    """
    Body JSON:
    {"month": 3, "year": 2025, "type": "rent", "amount": 1200, "is_paid": true}
    """
    data = set_paid_status_schema.load(request.get_json() or {})
    period = make_period(data["month"], data["year"])
    payment = payment_service.set_paid_status(
        renter_id,
        period,
        data["type"],
        data.get("amount"),
        data["is_paid"],
        block_id=block_id,
    )
    return success_response(data=payment, message="Payment updated")


@bp.put("/<int:block_id>/renters/<int:renter_id>/payment/sync")
@jwt_required()
def sync_payment(block_id: int, renter_id: int):
    data = sync_toggle_schema.load(request.get_json() or {})
    period = make_period(data["month"], data["year"])
    result = payment_service.sync_toggle_paid(renter_id, period, data["is_paid"], block_id=block_id)
    return success_response(data=result, message="Payment updated")


@bp.post("/<int:block_id>/renters/<int:renter_id>/notification-sent")
@jwt_required()
def notification_sent(block_id: int, renter_id: int):
    data = notification_sent_schema.load(request.get_json() or {})
    period = make_period(data["month"], data["year"])
    result = payment_service.record_notification_sent(renter_id, period, block_id=block_id)
    return success_response(data=result)
