from flask import Blueprint, request
from flask_jwt_extended import jwt_required

from rental_ledger.models.payment import make_period
from rental_ledger.schemas.payment_schemas import PeriodSchema
from rental_ledger.services import report_service
from rental_ledger.utils.responses import success_response

bp = Blueprint("reports", __name__)

period_schema = PeriodSchema()


def _period_from_args():
    data = period_schema.load(request.args)
    return make_period(data["month"], data["year"])


@bp.get("/summary")
@jwt_required()
def report_summary():
    period = _period_from_args()
    return success_response(data=report_service.get_report_summary(period))


@bp.get("/blocks/<int:block_id>")
@jwt_required()
def block_report(block_id: int):
    period = _period_from_args()
    return success_response(data=report_service.get_block_report(block_id, period))


@bp.get("/blocks/<int:block_id>/renters")
@jwt_required()
def renter_report(block_id: int):
    """Per-renter drill-down, also the source of the exported PDF."""
    period = _period_from_args()
    return success_response(data=report_service.get_renter_report(block_id, period))
