from decimal import ROUND_HALF_UP

from marshmallow import fields, validate, EXCLUDE

from rental_ledger.extensions.ma import ma
from rental_ledger.models.payment import PaymentType


PAYMENT_TYPES = [t.value for t in PaymentType]


class PeriodSchema(ma.Schema):
    """(month, year) from a query string or a JSON body."""

    class Meta:
        unknown = EXCLUDE

    month = fields.Integer(required=True, validate=validate.Range(min=1, max=12))
    year = fields.Integer(required=True, validate=validate.Range(min=1000, max=9999))


class SetAmountSchema(PeriodSchema):
    """
    Inline bill edit (electricity/water saved on blur).
    {"month": 3, "year": 2025, "type": "electricity", "amount": 85.50}
    """

    type = fields.String(required=True, validate=validate.OneOf(PAYMENT_TYPES))
    amount = fields.Decimal(required=True, places=2, rounding=ROUND_HALF_UP, validate=validate.Range(min=0))


class SetPaidStatusSchema(PeriodSchema):
    type = fields.String(required=True, validate=validate.OneOf(PAYMENT_TYPES))
    amount = fields.Decimal(
        required=False,
        load_default=None,
        allow_none=True,
        places=2,
        rounding=ROUND_HALF_UP,
        validate=validate.Range(min=0),
    )
    is_paid = fields.Boolean(required=True)


class SyncTogglePaidSchema(PeriodSchema):
    is_paid = fields.Boolean(required=True)


class NotificationSentSchema(PeriodSchema):
    pass
