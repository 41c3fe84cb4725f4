from marshmallow import fields, validate, validates, ValidationError, EXCLUDE

from rental_ledger.extensions import ma


class BlockSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True)

    @validates("name")
    def validate_name(self, value, **kwargs):
        if not (value or "").strip():
            raise ValidationError("Block name is required.")


class RenterCreateSchema(ma.Schema):
    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=True)
    phone_number = fields.String(required=False, load_default="", allow_none=True)
    rent_price = fields.Decimal(required=True, places=2, validate=validate.Range(min=0))

    @validates("name")
    def validate_name(self, value, **kwargs):
        if not (value or "").strip():
            raise ValidationError("Renter name is required.")


class RenterUpdateSchema(ma.Schema):
    """Partial update: fields left out keep their current value."""

    class Meta:
        unknown = EXCLUDE

    name = fields.String(required=False)
    phone_number = fields.String(required=False, allow_none=True)
    rent_price = fields.Decimal(required=False, places=2, validate=validate.Range(min=0))
