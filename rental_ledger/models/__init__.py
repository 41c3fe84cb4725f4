from .block import Block
from .renter import Renter
from .payment import Payment, PaymentType, Period, check_period, make_period, parse_payment_type

__all__ = [
    "Block",
    "Renter",
    "Payment",
    "PaymentType",
    "Period",
    "check_period",
    "make_period",
    "parse_payment_type",
]
