from datetime import datetime
from decimal import Decimal

import pytest

from rental_ledger.models.payment import Payment, PaymentType, Period
from rental_ledger.services import payment_service, payment_store
from rental_ledger.utils.errors import LedgerValidationError, NotFoundError


def test_set_paid_status_twice_is_idempotent(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block())

	first = payment_service.set_paid_status(renter.id, march_2025, "rent", 1200, True)
	frozen_clock.set(datetime(2025, 3, 15, 10, 0, 0))
	second = payment_service.set_paid_status(renter.id, march_2025, "rent", 1200, True)

	assert first == second
	assert second["is_paid"] is True
	assert second["amount"] == 1200.0


def test_paid_unpaid_round_trip(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block())

	payment_service.set_paid_status(renter.id, march_2025, "rent", 1150, True)
	result = payment_service.set_paid_status(renter.id, march_2025, "rent", 1150, False)

	assert result["is_paid"] is False
	assert result["paid_date"] is None
	assert result["amount"] == 1150.0


def test_electricity_amount_then_paid(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block())

	payment_service.set_amount(renter.id, march_2025, "electricity", Decimal("85.50"))
	result = payment_service.set_paid_status(renter.id, march_2025, "electricity", Decimal("85.50"), True)

	assert result["amount"] == 85.5
	assert result["is_paid"] is True
	assert result["paid_date"] == frozen_clock.current.isoformat()


def test_utility_paid_without_amount_is_refused(make_block, make_renter, march_2025):
	renter = make_renter(make_block())

	with pytest.raises(LedgerValidationError) as exc:
		payment_service.set_paid_status(renter.id, march_2025, "water", None, True)

	assert exc.value.payload["code"] == "AMOUNT_REQUIRED"
	assert payment_store.find(renter.id, march_2025, PaymentType.WATER) is None


def test_utility_paid_uses_stored_amount(make_block, make_renter, march_2025):
	renter = make_renter(make_block())
	payment_service.set_amount(renter.id, march_2025, "water", 32)

	result = payment_service.set_paid_status(renter.id, march_2025, "water", 0, True)

	assert result["amount"] == 32.0
	assert result["is_paid"] is True


def test_unpaying_utility_needs_no_amount(make_block, make_renter, march_2025):
	renter = make_renter(make_block())
	payment_service.set_paid_status(renter.id, march_2025, "water", 32, True)

	result = payment_service.set_paid_status(renter.id, march_2025, "water", None, False)

	assert result["is_paid"] is False
	assert result["amount"] == 32.0


def test_amount_edit_on_paid_bill_keeps_it_paid(make_block, make_renter, march_2025):
	renter = make_renter(make_block())
	payment_service.set_paid_status(renter.id, march_2025, "electricity", 60, True)

	result = payment_service.set_amount(renter.id, march_2025, "electricity", 75)

	assert result["amount"] == 75.0
	assert result["is_paid"] is True


def test_sync_toggle_does_not_create_utility_records(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block(), rent_price=1200)

	result = payment_service.sync_toggle_paid(renter.id, march_2025, True)

	assert result["is_paid"] is True
	assert [p["type"] for p in result["payments"]] == ["rent"]
	assert result["payments"][0]["amount"] == 1200.0
	assert payment_store.find(renter.id, march_2025, PaymentType.ELECTRICITY) is None
	assert payment_store.find(renter.id, march_2025, PaymentType.WATER) is None


def test_sync_toggle_syncs_existing_utilities(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block(), rent_price=900)
	payment_service.set_amount(renter.id, march_2025, "electricity", 40)

	paid = payment_service.sync_toggle_paid(renter.id, march_2025, True)
	elec = payment_store.find(renter.id, march_2025, PaymentType.ELECTRICITY)
	assert paid["paid_date"] == frozen_clock.current.isoformat()
	assert elec.is_paid is True
	assert elec.paid_date == frozen_clock.current
	assert elec.amount == Decimal("40.00")
	assert payment_store.find(renter.id, march_2025, PaymentType.WATER) is None

	unpaid = payment_service.sync_toggle_paid(renter.id, march_2025, False)
	elec = payment_store.find(renter.id, march_2025, PaymentType.ELECTRICITY)
	assert unpaid["is_paid"] is False
	assert elec.is_paid is False
	assert elec.paid_date is None


def test_unknown_renter_is_not_found_without_writes(app, march_2025):
	before = Payment.query.count()

	with pytest.raises(NotFoundError):
		payment_service.set_paid_status(987654, march_2025, "rent", 100, True)
	with pytest.raises(NotFoundError):
		payment_service.sync_toggle_paid(987654, march_2025, True)

	assert Payment.query.count() == before


def test_renter_outside_block_is_not_found(make_block, make_renter, march_2025):
	renter = make_renter(make_block())
	other = make_block()

	with pytest.raises(NotFoundError):
		payment_service.set_amount(renter.id, march_2025, "water", 10, block_id=other.id)


def test_negative_amount_fails_validation(make_block, make_renter, march_2025):
	renter = make_renter(make_block())

	with pytest.raises(LedgerValidationError):
		payment_service.set_amount(renter.id, march_2025, "water", -5)


def test_record_notification_sent(make_block, make_renter, march_2025, frozen_clock):
	renter = make_renter(make_block())

	skipped = payment_service.record_notification_sent(renter.id, march_2025)
	assert skipped["recorded"] is False

	payment_service.sync_toggle_paid(renter.id, march_2025, True)
	recorded = payment_service.record_notification_sent(renter.id, march_2025)
	assert recorded["recorded"] is True
	assert recorded["whatsapp_sent_at"] == frozen_clock.current.isoformat()


@pytest.mark.parametrize("month,year", [(13, 2025), (0, 2025), (3, 15)])
def test_writes_reject_invalid_period_before_store(make_block, make_renter, month, year):
	renter = make_renter(make_block())
	bad = Period(month, year)

	with pytest.raises(LedgerValidationError):
		payment_service.set_amount(renter.id, bad, "water", 10)
	with pytest.raises(LedgerValidationError):
		payment_service.set_paid_status(renter.id, bad, "rent", 1200, True)
	with pytest.raises(LedgerValidationError):
		payment_service.sync_toggle_paid(renter.id, bad, True)
	with pytest.raises(LedgerValidationError):
		payment_service.record_notification_sent(renter.id, bad)

	assert Payment.query.filter_by(renter_id=renter.id).count() == 0
