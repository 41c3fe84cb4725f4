from datetime import datetime
from itertools import count

import pytest

from sqlalchemy.pool import StaticPool
from flask_jwt_extended import create_access_token

from rental_ledger import create_app
from rental_ledger.config import TestConfig as BaseTestConfig
from rental_ledger.extensions import db

# Register mappers/tables
import rental_ledger.models  # noqa: F401
from rental_ledger.models.block import Block
from rental_ledger.models.renter import Renter
from rental_ledger.models.payment import Period


class PytestConfig(BaseTestConfig):
	SQLALCHEMY_DATABASE_URI = "sqlite://"
	SQLALCHEMY_ENGINE_OPTIONS = {
		"connect_args": {"check_same_thread": False},
		"poolclass": StaticPool,
	}
	JWT_SECRET_KEY = "test-secret"
	LEDGER_DEBUG = True


_names = count(1)


@pytest.fixture(scope="session")
def app():
	app = create_app(PytestConfig)
	with app.app_context():
		db.create_all()
		yield app
		db.session.remove()
		db.drop_all()


@pytest.fixture()
def client(app):
	return app.test_client()


@pytest.fixture()
def db_session(app):
	with app.app_context():
		yield db.session
		db.session.rollback()


@pytest.fixture()
def frozen_clock(app):
	"""Pins clock.now(); call .set(dt) to move it."""

	class _Clock:
		def __init__(self):
			self.current = datetime(2025, 3, 10, 9, 30, 0)

		def __call__(self):
			return self.current

		def set(self, dt: datetime):
			self.current = dt

	c = _Clock()
	app.config["LEDGER_CLOCK"] = c
	yield c
	app.config["LEDGER_CLOCK"] = None


@pytest.fixture()
def march_2025():
	return Period(3, 2025)


@pytest.fixture()
def make_block(db_session):
	def _make_block(name: str | None = None):
		b = Block(name=name or f"Block {next(_names):03d}")
		db_session.add(b)
		db_session.commit()
		return b

	return _make_block


@pytest.fixture()
def make_renter(db_session):
	def _make_renter(block, name: str = "Renter", rent_price=1200, phone_number: str = "+254700000000"):
		r = Renter(block_id=block.id, name=name, rent_price=rent_price, phone_number=phone_number)
		db_session.add(r)
		db_session.commit()
		return r

	return _make_renter


@pytest.fixture()
def make_token(app):
	def _make_token(user_id: int = 1) -> str:
		with app.app_context():
			return create_access_token(identity=str(user_id))

	return _make_token


@pytest.fixture()
def auth_header(make_token):
	def _auth_header(user_id: int = 1) -> dict:
		token = make_token(user_id)
		return {"Authorization": f"Bearer {token}"}

	return _auth_header
