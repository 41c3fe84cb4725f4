from datetime import datetime

from rental_ledger.extensions import db


class Renter(db.Model):
    __tablename__ = "renters"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)

    block_id = db.Column(
        db.Integer,
        db.ForeignKey("rental_blocks.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    name = db.Column(db.String(150), nullable=False)
    phone_number = db.Column(db.String(30), nullable=False, default="")

    # Contractual monthly rent; default amount for the rent record
    rent_price = db.Column(db.Numeric(10, 2), nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, nullable=True)

    block = db.relationship("Block", back_populates="renters")
    payments = db.relationship(
        "Payment",
        back_populates="renter",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Renter id={self.id} block={self.block_id} name={self.name}>"
