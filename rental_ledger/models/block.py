from datetime import datetime

from rental_ledger.extensions import db


class Block(db.Model):
    """A named group of renters (a building or a wing)."""

    __tablename__ = "rental_blocks"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(150), nullable=False)
    created_at = db.Column(db.DateTime, nullable=False, default=datetime.utcnow)

    renters = db.relationship(
        "Renter",
        back_populates="block",
        cascade="all, delete-orphan",
    )

    def __repr__(self) -> str:
        return f"<Block id={self.id} name={self.name}>"
