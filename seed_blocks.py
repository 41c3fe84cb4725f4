# seed_blocks.py
from rental_ledger import create_app
from rental_ledger.extensions import db
from rental_ledger.models.block import Block
from rental_ledger.models.renter import Renter

app = create_app()

with app.app_context():
    if Block.query.filter_by(name="Block A").first():
        raise RuntimeError("Demo data already present ('Block A' exists).")

    block_a = Block(name="Block A")
    block_b = Block(name="Block B")
    db.session.add_all([block_a, block_b])
    db.session.flush()  # ids for the renters

    db.session.add_all([
        Renter(block_id=block_a.id, name="Alice Mwangi", phone_number="+254700000001", rent_price=1200),
        Renter(block_id=block_a.id, name="Brian Otieno", phone_number="+254700000002", rent_price=950),
        Renter(block_id=block_b.id, name="Carol Njeri", phone_number="+254700000003", rent_price=1500),
    ])
    db.session.commit()

    print("Demo blocks and renters created.")
