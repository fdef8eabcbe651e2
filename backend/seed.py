"""
Seed script: creates the demo owner and prints a bearer token for it.
Run from backend/: python seed.py [username]
"""
import sys
import os
sys.path.insert(0, os.path.dirname(__file__))

from bp_tracker import create_app, db
from bp_tracker.models.user import User
from bp_tracker.utils.auth import generate_owner_token

DEMO_USERNAME = "demo"


def seed(username=DEMO_USERNAME):
    app = create_app()
    with app.app_context():
        db.create_all()

        existing = User.find_by_username(username)
        if existing:
            print(f"  Owner '{username}' already exists (id={existing.id}), skipping.")
            owner = existing
        else:
            owner = User.get_or_create(username)
            print(f"  Created owner '{username}' (id={owner.id})")

        print(f"\nBearer token:\n{generate_owner_token(owner.id)}")


if __name__ == "__main__":
    seed(sys.argv[1] if len(sys.argv) > 1 else DEMO_USERNAME)
