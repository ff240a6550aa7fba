"""
Create a user (with an empty profile).

Run:
    python create_user.py admin@example.com secret --name Admin --admin
"""
import argparse

from app.auth import get_user_by_email, register_user
from app.infrastructure.db.session import get_session_factory


def main():
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("email")
    parser.add_argument("password")
    parser.add_argument("--name")
    parser.add_argument("--admin", action="store_true", help="grant the admin claim")
    args = parser.parse_args()

    db = get_session_factory()()
    try:
        existing = get_user_by_email(db, args.email)
        if existing:
            print(f"User already exists: {existing.email} (ID: {existing.id})")
            return
        user = register_user(db, args.email, args.password, name=args.name, is_admin=args.admin)
        print(f"Created user: {user.email} (ID: {user.id}, admin={user.is_admin})")
    finally:
        db.close()


if __name__ == "__main__":
    main()
