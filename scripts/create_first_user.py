import sys
import os
from sqlmodel import Session

# Add current directory to path
sys.path.append(os.getcwd())

from worktrack.core.exceptions import ConflictError, ValidationError
from worktrack.db.session import engine, init_db
from worktrack.services import profiles


def create_initial_profile():
    print("--- Initial Profile Creation ---")

    email = os.environ.get("FIRST_USER_EMAIL", "admin@example.com")
    password = os.environ.get("FIRST_USER_PASSWORD", "ChangeMe123")
    full_name = os.environ.get("FIRST_USER_NAME", "Studio Admin")

    init_db()
    with Session(engine) as session:
        print(f"Creating profile {email}...")
        try:
            profiles.create_profile(session, email, password, full_name)
        except ConflictError:
            print(f"Profile with email {email} already exists.")
            return
        except ValidationError as e:
            print(f"Profile not created: {e.message}")
            return

        print("Initial profile created successfully!")
        print(f"Email: {email}")
        print(f"Name: {full_name}")


if __name__ == "__main__":
    create_initial_profile()
