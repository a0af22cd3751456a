import sys
import os
from sqlmodel import Session, select

# Add current directory to path so we can import worktrack
sys.path.append(os.getcwd())

from worktrack.core.exceptions import TransientStoreError
from worktrack.db.session import engine, init_db, store_errors
from worktrack.models import Profile, Sequence
from worktrack.services.allocator import REQUEST_NUMBER_SEQUENCE, highest_request_number


def verify_database():
    print("--- Database Verification ---")
    try:
        with store_errors("verify database"):
            # This will create tables if they don't exist
            print("Attempting to create tables...")
            init_db()
            print("Table creation/verification successful.")

            with Session(engine) as session:
                session.exec(select(Profile).limit(1)).first()
                print("Database connection test: SUCCESS")

                counter = session.get(Sequence, REQUEST_NUMBER_SEQUENCE)
                highest = highest_request_number(session)
                if counter is None:
                    print(f"Request number sequence not seeded yet (highest stored number: {highest})")
                elif counter.value < highest:
                    print(f"WARNING: sequence at {counter.value} is behind the highest stored number {highest}")
                else:
                    print(f"Request number sequence at {counter.value}")

    except TransientStoreError as e:
        print("Database connection test: FAILED")
        print(f"Error: {e.cause}")
        if "sshtunnel" in str(e.cause).lower():
            print("\nTIP: Make sure your SSH credentials in .env are correct and you are not blocked by a firewall.")
        elif "mysql" in str(e.cause).lower():
            print("\nTIP: Ensure the database server is running and the user has correct permissions.")


if __name__ == "__main__":
    verify_database()
