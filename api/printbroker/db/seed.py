"""Database seeding script."""

from printbroker.config import settings
from printbroker.database import SessionLocal
from printbroker.models.company import Company, Vendor
from printbroker.models.global_sequence import GlobalSequence
from printbroker.services.sequence_service import JOB_NUMBER_SEQUENCE, MASTER_SEQUENCE


def seed_database():
    """Seed sequence counters and demo customer/vendor records."""
    db = SessionLocal()

    try:
        # current_value is the last issued value
        counters = {
            JOB_NUMBER_SEQUENCE: settings.job_number_start - 1,
            MASTER_SEQUENCE: settings.master_sequence_start,
        }
        for name, value in counters.items():
            if db.get(GlobalSequence, name) is None:
                db.add(GlobalSequence(name=name, current_value=value))
                print(f"Created sequence {name} at {value}")

        existing_customer = db.query(Company).filter_by(name="Demo Customer").first()
        if existing_customer:
            db.commit()
            print("Database already seeded. Skipping demo records.")
            return

        customer = Company(name="Demo Customer", type="CUSTOMER", email="orders@demo-customer.example.com")
        db.add(customer)
        print(f"Created customer: {customer.name}")

        vendor = Vendor(name="Demo Print Vendor", vendor_code="DPV", email="quotes@demo-vendor.example.com")
        db.add(vendor)
        print(f"Created vendor: {vendor.name} ({vendor.vendor_code})")

        db.commit()
        print("\nDatabase seeded successfully!")

    except Exception as e:
        db.rollback()
        print(f"Error seeding database: {e}")
        raise
    finally:
        db.close()


if __name__ == "__main__":
    print("Starting database seeding...")
    seed_database()
