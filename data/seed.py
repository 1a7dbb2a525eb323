"""
Seed script for populating a development database with sample records.
Run with: python data/seed.py

Records go through the service layer, so seeded data obeys the same rules as
data entered through the API.
"""
import sys
from pathlib import Path

# Add parent directory to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from claimdesk.core import ValidationError
from claimdesk.db import SessionLocal, init_db
from claimdesk.services import (
    CUSTOMER,
    POLICY,
    AggregationService,
    ClaimLifecycle,
    EntityStore,
)

SEED_ACTOR = "seed-script"

SAMPLE_CUSTOMERS = [
    {
        "first_name": "Amal",
        "last_name": "Benali",
        "email": "amal.benali@example.com",
        "address": "12 Rue Allal Ben Abdellah, Casablanca",
        "phone": "+212600000001",
        "policies": [
            {
                "type": "auto",
                "coverage_amount": 100000,
                "claims": [
                    {"date": "2024-01-05", "description": "Rear bumper damage in parking lot", "claimed_amount": 500,
                     "flow": [("APPROVED", None), ("SETTLED", 450)]},
                    {"date": "2024-03-18", "description": "Windshield crack", "claimed_amount": 1200,
                     "flow": [("APPROVED", None)]},
                ],
            },
        ],
    },
    {
        "first_name": "Youssef",
        "last_name": "El Idrissi",
        "email": "youssef.idrissi@example.com",
        "address": "4 Avenue Hassan II, Rabat",
        "phone": "+212600000002",
        "policies": [
            {
                "type": "home",
                "coverage_amount": 750000,
                "claims": [
                    {"date": "2024-02-11", "description": "Water leak from upstairs apartment", "claimed_amount": 8000,
                     "flow": [("REJECTED", None)]},
                ],
            },
            {"type": "medical", "coverage_amount": 50000, "claims": []},
        ],
    },
    {
        "first_name": "Salma",
        "last_name": "Tazi",
        "email": "salma.tazi@example.com",
        "address": "27 Boulevard Zerktouni, Marrakech",
        "phone": "+212600000003",
        "policies": [
            {
                "type": "medical",
                "coverage_amount": 80000,
                "claims": [
                    {"date": "2024-04-02", "description": "Outpatient surgery", "claimed_amount": 15000, "flow": []},
                ],
            },
        ],
    },
]


def seed():
    """Seed the database with sample customers, policies and claims."""
    init_db()
    db = SessionLocal()
    store = EntityStore(db)
    lifecycle = ClaimLifecycle(store)

    try:
        for sample in SAMPLE_CUSTOMERS:
            fields = {k: v for k, v in sample.items() if k != "policies"}
            try:
                customer = store.create(CUSTOMER, fields, actor=SEED_ACTOR)
            except ValidationError as e:
                print(f"  Skipping customer {sample['email']}: {e.errors}")
                continue
            print(f"  Created customer #{customer.id}: {customer.first_name} {customer.last_name}")

            for policy_sample in sample["policies"]:
                policy = store.create(
                    POLICY,
                    {
                        "type": policy_sample["type"],
                        "coverage_amount": policy_sample["coverage_amount"],
                        "customer_id": customer.id,
                    },
                    actor=SEED_ACTOR,
                )
                print(f"    Created policy #{policy.id} ({policy.type.value})")

                for claim_sample in policy_sample["claims"]:
                    claim = lifecycle.submit(
                        {
                            "date": claim_sample["date"],
                            "description": claim_sample["description"],
                            "claimed_amount": claim_sample["claimed_amount"],
                            "policy_id": policy.id,
                        },
                        actor=SEED_ACTOR,
                    )
                    for new_status, settled_amount in claim_sample["flow"]:
                        claim = lifecycle.transition(
                            claim.id, new_status, settled_amount=settled_amount, actor=SEED_ACTOR
                        )
                    print(f"      Created claim #{claim.id} ({claim.status.value})")

        print("\n" + "=" * 60)
        print("SEEDING COMPLETE!")
        print("=" * 60)

        counts = AggregationService(store).counts()
        print("\nDatabase Summary:")
        print(f"  Customers: {counts.customer_count}")
        print(f"  Policies: {counts.policy_count}")
        print(f"  Claims: {counts.claim_count}")
        print()

    except Exception as e:
        print(f"\nError: {e}")
        db.rollback()
        raise
    finally:
        db.close()


if __name__ == "__main__":
    seed()
