# scripts/init_database.py

"""
Database initialization script.
This script creates all tables and seeds default data:
- The catch-all "Other" source
- Bootstrap admin grants from BOOTSTRAP_ADMIN_EMAILS
"""

import os
import sys

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app import app
from discfinder.models import Source, db
from discfinder.services import seed_bootstrap_grants


def create_default_sources():
    """Create the fallback source used when a location is not listed"""
    source = Source.find_by_name("Other")
    if source is None:
        source = Source(
            name="Other",
            description="For locations not listed in the predefined sources",
            is_active=True,
            sort_order=999,
        )
        db.session.add(source)
        db.session.commit()
        return True
    return False


def init_database():
    """Initialize database with all default data"""
    with app.app_context():
        print("Creating database tables...")
        db.create_all()
        print("Database tables created")

        print("Creating default sources...")
        if create_default_sources():
            print("Created source 'Other'")
        else:
            print("Source 'Other' already exists")

        print("Seeding bootstrap admin grants...")
        grants = seed_bootstrap_grants(granted_by="init_database")
        print(f"Seeded {len(grants)} bootstrap admin grant(s)")

        print("\nDatabase initialization complete!")
        print("\nNext steps:")
        print("  1. Import sources:   flask importer sources --file sources.csv")
        print("  2. Import profiles:  flask importer profiles --file users.csv")
        print("  3. Import discs:     flask importer found-discs --file found_discs.csv")
        print("  4. Import contacts:  flask importer contact-attempts --file found_discs.csv")


if __name__ == "__main__":
    init_database()
