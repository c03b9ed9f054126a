"""Seed data for development and testing."""

from datetime import timedelta

from sqlalchemy.orm import Session

from blocktrust_api.auth.identity import Actor, load_roles
from blocktrust_api.events.lifecycle import EventLifecycleManager
from blocktrust_api.models import PetitionEvent, Role, UserRole, VotingEvent
from blocktrust_api.utils.clock import utcnow

DEMO_ACTORS = {
    "demo-admin": [Role.ADMIN],
    "demo-voter": [Role.VOTER],
    "demo-petitioner": [Role.PETITIONER, Role.VOTER],
}


def grant_role(db: Session, user_id: str, role: Role) -> bool:
    """Grant a role; returns False if it was already held."""
    role = Role(role)
    existing = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role == role.value)
        .first()
    )
    if existing:
        return False
    db.add(UserRole(user_id=user_id, role=role.value))
    db.commit()
    return True


def revoke_role(db: Session, user_id: str, role: Role) -> bool:
    """Revoke a role; returns False if it was not held."""
    deleted = (
        db.query(UserRole)
        .filter(UserRole.user_id == user_id, UserRole.role == Role(role).value)
        .delete()
    )
    db.commit()
    return bool(deleted)


def seed_roles(db: Session):
    """Seed demo role grants."""
    for user_id, roles in DEMO_ACTORS.items():
        for role in roles:
            if grant_role(db, user_id, role):
                print(f"✓ Granted {role.value} to {user_id}")
            else:
                print(f"✓ {user_id} already has {role.value}")


def seed_events(db: Session):
    """Seed one open voting event and one open petition."""
    admin = Actor(id="demo-admin", roles=load_roles(db, "demo-admin"))
    lifecycle = EventLifecycleManager(db)
    now = utcnow()

    if not db.query(VotingEvent).filter(VotingEvent.title == "Community Budget 2025").first():
        event = lifecycle.create_voting_event(
            admin,
            title="Community Budget 2025",
            description="Choose where next year's discretionary budget goes.",
            options=["Parks", "Libraries", "Public Transport"],
            start=now - timedelta(minutes=5),
            end=now + timedelta(days=7),
        )
        print(f"✓ Created voting event: {event.title} (ID: {event.id})")
    else:
        print("✓ Demo voting event already exists")

    if not db.query(PetitionEvent).filter(PetitionEvent.title == "Extend Library Hours").first():
        petition = lifecycle.create_petition(
            admin,
            title="Extend Library Hours",
            description="Keep the central library open until 22:00 on weekdays.",
            start=now - timedelta(minutes=5),
            end=now + timedelta(days=30),
            target_signatures=500,
        )
        print(f"✓ Created petition: {petition.title} (ID: {petition.id})")
    else:
        print("✓ Demo petition already exists")


def seed_all(db: Session):
    """Seed all data."""
    print("Seeding database...")
    seed_roles(db)
    seed_events(db)
    print("✓ Seeding complete!")
