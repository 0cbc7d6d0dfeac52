"""Seed script to populate database with sample data."""

import asyncio
import sys

sys.path.insert(0, ".")

from sqlalchemy import select

from notevault.db import get_db_context, init_db
from notevault.models import CollaboratorPermission, NoteStatus, User
from notevault.schemas import CategoryCreate, NoteCreate
from notevault.services.categories import create_category
from notevault.services.collaborators import add_collaborator
from notevault.services.notes import create_note
from notevault.services.password import hash_password
from notevault.services.sharing import create_share_link
from notevault.settings import settings

DEMO_PASSWORD = "Password123"


async def seed_database():
    """Seed the database with sample data."""
    await init_db()

    async with get_db_context() as session:
        # Check if already seeded
        existing = await session.execute(select(User).limit(1))
        if existing.scalar_one_or_none():
            print("Database already seeded. Skipping.")
            return

        print("Seeding database...")

        # Create demo users
        alice = User(
            email="alice@example.com",
            first_name="Alice",
            last_name="Johnson",
            hashed_password=hash_password(DEMO_PASSWORD),
        )
        bob = User(
            email="bob@example.com",
            first_name="Bob",
            last_name="Smith",
            hashed_password=hash_password(DEMO_PASSWORD),
        )
        session.add_all([alice, bob])
        await session.flush()
        print(f"Created users: {alice.email}, {bob.email}")

        # Category tree for Alice
        work = await create_category(session, alice, CategoryCreate(name="Work", color="#4F46E5"))
        projects = await create_category(session, alice, CategoryCreate(name="Projects", parent_id=work.id))
        print(f"Created categories: {work.name}, {projects.name}")

        # Notes
        roadmap = await create_note(
            session,
            alice,
            NoteCreate(
                title="Q3 roadmap",
                content="# Q3 roadmap\n\n- Ship sharing\n- Collaborators\n- **Version history**",
                category_id=projects.id,
                tags=["planning", "work"],
                status=NoteStatus.PUBLISHED,
                is_pinned=True,
            ),
        )
        await create_note(
            session,
            alice,
            NoteCreate(title="Groceries", content="milk, eggs, coffee", tags=["home"]),
        )
        await create_note(
            session,
            bob,
            NoteCreate(title="Reading list", content="Designing Data-Intensive Applications"),
        )

        await add_collaborator(session, roadmap, alice, bob.email, CollaboratorPermission.EDIT)
        await create_share_link(session, roadmap, alice)

        print("\n✅ Database seeded successfully!")
        print("\nDemo accounts:")
        print(f"  Email: alice@example.com  Password: {DEMO_PASSWORD}")
        print(f"  Email: bob@example.com    Password: {DEMO_PASSWORD} (editor on Q3 roadmap)")
        print(f"\nShared note: {settings.base_url}/shared/{roadmap.share_id}")


if __name__ == "__main__":
    asyncio.run(seed_database())
