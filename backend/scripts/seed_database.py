#!/usr/bin/env python3
"""
Database Seed Script

Creates demo data through the service layer so every business rule applies:
  - 1 admin + 3 participants
  - 4 published events + 1 draft
  - 5 reservations

Run from backend/:  python -m scripts.seed_database
Clear first with:   python -m scripts.clear_database
"""

import asyncio
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from booknest.core.logging import setup_logging, get_logger
from booknest.db.session import AsyncSessionLocal, engine
from booknest.models.enums import EventStatus, UserRole
from booknest.schemas.event import EventCreate
from booknest.schemas.user import UserCreate
from booknest.services.auth_service import register_user
from booknest.services.event_service import create_event, update_event_status
from booknest.services.reservation_service import create_reservation

logger = get_logger(__name__)

ADMIN_PASSWORD = "Admin123!"
USER_PASSWORD = "User123!"


@dataclass
class EventSeed:
    title: str
    description: str
    days_ahead: int
    location: str
    max_participants: int
    publish: bool = True


USERS = [
    ("admin@booknest.com", ADMIN_PASSWORD, "Ahmed", "Administrator", UserRole.ADMIN),
    ("mohamed@example.com", USER_PASSWORD, "Mohamed", "Alami", UserRole.PARTICIPANT),
    ("fatima@example.com", USER_PASSWORD, "Fatima", "Zahra", UserRole.PARTICIPANT),
    ("youssef@example.com", USER_PASSWORD, "Youssef", "Bennani", UserRole.PARTICIPANT),
]

EVENTS = [
    EventSeed("Advanced TypeScript Training", "Hands-on TypeScript with real projects", 30,
              "Casablanca Tech Hub", 30),
    EventSeed("FastAPI & PostgreSQL Workshop", "Building robust APIs with FastAPI", 35,
              "Rabat Innovation Center", 25),
    EventSeed("DevOps & CI/CD Conference", "Docker, Kubernetes and CI pipelines", 50,
              "Marrakech Tech Conference", 100),
    EventSeed("React & Next.js Workshop", "Modern web applications with React", 40,
              "Tangier Digital Hub", 40),
    EventSeed("Docker & Kubernetes Training", "Containers and orchestration", 85,
              "Fes Tech Park", 35, publish=False),
]

# (participant index, event index, seats)
RESERVATIONS = [(1, 0, 2), (2, 1, 1), (3, 2, 3), (1, 3, 1), (2, 0, 5)]


async def seed() -> None:
    async with AsyncSessionLocal() as db:
        users = []
        for email, password, first, last, role in USERS:
            user = await register_user(
                db,
                UserCreate(email=email, password=password, first_name=first, last_name=last, role=role),
            )
            users.append(user)
        admin = users[0]

        events = []
        now = datetime.now(timezone.utc)
        for item in EVENTS:
            event = await create_event(
                db,
                EventCreate(
                    title=item.title,
                    description=item.description,
                    date=now + timedelta(days=item.days_ahead),
                    location=item.location,
                    max_participants=item.max_participants,
                ),
                admin.id,
            )
            if item.publish:
                event = await update_event_status(db, event.id, EventStatus.PUBLISHED, admin.id)
            events.append(event)

        for user_idx, event_idx, seats in RESERVATIONS:
            await create_reservation(db, events[event_idx].id, seats, users[user_idx].id)

        await db.commit()

    logger.info(
        "database_seeded",
        users=len(USERS),
        events=len(EVENTS),
        reservations=len(RESERVATIONS),
        admin=USERS[0][0],
    )


async def main() -> None:
    setup_logging()
    try:
        await seed()
    finally:
        await engine.dispose()


if __name__ == "__main__":
    asyncio.run(main())
