"""Load demo data: three owners, five customers, three restaurants with ten
tables each, a handful of bookings and reviews.

    python -m backend.app.seed [--reset]

``--reset`` drops and recreates every table first; without it the schema is
created if missing and the script refuses to run against a non-empty database.
"""
import argparse
import asyncio
import datetime as dt
import logging

from sqlalchemy import func, select

from backend.app.core.config import settings
from backend.app.core.logging_config import configure_logging
from backend.app.core.security import hash_password
from backend.app.db.models import Booking, BookingStatus, Restaurant, Review, Table, User, UserRole
from backend.app.db.session import SessionLocal, create_schema, engine


logger = logging.getLogger(__name__)

OWNERS = [
    ("owner1@example.com", "Marco", "Rossi", "+1-555-0101"),
    ("owner2@example.com", "Sarah", "Chen", "+1-555-0102"),
    ("owner3@example.com", "Jean", "Dupont", "+1-555-0103"),
]

CUSTOMERS = [
    ("customer1@example.com", "John", "Doe", "+1-555-0201"),
    ("customer2@example.com", "Emily", "Johnson", "+1-555-0202"),
    ("customer3@example.com", "Michael", "Williams", "+1-555-0203"),
    ("customer4@example.com", "Jessica", "Brown", "+1-555-0204"),
    ("customer5@example.com", "David", "Miller", "+1-555-0205"),
]

RESTAURANTS = [
    {
        "name": "Marco's Trattoria",
        "description": "Authentic Italian cuisine in a cozy, family-friendly atmosphere.",
        "address": "123 Main Street",
        "city": "New York",
        "phone": "+1-212-555-1001",
        "cuisine": "Italian",
        "price_range": 3,
        "opening_time": "11:30",
        "closing_time": "22:00",
    },
    {
        "name": "Dragon Palace",
        "description": "Sichuan and Cantonese specialties with private dining rooms.",
        "address": "456 Oak Avenue",
        "city": "San Francisco",
        "phone": "+1-415-555-1002",
        "cuisine": "Chinese",
        "price_range": 4,
        "opening_time": "17:00",
        "closing_time": "22:30",
    },
    {
        "name": "Le Petit Bistro",
        "description": "Classic French bistro dishes with a modern twist.",
        "address": "789 Rue de Paris",
        "city": "Chicago",
        "phone": "+1-312-555-1003",
        "cuisine": "French",
        "price_range": 4,
        "opening_time": "17:30",
        "closing_time": "22:00",
    },
]

# (customer index, restaurant index, table number, time, party size, status, requests)
BOOKINGS = [
    (0, 0, "T01", "19:00", 2, BookingStatus.CONFIRMED, "Window seat preferred, celebrating anniversary"),
    (1, 0, "T06", "20:00", 4, BookingStatus.PENDING, "High chair needed for toddler"),
    (2, 1, "T03", "18:30", 6, BookingStatus.CONFIRMED, "Private dining room if available"),
    (3, 2, "T04", "20:30", 2, BookingStatus.CONFIRMED, "Romantic table setting, gluten-free options"),
    (4, 1, "T10", "19:30", 8, BookingStatus.PENDING, "Birthday celebration, cake service needed"),
]

# (customer index, restaurant index, rating, comment)
REVIEWS = [
    (0, 0, 5, "Amazing pasta! The carbonara was the best I've ever had."),
    (2, 1, 4, "Great Sichuan dishes, very authentic. Service was a bit slow."),
    (3, 2, 5, "Perfect romantic dinner spot. The coq au vin was divine."),
]


def _table_capacity(number: int) -> int:
    # T01-T04 seat 2, T05-T07 seat 4, T08-T09 seat 6, T10 seats 8
    if number <= 4:
        return 2
    if number <= 7:
        return 4
    if number <= 9:
        return 6
    return 8


def _users(rows, password: str, role: UserRole) -> list[User]:
    password_hash = hash_password(password)
    return [
        User(
            email=email,
            password_hash=password_hash,
            first_name=first,
            last_name=last,
            phone=phone,
            role=role,
        )
        for email, first, last, phone in rows
    ]


async def seed(*, reset: bool) -> None:
    await create_schema(drop_existing=reset)

    async with SessionLocal() as session:
        async with session.begin():
            if await session.scalar(select(func.count(User.id))):
                raise SystemExit("Database already has users; rerun with --reset to replace them")

            owners = _users(OWNERS, "owner123", UserRole.RESTAURANT_OWNER)
            customers = _users(CUSTOMERS, "customer123", UserRole.CUSTOMER)
            session.add_all(owners + customers)
            await session.flush()
            logger.info(f"Created {len(owners)} owners and {len(customers)} customers")

            restaurants = []
            tables: dict[tuple[int, str], Table] = {}
            for index, fields in enumerate(RESTAURANTS):
                restaurant = Restaurant(owner_id=owners[index].id, total_tables=10, capacity=50, **fields)
                session.add(restaurant)
                await session.flush()
                restaurants.append(restaurant)
                for number in range(1, 11):
                    table = Table(
                        restaurant_id=restaurant.id,
                        table_number=f"T{number:02d}",
                        capacity=_table_capacity(number),
                    )
                    session.add(table)
                    tables[(index, table.table_number)] = table
            await session.flush()
            logger.info(f"Created {len(restaurants)} restaurants with {len(tables)} tables")

            booking_date = dt.date.today() + dt.timedelta(days=3)
            for customer, restaurant, table_number, time, party, status, requests in BOOKINGS:
                session.add(
                    Booking(
                        user_id=customers[customer].id,
                        restaurant_id=restaurants[restaurant].id,
                        table_id=tables[(restaurant, table_number)].id,
                        date=booking_date,
                        time=time,
                        party_size=party,
                        status=status,
                        special_requests=requests,
                    )
                )
            logger.info(f"Created {len(BOOKINGS)} bookings on {booking_date}")

            for customer, restaurant, rating, comment in REVIEWS:
                session.add(
                    Review(
                        user_id=customers[customer].id,
                        restaurant_id=restaurants[restaurant].id,
                        rating=rating,
                        comment=comment,
                    )
                )
                restaurants[restaurant].rating = float(rating)
                restaurants[restaurant].review_count = 1
            logger.info(f"Created {len(REVIEWS)} reviews")

    await engine.dispose()


def main() -> None:
    parser = argparse.ArgumentParser(description="Load demo reservation data.")
    parser.add_argument("--reset", action="store_true", help="drop and recreate all tables first")
    args = parser.parse_args()

    configure_logging(settings.LOG_LEVEL)
    asyncio.run(seed(reset=args.reset))


if __name__ == "__main__":
    main()
