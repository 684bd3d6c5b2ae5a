import logging
from typing import Any, Dict, List

from reviews_api import config, crud, db
from reviews_api.tables import create_tables

logger = logging.getLogger(__name__)

DEMO_USERS = [
    ("john_doe", "john@example.com", "password1"),
    ("jane_doe", "jane@example.com", "password2"),
    ("jim_bean", "jim@example.com", "password3"),
    ("susan_storm", "susan@example.com", "password4"),
    ("peter_parker", "peter@example.com", "password5"),
]

DEMO_ITEMS = [
    ("Toyota Camry", "A reliable and fuel-efficient sedan."),
    ("Honda Civic", "Compact car with great mileage and durability."),
    ("Ford Mustang", "A classic American muscle car."),
    ("Chevrolet Malibu", "A midsize sedan with a comfortable ride."),
    ("Tesla Model 3", "An all-electric sedan with cutting-edge technology."),
]


# PUBLIC_INTERFACE
def seed_data(conn) -> Dict[str, List[Dict[str, Any]]]:
    """Insert demo users, items, reviews and comments. Expects empty tables."""
    users = [crud.create_user(conn, username, email, password) for username, email, password in DEMO_USERS]
    logger.info("Seeded %d users", len(users))

    items = [crud.create_item(conn, name, description) for name, description in DEMO_ITEMS]
    logger.info("Seeded %d items", len(items))

    reviews = [
        crud.create_review(conn, users[0]["id"], items[0]["id"], 5, "Excellent car!"),
        crud.create_review(conn, users[1]["id"], items[1]["id"], 4, "Good value for money."),
    ]
    logger.info("Seeded %d reviews", len(reviews))

    comments = [
        crud.create_comment(conn, users[1]["id"], reviews[0]["id"], "I agree, it's amazing!"),
        crud.create_comment(conn, users[0]["id"], reviews[1]["id"], "Thanks for sharing!"),
    ]
    logger.info("Seeded %d comments", len(comments))

    return {"users": users, "items": items, "reviews": reviews, "comments": comments}


# PUBLIC_INTERFACE
def reset_and_seed() -> None:
    """Recreate every table and fill it with demo data."""
    with db.connection() as conn:
        create_tables(conn)
        seed_data(conn)


def main() -> None:
    logging.basicConfig(level=config.log_level(), format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    reset_and_seed()
    db.close_db_pool()


if __name__ == "__main__":
    main()
