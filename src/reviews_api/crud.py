"""
Data-access functions for users, items, reviews and comments.

Every function takes an open connection (see ``db.connection``) as its
first argument and runs parameterized SQL against it. Database errors
(``UniqueViolation``, check/not-null violations, foreign key violations)
propagate to the caller unmodified.

Updates and deletes of reviews and comments filter on both the row id and
the owning user id in one statement. A ``None`` result means no row matched:
the row is missing or belongs to someone else, and callers cannot tell which.
"""

import logging
import uuid
from decimal import Decimal
from typing import Any, Dict, List, Optional

from reviews_api import db
from reviews_api.auth_utils import dummy_verify, hash_password, verify_password
from reviews_api.errors import InvalidCredentials

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _new_id() -> str:
    return str(uuid.uuid4())


# =========================
# Users
# =========================

# PUBLIC_INTERFACE
def create_user(conn, username: str, email: str, password: str) -> Row:
    """Create a user; the password is stored only as a salted bcrypt hash."""
    return db.execute_returning_one(
        conn,
        """
        INSERT INTO users (id, username, email, password)
        VALUES (%s, %s, %s, %s)
        RETURNING id, username, email, created_at
        """,
        [_new_id(), username, email, hash_password(password)],
    )


# PUBLIC_INTERFACE
def authenticate_user(conn, email: str, password: str) -> Row:
    """Return ``{id, username, email}`` for matching credentials, else raise InvalidCredentials."""
    user = db.fetch_one(
        conn,
        "SELECT id, username, email, password FROM users WHERE email=%s",
        [email],
    )
    if user is None:
        dummy_verify()
        logger.info("Failed login: no matching user")
        raise InvalidCredentials("Invalid email or password")
    if not verify_password(password, user["password"]):
        logger.info("Failed login for user %s", user["id"])
        raise InvalidCredentials("Invalid email or password")
    return {"id": user["id"], "username": user["username"], "email": user["email"]}


# PUBLIC_INTERFACE
def get_user(conn, user_id: str) -> Optional[Row]:
    return db.fetch_one(
        conn,
        "SELECT id, username, email, created_at FROM users WHERE id=%s",
        [str(user_id)],
    )


# PUBLIC_INTERFACE
def delete_user(conn, user_id: str) -> Optional[Row]:
    """Delete a user together with their reviews and comments."""
    return db.execute_returning_optional(
        conn,
        "DELETE FROM users WHERE id=%s RETURNING id, username, email, created_at",
        [str(user_id)],
    )


# =========================
# Items
# =========================

# PUBLIC_INTERFACE
def create_item(conn, name: str, description: str) -> Row:
    return db.execute_returning_one(
        conn,
        "INSERT INTO items (id, name, description) VALUES (%s, %s, %s) RETURNING *",
        [_new_id(), name, description],
    )


# PUBLIC_INTERFACE
def list_items(conn) -> List[Row]:
    return db.fetch_all(conn, "SELECT * FROM items ORDER BY created_at DESC")


# PUBLIC_INTERFACE
def get_item(conn, item_id: str) -> Optional[Row]:
    return db.fetch_one(conn, "SELECT * FROM items WHERE id=%s", [str(item_id)])


# PUBLIC_INTERFACE
def delete_item(conn, item_id: str) -> Optional[Row]:
    """Delete an item; its reviews and their comments go with it."""
    return db.execute_returning_optional(conn, "DELETE FROM items WHERE id=%s RETURNING *", [str(item_id)])


# PUBLIC_INTERFACE
def get_item_with_reviews_and_average(conn, item_id: str) -> Optional[Row]:
    """
    Return ``{item, reviews, average_score}`` for an item, or None if it does not exist.

    ``average_score`` is the mean review score rounded to two decimals,
    ``Decimal("0.00")`` when the item has no reviews.
    """
    item = get_item(conn, item_id)
    if item is None:
        return None
    average = db.fetch_one(
        conn,
        "SELECT COALESCE(ROUND(AVG(score), 2), 0.00) AS average_score FROM reviews WHERE item_id=%s",
        [str(item_id)],
    )
    return {
        "item": item,
        "reviews": list_reviews_for_item(conn, item_id),
        "average_score": Decimal(average["average_score"]).quantize(Decimal("0.01")),
    }


# =========================
# Reviews
# =========================

# PUBLIC_INTERFACE
def create_review(conn, user_id: str, item_id: str, score: int, text: str) -> Row:
    """Create a review; a second review for the same (user, item) raises UniqueViolation."""
    return db.execute_returning_one(
        conn,
        """
        INSERT INTO reviews (id, user_id, item_id, score, text)
        VALUES (%s, %s, %s, %s, %s)
        RETURNING *
        """,
        [_new_id(), str(user_id), str(item_id), score, text],
    )


# PUBLIC_INTERFACE
def get_review(conn, review_id: str) -> Optional[Row]:
    return db.fetch_one(conn, "SELECT * FROM reviews WHERE id=%s", [str(review_id)])


# PUBLIC_INTERFACE
def list_reviews_for_item(conn, item_id: str) -> List[Row]:
    return db.fetch_all(
        conn,
        "SELECT * FROM reviews WHERE item_id=%s ORDER BY created_at DESC",
        [str(item_id)],
    )


# PUBLIC_INTERFACE
def list_reviews_by_user(conn, user_id: str) -> List[Row]:
    return db.fetch_all(
        conn,
        "SELECT * FROM reviews WHERE user_id=%s ORDER BY created_at DESC",
        [str(user_id)],
    )


# PUBLIC_INTERFACE
def update_review(conn, review_id: str, user_id: str, text: str, score: int) -> Optional[Row]:
    return db.execute_returning_optional(
        conn,
        """
        UPDATE reviews
        SET text=%s, score=%s, updated_at=NOW()
        WHERE id=%s AND user_id=%s
        RETURNING *
        """,
        [text, score, str(review_id), str(user_id)],
    )


# PUBLIC_INTERFACE
def delete_review(conn, review_id: str, user_id: str) -> Optional[Row]:
    return db.execute_returning_optional(
        conn,
        "DELETE FROM reviews WHERE id=%s AND user_id=%s RETURNING *",
        [str(review_id), str(user_id)],
    )


# =========================
# Comments
# =========================

# PUBLIC_INTERFACE
def create_comment(conn, user_id: str, review_id: str, text: str) -> Row:
    """Create a comment; a second comment by the same user on a review raises UniqueViolation."""
    return db.execute_returning_one(
        conn,
        """
        INSERT INTO comments (id, user_id, review_id, text)
        VALUES (%s, %s, %s, %s)
        RETURNING *
        """,
        [_new_id(), str(user_id), str(review_id), text],
    )


# PUBLIC_INTERFACE
def list_comments_for_review(conn, review_id: str) -> List[Row]:
    return db.fetch_all(
        conn,
        "SELECT * FROM comments WHERE review_id=%s ORDER BY created_at DESC",
        [str(review_id)],
    )


# PUBLIC_INTERFACE
def list_comments_by_user(conn, user_id: str) -> List[Row]:
    return db.fetch_all(
        conn,
        "SELECT * FROM comments WHERE user_id=%s ORDER BY created_at DESC",
        [str(user_id)],
    )


# PUBLIC_INTERFACE
def update_comment(conn, comment_id: str, user_id: str, text: str) -> Optional[Row]:
    return db.execute_returning_optional(
        conn,
        """
        UPDATE comments
        SET text=%s, updated_at=NOW()
        WHERE id=%s AND user_id=%s
        RETURNING *
        """,
        [text, str(comment_id), str(user_id)],
    )


# PUBLIC_INTERFACE
def delete_comment(conn, comment_id: str, user_id: str) -> Optional[Row]:
    return db.execute_returning_optional(
        conn,
        "DELETE FROM comments WHERE id=%s AND user_id=%s RETURNING *",
        [str(comment_id), str(user_id)],
    )
