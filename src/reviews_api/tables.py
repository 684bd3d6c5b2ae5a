"""
Table definitions for users, items, reviews and comments.

Uniqueness, the score range and the cascade rules all live in the database;
the data-access layer relies on them instead of checking in Python.
"""

import logging

from reviews_api import db

logger = logging.getLogger(__name__)

DROP_TABLES_SQL = """
DROP TABLE IF EXISTS comments;
DROP TABLE IF EXISTS reviews;
DROP TABLE IF EXISTS items;
DROP TABLE IF EXISTS users;
DROP FUNCTION IF EXISTS refresh_item_average_score();
"""

CREATE_TABLES_SQL = """
CREATE TABLE users (
    id UUID PRIMARY KEY,
    username VARCHAR(50) NOT NULL UNIQUE,
    email VARCHAR(100) NOT NULL UNIQUE,
    password VARCHAR(255) NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE items (
    id UUID PRIMARY KEY,
    name VARCHAR(100) NOT NULL UNIQUE,
    description TEXT NOT NULL,
    average_score DECIMAL(3, 2) NOT NULL DEFAULT 0.00,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW()
);

CREATE TABLE reviews (
    id UUID PRIMARY KEY,
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    item_id UUID NOT NULL REFERENCES items(id) ON DELETE CASCADE,
    score INT NOT NULL CHECK (score BETWEEN 1 AND 5),
    text TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT unique_user_item UNIQUE (user_id, item_id)
);

CREATE TABLE comments (
    id UUID PRIMARY KEY,
    user_id UUID NOT NULL REFERENCES users(id) ON DELETE CASCADE,
    review_id UUID NOT NULL REFERENCES reviews(id) ON DELETE CASCADE,
    text TEXT NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    CONSTRAINT unique_user_review UNIQUE (user_id, review_id)
);

CREATE INDEX reviews_item_id_idx ON reviews (item_id);
CREATE INDEX comments_review_id_idx ON comments (review_id);

-- The item row is locked in its own statement so the following UPDATE takes
-- a fresh snapshot that includes reviews committed by concurrent writers.
-- NO KEY UPDATE does not conflict with the KEY SHARE lock each review insert
-- already holds on the item through its foreign key.
CREATE FUNCTION refresh_item_average_score() RETURNS TRIGGER AS $$
BEGIN
    IF TG_OP IN ('UPDATE', 'DELETE') THEN
        PERFORM 1 FROM items WHERE id = OLD.item_id FOR NO KEY UPDATE;
        UPDATE items
        SET average_score = (
            SELECT COALESCE(ROUND(AVG(r.score), 2), 0.00) FROM reviews r WHERE r.item_id = OLD.item_id
        )
        WHERE id = OLD.item_id;
    END IF;
    IF TG_OP IN ('INSERT', 'UPDATE') THEN
        PERFORM 1 FROM items WHERE id = NEW.item_id FOR NO KEY UPDATE;
        UPDATE items
        SET average_score = (
            SELECT COALESCE(ROUND(AVG(r.score), 2), 0.00) FROM reviews r WHERE r.item_id = NEW.item_id
        )
        WHERE id = NEW.item_id;
    END IF;
    RETURN NULL;
END;
$$ LANGUAGE plpgsql;

CREATE TRIGGER reviews_refresh_item_average_score
AFTER INSERT OR UPDATE OR DELETE ON reviews
FOR EACH ROW EXECUTE FUNCTION refresh_item_average_score();
"""


# PUBLIC_INTERFACE
def drop_tables(conn) -> None:
    """Drop all tables (and the average score trigger function)."""
    db.execute_script(conn, DROP_TABLES_SQL)


# PUBLIC_INTERFACE
def create_tables(conn) -> None:
    """Drop and recreate the users, items, reviews and comments tables."""
    db.execute_script(conn, DROP_TABLES_SQL + CREATE_TABLES_SQL)
    logger.info("Tables created")
