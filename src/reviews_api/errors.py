"""
Error kinds raised by the data-access and auth layers.

Database failures are the driver's own exception classes, re-exported here
under the names the rest of the package uses. They reach callers unmodified.
"""

from psycopg2 import errors as pg_errors

UniqueViolation = pg_errors.UniqueViolation
ForeignKeyViolation = pg_errors.ForeignKeyViolation

# Score out of range or a required column left empty.
ConstraintViolation = (pg_errors.CheckViolation, pg_errors.NotNullViolation)


class InvalidCredentials(Exception):
    """Login failed: unknown email or wrong password (deliberately not distinguished)."""


class NotFoundOrNotOwned(Exception):
    """Update/delete target does not exist or belongs to another user."""


class InvalidToken(Exception):
    """Bearer token failed signature, expiry or payload validation."""


class MissingToken(Exception):
    """No bearer token was supplied."""
