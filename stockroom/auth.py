"""
Staff login lookup against the Users table.

Passwords are stored as werkzeug hashes in the "Password Hash" column. The
email is matched through an escaped predicate; a store failure fails closed.
"""

from typing import Optional

from werkzeug.security import check_password_hash, generate_password_hash

from stockroom.config import USERS_TABLE_NAME
from stockroom.exceptions import StoreError
from stockroom.filters import field_equals
from stockroom.models import AuthenticatedUser, UserFields
from stockroom.record_store import RecordStoreClient
from stockroom.logger import get_logger

logger = get_logger(__name__)


def hash_password(password: str) -> str:
    """Hash a password for the Users table."""
    return generate_password_hash(password)


def lookup_user(
    store: RecordStoreClient,
    email: Optional[str],
    password: Optional[str],
    table_name: Optional[str] = None,
) -> Optional[AuthenticatedUser]:
    """
    Validate staff credentials.

    Returns:
        AuthenticatedUser on a match, None when the email is unknown, the
        password is wrong, or the store cannot be reached
    """
    email = (email or "").strip()
    if not email or not password:
        return None

    try:
        record = store.find_one(table_name or USERS_TABLE_NAME, field_equals(UserFields.EMAIL, email))
    except StoreError as e:
        logger.error(f"Error during user lookup: {str(e)}")
        return None

    if record is None:
        logger.info("Login failed: unknown user")
        return None

    fields = record.get("fields") or {}
    stored_hash = fields.get(UserFields.PASSWORD_HASH) or ""
    if not stored_hash or not check_password_hash(stored_hash, password):
        logger.info(f"Login failed for user record {record.get('id')}")
        return None

    user = AuthenticatedUser(
        id=record.get("id"),
        email=fields.get(UserFields.EMAIL) or email,
        role=fields.get(UserFields.ROLE),
        department=fields.get(UserFields.DEPARTMENT),
    )
    logger.info(f"Login succeeded for user record {user.id} (role {user.role})")
    return user
