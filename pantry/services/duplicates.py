"""
Duplicate-name detection for owned collections.

Names are compared case-insensitively through the stored ``name_lower`` column.
The check is read-then-write without a transaction: two concurrent creates with
the same name can both pass. That race is accepted.
"""

import logging
from typing import Optional

from pantry.errors import DuplicateNameError
from pantry.services import metrics
from pantry.services.repository import RecordRepository

log = logging.getLogger("pantry.duplicates")


def normalize_name(name: str) -> str:
    return (name or "").lower()


async def exists_by_name(
    repo: RecordRepository,
    owner_id: str,
    collection: str,
    name: str,
    exclude_id: Optional[str] = None,
) -> bool:
    """
    Check if a name (case-insensitive) already exists in a collection.

    Args:
        repo: Record repository to query
        owner_id: Owner whose records are searched
        collection: 'items' or 'recipes'
        name: The name to check for uniqueness
        exclude_id: Record being updated; a match on itself is not a duplicate

    Returns:
        True if another record already uses the name
    """
    matches = await repo.find_by(owner_id, collection, name_lower=normalize_name(name))
    if not matches:
        return False
    if exclude_id:
        return any(str(m.id) != str(exclude_id) for m in matches)
    return True


async def ensure_unique_name(
    repo: RecordRepository,
    owner_id: str,
    collection: str,
    name: str,
    exclude_id: Optional[str] = None,
) -> None:
    if await exists_by_name(repo, owner_id, collection, name, exclude_id):
        log.info("Rejected duplicate %s name %r for owner %s", collection, name, owner_id)
        metrics.record_duplicate(collection)
        raise DuplicateNameError(collection, name)
