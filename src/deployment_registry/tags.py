"""Advisory tag uniqueness checks for deployment-registry library."""

from typing import Iterable

from .types import DeploymentRecord


def count_tag_matches(tag: str, records: Iterable[DeploymentRecord]) -> int:
    """
    Count records whose tag equals ``tag``, ignoring case.

    Untagged records never match. The count is advisory: callers warn on a
    nonzero result but must not block a deployment on it.

    Args:
        tag: Tag to look for
        records: Existing records of one contract type

    Returns:
        Number of matching records (may be zero)
    """
    wanted = tag.lower()
    return sum(1 for r in records if r.tag and r.tag.lower() == wanted)
