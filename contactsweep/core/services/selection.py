"""Selects which contacts a bulk removal should target."""

import logging
from typing import Iterable, List, Optional, Sequence

from contactsweep.domain.models.contact import ContactRecord

logger = logging.getLogger(__name__)


def normalize_keywords(keywords: Optional[Iterable[str]]) -> List[str]:
    """Lower-cases keywords and splits comma-separated entries; blanks are dropped."""
    result: List[str] = []
    for entry in keywords or ():
        result.extend(part.strip().lower() for part in entry.split(",") if part.strip())
    return result


def matches(record: ContactRecord, title: str, keywords: Sequence[str]) -> bool:
    """True if the headline contains `title` and any keyword appears in 'name headline'."""
    headline = record.headline.lower()
    search_text = f"{record.name.lower()} {headline}"
    if title and title not in headline:
        return False
    if keywords and not any(keyword in search_text for keyword in keywords):
        return False
    return True


def select_contacts(
    records: Sequence[ContactRecord],
    title: Optional[str] = None,
    keywords: Optional[Iterable[str]] = None,
    keep: bool = False,
) -> List[ContactRecord]:
    """Returns the records to remove, preserving input order.

    Without any filter every record is selected. With filters, the matching
    records are selected, or with `keep` the non-matching ones (the matches
    are the ones being kept).
    """
    title_query = (title or "").strip().lower()
    keyword_list = normalize_keywords(keywords)

    if not title_query and not keyword_list:
        return list(records)

    selected = [r for r in records if matches(r, title_query, keyword_list) != keep]
    logger.info(
        f"Selected {len(selected)} of {len(records)} contacts "
        f"({'keeping' if keep else 'removing'} matches of title={title_query!r}, keywords={keyword_list})."
    )
    return selected
