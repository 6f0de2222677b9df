"""Shape-agnostic parsing of Voyager connection-list responses.

The payload layout differs between API revisions and account states, so
parsing is an ordered chain of heuristics over the normalized JSON. Each
strategy is a plain function from (included, elements) to records; the first
one that yields at least one record wins. Nothing in this module raises on
malformed input: a total miss degrades to an empty list and a diagnostic
sample in the DEBUG log.
"""

import json
import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from contactsweep.domain.models.contact import ContactRecord

logger = logging.getLogger(__name__)

DIAGNOSTIC_ENTITIES = 3
DIAGNOSTIC_CHARS = 1000

# Field names a relationship entity may use to point at its member profile.
MEMBER_REFERENCE_FIELDS: Tuple[str, ...] = (
    "connectedMember",
    "connectedMemberResolutionResult",
    "*connectedMember",
    "member",
    "*member",
    "miniProfile",
    "*miniProfile",
)
# Result elements use the same references, minus the miniProfile variants.
ELEMENT_REFERENCE_FIELDS: Tuple[str, ...] = MEMBER_REFERENCE_FIELDS[:5]

VECTOR_IMAGE_KEY = "com.linkedin.common.VectorImage"

Entity = Dict[str, Any]
ParseStrategy = Callable[[List[Entity], List[Any]], List[ContactRecord]]


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------

def _text(entity: Mapping[str, Any], *keys: str) -> str:
    """First non-empty string value among `keys`, else ''."""
    for key in keys:
        value = entity.get(key)
        if isinstance(value, str) and value:
            return value
    return ""


def _timestamp(value: Any) -> Optional[int]:
    if isinstance(value, bool) or not isinstance(value, (int, float)) or not value:
        return None
    return int(value)


def _has_name(entity: Mapping[str, Any]) -> bool:
    return bool(_text(entity, "firstName") or _text(entity, "lastName"))


def _entity_type(entity: Mapping[str, Any]) -> str:
    return (_text(entity, "$recipeType", "$type")).lower()


def extract_profile_picture(entity: Any) -> str:
    """Resolves an absolute picture URL from a profile-like entity.

    Prefers `rootUrl` + the first (smallest) artifact's path segment, then a
    bare string URL. Returns '' when nothing usable is present.
    """
    if not isinstance(entity, Mapping):
        return ""
    picture = entity.get("picture") or entity.get("profilePicture") or entity.get("image")
    if not picture:
        return ""
    if isinstance(picture, str):
        return picture
    if not isinstance(picture, Mapping):
        return ""

    vector_image = picture.get(VECTOR_IMAGE_KEY) or picture
    if not isinstance(vector_image, Mapping):
        return ""
    artifacts = vector_image.get("artifacts")
    root_url = vector_image.get("rootUrl")
    if isinstance(artifacts, list) and artifacts and isinstance(root_url, str) and root_url:
        first = artifacts[0]
        segment = first.get("fileIdentifyingUrlPathSegment") if isinstance(first, Mapping) else None
        return root_url + (segment if isinstance(segment, str) else "")
    return ""


def extract_member_urn(entity: Mapping[str, Any], fields: Sequence[str] = MEMBER_REFERENCE_FIELDS) -> Optional[str]:
    """Finds the member URN a relationship entity refers to, by any known field name."""
    for field_name in fields:
        value = entity.get(field_name)
        if not value:
            continue
        if isinstance(value, str):
            return value
        if isinstance(value, Mapping):
            urn = value.get("entityUrn")
            if isinstance(urn, str) and urn:
                return urn
    return None


def _to_record(
    entity: Mapping[str, Any],
    connection_urn: Optional[str] = None,
    connected_at: Any = None,
    headline_fields: Sequence[str] = ("occupation", "headline"),
) -> ContactRecord:
    entity_urn = _text(entity, "entityUrn")
    return ContactRecord(
        first_name=_text(entity, "firstName"),
        last_name=_text(entity, "lastName"),
        headline=_text(entity, *headline_fields),
        public_identifier=_text(entity, "publicIdentifier"),
        entity_urn=entity_urn,
        connection_urn=entity_urn if connection_urn is None else connection_urn,
        connected_at=_timestamp(connected_at),
        profile_picture=extract_profile_picture(entity),
    )


# ---------------------------------------------------------------------------
# Strategies
# ---------------------------------------------------------------------------

def parse_profile_relationships(included: List[Entity], elements: List[Any]) -> List[ContactRecord]:
    """Strategy 1: join relationship entities to typed profile entities."""
    profiles: List[Entity] = []
    relationships: List[Entity] = []
    for entity in included:
        entity_type = _entity_type(entity)
        if "profile" in entity_type and _has_name(entity):
            profiles.append(entity)
        if "connection" in entity_type or entity.get("connectedMember") or entity.get("connectedMemberResolutionResult"):
            relationships.append(entity)

    logger.debug(f"Profile join: {len(profiles)} profiles, {len(relationships)} relationship entities")

    first_index_by_urn: Dict[str, int] = {}
    for index, profile in enumerate(profiles):
        first_index_by_urn.setdefault(_text(profile, "entityUrn"), index)

    joins: Dict[int, Tuple[str, Any]] = {}
    for relationship in relationships:
        member_urn = extract_member_urn(relationship)
        if not member_urn or member_urn not in first_index_by_urn:
            continue
        joins[first_index_by_urn[member_urn]] = (_text(relationship, "entityUrn"), relationship.get("createdAt"))

    matched = [
        _to_record(profiles[index], connection_urn=urn, connected_at=created_at)
        for index, (urn, created_at) in sorted(joins.items())
        if urn
    ]
    if not matched and profiles:
        logger.debug("No relationship back-references matched, using profile URNs as connection URNs")
        return [_to_record(profile) for profile in profiles]
    return matched


def parse_named_entities(included: List[Entity], elements: List[Any]) -> List[ContactRecord]:
    """Strategy 2: any entity with a name and a URN is a contact; type tags ignored."""
    records: List[ContactRecord] = []
    seen = set()
    for entity in included:
        urn = _text(entity, "entityUrn")
        if not _has_name(entity) or not urn or urn in seen:
            continue
        seen.add(urn)
        records.append(_to_record(
            entity,
            connected_at=entity.get("createdAt"),
            headline_fields=("occupation", "headline", "title"),
        ))
    return records


def parse_result_elements(included: List[Entity], elements: List[Any]) -> List[ContactRecord]:
    """Strategy 3: walk the result elements, resolving URN references through `included`."""
    by_urn: Dict[str, Entity] = {}
    for entity in included:
        urn = _text(entity, "entityUrn")
        if urn:
            by_urn[urn] = entity

    records: List[ContactRecord] = []
    for element in elements:
        if isinstance(element, str):
            entity = by_urn.get(element)
            if entity and _has_name(entity):
                records.append(_to_record(entity))
            continue
        if not isinstance(element, Mapping):
            continue

        member_urn = extract_member_urn(element, ELEMENT_REFERENCE_FIELDS)
        profile = by_urn.get(member_urn) if member_urn else None
        if profile:
            connection_urn = _text(element, "entityUrn") or _text(profile, "entityUrn")
            records.append(_to_record(profile, connection_urn=connection_urn, connected_at=element.get("createdAt")))

        # The element itself might carry the profile fields
        if _has_name(element):
            records.append(_to_record(element))
    return records


PARSE_STRATEGIES: Tuple[Tuple[str, ParseStrategy], ...] = (
    ("profile-join", parse_profile_relationships),
    ("name-fields", parse_named_entities),
    ("result-elements", parse_result_elements),
)


# ---------------------------------------------------------------------------
# Entry points
# ---------------------------------------------------------------------------

def _collections(payload: Mapping[str, Any]) -> Tuple[List[Entity], List[Any]]:
    included = payload.get("included")
    included = [e for e in included if isinstance(e, Mapping)] if isinstance(included, list) else []

    data = payload.get("data")
    data = data if isinstance(data, Mapping) else {}
    elements: List[Any] = []
    for candidate in (data.get("elements"), payload.get("elements"), data.get("*elements")):
        if isinstance(candidate, list) and candidate:
            elements = candidate
            break
    return included, elements


def _log_diagnostics(included: List[Entity], elements: List[Any]) -> None:
    logger.debug(f"All parse strategies failed. First {DIAGNOSTIC_ENTITIES} included entities:")
    for index, entity in enumerate(included[:DIAGNOSTIC_ENTITIES]):
        logger.debug(f"Entity {index}: {json.dumps(entity, default=str)[:DIAGNOSTIC_CHARS]}")
    if elements:
        logger.debug(f"First element: {json.dumps(elements[0], default=str)[:DIAGNOSTIC_CHARS]}")


def parse_connections(payload: Any) -> List[ContactRecord]:
    """Extracts contacts from an arbitrary JSON payload. Never raises.

    Args:
        payload: Decoded JSON of one list page.

    Returns:
        Records from the first strategy that produced any, else [].
    """
    if not isinstance(payload, Mapping):
        logger.debug(f"Payload is {type(payload).__name__}, not an object; nothing to parse")
        return []

    included, elements = _collections(payload)
    logger.debug(f"{len(included)} included entities, {len(elements)} elements")
    if logger.isEnabledFor(logging.DEBUG):
        types = sorted({_entity_type(e) for e in included} - {""})
        logger.debug(f"Entity types: {types}")

    for name, strategy in PARSE_STRATEGIES:
        try:
            records = strategy(included, elements)
        except Exception as e:  # a heuristic tripping over an odd shape is a parse miss
            logger.debug(f"Parse strategy '{name}' raised {type(e).__name__}: {e}")
            continue
        if records:
            logger.debug(f"Parse strategy '{name}' found {len(records)} contacts")
            return records

    _log_diagnostics(included, elements)
    return []


def extract_total(payload: Any) -> int:
    """Reported total from paging metadata; 0 means 'not reported'.

    `paging.count` is the page size, never the total.
    """
    if not isinstance(payload, Mapping):
        return 0
    data = payload.get("data")
    paging = data.get("paging") if isinstance(data, Mapping) else None
    if not paging:
        paging = payload.get("paging")
    if not isinstance(paging, Mapping):
        return 0
    total = paging.get("total")
    if isinstance(total, bool) or not isinstance(total, (int, float)) or total <= 0:
        return 0
    return int(total)
