import pytest

from contactsweep.infrastructure.voyager.response_parser import (
    extract_member_urn,
    extract_profile_picture,
    extract_total,
    parse_connections,
)


def test_profile_join_uses_relationship_urn_and_created_at(page_factory):
    records = parse_connections(page_factory(0, 3))

    assert [r.name for r in records] == ["First0 Last0", "First1 Last1", "First2 Last2"]
    first = records[0]
    assert first.connection_urn == "urn:li:fsd_connection:C0"
    assert first.entity_urn == "urn:li:fsd_profile:P0"
    assert first.connected_at == 1700000000000
    assert first.profile_url == "https://www.linkedin.com/in/person-0/"
    assert first.headline == "Engineer number 0"


def test_profile_join_prefers_occupation_over_headline():
    payload = {
        "included": [
            {"$type": "x.MiniProfile", "entityUrn": "urn:p:1", "firstName": "Ada",
             "occupation": "Mathematician", "headline": "ignored"},
            {"$type": "x.Connection", "entityUrn": "urn:c:1", "miniProfile": {"entityUrn": "urn:p:1"}},
        ]
    }
    [record] = parse_connections(payload)
    assert record.headline == "Mathematician"
    assert record.connection_urn == "urn:c:1"


def test_unjoined_profiles_fall_back_to_their_own_urn():
    payload = {
        "included": [
            {"$recipeType": "com.linkedin.Profile", "entityUrn": "urn:p:1", "firstName": "Ada", "lastName": "Lovelace"},
            {"$type": "x.Connection", "entityUrn": "urn:c:9", "connectedMember": "urn:p:unknown"},
        ]
    }
    [record] = parse_connections(payload)
    assert record.connection_urn == "urn:p:1"
    assert record.connected_at is None


def test_name_scan_ignores_type_tags_and_dedupes():
    payload = {
        "included": [
            {"entityUrn": "urn:a", "firstName": "Grace", "title": "Admiral"},
            {"entityUrn": "urn:a", "firstName": "Grace", "title": "Admiral"},
            {"entityUrn": "urn:b", "lastName": "Hopper"},
            {"firstName": "NoUrn"},
        ]
    }
    records = parse_connections(payload)
    assert [r.entity_urn for r in records] == ["urn:a", "urn:b"]
    assert records[0].headline == "Admiral"


def test_result_elements_that_are_profiles_themselves():
    payload = {"data": {"elements": [{"firstName": "Alan", "lastName": "Turing", "entityUrn": "urn:t"}, 42]}}
    [record] = parse_connections(payload)
    assert record.name == "Alan Turing"
    assert record.connection_urn == "urn:t"


@pytest.mark.parametrize("payload", [
    None,
    [],
    "not json",
    {},
    {"included": "nope", "data": []},
    {"included": [1, None, {"$type": 5, "firstName": 3}]},
    {"included": [{"$type": "x.Connection", "connectedMember": {"entityUrn": None}}]},
    {"data": {"elements": [None, "urn:missing", {"member": 7}]}},
])
def test_garbage_payloads_yield_empty_list(payload):
    assert parse_connections(payload) == []


def test_partial_entities_never_raise():
    payload = {"included": [{"$type": "x.Profile", "firstName": "Solo", "entityUrn": "urn:s", "picture": 12, "createdAt": "soon"}]}
    [record] = parse_connections(payload)
    assert record.first_name == "Solo"
    assert record.last_name == ""
    assert record.profile_picture == ""


def test_extract_member_urn_handles_string_and_object():
    assert extract_member_urn({"*member": "urn:m"}) == "urn:m"
    assert extract_member_urn({"connectedMemberResolutionResult": {"entityUrn": "urn:r"}}) == "urn:r"
    assert extract_member_urn({"member": {}}) is None


def test_profile_picture_from_vector_image():
    entity = {
        "profilePicture": {
            "com.linkedin.common.VectorImage": {
                "rootUrl": "https://media.example/",
                "artifacts": [{"fileIdentifyingUrlPathSegment": "100.jpg"}, {"fileIdentifyingUrlPathSegment": "800.jpg"}],
            }
        }
    }
    assert extract_profile_picture(entity) == "https://media.example/100.jpg"


def test_profile_picture_variants():
    assert extract_profile_picture({"picture": "https://cdn/x.png"}) == "https://cdn/x.png"
    assert extract_profile_picture({"image": {"rootUrl": "https://r/", "artifacts": []}}) == ""
    assert extract_profile_picture({}) == ""
    assert extract_profile_picture(None) == ""


def test_extract_total_ignores_page_size():
    assert extract_total({"data": {"paging": {"total": 57, "count": 40}}}) == 57
    assert extract_total({"paging": {"total": 12}}) == 12
    assert extract_total({"data": {"paging": {"count": 40}}}) == 0
    assert extract_total({"paging": {"total": "many"}}) == 0
    assert extract_total([]) == 0


def test_non_list_data_elements_fall_through_to_top_level_elements():
    payload = {
        "data": {"elements": {"unexpected": "object"}},
        "elements": [{"firstName": "Grace", "lastName": "Hopper", "entityUrn": "urn:g"}],
    }
    [record] = parse_connections(payload)
    assert record.name == "Grace Hopper"
