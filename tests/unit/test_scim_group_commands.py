"""Unit tests for SCIM group queries and commands (in-memory SQLite)."""
import logging
import uuid

import pytest

from orgvault.core.enums import EventSystemUser, EventType
from orgvault.core.exceptions import BadRequestError, ConflictError, NotFoundError
from orgvault.core.models import Group
from orgvault.core.scim import ScimGroupRequestModel, ScimPatchModel
from orgvault.core.scim.queries import parse_group_filter
from tests.conftest import make_member, make_organization


@pytest.fixture
def org(domain_services):
    return make_organization(domain_services.organization_repository)


def _group(services, org, name, external_id=None):
    return services.group_repository.create(
        Group(id=uuid.uuid4(), organization_id=org.id, name=name, external_id=external_id)
    )


def _members(services, group):
    return set(services.group_repository.get_many_user_ids_by_id(group.id))


def _events(services, org):
    return [(e.type, e.system_user) for e in services.event_repository.get_many_by_organization(org.id)]


# ─────────────────────────────────────────────────────────────────────────────
# Query
# ─────────────────────────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [
        ('displayName eq "Engineering"', ("displayName", "Engineering")),
        ("externalId eq abc-123", ("externalId", "abc-123")),
        ('DISPLAYNAME EQ "x"', ("displayName", "x")),
        ('members eq "x"', (None, None)),
        ("", (None, None)),
        (None, (None, None)),
    ],
)
def test_parse_group_filter(raw, expected):
    assert parse_group_filter(raw) == expected


def test_list_groups_sorted_and_paged(domain_services, org):
    for name in ["delta", "Alpha", "charlie", "Bravo"]:
        _group(domain_services, org, name)

    groups, total = domain_services.get_groups_list_query.get_groups_list(org.id, count=2, start_index=2)

    assert [g.name for g in groups] == ["Bravo", "charlie"]
    assert total == 4


def test_list_groups_without_paging_returns_all(domain_services, org):
    _group(domain_services, org, "b")
    _group(domain_services, org, "a")
    other = make_organization(domain_services.organization_repository, name="Other")
    _group(domain_services, other, "foreign")

    groups, total = domain_services.get_groups_list_query.get_groups_list(org.id)

    assert [g.name for g in groups] == ["a", "b"]
    assert total == 2


@pytest.mark.parametrize("paging", [{"count": -1}, {"start_index": 0}])
def test_list_groups_rejects_out_of_range_paging(domain_services, org, paging):
    _group(domain_services, org, "a")

    with pytest.raises(BadRequestError):
        domain_services.get_groups_list_query.get_groups_list(org.id, **paging)


def test_list_groups_zero_count_returns_empty_page(domain_services, org):
    _group(domain_services, org, "a")

    groups, total = domain_services.get_groups_list_query.get_groups_list(org.id, count=0)

    assert groups == []
    assert total == 1


def test_list_groups_filter_by_display_name(domain_services, org):
    _group(domain_services, org, "Engineering")
    _group(domain_services, org, "Sales")

    groups, total = domain_services.get_groups_list_query.get_groups_list(
        org.id, filter='displayName eq "Sales"', count=10, start_index=5
    )

    assert [g.name for g in groups] == ["Sales"]
    assert total == 1


def test_list_groups_filter_by_external_id_no_match(domain_services, org):
    _group(domain_services, org, "Engineering", external_id="eng")

    groups, total = domain_services.get_groups_list_query.get_groups_list(org.id, filter='externalId eq "nope"')

    assert groups == []
    assert total == 0


# ─────────────────────────────────────────────────────────────────────────────
# POST
# ─────────────────────────────────────────────────────────────────────────────

def test_post_group_creates_group_and_members(domain_services, org):
    member = make_member(domain_services, org)
    model = ScimGroupRequestModel.from_dict({
        "displayName": "Engineering",
        "externalId": "eng",
        "members": [{"value": str(member.id)}, {"value": str(uuid.uuid4())}, {"value": "not-a-uuid"}],
    })

    group = domain_services.post_group_command.post_group(org, model)

    stored = domain_services.group_repository.get_by_id(group.id)
    assert stored.name == "Engineering"
    assert stored.external_id == "eng"
    assert _members(domain_services, group) == {member.id}
    assert _events(domain_services, org) == [(int(EventType.GROUP_CREATED), int(EventSystemUser.SCIM))]


def test_post_group_requires_organization(domain_services):
    with pytest.raises(NotFoundError, match="Organization not found."):
        domain_services.post_group_command.post_group(None, ScimGroupRequestModel(display_name="x"))


def test_post_group_requires_display_name(domain_services, org):
    with pytest.raises(BadRequestError, match="displayName is required."):
        domain_services.post_group_command.post_group(org, ScimGroupRequestModel(display_name="  "))


def test_post_group_requires_groups_feature(domain_services):
    org = make_organization(domain_services.organization_repository, use_groups=False)

    with pytest.raises(BadRequestError, match="This organization cannot use groups."):
        domain_services.post_group_command.post_group(org, ScimGroupRequestModel(display_name="x"))

    assert domain_services.group_repository.get_many_by_organization_id(org.id) == []


def test_post_group_duplicate_external_id(domain_services, org):
    _group(domain_services, org, "Existing", external_id="dup")

    with pytest.raises(ConflictError):
        domain_services.post_group_command.post_group(
            org, ScimGroupRequestModel(display_name="New", external_id="dup")
        )


# ─────────────────────────────────────────────────────────────────────────────
# PUT
# ─────────────────────────────────────────────────────────────────────────────

def test_put_group_renames_and_replaces_members(domain_services, org):
    first = make_member(domain_services, org, email="first@acme.test")
    second = make_member(domain_services, org, email="second@acme.test")
    group = _group(domain_services, org, "Old")
    domain_services.group_repository.update_users(group.id, [first.id])

    model = ScimGroupRequestModel.from_dict({"displayName": "New", "members": [{"value": str(second.id)}]})
    domain_services.put_group_command.put_group(org, group.id, model)

    assert domain_services.group_repository.get_by_id(group.id).name == "New"
    assert _members(domain_services, group) == {second.id}
    assert _events(domain_services, org) == [(int(EventType.GROUP_UPDATED), int(EventSystemUser.SCIM))]


def test_put_group_without_members_keeps_membership(domain_services, org):
    member = make_member(domain_services, org)
    group = _group(domain_services, org, "Old")
    domain_services.group_repository.update_users(group.id, [member.id])

    domain_services.put_group_command.put_group(org, group.id, ScimGroupRequestModel(display_name="New"))

    assert _members(domain_services, group) == {member.id}


def test_put_group_foreign_group_not_found(domain_services, org):
    other = make_organization(domain_services.organization_repository, name="Other")
    foreign = _group(domain_services, other, "Theirs")

    with pytest.raises(NotFoundError, match="Group not found."):
        domain_services.put_group_command.put_group(org, foreign.id, ScimGroupRequestModel(display_name="Mine"))

    assert domain_services.group_repository.get_by_id(foreign.id).name == "Theirs"


# ─────────────────────────────────────────────────────────────────────────────
# PATCH
# ─────────────────────────────────────────────────────────────────────────────

def _patch(services, org, group, *operations):
    services.patch_group_command.patch_group(org, group.id, ScimPatchModel.from_dict({"Operations": list(operations)}))


def test_patch_replace_members(domain_services, org):
    a = make_member(domain_services, org, email="a@acme.test")
    b = make_member(domain_services, org, email="b@acme.test")
    group = _group(domain_services, org, "G")
    domain_services.group_repository.update_users(group.id, [a.id])

    _patch(domain_services, org, group, {"op": "replace", "path": "members", "value": [{"value": str(b.id)}]})

    assert _members(domain_services, group) == {b.id}


def test_patch_add_and_remove_members(domain_services, org):
    a = make_member(domain_services, org, email="a@acme.test")
    b = make_member(domain_services, org, email="b@acme.test")
    group = _group(domain_services, org, "G")

    _patch(domain_services, org, group, {"op": "Add", "path": "members", "value": [{"value": str(a.id)}, {"value": str(b.id)}]})
    assert _members(domain_services, group) == {a.id, b.id}

    _patch(domain_services, org, group, {"op": "remove", "path": f'members[value eq "{a.id}"]'})
    assert _members(domain_services, group) == {b.id}

    _patch(domain_services, org, group, {"op": "remove", "path": "members", "value": [{"value": str(b.id)}]})
    assert _members(domain_services, group) == set()


def test_patch_rename_by_path_and_by_value(domain_services, org):
    group = _group(domain_services, org, "Old")

    _patch(domain_services, org, group, {"op": "replace", "path": "displayName", "value": "Renamed"})
    assert domain_services.group_repository.get_by_id(group.id).name == "Renamed"

    _patch(domain_services, org, group, {"op": "replace", "value": {"displayName": "Again"}})
    assert domain_services.group_repository.get_by_id(group.id).name == "Again"

    assert _events(domain_services, org) == [(int(EventType.GROUP_UPDATED), int(EventSystemUser.SCIM))] * 2


def test_patch_unknown_operation_is_ignored(domain_services, org, caplog):
    group = _group(domain_services, org, "G")

    with caplog.at_level(logging.WARNING):
        _patch(domain_services, org, group, {"op": "copy", "path": "members"})

    assert "not handled" in caplog.text
    assert domain_services.group_repository.get_by_id(group.id).name == "G"


def test_patch_missing_group(domain_services, org):
    with pytest.raises(NotFoundError, match="Group not found."):
        domain_services.patch_group_command.patch_group(
            org, uuid.uuid4(), ScimPatchModel.from_dict({"Operations": []})
        )
