"""Unit tests for auth/membership.py -- membership-scoped organisation access."""

import pytest

from auth.errors import NotMember, OrganisationNotFound, UserNotFound
from auth.membership import (
    add_user_to_organisation,
    create_organisation,
    get_organisation_for,
    get_user,
    list_organisations_for,
    parse_id,
)
from auth.models import Identity, Organisation
from auth.store import MembershipStore


@pytest.fixture
def people(store: MembershipStore, make_user):
    """Two users; only `owner` belongs to `org_id`."""
    owner = make_user(store, "owner@example.com", "Owner")
    outsider = make_user(store, "outsider@example.com", "Outsider")
    org_id = store.create_organisation_with_member(Organisation(name="Test Organisation"), owner.id)
    return (
        Identity(user_id=owner.id, email=owner.email),
        Identity(user_id=outsider.id, email=outsider.email),
        org_id,
    )


class TestGetOrganisationFor:
    def test_member_sees_org(self, store: MembershipStore, people) -> None:
        owner, _, org_id = people
        assert get_organisation_for(store, owner, org_id).name == "Test Organisation"

    def test_string_id_from_path(self, store: MembershipStore, people) -> None:
        owner, _, org_id = people
        assert get_organisation_for(store, owner, str(org_id)).id == org_id

    def test_non_member_and_missing_org_are_identical(self, store: MembershipStore, people) -> None:
        _, outsider, org_id = people
        with pytest.raises(NotMember) as foreign:
            get_organisation_for(store, outsider, org_id)
        with pytest.raises(NotMember) as missing:
            get_organisation_for(store, outsider, org_id + 1000)
        assert str(foreign.value) == str(missing.value)

    def test_non_numeric_id_is_not_member(self, store: MembershipStore, people) -> None:
        owner, _, _ = people
        with pytest.raises(NotMember):
            get_organisation_for(store, owner, "abc")

    @pytest.mark.parametrize("raw", ["+{}", " {}", "{}_0", "-{}", "{}.0"])
    def test_loose_int_spellings_are_not_member(self, store: MembershipStore, people, raw: str) -> None:
        """Only plain digits name an organisation; int()'s extra syntax does not."""
        owner, _, org_id = people
        with pytest.raises(NotMember):
            get_organisation_for(store, owner, raw.format(org_id))

    @pytest.mark.parametrize("org_id", [10**30, "9" * 30, 2**63, 0, -1])
    def test_out_of_range_id_is_not_member(self, store: MembershipStore, people, org_id) -> None:
        owner, _, _ = people
        with pytest.raises(NotMember):
            get_organisation_for(store, owner, org_id)


class TestParseId:
    @pytest.mark.parametrize(("value", "expected"), [(12, 12), ("12", 12), (2**63 - 1, 2**63 - 1)])
    def test_accepted(self, value, expected) -> None:
        assert parse_id(value) == expected

    @pytest.mark.parametrize("value", ["1_2", "+12", " 12", "١٢", "", 2**63, "9" * 5000, True, 0])
    def test_rejected(self, value) -> None:
        assert parse_id(value) is None


class TestListAndCreate:
    def test_list_only_own_orgs(self, store: MembershipStore, people) -> None:
        owner, outsider, org_id = people
        assert [o.id for o in list_organisations_for(store, owner)] == [org_id]
        assert list_organisations_for(store, outsider) == []

    def test_list_for_deleted_user(self, store: MembershipStore) -> None:
        with pytest.raises(UserNotFound):
            list_organisations_for(store, Identity(user_id=404, email="gone@example.com"))

    def test_create_makes_caller_member(self, store: MembershipStore, people) -> None:
        _, outsider, _ = people
        org = create_organisation(store, outsider, "New Org", "Brand new")
        assert org.id is not None
        assert get_organisation_for(store, outsider, org.id).description == "Brand new"

    def test_create_for_deleted_user(self, store: MembershipStore) -> None:
        with pytest.raises(UserNotFound):
            create_organisation(store, Identity(user_id=404, email="gone@example.com"), "Nope")


class TestAddUser:
    def test_add_grants_access(self, store: MembershipStore, people) -> None:
        _, outsider, org_id = people
        membership = add_user_to_organisation(store, outsider.user_id, org_id)
        assert membership.org_id == org_id
        assert get_organisation_for(store, outsider, org_id).id == org_id

    def test_add_twice_is_idempotent(self, store: MembershipStore, people) -> None:
        owner, _, org_id = people
        add_user_to_organisation(store, owner.user_id, org_id)
        assert store.count_members(org_id) == 1

    def test_unknown_org(self, store: MembershipStore, people) -> None:
        _, outsider, _ = people
        with pytest.raises(OrganisationNotFound):
            add_user_to_organisation(store, outsider.user_id, 999)

    def test_unknown_user(self, store: MembershipStore, people) -> None:
        _, _, org_id = people
        with pytest.raises(UserNotFound):
            add_user_to_organisation(store, 999, org_id)

    def test_out_of_range_ids(self, store: MembershipStore, people) -> None:
        owner, _, org_id = people
        with pytest.raises(OrganisationNotFound):
            add_user_to_organisation(store, owner.user_id, 10**30)
        with pytest.raises(UserNotFound):
            add_user_to_organisation(store, 10**30, org_id)


class TestGetUser:
    def test_found(self, store: MembershipStore, people) -> None:
        owner, _, _ = people
        assert get_user(store, owner.user_id).email == "owner@example.com"

    def test_missing(self, store: MembershipStore) -> None:
        with pytest.raises(UserNotFound):
            get_user(store, 1)

    def test_out_of_range(self, store: MembershipStore) -> None:
        with pytest.raises(UserNotFound):
            get_user(store, 10**30)
