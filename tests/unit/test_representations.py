from kcadmin.core.keycloak import Credential, Group, Role, User
from kcadmin.core.keycloak.representations import dedupe_by_id


def test_user_from_dict_maps_keycloak_fields():
    user = User.from_dict({
        "id": "u1",
        "username": "alice",
        "firstName": "Alice",
        "lastName": "Liddell",
        "email": "alice@example.com",
        "enabled": True,
        "emailVerified": False,
        "attributes": {"department": ["R&D"]},
    })

    assert user.id == "u1"
    assert user.first_name == "Alice"
    assert user.last_name == "Liddell"
    assert user.email_verified is False
    assert user.attributes == {"department": ["R&D"]}
    assert user.roles is None and user.groups is None
    assert not user.is_enriched


def test_user_from_dict_rejects_records_without_identity():
    assert User.from_dict(None) is None
    assert User.from_dict({"username": "alice"}) is None
    assert User.from_dict({"id": "u1"}) is None
    assert User.all_from([{"id": "u1", "username": "a"}, {"id": "u2"}]) == [User(username="a", id="u1")]


def test_user_to_dict_omits_id_and_unset_fields():
    payload = User(username="bob", id="ignored", email="bob@example.com", enabled=True).to_dict()

    assert payload == {"username": "bob", "email": "bob@example.com", "enabled": True}


def test_user_with_password_adds_credentials():
    payload = User(username="bob").with_password("s3cret", temporary=True).to_dict()

    assert payload["credentials"] == [{"type": "password", "value": "s3cret", "temporary": True}]


def test_credential_defaults_to_permanent_password():
    assert Credential("pw").to_dict() == {"type": "password", "value": "pw", "temporary": False}


def test_identity_equality_ignores_other_fields():
    assert User(username="a", id="same") == User(username="b", id="same")
    assert User(username="a", id="u1") != User(username="a", id="u2")
    assert User(username="a") != User(username="a")
    assert len({Role(id="r1", name="x"), Role(id="r1", name="y")}) == 1


def test_role_codec_and_reference():
    role = Role.from_dict({"id": "r1", "name": "analyst", "clientRole": False, "containerId": "demo"})

    assert role.client_role is False
    assert role.container_id == "demo"
    assert role.reference() == {"id": "r1", "name": "analyst"}
    assert Role(name="analyst", description="Reads reports").to_dict() == {
        "name": "analyst",
        "description": "Reads reports",
    }


def test_group_from_dict_and_upload():
    group = Group.from_dict({"id": "g1", "name": "ops", "path": "/ops"})

    assert group.path == "/ops"
    assert not group.is_enriched
    assert Group.upload("ops").to_dict() == {"name": "ops"}
    assert Group.upload("ops", {"site": ["paris"]}).to_dict() == {"name": "ops", "attributes": {"site": ["paris"]}}


def test_tenant_group_strips_prefix_into_attribute():
    group = Group.tenant("TENANT_acme", "TENANT_", {"site": ["paris"]})

    assert group.to_dict() == {
        "name": "TENANT_acme",
        "attributes": {"site": ["paris"], "tenant": ["acme"]},
    }


def test_tenant_group_without_prefix_keeps_name():
    assert Group.tenant("acme", "TENANT_").attributes == {"tenant": ["acme"]}


def test_dedupe_by_id_keeps_first_seen():
    first = User(username="first", id="u1")
    later = User(username="later", id="u1")
    other = User(username="other", id="u2")

    result = dedupe_by_id([first, other, later])

    assert result == [first, other]
    assert result[0].username == "first"
