"""
HTTP tests for the friendship endpoints
"""
import pytest

API = "/api/v1"


@pytest.fixture
def alice(make_user):
    return make_user("alice")


@pytest.fixture
def bob(make_user):
    return make_user("bob", email="b@x.com")


def befriend(client, headers, user_id, **body):
    return client.post(f"{API}/users/{user_id}/friendships", json=body, headers=headers)


def test_request_then_accept_scenario(client, auth_headers, alice, bob):
    response = befriend(client, auth_headers(alice), alice.id, emails=["b@x.com"])
    assert response.status_code == 200
    payload = response.json()
    assert payload["ok"] is True
    assert payload["message"] == "User friendships created"
    assert payload["friendships"][0]["friend_id"] == bob.id
    assert payload["friendships"][0]["status"] == "requested"

    listing = client.get(f"{API}/users/{bob.id}/friendships", headers=auth_headers(bob)).json()
    assert listing["friendships"][0]["status"] == "pending"
    assert listing["friendships"][0]["friend"] == {"id": alice.id, "username": "alice"}

    response = client.put(
        f"{API}/users/{bob.id}/friendships/{alice.id}/accept",
        headers=auth_headers(bob)
    )
    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Friendship status updated to 'accepted'"
    assert payload["friendship"]["status"] == "accepted"

    listing = client.get(f"{API}/users/{alice.id}/friendships", headers=auth_headers(alice)).json()
    assert listing["message"] == "Found user friendships"
    assert listing["friendships"][0]["status"] == "accepted"


@pytest.mark.parametrize("action,status", [
    ("decline", "declined"),
    ("reject", "rejected"),
    ("ban", "banned"),
])
def test_status_endpoints_only_touch_acting_edge(client, auth_headers, alice, bob, action, status):
    befriend(client, auth_headers(alice), alice.id, user_ids=[bob.id])

    response = client.put(
        f"{API}/users/{bob.id}/friendships/{alice.id}/{action}",
        headers=auth_headers(bob)
    )

    assert response.status_code == 200
    assert response.json()["message"] == f"Friendship status updated to '{status}'"
    listing = client.get(f"{API}/users/{alice.id}/friendships", headers=auth_headers(alice)).json()
    assert listing["friendships"][0]["status"] == "requested"


def test_status_change_without_edge_is_conflict(client, auth_headers, alice, bob):
    response = client.put(
        f"{API}/users/{alice.id}/friendships/{bob.id}/accept",
        headers=auth_headers(alice)
    )
    assert response.status_code == 409
    assert response.json()["ok"] is False


def test_status_change_with_unknown_friend_is_not_found(client, auth_headers, alice):
    response = client.put(
        f"{API}/users/{alice.id}/friendships/999/ban",
        headers=auth_headers(alice)
    )
    assert response.status_code == 404


def test_self_friendship_is_bad_request(client, auth_headers, alice):
    response = befriend(client, auth_headers(alice), alice.id, user_ids=[alice.id])
    assert response.status_code == 400
    assert response.json() == {"ok": False, "message": "Cannot create a friendship with yourself"}


def test_self_is_skipped_when_others_match(client, auth_headers, alice, bob):
    response = befriend(client, auth_headers(alice), alice.id, user_ids=[alice.id, bob.id])

    assert response.status_code == 200
    assert [f["friend_id"] for f in response.json()["friendships"]] == [bob.id]


def test_unresolved_targets_are_not_found(client, auth_headers, alice):
    response = befriend(client, auth_headers(alice), alice.id, usernames=["ghost"])
    assert response.status_code == 404


def test_delete_rejects_but_keeps_row(client, auth_headers, alice, bob):
    created = befriend(client, auth_headers(alice), alice.id, user_ids=[bob.id]).json()
    friendship_id = created["friendships"][0]["id"]

    response = client.delete(f"{API}/users/{alice.id}/friendships/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json() == {"ok": True, "message": "Friendship rejected"}

    response = client.get(f"{API}/friendships/{friendship_id}", headers=auth_headers(alice))
    assert response.status_code == 200
    assert response.json()["friendship"]["status"] == "rejected"


def test_bulk_reject(client, auth_headers, make_user, alice, bob):
    carol = make_user("carol")
    befriend(client, auth_headers(alice), alice.id, user_ids=[bob.id, carol.id])

    response = client.request(
        "DELETE",
        f"{API}/users/{alice.id}/friendships",
        json={"userIds": [bob.id, carol.id]},
        headers=auth_headers(alice)
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["message"] == "Friendships rejected."
    assert {f["friend_id"] for f in payload["friendships"]} == {bob.id, carol.id}
    assert {f["status"] for f in payload["friendships"]} == {"rejected"}


def test_get_friendship_not_found(client, auth_headers, alice):
    response = client.get(f"{API}/friendships/999", headers=auth_headers(alice))
    assert response.status_code == 404
    assert response.json()["ok"] is False


def test_friend_side_can_read_edge(client, auth_headers, alice, bob):
    created = befriend(client, auth_headers(alice), alice.id, user_ids=[bob.id]).json()
    friendship_id = created["friendships"][0]["id"]

    response = client.get(f"{API}/friendships/{friendship_id}", headers=auth_headers(bob))
    assert response.status_code == 200
    assert response.json()["message"] == "Friendship found"


def test_cannot_act_for_another_user(client, auth_headers, make_user, alice, bob):
    carol = make_user("carol")
    response = befriend(client, auth_headers(carol), alice.id, user_ids=[bob.id])
    assert response.status_code == 403


def test_admin_can_act_for_another_user(client, auth_headers, make_user, alice, bob):
    admin = make_user("root", is_admin=True)
    response = befriend(client, auth_headers(admin), alice.id, user_ids=[bob.id])
    assert response.status_code == 200


def test_requires_token(client, alice):
    response = client.get(f"{API}/users/{alice.id}/friendships")
    assert response.status_code == 401
    assert response.json()["ok"] is False
