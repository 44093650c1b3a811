import uuid

import pytest

from linkup.rate_limit import InMemoryWindowRateLimiter

API = "/api/v1/profile"


@pytest.mark.asyncio
async def test_follow_requires_authentication(async_client, seed_user) -> None:
    bob = await seed_user("bob")
    response = await async_client.post(f"{API}/follow/{bob.id}")
    assert response.status_code == 401
    body = response.json()
    assert body["error"]["code"] == "unauthenticated"
    assert body["request_id"]


@pytest.mark.asyncio
async def test_follow_public_account(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    bob = await seed_user("bob")

    response = await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(alice))

    assert response.status_code == 201
    assert response.json() == {"message": "Followed successfully", "status": "ACCEPTED"}

    followers = await async_client.get(f"{API}/followers/{bob.id}", headers=auth_headers(alice))
    assert followers.status_code == 200
    body = followers.json()
    assert body["count"] == 1
    assert body["followers"][0]["user_id"] == str(alice.id)
    assert body["followers"][0]["username"] == "alice"

    pending = await async_client.get(f"{API}/follow-requests/pending", headers=auth_headers(bob))
    assert pending.json() == {"count": 0, "pending_requests": []}


@pytest.mark.asyncio
async def test_follow_self_is_validation_error(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    response = await async_client.post(f"{API}/follow/{alice.id}", headers=auth_headers(alice))
    assert response.status_code == 400
    assert response.json()["error"] == {
        "code": "validation_error",
        "message": "You cannot follow yourself.",
    }


@pytest.mark.asyncio
async def test_follow_unknown_user(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    response = await async_client.post(f"{API}/follow/{uuid.uuid4()}", headers=auth_headers(alice))
    assert response.status_code == 404
    assert response.json()["error"]["message"] == "User not found."


@pytest.mark.asyncio
async def test_malformed_user_id_is_400(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    response = await async_client.get(f"{API}/followers/not-a-uuid", headers=auth_headers(alice))
    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"


@pytest.mark.asyncio
async def test_duplicate_follow_envelope_carries_status(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    bob = await seed_user("bob", is_private=True)
    headers = auth_headers(alice)
    await async_client.post(f"{API}/follow/{bob.id}", headers=headers)

    response = await async_client.post(f"{API}/follow/{bob.id}", headers=headers)

    assert response.status_code == 409
    assert response.json()["error"] == {
        "code": "conflict",
        "message": "Your follow request is still pending",
        "status": "PENDING",
    }


@pytest.mark.asyncio
async def test_private_account_request_accept_reject_flow(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    carol = await seed_user("carol")
    bob = await seed_user("bob", is_private=True)

    requested = await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(alice))
    assert requested.status_code == 201
    assert requested.json() == {"message": "Follow request sent", "status": "PENDING"}
    await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(carol))

    # strangers and pending requesters cannot see the list
    hidden = await async_client.get(f"{API}/followers/{bob.id}", headers=auth_headers(alice))
    assert hidden.status_code == 403
    assert hidden.json()["error"]["message"] == (
        "This account is private. You must follow @bob to see this list."
    )

    pending = await async_client.get(f"{API}/follow-requests/pending", headers=auth_headers(bob))
    assert pending.json()["count"] == 2
    by_user = {item["user"]["username"]: item["request_id"] for item in pending.json()["pending_requests"]}

    # only the owner may act on a request
    stolen = await async_client.put(
        f"{API}/follow-requests/{by_user['alice']}/accept", headers=auth_headers(carol)
    )
    assert stolen.status_code == 404
    assert stolen.json()["error"]["message"] == "Follow request not found or already processed"

    accepted = await async_client.put(
        f"{API}/follow-requests/{by_user['alice']}/accept", headers=auth_headers(bob)
    )
    assert accepted.status_code == 200
    assert [u["username"] for u in accepted.json()["accepted_followers"]] == ["alice"]

    rejected = await async_client.delete(
        f"{API}/follow-requests/{by_user['carol']}/reject", headers=auth_headers(bob)
    )
    assert rejected.status_code == 200
    assert rejected.json() == {"message": "Follow request rejected"}

    visible = await async_client.get(f"{API}/followers/{bob.id}", headers=auth_headers(alice))
    assert visible.status_code == 200
    assert [u["username"] for u in visible.json()["followers"]] == ["alice"]

    carol_following = await async_client.get(f"{API}/following/{carol.id}", headers=auth_headers(carol))
    assert carol_following.json() == {"count": 0, "following": []}


@pytest.mark.asyncio
async def test_unfollow(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    bob = await seed_user("bob")

    missing = await async_client.delete(f"{API}/unfollow/{bob.id}", headers=auth_headers(alice))
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "Follow relationship not found"

    await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(alice))
    response = await async_client.delete(f"{API}/unfollow/{bob.id}", headers=auth_headers(alice))
    assert response.status_code == 200

    followers = await async_client.get(f"{API}/followers/{bob.id}", headers=auth_headers(bob))
    assert followers.json()["count"] == 0


@pytest.mark.asyncio
async def test_remove_follower(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    bob = await seed_user("bob")
    await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(alice))

    response = await async_client.delete(f"{API}/followers/{alice.id}", headers=auth_headers(bob))
    assert response.status_code == 200

    again = await async_client.delete(f"{API}/followers/{alice.id}", headers=auth_headers(bob))
    assert again.status_code == 404
    assert again.json()["error"]["message"] == "Follower relationship not found"


@pytest.mark.asyncio
async def test_privacy_toggle_auto_accepts(async_client, seed_user, auth_headers) -> None:
    alice = await seed_user("alice")
    bob = await seed_user("bob", is_private=True)
    await async_client.post(f"{API}/follow/{bob.id}", headers=auth_headers(alice))

    response = await async_client.put(
        f"{API}/privacy", json={"is_private": False}, headers=auth_headers(bob)
    )

    assert response.status_code == 200
    assert response.json()["is_private"] is False
    assert response.json()["auto_accepted"] == 1
    followers = await async_client.get(f"{API}/followers/{bob.id}", headers=auth_headers(bob))
    assert [u["username"] for u in followers.json()["followers"]] == ["alice"]


@pytest.mark.asyncio
async def test_follow_is_rate_limited_per_ip(app, async_client, seed_user, auth_headers, clock) -> None:
    await app.state.follow_limiter.stop()
    app.state.follow_limiter = InMemoryWindowRateLimiter(
        limit=5, window_seconds=60, prefix="rl:follow", clock=clock
    )
    alice = await seed_user("alice")
    targets = [await seed_user(f"user{i}") for i in range(7)]
    headers = {**auth_headers(alice), "X-Forwarded-For": "203.0.113.7"}

    for target in targets[:5]:
        ok = await async_client.post(f"{API}/follow/{target.id}", headers=headers)
        assert ok.status_code == 201

    limited = await async_client.post(f"{API}/follow/{targets[5].id}", headers=headers)
    assert limited.status_code == 429
    assert limited.json()["error"]["code"] == "rate_limited"
    assert int(limited.headers["Retry-After"]) >= 1

    # a different source address has its own window
    other_ip = {**auth_headers(alice), "X-Forwarded-For": "198.51.100.1"}
    elsewhere = await async_client.post(f"{API}/follow/{targets[5].id}", headers=other_ip)
    assert elsewhere.status_code == 201

    clock.advance(61)
    after_window = await async_client.post(f"{API}/follow/{targets[6].id}", headers=headers)
    assert after_window.status_code == 201
