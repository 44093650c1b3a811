import uuid

import pytest
from jose import jwt

from linkup.core.auth.dependencies import _payload_to_user
from linkup.core.constants import Role

API = "/api/v1/notifications"


@pytest.mark.asyncio
async def test_valid_token_is_accepted(async_client, seed_user, auth_headers) -> None:
    bob = await seed_user("bob")
    response = await async_client.get(API, headers=auth_headers(bob))
    assert response.status_code == 200


@pytest.mark.asyncio
async def test_expired_token_is_rejected(async_client, issue_token) -> None:
    token = issue_token(uuid.uuid4(), expire_seconds=-60)
    response = await async_client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.headers["WWW-Authenticate"] == "Bearer"


@pytest.mark.asyncio
async def test_token_for_another_audience_is_rejected(async_client, settings) -> None:
    token = jwt.encode(
        {"sub": str(uuid.uuid4()), "iss": settings.jwt_issuer, "aud": "someone-else"},
        settings.jwt_secret,
        algorithm=settings.jwt_algorithm,
    )
    response = await async_client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_token_signed_with_wrong_secret_is_rejected(async_client, issue_token) -> None:
    token = issue_token(uuid.uuid4(), secret="not-the-secret")
    response = await async_client.get(API, headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401
    assert response.json()["error"]["message"] == "Not authenticated"


def test_token_claims_map_to_current_user() -> None:
    user_id = uuid.uuid4()
    user = _payload_to_user({"sub": str(user_id), "roles": ["admin"]})
    assert user.id == user_id
    assert user.email is None
    assert user.roles == (Role.ADMIN,)

    with pytest.raises(ValueError):
        _payload_to_user({"email": "nobody@example.com"})
