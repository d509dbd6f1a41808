"""HTTP tests for the account and shelf endpoints."""

from account_service.email_templates import (
    ACCOUNT_CREATED_SUBJECT,
    ACCOUNT_DELETED_SUBJECT,
    ACCOUNT_PASSWORD_CHANGED_SUBJECT,
)
from account_service.user_service import EMAIL_TAKEN_MESSAGE
from account_service.validation import (
    EMAIL_INVALID_MESSAGE,
    PASSWORD_EMPTY_MESSAGE,
    PASSWORD_WEAK_MESSAGE,
)
from tests.conftest import OTHER_STRONG_PASSWORD, STRONG_PASSWORD


async def _users(client) -> list:
    response = await client.get("/api/user/users")
    assert response.status_code == 200
    return response.json()


async def _login(client, email: str, password: str):
    return await client.post("/api/user/login", json={"email": email, "password": password})


class TestHealth:
    async def test_health(self, client) -> None:
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}


class TestRegister:
    async def test_register_creates_user_and_sends_email(self, client, email_sender) -> None:
        response = await client.post(
            "/api/user", json={"email": "a@x.com", "password": STRONG_PASSWORD}
        )

        assert response.status_code == 200
        assert response.json() == {"msg": "user created"}

        users = await _users(client)
        assert [user["email"] for user in users] == ["a@x.com"]
        assert "hashed_password" not in users[0]

        assert len(email_sender.sent) == 1
        assert email_sender.sent[0].address == "a@x.com"
        assert email_sender.sent[0].subject == ACCOUNT_CREATED_SUBJECT
        assert "Hi a," in email_sender.sent[0].body

    async def test_duplicate_email(self, client, email_sender) -> None:
        await client.post("/api/user", json={"email": "a@x.com", "password": STRONG_PASSWORD})
        email_sender.sent.clear()

        response = await client.post(
            "/api/user", json={"email": "a@x.com", "password": OTHER_STRONG_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "email taken"}
        assert len(await _users(client)) == 1
        assert email_sender.sent == []

    async def test_invalid_request_lists_violations(self, client, email_sender) -> None:
        response = await client.post("/api/user", json={"email": "nope", "password": "weak"})

        assert response.status_code == 400
        assert response.json() == {"detail": [EMAIL_INVALID_MESSAGE, PASSWORD_WEAK_MESSAGE]}
        assert await _users(client) == []
        assert email_sender.sent == []

    async def test_empty_password(self, client) -> None:
        response = await client.post("/api/user", json={"email": "a@x.com", "password": ""})
        assert response.status_code == 400
        assert response.json()["detail"] == [PASSWORD_EMPTY_MESSAGE]

    async def test_email_failure_keeps_the_account(self, client, email_sender) -> None:
        email_sender.error = "mail server unavailable"

        response = await client.post(
            "/api/user", json={"email": "a@x.com", "password": STRONG_PASSWORD}
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "mail server unavailable"}
        assert [user["email"] for user in await _users(client)] == ["a@x.com"]


class TestReadUsers:
    async def test_unknown_user(self, client) -> None:
        response = await client.get("/api/user/user/42")
        assert response.status_code == 404
        assert response.json() == {"detail": "Could not find the user with ID 42"}

    async def test_get_user(self, client, registered_user) -> None:
        response = await client.get(f"/api/user/user/{registered_user['id']}")
        assert response.status_code == 200
        body = response.json()
        assert body["email"] == registered_user["email"]
        assert body["created_at"] is not None


class TestLogin:
    async def test_bad_credentials(self, client, registered_user) -> None:
        response = await _login(client, registered_user["email"], "Wr0ng!Pass")
        assert response.status_code == 401

    async def test_unknown_email(self, client) -> None:
        response = await _login(client, "ghost@books.org", STRONG_PASSWORD)
        assert response.status_code == 401

    async def test_invalid_token(self, client) -> None:
        response = await client.get(
            "/api/shelves", headers={"Authorization": "Bearer not-a-token"}
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "Invalid token"}


class TestDelete:
    async def test_wrong_password(self, client, registered_user, email_sender) -> None:
        response = await client.request(
            "DELETE",
            "/api/user",
            json={"password": "Wr0ng!Pass"},
            headers=registered_user["headers"],
        )

        assert response.status_code == 401
        assert response.json() == {"detail": "Wrong password."}
        assert len(await _users(client)) == 1
        assert email_sender.sent == []

    async def test_anonymous(self, client, registered_user) -> None:
        response = await client.request("DELETE", "/api/user", json={"password": STRONG_PASSWORD})
        assert response.status_code == 404
        assert response.json() == {"detail": "User not found"}
        assert len(await _users(client)) == 1

    async def test_token_for_missing_user(self, client, auth_headers) -> None:
        response = await client.request(
            "DELETE",
            "/api/user",
            json={"password": STRONG_PASSWORD},
            headers=auth_headers(999, "ghost@books.org"),
        )
        assert response.status_code == 404

    async def test_deletes_account_and_sends_email(
        self, client, registered_user, email_sender
    ) -> None:
        response = await client.request(
            "DELETE",
            "/api/user",
            json={"password": registered_user["password"]},
            headers=registered_user["headers"],
        )

        assert response.status_code == 204
        assert await _users(client) == []
        assert [(mail.address, mail.subject) for mail in email_sender.sent] == [
            (registered_user["email"], ACCOUNT_DELETED_SUBJECT)
        ]

        response = await client.get(f"/api/user/user/{registered_user['id']}")
        assert response.status_code == 404


class TestUpdateEmail:
    async def test_anonymous(self, client) -> None:
        response = await client.post(
            "/api/user/update-email",
            params={"newEmail": "b@x.com", "currentPassword": STRONG_PASSWORD},
        )
        assert response.status_code == 404
        assert response.json() == {"detail": "Could not determine the current user"}

    async def test_wrong_password(self, client, registered_user, email_sender) -> None:
        response = await client.post(
            "/api/user/update-email",
            params={"newEmail": "b@x.com", "currentPassword": "Wr0ng!Pass"},
            headers=registered_user["headers"],
        )
        assert response.status_code == 401
        assert response.json() == {"detail": "The current password entered is incorrect"}

        user = (await client.get(f"/api/user/user/{registered_user['id']}")).json()
        assert user["email"] == registered_user["email"]
        assert email_sender.sent == []

    async def test_taken_email(self, client, registered_user) -> None:
        await client.post("/api/user", json={"email": "b@x.com", "password": STRONG_PASSWORD})

        response = await client.post(
            "/api/user/update-email",
            params={"newEmail": "b@x.com", "currentPassword": registered_user["password"]},
            headers=registered_user["headers"],
        )

        assert response.status_code == 400
        assert response.json() == {"detail": [EMAIL_TAKEN_MESSAGE]}

    async def test_malformed_email(self, client, registered_user) -> None:
        response = await client.post(
            "/api/user/update-email",
            params={"newEmail": "nope", "currentPassword": registered_user["password"]},
            headers=registered_user["headers"],
        )
        assert response.status_code == 400
        assert response.json() == {"detail": [EMAIL_INVALID_MESSAGE]}

    async def test_changes_email_without_notification(
        self, client, registered_user, email_sender
    ) -> None:
        response = await client.post(
            "/api/user/update-email",
            params={"newEmail": "new@books.org", "currentPassword": registered_user["password"]},
            headers=registered_user["headers"],
        )

        assert response.status_code == 200
        assert email_sender.sent == []
        user = (await client.get(f"/api/user/user/{registered_user['id']}")).json()
        assert user["email"] == "new@books.org"

        response = await _login(client, "new@books.org", registered_user["password"])
        assert response.status_code == 200


class TestUpdatePassword:
    async def test_weak_password_is_rejected_first(self, client) -> None:
        response = await client.post(
            "/api/user/update-password",
            params={"currentPassword": STRONG_PASSWORD, "newPassword": "weak"},
        )
        assert response.status_code == 400
        assert response.json() == {"detail": [PASSWORD_WEAK_MESSAGE]}

    async def test_padding_does_not_make_password_strong(
        self, client, registered_user, email_sender
    ) -> None:
        response = await client.post(
            "/api/user/update-password",
            params={"currentPassword": registered_user["password"], "newPassword": "Ab1!    "},
            headers=registered_user["headers"],
        )

        assert response.status_code == 400
        assert response.json() == {"detail": [PASSWORD_WEAK_MESSAGE]}
        assert email_sender.sent == []
        assert (await _login(client, registered_user["email"], "Ab1!")).status_code == 401
        response = await _login(client, registered_user["email"], registered_user["password"])
        assert response.status_code == 200

    async def test_anonymous(self, client) -> None:
        response = await client.post(
            "/api/user/update-password",
            params={"currentPassword": STRONG_PASSWORD, "newPassword": OTHER_STRONG_PASSWORD},
        )
        assert response.status_code == 404

    async def test_wrong_password_keeps_old_one(
        self, client, registered_user, email_sender
    ) -> None:
        response = await client.post(
            "/api/user/update-password",
            params={"currentPassword": "Wr0ng!Pass", "newPassword": OTHER_STRONG_PASSWORD},
            headers=registered_user["headers"],
        )

        assert response.status_code == 401
        assert email_sender.sent == []
        response = await _login(client, registered_user["email"], registered_user["password"])
        assert response.status_code == 200

    async def test_changes_password_and_sends_email(
        self, client, registered_user, email_sender
    ) -> None:
        response = await client.post(
            "/api/user/update-password",
            params={
                "currentPassword": registered_user["password"],
                "newPassword": OTHER_STRONG_PASSWORD,
            },
            headers=registered_user["headers"],
        )

        assert response.status_code == 200
        assert response.json() is True
        assert [(mail.address, mail.subject) for mail in email_sender.sent] == [
            (registered_user["email"], ACCOUNT_PASSWORD_CHANGED_SUBJECT)
        ]

        old = await _login(client, registered_user["email"], registered_user["password"])
        assert old.status_code == 401
        new = await _login(client, registered_user["email"], OTHER_STRONG_PASSWORD)
        assert new.status_code == 200


class TestShelves:
    async def test_new_user_has_predefined_shelves(self, client, registered_user) -> None:
        response = await client.get("/api/shelves", headers=registered_user["headers"])

        assert response.status_code == 200
        assert response.json() == [
            {"kind": "predefined", "shelf_name": "To read"},
            {"kind": "predefined", "shelf_name": "Reading"},
            {"kind": "predefined", "shelf_name": "Read"},
            {"kind": "predefined", "shelf_name": "Did not finish"},
        ]

    async def test_anonymous(self, client) -> None:
        response = await client.get("/api/shelves")
        assert response.status_code == 404

    async def test_add_custom_shelf(self, client, registered_user) -> None:
        response = await client.post(
            "/api/shelves/custom",
            json={"shelf_name": "Favourites"},
            headers=registered_user["headers"],
        )

        assert response.status_code == 201
        assert response.json() == {"kind": "custom", "shelf_name": "Favourites"}

        shelves = (await client.get("/api/shelves", headers=registered_user["headers"])).json()
        assert shelves[-1] == {"kind": "custom", "shelf_name": "Favourites"}

    async def test_duplicate_custom_shelf(self, client, registered_user) -> None:
        payload = {"shelf_name": "Favourites"}
        await client.post("/api/shelves/custom", json=payload, headers=registered_user["headers"])

        response = await client.post(
            "/api/shelves/custom", json=payload, headers=registered_user["headers"]
        )

        assert response.status_code == 400
        assert response.json() == {"detail": "Shelf already exists"}

    async def test_blank_custom_shelf(self, client, registered_user) -> None:
        response = await client.post(
            "/api/shelves/custom",
            json={"shelf_name": "   "},
            headers=registered_user["headers"],
        )
        assert response.status_code == 400
        assert isinstance(response.json()["detail"], list)
