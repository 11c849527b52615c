"""Email invitations, guest users and invitation acceptance."""

from datetime import datetime, timedelta, timezone

import httpx
import pytest

from workeasy.api.routes.invitations import invitation_status, parse_timestamp
from workeasy.core.config import settings
from workeasy.core.i18n import t

INVITATIONS = f"{settings.API_PREFIX}/invitations"


def in_days(days):
    return (datetime.now(timezone.utc) + timedelta(days=days)).isoformat()


@pytest.fixture
def create_invitation_function(backend):
    """Registers ``create_invitation`` writing into the invitations table."""

    def create(params):
        return [
            backend.seed(
                "invitations",
                store_id=params["p_store_id"],
                invited_email=params["p_invited_email"],
                role_hint=params["p_role_hint"],
                invited_by=params["p_invited_by"],
                token_hash="hash-123",
                status="PENDING",
                expires_at=in_days(params["p_expires_in_days"]),
                created_at=datetime.now(timezone.utc).isoformat(),
            )
        ]

    backend.functions["create_invitation"] = create
    return create


def seed_invitation(backend, store, inviter, **values):
    row = {
        "store_id": store["id"],
        "invited_email": "guest@example.com",
        "role_hint": "PART_TIMER",
        "invited_by": inviter.user.id,
        "token_hash": "hash-abc",
        "status": "PENDING",
        "expires_at": in_days(3),
        "created_at": datetime.now(timezone.utc).isoformat(),
    }
    row.update(values)
    return backend.seed("invitations", **row)


class TestInvitationStatus:
    def test_precedence(self):
        past = "2000-01-01T00:00:00Z"
        assert invitation_status({"status": "CANCELLED", "expires_at": past}) == "cancelled"
        assert invitation_status({"status": "ACCEPTED", "expires_at": past}) == "used"
        assert invitation_status({"status": "PENDING", "expires_at": past}) == "expired"
        assert invitation_status({"status": "PENDING", "expires_at": in_days(1)}) == "valid"

    def test_trimmed_fractional_seconds(self):
        parsed = parse_timestamp("2000-01-01T12:00:00.12345+00:00")

        assert parsed == datetime(2000, 1, 1, 12, 0, 0, 123450, tzinfo=timezone.utc)
        assert invitation_status(
            {"status": "PENDING", "expires_at": "2000-01-01T12:00:00.12345+00:00"}
        ) == "expired"

    def test_naive_timestamp_is_utc(self):
        assert parse_timestamp("2000-01-01T12:00:00").tzinfo == timezone.utc


class TestEmailInvitation:
    def test_sends_invite_email(
        self, client, backend, manager, store, create_invitation_function
    ):
        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={
                "email": "new@example.com",
                "storeId": store["id"],
                "roleHint": "PART_TIMER",
                "name": "Hana",
            },
        )

        assert response.status_code == 200
        invitation = backend.rows("invitations")[0]
        assert response.json()["data"] == {"invitationId": invitation["id"]}

        email, options = backend.admin.auth.admin.invites[0]
        assert email == "new@example.com"
        assert options["data"]["token_hash"] == "hash-123"
        assert options["data"]["store_name"] == "Main Street"
        assert options["data"]["invited_name"] == "Hana"
        assert options["redirect_to"] == (
            f"{settings.APP_URL}/en/invites/verify-email?token=hash-123&type=invite"
        )

    def test_replaces_stale_pending_invitation(
        self, client, backend, manager, store, create_invitation_function
    ):
        stale = seed_invitation(backend, store, manager, invited_email="new@example.com")

        client.post(
            INVITATIONS,
            headers=manager.headers,
            json={"email": "new@example.com", "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        ids = [row["id"] for row in backend.rows("invitations")]
        assert stale["id"] not in ids
        assert len(ids) == 1

    def test_existing_user_reuses_pending_invitation(self, client, backend, manager, staff, store):
        pending = seed_invitation(backend, store, manager, invited_email=staff.user.email)

        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={"email": staff.user.email, "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        assert response.status_code == 200
        assert response.json()["data"]["invitationId"] == pending["id"]
        assert response.json()["message"] == t("invitations.existingUser", "en")
        assert backend.admin.auth.admin.invites == []

    def test_email_failure_removes_invitation(
        self, client, backend, manager, store, create_invitation_function
    ):
        backend.admin.auth.admin.fail_invites = True

        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={"email": "new@example.com", "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        assert response.status_code == 500
        assert response.json()["error"] == t("errors.invitationEmailFailed", "en")
        assert backend.rows("invitations") == []

    def test_unreachable_mail_service_removes_invitation(
        self, client, backend, manager, store, create_invitation_function, monkeypatch
    ):
        def unreachable(*args, **kwargs):
            raise httpx.ConnectError("connection refused")

        monkeypatch.setattr(
            backend.admin.auth.admin, "invite_user_by_email", unreachable
        )

        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={"email": "new@example.com", "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        assert response.status_code == 500
        assert response.json()["error"] == t("errors.invitationEmailFailed", "en")
        assert backend.rows("invitations") == []

    def test_part_timer_cannot_invite(self, client, staff, store):
        response = client.post(
            INVITATIONS,
            headers=staff.headers,
            json={"email": "new@example.com", "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        assert response.status_code == 403

    def test_missing_fields(self, client, manager):
        response = client.post(
            INVITATIONS, headers=manager.headers, json={"email": "new@example.com"}
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.emailFieldsRequired", "en")


class TestGuestUser:
    def test_creates_guest(self, client, backend, manager, store):
        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={
                "isGuest": True,
                "name": "Temp Park",
                "storeId": store["id"],
                "roleHint": "PART_TIMER",
            },
        )

        assert response.status_code == 200
        guest = response.json()["data"]["guestUser"]
        assert guest["is_guest"] is True
        assert guest["user_id"] is None
        assert response.json()["data"]["guestUserId"] == guest["id"]

    def test_duplicate_guest_name(self, client, backend, manager, store):
        backend.seed(
            "store_users",
            store_id=store["id"],
            name="Temp Park",
            is_guest=True,
            is_active=True,
        )

        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={
                "isGuest": True,
                "name": "Temp Park",
                "storeId": store["id"],
                "roleHint": "PART_TIMER",
            },
        )

        assert response.status_code == 409
        assert response.json()["error"] == t("errors.guestExists", "en")

    def test_guest_needs_name(self, client, manager, store):
        response = client.post(
            INVITATIONS,
            headers=manager.headers,
            json={"isGuest": True, "storeId": store["id"], "roleHint": "PART_TIMER"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.guestFieldsRequired", "en")


class TestListInvitations:
    def test_paginates(self, client, backend, manager, store):
        for day in range(3):
            seed_invitation(
                backend,
                store,
                manager,
                invited_email=f"u{day}@example.com",
                created_at=f"2024-05-0{day + 1}T00:00:00+00:00",
            )

        response = client.get(
            INVITATIONS,
            headers=manager.headers,
            params={"storeId": store["id"], "page": 2, "limit": 2},
        )

        data = response.json()["data"]
        assert [i["invited_email"] for i in data["invitations"]] == ["u0@example.com"]
        assert data["pagination"] == {"page": 2, "limit": 2, "total": 3, "totalPages": 2}

    def test_requires_store(self, client, manager):
        response = client.get(INVITATIONS, headers=manager.headers)

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.storeIdRequired", "en")


class TestAcceptInvitation:
    def test_accepts_and_grants_role(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager)
        backend.functions["grant_user_role"] = "role-9"

        response = client.post(
            f"{INVITATIONS}/accept",
            json={"tokenHash": "hash-abc", "name": "Hana", "password": "password1"},
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["userRoleId"] == "role-9"
        assert data["storeName"] == "Main Street"
        assert data["needsEmailConfirmation"] is False

        name, params = next(c for c in backend.rpc_calls if c[0] == "grant_user_role")
        assert params["p_granted_by"] == manager.user.id
        assert params["p_user_id"] == data["userId"]
        assert invitation["status"] == "ACCEPTED"
        assert invitation["accepted_by"] == data["userId"]
        assert backend.users[data["userId"]].user_metadata == {
            "name": "Hana",
            "role": "PART_TIMER",
        }

    def test_unknown_token(self, client):
        response = client.post(
            f"{INVITATIONS}/accept",
            json={"tokenHash": "nope", "name": "Hana", "password": "password1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.invitationInvalid", "en")

    def test_expired_invitation_marked(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager, expires_at=in_days(-1))

        response = client.post(
            f"{INVITATIONS}/accept",
            json={"tokenHash": "hash-abc", "name": "Hana", "password": "password1"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.invitationExpired", "en")
        assert invitation["status"] == "EXPIRED"

    def test_short_password(self, client):
        response = client.post(
            f"{INVITATIONS}/accept",
            json={"tokenHash": "hash-abc", "name": "Hana", "password": "short"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("validation.passwordMin8", "en")


class TestManageInvitation:
    def test_cancel(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager)

        response = client.post(
            f"{INVITATIONS}/{invitation['id']}/cancel", headers=manager.headers
        )

        assert response.status_code == 200
        assert invitation["status"] == "CANCELLED"

    def test_cancel_requires_pending(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager, status="ACCEPTED")

        response = client.post(
            f"{INVITATIONS}/{invitation['id']}/cancel", headers=manager.headers
        )

        assert response.status_code == 400
        assert response.json()["error"] == t("errors.invitationNotPending", "en")

    def test_cancel_by_part_timer(self, client, backend, manager, staff, store):
        invitation = seed_invitation(backend, store, manager)

        response = client.post(
            f"{INVITATIONS}/{invitation['id']}/cancel", headers=staff.headers
        )

        assert response.status_code == 403

    def test_resend_extends_expiry(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager, expires_at=in_days(1))

        response = client.post(
            f"{INVITATIONS}/{invitation['id']}/resend", headers=manager.headers
        )

        assert response.status_code == 200
        expires_at = datetime.fromisoformat(response.json()["data"]["expiresAt"])
        assert expires_at > datetime.now(timezone.utc) + timedelta(
            days=settings.INVITATION_RESEND_EXTENSION_DAYS - 1
        )
        assert invitation["expires_at"] == response.json()["data"]["expiresAt"]
        assert backend.admin.auth.admin.invites[0][0] == "guest@example.com"

    def test_resend_survives_email_failure(self, client, backend, manager, store):
        invitation = seed_invitation(backend, store, manager)
        backend.admin.auth.admin.fail_invites = True

        response = client.post(
            f"{INVITATIONS}/{invitation['id']}/resend", headers=manager.headers
        )

        assert response.status_code == 200


class TestInvitationInfo:
    def test_reports_status(self, client, backend):
        backend.functions["get_invitation_by_token"] = lambda params: [
            {
                "id": "inv-1",
                "store_name": "Main Street",
                "status": "PENDING",
                "expires_at": "2000-01-01T00:00:00Z",
            }
        ]

        response = client.get(f"{INVITATIONS}/info/hash-abc")

        data = response.json()["data"]
        assert data["status"] == "expired"
        assert data["isValid"] is False
        assert data["statusMessage"] == t("invitations.status.expired", "en")
        assert backend.rpc_calls[-1] == ("get_invitation_by_token", {"p_token": "hash-abc"})

    def test_unknown_token(self, client, backend):
        backend.functions["get_invitation_by_token"] = []

        response = client.get(f"{INVITATIONS}/info/nope")

        assert response.status_code == 404
