"""Account listing for admin callers."""

from workeasy.core.config import settings
from workeasy.core.i18n import t

USERS = f"{settings.API_PREFIX}/admin/users"


class TestListUsers:
    def test_manager_lists_accounts(self, client, owner, manager, staff):
        response = client.get(USERS, headers=manager.headers)

        assert response.status_code == 200
        assert response.headers["Cache-Control"] == "no-store"
        data = response.json()["data"]
        assert {u["email"] for u in data["users"]} == {
            "owner@example.com",
            "manager@example.com",
            "staff@example.com",
        }
        assert data["total"] == 3
        assert data["requestedBy"] == {"id": manager.user.id, "role": "SUB_MANAGER"}

    def test_pagination(self, client, owner, manager, staff):
        response = client.get(
            USERS, headers=owner.headers, params={"page": 2, "perPage": 2}
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert (data["page"], data["perPage"]) == (2, 2)

    def test_part_timer_refused(self, client, staff):
        response = client.get(USERS, headers=staff.headers)

        assert response.status_code == 403
        assert response.json()["error"] == t("errors.adminRequired", "en")

    def test_requires_sign_in(self, client):
        response = client.get(USERS)

        assert response.status_code == 401
