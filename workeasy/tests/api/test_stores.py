from postgrest.exceptions import APIError

from workeasy.core.config import settings
from workeasy.core.i18n import t

STORES = f"{settings.API_PREFIX}/stores"


class TestCreateStore:
    def test_master_creates_store(self, client, backend, owner):
        response = client.post(
            STORES, headers=owner.headers, json={"name": "Harbor", "address": "1 Pier"}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["data"]["owner_id"] == owner.user.id
        assert body["data"]["status"] == "ACTIVE"
        assert body["data"]["user_role"] == "MASTER"
        assert body["message"] == t("stores.created", "en")
        assert any(s["name"] == "Harbor" for s in backend.rows("stores"))

    def test_part_timer_rejected(self, client, staff):
        response = client.post(STORES, headers=staff.headers, json={"name": "Harbor"})

        assert response.status_code == 403
        assert response.json()["error"] == t("errors.masterRequired", "en")

    def test_empty_name_rejected(self, client, owner):
        response = client.post(STORES, headers=owner.headers, json={"name": ""})

        assert response.status_code == 400
        assert response.json()["details"][0]["field"] == "name"


class TestListStores:
    def test_master_lists_active_stores(self, client, backend, owner, store):
        backend.seed("stores", name="Archived", owner_id=owner.user.id, status="ARCHIVED")

        response = client.get(STORES, headers=owner.headers)

        assert response.status_code == 200
        assert [s["name"] for s in response.json()["data"]] == ["Main Street"]

    def test_non_master_needs_mine(self, client, manager):
        response = client.get(STORES, headers=manager.headers)

        assert response.status_code == 403

    def test_mine_uses_database_function(self, client, backend, manager, store):
        backend.functions["get_user_accessible_stores"] = lambda params: [
            {"id": store["id"], "user_role": "SUB_MANAGER"}
        ]

        response = client.get(STORES, headers=manager.headers, params={"mine": "1"})

        assert response.json()["data"] == [{"id": store["id"], "user_role": "SUB_MANAGER"}]
        assert backend.rpc_calls[-1] == (
            "get_user_accessible_stores",
            {"p_user_id": manager.user.id},
        )

    def test_mine_fallback_merges_owned_and_granted(self, client, backend, owner, store):
        other = backend.add_user("boss@example.com", role="MASTER")
        granted = backend.seed(
            "stores",
            name="Airport",
            owner_id=other.id,
            status="ACTIVE",
            created_at="2024-02-01T00:00:00+00:00",
        )
        backend.seed(
            "user_store_roles",
            user_id=owner.user.id,
            store_id=granted["id"],
            role="SUB_MANAGER",
            status="ACTIVE",
            granted_at="2024-03-01T00:00:00+00:00",
        )

        response = client.get(STORES, headers=owner.headers, params={"mine": "1"})

        data = response.json()["data"]
        assert [s["name"] for s in data] == ["Airport", "Main Street"]
        assert data[0]["user_role"] == "SUB_MANAGER"
        assert data[0]["granted_at"] == "2024-03-01T00:00:00+00:00"
        assert data[1]["user_role"] == "MASTER"
        assert data[1]["granted_at"] == store["created_at"]

    def test_mine_other_database_errors_surface(self, client, backend, owner):
        def broken(params):
            raise APIError({"code": "XX000", "message": "boom"})

        backend.functions["get_user_accessible_stores"] = broken

        response = client.get(STORES, headers=owner.headers, params={"mine": "1"})

        assert response.status_code == 500


class TestStoreDetail:
    def test_owner_reads_store(self, client, owner, store):
        response = client.get(f"{STORES}/{store['id']}", headers=owner.headers)

        assert response.status_code == 200
        assert response.json()["data"]["name"] == "Main Street"

    def test_non_owner_forbidden(self, client, manager, store):
        response = client.get(f"{STORES}/{store['id']}", headers=manager.headers)

        assert response.status_code == 403
        assert response.json()["error"] == t("errors.notStoreOwner", "en")

    def test_missing_store(self, client, owner):
        response = client.get(f"{STORES}/nope", headers=owner.headers)

        assert response.status_code == 404
        assert response.json()["error"] == t("errors.storeNotFound", "en")

    def test_owner_updates_store(self, client, backend, owner, store):
        response = client.patch(
            f"{STORES}/{store['id']}", headers=owner.headers, json={"phone": "010-0000"}
        )

        assert response.status_code == 200
        assert response.json()["data"]["phone"] == "010-0000"
        assert response.json()["data"]["updated_at"]
        assert response.json()["message"] == t("stores.updated", "en")
