"""Causa lookup, search and admin CRUD under /api/causas-eje."""

from datetime import datetime

from eje_api.causas.models import Causa, CausaFolder, CausaUser

BASE = "/api/causas-eje"


class TestLookups:
    def test_find_by_id(self, client, api_headers, make_causa):
        causa = make_causa()
        res = client.get(f"{BASE}/id/{causa.id}", headers=api_headers)
        assert res.status_code == 200
        assert res.json()["data"]["cuij"] == causa.cuij

    def test_find_by_id_missing(self, client, api_headers):
        res = client.get(f"{BASE}/id/999", headers=api_headers)
        assert res.status_code == 404
        assert res.json()["detail"] == "Causa not found"

    def test_find_by_cuij_is_partial_and_case_insensitive(self, client, user_headers, make_causa):
        causa = make_causa(cuij="J-01-00015050-5/2021-0")
        res = client.get(f"{BASE}/cuij/j-01-00015050", headers=user_headers)
        assert res.status_code == 200
        assert res.json()["data"]["id"] == causa.id

        full = client.get(f"{BASE}/cuij/J-01-00015050-5/2021-0", headers=user_headers)
        assert full.json()["data"]["id"] == causa.id

    def test_find_by_cuij_ignores_case_type_prefix(self, client, api_headers, make_causa):
        causa = make_causa(cuij="J-01-00015050-5/2021-0")
        res = client.get(f"{BASE}/cuij/EXP%20J-01-00015050", headers=api_headers)
        assert res.status_code == 200
        assert res.json()["data"]["id"] == causa.id

        assert client.get(f"{BASE}/cuij/IPP%20", headers=api_headers).status_code == 400

    def test_find_by_number_and_year(self, client, api_headers, make_causa):
        causa = make_causa(numero=15050, anio=2021)
        res = client.get(f"{BASE}/15050/2021", headers=api_headers)
        assert res.json()["data"]["id"] == causa.id
        assert client.get(f"{BASE}/15050/2020", headers=api_headers).status_code == 404

    def test_lookups_need_credentials(self, client, make_causa):
        causa = make_causa()
        res = client.get(f"{BASE}/id/{causa.id}")
        assert res.status_code == 401
        assert res.json()["detail"] == "No authentication token provided"

    def test_token_from_cookie_and_query(self, client, user_headers, make_causa):
        causa = make_causa()
        token = user_headers["Authorization"].split(" ", 1)[1]

        client.cookies.set("auth_token", token)
        assert client.get(f"{BASE}/id/{causa.id}").status_code == 200
        client.cookies.clear()

        assert client.get(f"{BASE}/id/{causa.id}?token={token}").status_code == 200


class TestSubresources:
    def test_movimientos_are_paginated(self, client, user_headers, make_causa):
        movs = [{"n": i} for i in range(25)]
        causa = make_causa(movimientos=movs, movimientos_count=25)

        res = client.get(f"{BASE}/{causa.id}/movimientos?page=2&limit=10", headers=user_headers)
        body = res.json()
        assert [m["n"] for m in body["data"]] == list(range(10, 20))
        assert body["pagination"] == {
            "page": 2,
            "limit": 10,
            "total": 25,
            "total_pages": 3,
            "has_next_page": True,
            "has_prev_page": True,
        }
        assert body["cuij"] == causa.cuij

    def test_intervinientes_and_relacionadas(self, client, user_headers, make_causa):
        causa = make_causa(
            intervinientes=[{"nombre": "PEREZ", "tipo": "ACTOR"}],
            causas_relacionadas=[{"cuij": "J-01-1/2020-0"}],
        )
        res = client.get(f"{BASE}/{causa.id}/intervinientes", headers=user_headers)
        assert res.json()["data"] == [{"nombre": "PEREZ", "tipo": "ACTOR"}]
        res = client.get(f"{BASE}/{causa.id}/relacionadas", headers=user_headers)
        assert res.json()["data"] == [{"cuij": "J-01-1/2020-0"}]

    def test_subresources_need_jwt(self, client, api_headers, make_causa):
        causa = make_causa()
        res = client.get(f"{BASE}/{causa.id}/intervinientes", headers=api_headers)
        assert res.status_code == 401


class TestSearch:
    def test_filters(self, client, api_headers, make_causa):
        a = make_causa(caratula="PEREZ C/ GOMEZ", estado="EN TRAMITE", verified=True)
        make_causa(caratula="LOPEZ C/ DIAZ", estado="ARCHIVADO", verified=False)

        res = client.get(f"{BASE}/buscar?caratula=perez", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [a.id]

        res = client.get(f"{BASE}/search?estado=EN%20TRAMITE&verified=true", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [a.id]

        res = client.get(f"{BASE}/search?verified=false", headers=api_headers)
        assert len(res.json()["data"]) == 1

    def test_cuij_search_drops_prefix(self, client, api_headers, make_causa):
        causa = make_causa(cuij="J-01-00000042-5/2020-0")
        make_causa(cuij="J-01-00000043-5/2020-0")
        res = client.get(f"{BASE}/search?cuij=INC%20J-01-00000042", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [causa.id]

    def test_blank_params_are_ignored(self, client, api_headers, make_causa):
        make_causa()
        make_causa()
        res = client.get(f"{BASE}/search?caratula=%20%20&estado=", headers=api_headers)
        assert res.json()["pagination"]["total"] == 2

    def test_date_range_and_folder(self, client, api_headers, make_causa, db):
        old = make_causa(fecha_inicio=datetime(2019, 5, 1))
        new = make_causa(fecha_inicio=datetime(2023, 5, 1))
        db.add(CausaFolder(causa_id=old.id, folder_id="folder-x"))
        db.add(CausaUser(causa_id=new.id, user_id="u-7"))
        db.commit()

        res = client.get(f"{BASE}/search?fecha_inicio_from=2022-01-01T00:00:00", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [new.id]

        res = client.get(f"{BASE}/search?folder_id=folder-x", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [old.id]

        res = client.get(f"{BASE}/search?user_id=u-7", headers=api_headers)
        assert [c["id"] for c in res.json()["data"]] == [new.id]

    def test_pagination_and_sort(self, client, api_headers, make_causa):
        ids = [make_causa(numero=n).id for n in (5, 1, 3)]

        res = client.get(f"{BASE}/search?sort_by=numero&sort_order=asc&limit=2", headers=api_headers)
        body = res.json()
        assert [c["numero"] for c in body["data"]] == [1, 3]
        assert body["pagination"]["total"] == 3
        assert body["pagination"]["has_next_page"] is True

        res = client.get(f"{BASE}/search?page=2&limit=2&sort_by=numero", headers=api_headers)
        assert [c["numero"] for c in res.json()["data"]] == [1]
        assert len(ids) == 3

    def test_limit_is_capped(self, client, api_headers, make_causa):
        make_causa()
        res = client.get(f"{BASE}/search?limit=1000", headers=api_headers)
        assert res.json()["pagination"]["limit"] == 100

    def test_unknown_sort_field_falls_back(self, client, api_headers, make_causa):
        make_causa()
        res = client.get(f"{BASE}/search?sort_by=password", headers=api_headers)
        assert res.status_code == 200

    def test_by_folder_and_by_user_routes(self, client, user_headers, make_causa, db):
        causa = make_causa()
        db.add(CausaFolder(causa_id=causa.id, folder_id="f-1"))
        db.add(CausaUser(causa_id=causa.id, user_id="user-1"))
        db.commit()

        res = client.get(f"{BASE}/folder/f-1", headers=user_headers)
        assert res.json()["count"] == 1

        res = client.get(f"{BASE}/user/user-1", headers=user_headers)
        assert res.json()["data"][0]["id"] == causa.id
        assert res.json()["data"][0]["folder_ids"] == ["f-1"]


class TestStats:
    def test_counts(self, client, api_headers, make_causa):
        make_causa(verified=True, is_valid=True, details_loaded=True, estado="EN TRAMITE")
        make_causa(verified=True, is_valid=True, details_loaded=False, estado="EN TRAMITE")
        make_causa(verified=False, is_valid=None, error_count=2, estado="ARCHIVADO")
        make_causa(verified=True, is_valid=False, is_private=True)

        data = client.get(f"{BASE}/stats", headers=api_headers).json()["data"]
        assert data["total"] == 4
        assert data["verified"] == 3
        assert data["valid"] == 2
        assert data["private"] == 1
        assert data["details_loaded"] == 1
        assert data["pending_verification"] == 1
        assert data["pending_details"] == 1
        assert data["with_errors"] == 1
        assert data["estado_distribution"][0] == {"estado": "EN TRAMITE", "count": 2}
        assert len(data["recent_activity"]) == 4


class TestAdminCrud:
    def test_create(self, client, admin_headers, db):
        res = client.post(
            BASE,
            json={"cuij": "J-01-00000777-5/2022-0", "numero": 777, "anio": 2022},
            headers=admin_headers,
        )
        assert res.status_code == 201
        body = res.json()
        assert body["created"] is True
        assert body["data"]["source"] == "app"
        assert db.get(Causa, body["data"]["id"]) is not None

    def test_create_fills_number_and_year_from_cuij(self, client, admin_headers):
        res = client.post(BASE, json={"cuij": "EXP J-01-00015050-5/2021-0"}, headers=admin_headers)
        data = res.json()["data"]
        assert data["numero"] == 15050
        assert data["anio"] == 2021

    def test_create_existing_updates_in_place(self, client, admin_headers, make_causa):
        causa = make_causa(cuij="J-01-1/2020-0", caratula="OLD")
        res = client.post(
            BASE, json={"cuij": "J-01-1/2020-0", "caratula": "NEW"}, headers=admin_headers
        )
        assert res.status_code == 200
        body = res.json()
        assert body["created"] is False
        assert body["data"]["id"] == causa.id
        assert body["data"]["caratula"] == "NEW"

    def test_create_existing_by_number_and_year(self, client, admin_headers, make_causa):
        causa = make_causa(cuij=None, numero=55, anio=2019)
        res = client.post(
            BASE, json={"numero": 55, "anio": 2019, "estado": "X"}, headers=admin_headers
        )
        assert res.json()["data"]["id"] == causa.id

    def test_create_requires_identity(self, client, admin_headers):
        res = client.post(BASE, json={"caratula": "X"}, headers=admin_headers)
        assert res.status_code == 400
        assert res.json()["detail"] == "CUIJ or numero/anio is required"

    def test_create_needs_admin(self, client, user_headers, api_headers):
        assert client.post(BASE, json={"cuij": "X"}, headers=user_headers).status_code == 403
        assert client.post(BASE, json={"cuij": "X"}, headers=api_headers).status_code == 401

    def test_admin_with_unknown_user(self, client):
        from eje_api.auth.utils import create_token

        headers = {"Authorization": f"Bearer {create_token('ghost')}"}
        assert client.post(BASE, json={"cuij": "X"}, headers=headers).status_code == 404

    def test_update(self, client, admin_headers, make_causa):
        causa = make_causa()
        res = client.patch(
            f"{BASE}/{causa.id}",
            json={"estado": "ARCHIVADO", "movimientos": [{"a": 1}, {"b": 2}]},
            headers=admin_headers,
        )
        data = res.json()["data"]
        assert data["estado"] == "ARCHIVADO"
        assert data["movimientos_count"] == 2
        assert client.patch(f"{BASE}/999", json={}, headers=admin_headers).status_code == 404

    def test_update_does_not_touch_lease(self, client, admin_headers, make_causa):
        causa = make_causa(locked_by="w1")
        res = client.patch(f"{BASE}/{causa.id}", json={"locked_by": None}, headers=admin_headers)
        assert res.json()["data"]["locked_by"] == "w1"

    def test_delete(self, client, admin_headers, make_causa, db):
        causa = make_causa()
        db.add(CausaFolder(causa_id=causa.id, folder_id="f-1"))
        db.commit()
        causa_id, cuij = causa.id, causa.cuij

        res = client.delete(f"{BASE}/{causa_id}", headers=admin_headers)
        assert res.json()["data"] == {"id": causa_id, "cuij": cuij}
        db.expire_all()
        assert db.get(Causa, causa_id) is None
        assert client.delete(f"{BASE}/{causa_id}", headers=admin_headers).status_code == 404
