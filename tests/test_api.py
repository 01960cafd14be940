"""HTTP surface: routing, payload shapes, error envelope and the admin gate."""

from datepoll.config import settings

from .conftest import ADMIN_PASSWORD


def _setup_march(client, admin_headers) -> None:
    for name in ("Mari", "Jaan"):
        assert client.post("/admin/voters", json={"name": name}, headers=admin_headers).status_code == 200
    r = client.put(
        "/admin/window",
        json={"start_date": "2024-03-01", "end_date": "2024-03-31"},
        headers=admin_headers,
    )
    assert r.status_code == 200


class TestMeta:
    def test_health(self, client) -> None:
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True

    def test_version(self, client) -> None:
        assert client.get("/version").json()["version"] == settings.app_version


class TestVotingFlow:
    def test_overlap_example(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)

        r = client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10", "2024-03-11"]})
        assert r.status_code == 200
        assert r.json() == {"voter_name": "Mari", "dates": ["2024-03-10", "2024-03-11"]}
        assert client.post("/votes/", json={"voter_name": "Jaan", "dates": ["2024-03-10"]}).status_code == 200

        r = client.get("/overlap/")
        assert r.status_code == 200
        assert r.json() == [
            {"date": "2024-03-10", "count": 2, "voters": ["Mari", "Jaan"]},
            {"date": "2024-03-11", "count": 1, "voters": ["Mari"]},
        ]

    def test_list_voters_shows_status(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Jaan", "dates": ["2024-03-10"]})

        body = client.get("/voters/").json()
        assert [(v["name"], v["has_voted"]) for v in body] == [("Mari", False), ("Jaan", True)]
        assert body[0]["voted_at"] is None
        assert body[1]["voted_at"] is not None

    def test_second_vote_conflicts(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10"]})

        r = client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10"]})
        assert r.status_code == 409
        assert r.json()["error"] == "already_voted"
        assert client.get("/votes/").json() == [{"voter_name": "Mari", "dates": ["2024-03-10"]}]

    def test_unknown_voter(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.post("/votes/", json={"voter_name": "Peeter", "dates": ["2024-03-10"]})
        assert r.status_code == 404
        assert r.json()["error"] == "unknown_voter"

    def test_empty_selection(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.post("/votes/", json={"voter_name": "Mari", "dates": []})
        assert r.status_code == 400
        assert r.json()["error"] == "validation_error"

    def test_past_date(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-01"]})
        assert r.status_code == 400

    def test_unparseable_date_is_rejected_by_schema(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.post("/votes/", json={"voter_name": "Mari", "dates": ["next tuesday"]})
        assert r.status_code == 422

    def test_day_detail(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10", "2024-03-11"]})
        client.post("/votes/", json={"voter_name": "Jaan", "dates": ["2024-03-10"]})

        body = client.get("/overlap/2024-03-10").json()
        assert body["count"] == 2
        assert body["intensity"] == "high"
        assert body["available"] == ["Mari", "Jaan"]
        assert body["unavailable"] == []


class TestSite:
    def test_window_unset(self, client) -> None:
        assert client.get("/window").json() is None
        assert client.get("/window/calendar").json() == {"today": "2024-03-05", "months": []}

    def test_calendar(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        body = client.get("/window/calendar").json()

        assert [m["month"] for m in body["months"]] == ["2024-03-01"]
        assert body["months"][0]["selectable"][0] == "2024-03-05"

    def test_invalid_window(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.put(
            "/admin/window",
            json={"start_date": "2024-04-10", "end_date": "2024-04-01"},
            headers=admin_headers,
        )
        assert r.status_code == 400
        assert client.get("/window").json() == {"start_date": "2024-03-01", "end_date": "2024-03-31"}

    def test_header(self, client, admin_headers) -> None:
        assert client.get("/header").json() == {"text": ""}
        r = client.put("/admin/header", json={"text": "Vali sobivad kuupäevad"}, headers=admin_headers)
        assert r.status_code == 200
        assert client.get("/header").json() == {"text": "Vali sobivad kuupäevad"}


class TestAdmin:
    def test_requires_password(self, client) -> None:
        r = client.post("/admin/voters", json={"name": "Mari"})
        assert r.status_code == 401

    def test_wrong_password(self, client) -> None:
        r = client.delete("/admin/votes", headers={"X-Admin-Password": ADMIN_PASSWORD + "x"})
        assert r.status_code == 401

    def test_locked_when_unconfigured(self, client, monkeypatch) -> None:
        monkeypatch.setattr(settings, "admin_password", "")
        r = client.delete("/admin/votes", headers={"X-Admin-Password": ""})
        assert r.status_code == 403

    def test_duplicate_voter(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        r = client.post("/admin/voters", json={"name": "Mari"}, headers=admin_headers)
        assert r.status_code == 409
        assert r.json()["error"] == "duplicate_name"

    def test_remove_voter(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        assert client.delete("/admin/voters/Jaan", headers=admin_headers).status_code == 200
        assert [v["name"] for v in client.get("/voters/").json()] == ["Mari"]

        r = client.delete("/admin/voters/Jaan", headers=admin_headers)
        assert r.status_code == 404
        assert r.json()["error"] == "not_found"

    def test_delete_one_vote(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10"]})

        assert client.delete("/admin/votes/Mari", headers=admin_headers).status_code == 200
        assert client.delete("/admin/votes/Mari", headers=admin_headers).status_code == 200
        assert client.get("/votes/").json() == []
        assert client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-12"]}).status_code == 200

    def test_voter_can_delete_own_vote_without_admin(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10"]})
        client.post("/votes/", json={"voter_name": "Jaan", "dates": ["2024-03-10"]})

        r = client.delete("/votes/Mari")
        assert r.status_code == 200
        assert client.get("/votes/").json() == [{"voter_name": "Jaan", "dates": ["2024-03-10"]}]
        assert client.delete("/votes/Mari").status_code == 200

        r = client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-12"]})
        assert r.status_code == 200

    def test_delete_all_votes(self, client, admin_headers) -> None:
        _setup_march(client, admin_headers)
        client.post("/votes/", json={"voter_name": "Mari", "dates": ["2024-03-10"]})
        client.post("/votes/", json={"voter_name": "Jaan", "dates": ["2024-03-10"]})

        assert client.delete("/admin/votes", headers=admin_headers).status_code == 200
        assert client.get("/overlap/").json() == []
        assert all(not v["has_voted"] and v["voted_at"] is None for v in client.get("/voters/").json())
