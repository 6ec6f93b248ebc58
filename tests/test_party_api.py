from __future__ import annotations

from fastapi.testclient import TestClient

from elephant.party_store import RedisPartyStore


def _create(client: TestClient, host_name: str = "Alice") -> dict:
    resp = client.post("/party", json={"host_name": host_name})
    assert resp.status_code == 201
    return resp.json()


def _join(client: TestClient, party_id: str, name: str) -> str:
    resp = client.post(f"/party/{party_id}/join", json={"player_name": name})
    assert resp.status_code == 200
    return resp.json()["player_id"]


def _ready_party(client: TestClient, names: list[str], **settings) -> tuple[str, str, list[str]]:
    """Create, join, configure, register everyone's gift and start."""

    created = _create(client, names[0])
    party_id, host_id = created["party_id"], created["host_id"]
    player_ids = [host_id] + [_join(client, party_id, n) for n in names[1:]]

    if settings:
        resp = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, **settings})
        assert resp.status_code == 200

    assert client.post(f"/party/{party_id}/register", json={"host_id": host_id}).status_code == 200
    for pid, name in zip(player_ids, names, strict=True):
        resp = client.post(
            f"/party/{party_id}/gift",
            json={"player_id": pid, "gift_name": f"{name}'s gift", "gift_description": "shiny"},
        )
        assert resp.status_code == 200

    resp = client.post(f"/party/{party_id}/start", json={"host_id": host_id})
    assert resp.status_code == 200
    return party_id, host_id, player_ids


def test_healthcheck_and_info(client: TestClient) -> None:
    assert client.get("/healthcheck").json() == {"status": "ok"}
    assert client.get("/info").json()["name"] == "white-elephant"


def test_post_party_creates_and_persists(client: TestClient, store: RedisPartyStore) -> None:
    data = _create(client)

    assert data["party"]["state"] == "waiting"
    assert data["party"]["host_name"] == "Alice"
    assert data["party"]["players"][0]["player_id"] == data["host_id"]
    assert data["party"]["players"][0]["is_host"] is True

    stored = store.get(data["party_id"])
    assert stored is not None
    assert stored.host_id == data["host_id"]

    resp = client.get(f"/party/{data['party_id']}")
    assert resp.status_code == 200
    assert resp.json()["party_id"] == data["party_id"]


def test_missing_party_is_404(client: TestClient) -> None:
    assert client.get("/party/nope").status_code == 404
    assert client.get("/party/nope/last_updated").status_code == 404
    assert client.post("/party/nope/join", json={"player_name": "Bob"}).status_code == 404


def test_request_validation_errors(client: TestClient) -> None:
    assert client.post("/party", json={"host_name": ""}).status_code == 422
    assert client.post("/party", json={}).status_code == 422

    party_id = _create(client)["party_id"]
    assert client.post(f"/party/{party_id}/join", json={"player_name": "x" * 101}).status_code == 422
    assert client.post(f"/party/{party_id}/open", json={"player_id": "p"}).status_code == 422


def test_join_returns_new_player_id(client: TestClient) -> None:
    party_id = _create(client)["party_id"]

    resp = client.post(f"/party/{party_id}/join", json={"player_name": "Bob"})

    assert resp.status_code == 200
    body = resp.json()
    names = {p["player_id"]: p["name"] for p in body["party"]["players"]}
    assert names[body["player_id"]] == "Bob"


def test_host_only_actions_are_403(client: TestClient) -> None:
    party_id = _create(client)["party_id"]
    bob = _join(client, party_id, "Bob")

    assert client.post(f"/party/{party_id}/register", json={"host_id": bob}).status_code == 403
    assert client.post(f"/party/{party_id}/start", json={"host_id": bob}).status_code == 403
    assert client.post(f"/party/{party_id}/settings", json={"host_id": bob, "max_steals": 2}).status_code == 403


def test_settings_only_change_what_was_sent(client: TestClient) -> None:
    created = _create(client)
    party_id, host_id = created["party_id"], created["host_id"]

    resp = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, "final_round_type": "swap"})
    assert resp.status_code == 200

    resp = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, "max_steals": "99"})
    assert resp.status_code == 200
    view = resp.json()
    assert view["final_round_type"] == "swap"
    assert view["max_steals"] == 10
    assert view["final_swap_allow_locked"] is False

    bad = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, "final_round_type": "bogus"})
    assert bad.status_code == 422


def test_settings_accept_any_max_steals_value(client: TestClient) -> None:
    created = _create(client)
    party_id, host_id = created["party_id"], created["host_id"]

    resp = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, "max_steals": 2.5})
    assert resp.status_code == 200
    assert resp.json()["max_steals"] == 2

    resp = client.post(f"/party/{party_id}/settings", json={"host_id": host_id, "max_steals": True})
    assert resp.status_code == 200
    assert resp.json()["max_steals"] == 3


def test_state_gates_are_409(client: TestClient) -> None:
    created = _create(client)
    party_id, host_id = created["party_id"], created["host_id"]

    assert client.post(f"/party/{party_id}/register", json={"host_id": host_id}).status_code == 200
    # Registration already begun; joining is closed and it cannot begin twice.
    assert client.post(f"/party/{party_id}/join", json={"player_name": "Late"}).status_code == 409
    assert client.post(f"/party/{party_id}/register", json={"host_id": host_id}).status_code == 409


def test_start_without_all_gifts_is_422(client: TestClient) -> None:
    created = _create(client)
    party_id, host_id = created["party_id"], created["host_id"]
    _join(client, party_id, "Bob")
    client.post(
        f"/party/{party_id}/gift",
        json={"player_id": host_id, "gift_name": "Mug"},
    )

    resp = client.post(f"/party/{party_id}/start", json={"host_id": host_id})

    assert resp.status_code == 422
    assert "Bob" in resp.json()["detail"]


def test_gift_registration_returns_gift_id_and_stays_hidden(client: TestClient) -> None:
    created = _create(client)
    party_id, host_id = created["party_id"], created["host_id"]

    resp = client.post(
        f"/party/{party_id}/gift",
        json={"player_id": host_id, "gift_name": "Lava lamp", "gift_description": "groovy"},
    )

    assert resp.status_code == 200
    body = resp.json()
    gift = next(g for g in body["party"]["gifts"] if g["gift_id"] == body["gift_id"])
    assert gift["name"] == "???"
    assert "Lava lamp" not in resp.text
    assert "groovy" not in resp.text

    again = client.post(f"/party/{party_id}/gift", json={"player_id": host_id, "gift_name": "Second"})
    assert again.status_code == 422


def test_full_game_over_http(client: TestClient) -> None:
    party_id, _, _ = _ready_party(client, ["Alice", "Bob"])

    view = client.get(f"/party/{party_id}").json()
    assert view["state"] == "playing"
    assert sorted(view["turn_order"]) == ["Alice", "Bob"]
    assert all(g["name"] == "???" for g in view["gifts"])

    for _ in range(2):
        current = view["current_player_id"]
        wrapped = next(g for g in view["gifts"] if not g["opened"])
        resp = client.post(f"/party/{party_id}/open", json={"player_id": current, "gift_id": wrapped["gift_id"]})
        assert resp.status_code == 200
        view = resp.json()

    assert view["state"] == "finished"
    assert view["current_player_id"] is None
    assert {g["name"] for g in view["gifts"]} == {"Alice's gift", "Bob's gift"}
    assert view["actions"][-1]["type"] == "game_ended"
    assert view["log"][0] == "Game over!"


def test_play_rejections_map_to_status_codes(client: TestClient) -> None:
    party_id, _, _ = _ready_party(client, ["Alice", "Bob", "Cara"])
    view = client.get(f"/party/{party_id}").json()
    current = view["current_player_id"]
    other = next(p["player_id"] for p in view["players"] if p["player_id"] != current)
    gift_id = view["gifts"][0]["gift_id"]

    assert client.post(f"/party/{party_id}/open", json={"player_id": other, "gift_id": gift_id}).status_code == 403
    assert client.post(f"/party/{party_id}/open", json={"player_id": current, "gift_id": "nope"}).status_code == 404
    assert client.post(f"/party/{party_id}/steal", json={"player_id": current, "gift_id": gift_id}).status_code == 422
    assert client.post(f"/party/{party_id}/keep", json={"player_id": current}).status_code == 409
    assert client.post(f"/party/{party_id}/swap", json={"player_id": current, "gift_id": gift_id}).status_code == 409


def test_chain_final_round_over_http(client: TestClient) -> None:
    party_id, _, _ = _ready_party(client, ["Alice", "Bob"], final_round_type="chain")

    view = client.get(f"/party/{party_id}").json()
    while not view["in_final_round"]:
        wrapped = next(g for g in view["gifts"] if not g["opened"])
        view = client.post(
            f"/party/{party_id}/open",
            json={"player_id": view["current_player_id"], "gift_id": wrapped["gift_id"]},
        ).json()

    assert view["state"] == "playing"
    assert view["log"][0].startswith("Final round (chain)!")

    resp = client.post(f"/party/{party_id}/keep", json={"player_id": view["current_player_id"]})
    assert resp.status_code == 200
    assert resp.json()["state"] == "finished"


def test_last_updated_moves_only_on_success(client: TestClient) -> None:
    party_id = _create(client)["party_id"]
    first = client.get(f"/party/{party_id}/last_updated").json()["last_updated"]

    assert client.post(f"/party/{party_id}/start", json={"host_id": "intruder"}).status_code == 403
    assert client.get(f"/party/{party_id}/last_updated").json()["last_updated"] == first

    _join(client, party_id, "Bob")
    assert client.get(f"/party/{party_id}/last_updated").json()["last_updated"] > first


def test_generic_action_endpoint(client: TestClient) -> None:
    party_id = _create(client)["party_id"]

    resp = client.post(f"/party/{party_id}/actions/join", json={"player_name": "Bob"})
    assert resp.status_code == 200
    body = resp.json()
    assert [p["name"] for p in body["party"]["players"]] == ["Alice", "Bob"]
    assert body["party"]["players"][1]["player_id"] == body["player_id"]
    assert body["gift_id"] is None

    resp = client.post(
        f"/party/{party_id}/actions/gift",
        json={"player_id": body["player_id"], "gift_name": "Socks"},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["gift_id"] == body["party"]["gifts"][0]["gift_id"]
    assert body["player_id"] is None

    assert client.post(f"/party/{party_id}/actions/dance", json={}).status_code == 404


def test_busy_party_is_409(client: TestClient, redis_client) -> None:
    party_id = _create(client)["party_id"]
    redis_client.set(f"lock:party:{party_id}", "someone-else", px=10_000)

    resp = client.post(f"/party/{party_id}/join", json={"player_name": "Bob"})

    assert resp.status_code == 409
    assert "busy" in resp.json()["detail"]
