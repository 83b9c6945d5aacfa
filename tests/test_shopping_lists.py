# flake8: noqa
from conftest import auth_header


def list_payload(name="Groceries", items=None):
    return {
        "name": name,
        "items": items
        if items is not None
        else [
            {"ingredientName": "Tomato", "quantity": 4, "unit": "pieces"},
            {"ingredientName": "Basil", "quantity": 1, "unit": "bunch"},
        ],
    }


def create_list(client, user_id="alice", payload=None):
    res = client.post("/api/shopping-lists", json=payload or list_payload(), headers=auth_header(user_id))
    assert res.status_code == 201, res.text
    return res.json()


def test_requires_authentication(client):
    assert client.get("/api/shopping-lists").status_code == 401
    assert client.post("/api/shopping-lists", json=list_payload()).status_code == 401


def test_create_and_list_own_lists(client):
    created = create_list(client)
    assert created["name"] == "Groceries"
    assert created["userId"] == "alice"
    assert {(i["ingredient"]["name"], i["purchased"]) for i in created["items"]} == {
        ("Tomato", False),
        ("Basil", False),
    }
    create_list(client, user_id="bob", payload=list_payload(name="Bob's list"))

    res = client.get("/api/shopping-lists", headers=auth_header("alice"))
    assert res.status_code == 200
    assert [sl["name"] for sl in res.json()] == ["Groceries"]

    res = client.get(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice"))
    assert res.status_code == 200
    assert res.json()["id"] == created["id"]


def test_items_share_the_ingredient_registry(client):
    create_list(client)
    create_list(client, user_id="bob")
    names = [i["name"] for i in client.get("/api/ingredients").json()]
    assert names == ["Basil", "Tomato"]


def test_other_users_list_looks_missing(client):
    created = create_list(client, user_id="alice")
    bob = auth_header("bob")

    assert client.get(f"/api/shopping-lists/{created['id']}", headers=bob).status_code == 404
    assert client.put(f"/api/shopping-lists/{created['id']}", json=list_payload(), headers=bob).status_code == 404
    assert client.delete(f"/api/shopping-lists/{created['id']}", headers=bob).status_code == 404

    # untouched for the owner
    res = client.get(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice"))
    assert len(res.json()["items"]) == 2


def test_update_replaces_items(client):
    created = create_list(client)
    res = client.put(
        f"/api/shopping-lists/{created['id']}",
        json=list_payload(
            name="Renamed",
            items=[{"ingredientName": "Lemon", "quantity": 2, "unit": "pieces", "purchased": True}],
        ),
        headers=auth_header("alice"),
    )
    assert res.status_code == 200
    updated = res.json()
    assert updated["name"] == "Renamed"
    assert [(i["ingredient"]["name"], i["purchased"]) for i in updated["items"]] == [("Lemon", True)]


def test_delete_list(client):
    created = create_list(client)
    res = client.delete(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice"))
    assert res.status_code == 204
    assert client.get(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice")).status_code == 404
    assert client.delete(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice")).status_code == 404


def test_toggle_purchased(client):
    created = create_list(client)
    item = created["items"][0]
    url = f"/api/shopping-lists/{created['id']}/items/{item['id']}"

    res = client.patch(url, json={"purchased": True}, headers=auth_header("alice"))
    assert res.status_code == 200
    assert res.json()["purchased"] is True
    assert res.json()["ingredient"]["name"] == item["ingredient"]["name"]

    stored = client.get(f"/api/shopping-lists/{created['id']}", headers=auth_header("alice")).json()
    flags = {i["id"]: i["purchased"] for i in stored["items"]}
    assert flags[item["id"]] is True
    assert sum(flags.values()) == 1


def test_toggle_item_of_another_user_is_not_found(client):
    created = create_list(client, user_id="alice")
    item_id = created["items"][0]["id"]
    res = client.patch(
        f"/api/shopping-lists/{created['id']}/items/{item_id}",
        json={"purchased": True},
        headers=auth_header("bob"),
    )
    assert res.status_code == 404


def test_toggle_item_through_wrong_list_is_not_found(client):
    first = create_list(client)
    second = create_list(client, payload=list_payload(name="Other"))
    item_id = first["items"][0]["id"]
    res = client.patch(
        f"/api/shopping-lists/{second['id']}/items/{item_id}",
        json={"purchased": True},
        headers=auth_header("alice"),
    )
    assert res.status_code == 404


def test_invalid_items_are_rejected(client):
    res = client.post(
        "/api/shopping-lists",
        json=list_payload(items=[{"ingredientName": "", "quantity": -1, "unit": "g"}]),
        headers=auth_header("alice"),
    )
    assert res.status_code == 400
    fields = {d["field"] for d in res.json()["details"]}
    assert {"items.0.ingredientName", "items.0.quantity"} <= fields
