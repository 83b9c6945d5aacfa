# flake8: noqa
from conftest import auth_header, recipe_payload


def test_list_is_sorted_and_public(client):
    for name in ("Thyme", "Basil", "Oregano"):
        assert client.post("/api/ingredients", json={"name": name}, headers=auth_header()).status_code == 201
    res = client.get("/api/ingredients")
    assert res.status_code == 200
    assert [i["name"] for i in res.json()] == ["Basil", "Oregano", "Thyme"]


def test_create_requires_authentication(client):
    assert client.post("/api/ingredients", json={"name": "Salt"}).status_code == 401


def test_duplicate_name_is_rejected(client):
    assert client.post("/api/ingredients", json={"name": "Salt"}, headers=auth_header()).status_code == 201
    res = client.post("/api/ingredients", json={"name": "Salt"}, headers=auth_header())
    assert res.status_code == 400
    assert res.json() == {"error": "Ingredient already exists"}


def test_rename(client):
    salt = client.post("/api/ingredients", json={"name": "Salt"}, headers=auth_header()).json()
    client.post("/api/ingredients", json={"name": "Pepper"}, headers=auth_header())

    res = client.put(f"/api/ingredients/{salt['id']}", json={"name": "Sea Salt"}, headers=auth_header())
    assert res.status_code == 200
    assert res.json() == {"id": salt["id"], "name": "Sea Salt"}

    res = client.put(f"/api/ingredients/{salt['id']}", json={"name": "Pepper"}, headers=auth_header())
    assert res.status_code == 400
    assert res.json() == {"error": "Ingredient name already exists"}

    assert client.put("/api/ingredients/missing", json={"name": "X"}, headers=auth_header()).status_code == 404


def test_delete_removes_references(client):
    recipe = client.post(
        "/api/recipes",
        json=recipe_payload(ingredients=[("Garlic", 1, "clove"), ("Bread", 1, "loaf")]),
        headers=auth_header(),
    ).json()
    garlic = next(i["ingredient"] for i in recipe["ingredients"] if i["ingredient"]["name"] == "Garlic")

    res = client.delete(f"/api/ingredients/{garlic['id']}", headers=auth_header())
    assert res.status_code == 204
    assert client.delete(f"/api/ingredients/{garlic['id']}", headers=auth_header()).status_code == 404

    stored = client.get(f"/api/recipes/{recipe['id']}").json()
    assert [i["ingredient"]["name"] for i in stored["ingredients"]] == ["Bread"]


def test_categories_listing(client):
    client.post("/api/recipes", json=recipe_payload(categories=["Soup", "Dinner"]), headers=auth_header())
    res = client.get("/api/categories")
    assert res.status_code == 200
    assert [c["name"] for c in res.json()] == ["Dinner", "Soup"]
