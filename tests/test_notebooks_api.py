"""Notebook API tests."""

import pytest

from tests.helpers import create_note, create_notebook, register


def list_notebooks(client, section="regular"):
    response = client.get(f"/api/notebooks/{section}")
    assert response.status_code == 200, response.text
    return response.json()


class TestCreateNotebook:
    def test_groceries_scenario(self, client, alice):
        notebook = create_notebook(client, "Groceries", "regular")
        assert notebook["name"] == "Groceries"
        assert notebook["section"] == "regular"
        assert notebook["noteCount"] == 0
        assert notebook["userId"] == alice

        listed = list_notebooks(client)
        assert [(nb["_id"], nb["noteCount"]) for nb in listed] == [(notebook["_id"], 0)]

        create_note(client, "milk", "regular", notebook["_id"])

        assert list_notebooks(client)[0]["noteCount"] == 1
        notes = client.get(f"/api/notes/regular/{notebook['_id']}").json()
        assert [n["content"] for n in notes] == ["milk"]

    def test_newest_first(self, client, alice):
        create_notebook(client, "first")
        create_notebook(client, "second")
        assert [nb["name"] for nb in list_notebooks(client)] == ["second", "first"]

    def test_sections_are_separate(self, client, alice):
        create_notebook(client, "home", "regular")
        create_notebook(client, "todo", "checklist")
        assert [nb["name"] for nb in list_notebooks(client, "regular")] == ["home"]
        assert [nb["name"] for nb in list_notebooks(client, "checklist")] == ["todo"]

    @pytest.mark.parametrize("section", ["favorites", "locked"])
    def test_sections_without_notebooks(self, client, alice, section):
        assert list_notebooks(client, section) == []
        response = client.post("/api/notebooks", json={"name": "x", "section": section})
        assert response.status_code == 400

    def test_name_required(self, client, alice):
        response = client.post("/api/notebooks", json={"name": "  ", "section": "regular"})
        assert response.status_code == 400
        assert response.json()["error"] == "Notebook name is required"

    def test_invalid_section(self, client, alice):
        response = client.get("/api/notebooks/archive")
        assert response.status_code == 400
        assert response.json()["error"] == "Invalid section: archive"

    def test_users_see_only_their_notebooks(self, client, alice):
        create_notebook(client, "alice's")
        register(client, "bob", "0000")
        assert list_notebooks(client) == []


class TestDeleteNotebook:
    def test_delete_cascades_notes(self, client, alice):
        notebook = create_notebook(client, "Groceries")
        other = create_notebook(client, "Other")
        create_note(client, "milk", "regular", notebook["_id"], isFavorite=True)
        create_note(client, "eggs", "regular", notebook["_id"])
        create_note(client, "keep", "regular", other["_id"], isFavorite=True)

        response = client.delete(f"/api/notebooks/{notebook['_id']}")
        assert response.status_code == 200
        assert response.json() == {"success": True}

        assert [nb["name"] for nb in list_notebooks(client)] == ["Other"]
        assert client.get(f"/api/notes/regular/{notebook['_id']}").json() == []
        for path in ["/api/notes/regular", "/api/notes/favorites"]:
            notes = client.get(path).json()
            assert all(n["notebookId"] != notebook["_id"] for n in notes)
        assert [n["content"] for n in client.get("/api/notes/favorites").json()] == ["keep"]

    def test_delete_missing(self, client, alice):
        response = client.delete("/api/notebooks/does-not-exist")
        assert response.status_code == 404
        assert response.json()["error"] == "Notebook not found"

    def test_cannot_delete_foreign_notebook(self, client, alice):
        notebook = create_notebook(client, "alice's")
        register(client, "bob", "0000")

        response = client.delete(f"/api/notebooks/{notebook['_id']}")
        assert response.status_code == 404

        client.post("/api/login", json={"username": "alice", "pin": "1234"})
        assert len(list_notebooks(client)) == 1
