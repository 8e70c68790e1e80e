"""HTTP helpers shared by the API tests."""


def register(client, username="alice", pin="1234") -> str:
    response = client.post("/api/register", json={"username": username, "pin": pin})
    assert response.status_code == 200, response.text
    return response.json()["userId"]


def login(client, username="alice", pin="1234") -> str:
    response = client.post("/api/login", json={"username": username, "pin": pin})
    assert response.status_code == 200, response.text
    return response.json()["userId"]


def create_notebook(client, name="Groceries", section="regular") -> dict:
    response = client.post("/api/notebooks", json={"name": name, "section": section})
    assert response.status_code == 200, response.text
    return response.json()


def create_note(client, content="milk", section="regular", notebook_id=None, **extra) -> dict:
    payload = {"content": content, "section": section, **extra}
    if notebook_id:
        payload["notebookId"] = notebook_id
    response = client.post("/api/notes", json=payload)
    assert response.status_code == 200, response.text
    return response.json()
