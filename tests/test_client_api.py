"""NotesApiClient / NotesClient end-to-end tests through httpx.ASGITransport."""

import httpx
import pytest

from domains.client_hub.core.config import ClientSettings
from domains.client_hub.core.renderer import ViewModel, ViewStatus
from domains.client_hub.services.api_client import NotesApiClient
from domains.client_hub.services.client import NotesClient
from domains.core import ApplicationError, ErrorCategory, ExternalServiceError
from domains.notebook_hub.core.views import FAVORITES_KEY, ViewKey

SETTINGS = ClientSettings(base_url="http://testserver", preload=False)


@pytest.fixture
async def api(app):
    async with NotesApiClient(SETTINGS, transport=httpx.ASGITransport(app=app)) as client:
        yield client


class TestApiClient:
    @pytest.mark.anyio
    async def test_session_cookie_round_trip(self, api):
        result = await api.register("alice", "1234")
        assert result["success"] is True
        assert "notes_session" in api.session_cookies()

        status = await api.check_session()
        assert status == {"authenticated": True, "userId": result["userId"], "username": "alice"}

        await api.logout()
        assert (await api.check_session()) == {"authenticated": False}

    @pytest.mark.anyio
    async def test_fetch_view(self, api):
        await api.register("alice", "1234")
        notebook = await api.create_notebook("Groceries", "regular")
        await api.create_note({"content": "milk", "section": "regular", "notebookId": notebook["_id"]})

        notebooks = await api.fetch_view(ViewKey("regular"))
        notes = await api.fetch_view(ViewKey("regular", notebook["_id"]))

        assert notebooks[0]["noteCount"] == 1
        assert [n["content"] for n in notes] == ["milk"]
        assert await api.fetch_view(FAVORITES_KEY) == []

    @pytest.mark.anyio
    async def test_validation_error(self, api):
        with pytest.raises(ApplicationError) as exc_info:
            await api.login("ghost", "1234")
        assert exc_info.value.category == ErrorCategory.VALIDATION
        assert exc_info.value.message == "Invalid credentials"

    @pytest.mark.anyio
    async def test_authentication_error(self, api):
        with pytest.raises(ApplicationError) as exc_info:
            await api.list_notebooks("regular")
        assert exc_info.value.category == ErrorCategory.AUTHENTICATION
        assert exc_info.value.message == "Authentication required"

    @pytest.mark.anyio
    async def test_not_found_error(self, api):
        await api.register("alice", "1234")
        with pytest.raises(ApplicationError) as exc_info:
            await api.delete_note("missing")
        assert exc_info.value.category == ErrorCategory.NOT_FOUND
        assert exc_info.value.message == "Note not found"

    @pytest.mark.anyio
    async def test_lock_endpoints(self, api):
        await api.register("alice", "1234")
        assert await api.check_lock_setup() == {"hasPassword": False}
        assert await api.verify_lock_password("x") == {"success": False, "needsSetup": True}
        await api.set_lock_password("pw")
        assert await api.verify_lock_password("pw") == {"success": True}


class TestTransportFailures:
    @pytest.mark.anyio
    async def test_unreachable_server(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        async with NotesApiClient(SETTINGS, transport=httpx.MockTransport(refuse)) as api:
            with pytest.raises(ExternalServiceError) as exc_info:
                await api.check_session()
        assert exc_info.value.category == ErrorCategory.EXTERNAL
        assert "connection refused" in exc_info.value.message

    @pytest.mark.anyio
    async def test_non_json_server_error(self):
        def broken(request):
            return httpx.Response(503, text="upstream down")

        async with NotesApiClient(SETTINGS, transport=httpx.MockTransport(broken)) as api:
            with pytest.raises(ApplicationError) as exc_info:
                await api.check_session()
        assert exc_info.value.category == ErrorCategory.EXTERNAL
        assert exc_info.value.details["status_code"] == 503

    @pytest.mark.anyio
    async def test_unreachable_server_shows_error_screen(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        view = ViewModel()
        async with NotesApiClient(SETTINGS, transport=httpx.MockTransport(refuse)) as api:
            client = NotesClient(api, view, settings=SETTINGS, enable_push=False)
            assert await client.start() is False
        assert view.status == ViewStatus.ERROR


class TestClientAgainstServer:
    @pytest.mark.anyio
    async def test_groceries_flow_without_push(self, api):
        view = ViewModel()
        client = NotesClient(api, view, settings=SETTINGS, enable_push=False)

        assert await client.register("alice", "1234")
        assert view.status == ViewStatus.EMPTY

        notebook = await client.create_notebook("Groceries")
        assert [nb["name"] for nb in view.items] == ["Groceries"]

        await client.open_notebook(notebook["_id"])
        note = await client.create_note("milk")
        assert [n["content"] for n in view.items] == ["milk"]

        await client.toggle_favorite(note["_id"])
        await client.navigate("favorites")
        assert [(n["content"], n["notebookName"]) for n in view.items] == [("milk", "Groceries")]

        await client.navigate("regular")
        assert view.items[0]["noteCount"] == 1

        await client.logout()
        assert view.status == ViewStatus.SIGNED_OUT
        assert await client.start() is False
