"""HTTP API tests for notes, folders, suggested edits and Lore sessions."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from backend.src.api.main import app
from backend.src.services.database import DatabaseService
from backend.src.services.folder_service import FolderService, get_folder_service
from backend.src.services.lore_agent import get_lore_agent
from backend.src.services.note_service import NoteService, get_note_service
from backend.src.services.ownership import OwnershipGate
from backend.src.services.suggestion_service import SuggestionService, get_suggestion_service
from backend.src.services.transcript_service import TranscriptService, get_transcript_service


class FakeAgent:
    """Stands in for LoreAgent; answers every turn with an echo."""

    def __init__(self, transcripts: TranscriptService) -> None:
        self.transcripts = transcripts
        self.turns = []

    async def run_turn(self, session_id: str, user_message: str):
        self.turns.append((session_id, user_message))
        self.transcripts.add_message(session_id, "user", user_message)
        return self.transcripts.add_message(session_id, "assistant", f"echo: {user_message}")


@pytest.fixture
def services(tmp_path: Path):
    db = DatabaseService(tmp_path / "grove.db")
    db.initialize()
    notes = NoteService(db)
    folders = FolderService(db)
    suggestions = SuggestionService(db, notes)
    transcripts = TranscriptService(db)
    agent = FakeAgent(transcripts)

    app.dependency_overrides[get_note_service] = lambda: notes
    app.dependency_overrides[get_folder_service] = lambda: folders
    app.dependency_overrides[get_suggestion_service] = lambda: suggestions
    app.dependency_overrides[get_transcript_service] = lambda: transcripts
    app.dependency_overrides[get_lore_agent] = lambda: agent
    yield {
        "notes": notes,
        "folders": folders,
        "suggestions": suggestions,
        "transcripts": transcripts,
        "agent": agent,
    }
    app.dependency_overrides = {}


@pytest.fixture
def client(services) -> TestClient:
    return TestClient(app)


def test_health(client: TestClient) -> None:
    assert client.get("/health").json() == {"status": "healthy"}


class TestNotesApi:
    def test_create_from_markdown_and_fetch(self, client: TestClient) -> None:
        response = client.post("/api/notes", json={"title": "Groceries", "markdown": "- eggs\n- milk"})

        assert response.status_code == 201
        note = response.json()
        assert note["managed_by"] == "ai"
        assert [b["type"] for b in note["content"]] == ["bulletListItem", "bulletListItem"]

        fetched = client.get(f"/api/notes/{note['id']}")
        assert fetched.json()["title"] == "Groceries"

    def test_missing_note_is_404(self, client: TestClient) -> None:
        response = client.get("/api/notes/missing")

        assert response.status_code == 404
        assert response.json() == {
            "error": "not_found",
            "message": "Note missing not found",
            "detail": None,
        }

    def test_validation_error_envelope(self, client: TestClient) -> None:
        response = client.put("/api/notes/x/ownership", json={"managed_by": "robot"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == "validation_error"
        assert body["detail"]["errors"]

    def test_user_edit_is_applied_directly(self, client: TestClient, services) -> None:
        note = services["notes"].create_note("Mine", managed_by="user")

        response = client.patch(f"/api/notes/{note.id}", json={"title": "Still mine"})

        assert response.status_code == 200
        assert response.json()["title"] == "Still mine"
        assert services["suggestions"].list_pending(note.id) == []

    def test_move_to_unknown_folder_is_400(self, client: TestClient, services) -> None:
        note = services["notes"].create_note("Loose")

        response = client.put(f"/api/notes/{note.id}/folder", json={"folder_id": "nope"})

        assert response.status_code == 400

    def test_move_and_delete(self, client: TestClient, services) -> None:
        folder = services["folders"].create_folder("Inbox")
        note = services["notes"].create_note("Loose")

        moved = client.put(f"/api/notes/{note.id}/folder", json={"folder_id": folder.id})
        assert moved.json()["folder_id"] == folder.id
        assert [n["id"] for n in client.get("/api/notes", params={"folder_id": folder.id}).json()] == [note.id]

        deleted = client.delete(f"/api/notes/{note.id}")
        assert deleted.json() == {"status": "ok", "message": "Note deleted"}
        assert client.delete(f"/api/notes/{note.id}").status_code == 404


class TestFoldersApi:
    def test_create_with_unknown_parent_is_400(self, client: TestClient) -> None:
        response = client.post("/api/folders", json={"name": "Child", "parent_id": "missing"})

        assert response.status_code == 400
        assert "Parent folder not found" in response.json()["message"]

    def test_delete_reports_side_effects(self, client: TestClient, services) -> None:
        parent = client.post("/api/folders", json={"name": "Work"}).json()
        client.post("/api/folders", json={"name": "Sub", "parent_id": parent["id"]})
        services["notes"].create_note("Memo", folder_id=parent["id"])

        response = client.delete(f"/api/folders/{parent['id']}")

        assert response.json() == {"folder_id": parent["id"], "notes_unfiled": 1, "folders_reparented": 1}
        assert client.get(f"/api/folders/{parent['id']}").status_code == 404


class TestSuggestedEditsApi:
    def _suggest(self, services) -> tuple:
        note = services["notes"].create_note("Plan", content=None, managed_by="user")
        gate = OwnershipGate(services["notes"], services["suggestions"])
        result = gate.update_content(note.id, "revised plan")
        return note, result["editId"]

    def test_pending_edits_listed(self, client: TestClient, services) -> None:
        note, edit_id = self._suggest(services)

        response = client.get(f"/api/notes/{note.id}/suggested-edits")

        assert [e["id"] for e in response.json()] == [edit_id]

    def test_accept_applies_and_second_accept_conflicts(self, client: TestClient, services) -> None:
        note, edit_id = self._suggest(services)

        accepted = client.post(f"/api/suggested-edits/{edit_id}/accept")
        assert accepted.status_code == 200
        assert accepted.json()["status"] == "accepted"
        assert services["notes"].get_note(note.id).content[0]["content"][0]["text"] == "revised plan"

        again = client.post(f"/api/suggested-edits/{edit_id}/accept")
        assert again.status_code == 409
        assert again.json()["error"] == "edit_already_resolved"

        rejected = client.post(f"/api/suggested-edits/{edit_id}/reject")
        assert rejected.status_code == 409

    def test_unknown_edit_is_404(self, client: TestClient) -> None:
        response = client.post("/api/suggested-edits/missing/reject")

        assert response.status_code == 404
        assert response.json()["error"] == "not_found"


class TestLoreApi:
    def test_session_lifecycle(self, client: TestClient) -> None:
        created = client.post("/api/lore/sessions")
        assert created.status_code == 201
        session_id = created.json()["id"]
        assert created.json()["title"] == "New conversation"

        renamed = client.patch(f"/api/lore/sessions/{session_id}", json={"title": "Trips"})
        assert renamed.json()["title"] == "Trips"
        assert [s["id"] for s in client.get("/api/lore/sessions").json()] == [session_id]

        assert client.delete(f"/api/lore/sessions/{session_id}").status_code == 200
        assert client.get(f"/api/lore/sessions/{session_id}").status_code == 404

    def test_send_message_is_scheduled(self, client: TestClient, services) -> None:
        session_id = client.post("/api/lore/sessions").json()["id"]

        response = client.post(f"/api/lore/sessions/{session_id}/messages", json={"content": "hello"})

        assert response.status_code == 202
        assert response.json() == {"session_id": session_id, "status": "scheduled"}
        assert services["agent"].turns == [(session_id, "hello")]

        messages = client.get(f"/api/lore/sessions/{session_id}/messages").json()
        assert [(m["role"], m["content"]) for m in messages] == [
            ("user", "hello"),
            ("assistant", "echo: hello"),
        ]

    def test_send_to_missing_session_is_404(self, client: TestClient, services) -> None:
        response = client.post("/api/lore/sessions/missing/messages", json={"content": "hi"})

        assert response.status_code == 404
        assert services["agent"].turns == []

    def test_empty_message_rejected(self, client: TestClient) -> None:
        session_id = client.post("/api/lore/sessions").json()["id"]

        response = client.post(f"/api/lore/sessions/{session_id}/messages", json={"content": ""})

        assert response.status_code == 400
