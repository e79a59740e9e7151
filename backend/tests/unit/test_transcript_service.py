"""Unit tests for TranscriptService."""

from pathlib import Path

import pytest

from backend.src.models.lore import DEFAULT_SESSION_TITLE, ToolCallRecord
from backend.src.services.database import DatabaseService
from backend.src.services.transcript_service import TranscriptService


@pytest.fixture
def transcripts(tmp_path: Path) -> TranscriptService:
    db = DatabaseService(tmp_path / "grove.db")
    db.initialize()
    return TranscriptService(db)


class TestSessions:
    """Session CRUD."""

    def test_new_session_has_default_title(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()

        assert session.title == DEFAULT_SESSION_TITLE
        assert transcripts.get_session(session.id) == session

    def test_rename(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()

        renamed = transcripts.rename_session(session.id, "  Trip planning ")

        assert renamed.title == "Trip planning"

    def test_blank_rename_resets_to_default(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session("Something")

        renamed = transcripts.rename_session(session.id, "   ")

        assert renamed.title == DEFAULT_SESSION_TITLE

    def test_rename_missing(self, transcripts: TranscriptService) -> None:
        assert transcripts.rename_session("missing", "x") is None

    def test_list_most_recent_first(self, transcripts: TranscriptService) -> None:
        older = transcripts.create_session()
        newer = transcripts.create_session()
        transcripts.add_message(older.id, "user", "bump")

        assert [s.id for s in transcripts.list_sessions()] == [older.id, newer.id]

    def test_delete_cascades_to_messages(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()
        transcripts.add_message(session.id, "user", "hello")

        assert transcripts.delete_session(session.id) is True
        assert transcripts.get_session(session.id) is None
        assert transcripts.list_messages(session.id) == []
        assert transcripts.delete_session(session.id) is False


class TestMessages:
    """Append-only transcript."""

    def test_messages_in_insertion_order(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()
        for i in range(5):
            transcripts.add_message(session.id, "user" if i % 2 == 0 else "assistant", f"m{i}")

        messages = transcripts.list_messages(session.id)

        assert [m.content for m in messages] == ["m0", "m1", "m2", "m3", "m4"]

    def test_tool_calls_and_thinking_round_trip(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()
        records = [
            ToolCallRecord(tool_name="create_note", input={"title": "X"}, output={"success": True}, duration_ms=12),
            ToolCallRecord(
                tool_name="web_search",
                input={"query": "q"},
                output={"query": "q", "results": []},
                duration_ms=0,
            ),
        ]

        saved = transcripts.add_message(
            session.id, "assistant", "done", thinking_content="hmm", tool_calls=records
        )

        assert saved.tool_calls == records
        assert saved.thinking_content == "hmm"
        assert transcripts.list_messages(session.id)[0].tool_calls == records

    def test_plain_message_has_no_tool_calls(self, transcripts: TranscriptService) -> None:
        session = transcripts.create_session()

        saved = transcripts.add_message(session.id, "user", "hi", tool_calls=[])

        assert saved.tool_calls is None
        assert saved.thinking_content is None
