"""Unit tests for NoteService storage and block search."""

from pathlib import Path

import pytest

from backend.src.services.blocks import make_block, markdown_to_blocks
from backend.src.services.database import DatabaseService
from backend.src.services.note_service import NoteService, _prepare_match_query


@pytest.fixture
def db(tmp_path: Path) -> DatabaseService:
    service = DatabaseService(tmp_path / "grove.db")
    service.initialize()
    return service


@pytest.fixture
def notes(db: DatabaseService) -> NoteService:
    return NoteService(db)


class TestNoteCrud:
    """Tests for note create/read/update/delete."""

    def test_create_and_get(self, notes: NoteService) -> None:
        created = notes.create_note("Groceries", markdown_to_blocks("- milk\n- eggs"))

        fetched = notes.get_note(created.id)

        assert fetched is not None
        assert fetched.title == "Groceries"
        assert fetched.managed_by == "ai"
        assert [b["type"] for b in fetched.content] == ["bulletListItem", "bulletListItem"]

    def test_create_without_content_gets_blank_paragraph(self, notes: NoteService) -> None:
        note = notes.create_note("Empty")

        assert len(note.content) == 1
        assert note.content[0]["type"] == "paragraph"

    def test_get_missing_returns_none(self, notes: NoteService) -> None:
        assert notes.get_note("nope") is None

    def test_null_owner_reads_as_ai(self, notes: NoteService, db: DatabaseService) -> None:
        note = notes.create_note("Legacy")
        conn = db.connect()
        try:
            with conn:
                conn.execute("UPDATE notes SET managed_by = NULL WHERE id = ?", (note.id,))
        finally:
            conn.close()

        assert notes.get_note(note.id).managed_by == "ai"
        assert notes.list_notes()[0].managed_by == "ai"

    def test_update_patches_only_given_fields(self, notes: NoteService) -> None:
        note = notes.create_note("Original", markdown_to_blocks("keep me"))

        renamed = notes.update_note(note.id, title="Renamed")

        assert renamed.title == "Renamed"
        assert renamed.content == note.content

    def test_update_missing_returns_none(self, notes: NoteService) -> None:
        assert notes.update_note("nope", title="x") is None

    def test_set_managed_by(self, notes: NoteService) -> None:
        note = notes.create_note("Mine")

        updated = notes.set_managed_by(note.id, "user")

        assert updated.managed_by == "user"

    def test_list_filters_by_folder(self, notes: NoteService) -> None:
        notes.create_note("Loose")
        filed = notes.create_note("Filed", folder_id="folder-1")

        listed = notes.list_notes(folder_id="folder-1")

        assert [n.id for n in listed] == [filed.id]

    def test_delete_removes_note_and_index(self, notes: NoteService) -> None:
        note = notes.create_note("Doomed", markdown_to_blocks("zebra facts"))

        assert notes.delete_note(note.id) is True
        assert notes.get_note(note.id) is None
        assert notes.search_blocks("zebra") == []
        assert notes.delete_note(note.id) is False


class TestBlockSearch:
    """Tests for full-text search over blocks and titles."""

    def test_matches_block_text(self, notes: NoteService) -> None:
        note = notes.create_note(
            "Trip",
            [make_block("b1", "paragraph", "Pack the tent"), make_block("b2", "paragraph", "Buy snacks")],
        )

        hits = notes.search_blocks("tent")

        assert len(hits) == 1
        assert hits[0].note_id == note.id
        assert hits[0].block_id == "b1"
        assert hits[0].matched_on == "content"
        assert hits[0].note_title == "Trip"

    def test_index_follows_content_updates(self, notes: NoteService) -> None:
        note = notes.create_note("Trip", [make_block("b1", "paragraph", "Pack the tent")])

        notes.update_note(note.id, content=[make_block("b9", "paragraph", "Book the hotel")])

        assert notes.search_blocks("tent") == []
        assert [h.block_id for h in notes.search_blocks("hotel")] == ["b9"]

    def test_title_hits_only_for_uncovered_notes(self, notes: NoteService) -> None:
        both = notes.create_note("Garden plans", [make_block("g1", "paragraph", "garden beds")])
        title_only = notes.create_note("Garden budget", [make_block("g2", "paragraph", "costs")])

        hits = notes.search_blocks("garden")

        content_hits = [h for h in hits if h.matched_on == "content"]
        title_hits = [h for h in hits if h.matched_on == "title"]
        assert [h.note_id for h in content_hits] == [both.id]
        assert [h.note_id for h in title_hits] == [title_only.id]
        assert title_hits[0].block_id is None

    def test_title_index_follows_rename(self, notes: NoteService) -> None:
        note = notes.create_note("Alpha", [make_block("x", "paragraph", "unrelated")])

        notes.update_note(note.id, title="Omega")

        assert notes.search_blocks("alpha") == []
        assert notes.search_blocks("omega")[0].note_id == note.id

    def test_nested_blocks_are_searchable(self, notes: NoteService) -> None:
        parent = make_block("p", "bulletListItem", "parent")
        parent["children"] = [make_block("c", "bulletListItem", "hidden treasure")]
        notes.create_note("Nested", [parent])

        hits = notes.search_blocks("treasure")

        assert [h.block_id for h in hits] == ["c"]

    def test_operator_characters_are_neutralized(self, notes: NoteService) -> None:
        notes.create_note("Ops", [make_block("o", "paragraph", "walk near or along the river")])

        hits = notes.search_blocks('river" OR NEAR(')

        assert [h.block_id for h in hits] == ["o"]

    def test_query_without_terms_rejected(self) -> None:
        with pytest.raises(ValueError):
            _prepare_match_query("!!! ???")

    def test_prefix_query(self) -> None:
        assert _prepare_match_query("plan*") == '"plan"*'

    def test_non_ascii_words_kept_whole(self) -> None:
        assert _prepare_match_query("café München") == '"café" "München"'
        assert _prepare_match_query("日本") == '"日本"'

    def test_accented_and_cjk_text_searchable(self, notes: NoteService) -> None:
        notes.create_note(
            "Travel",
            [
                make_block("m", "paragraph", "Meeting at the café in München"),
                make_block("j", "paragraph", "東京 日本 旅行"),
            ],
        )

        assert [h.block_id for h in notes.search_blocks("café")] == ["m"]
        assert [h.block_id for h in notes.search_blocks("München")] == ["m"]
        assert [h.block_id for h in notes.search_blocks("日本")] == ["j"]
