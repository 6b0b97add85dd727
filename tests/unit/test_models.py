"""
Unit tests for chapter and project records.
"""
import pytest

from novel_translator.models import Chapter, ChapterStatus, Project, StoryInfo


class TestChapterTransitions:
    """Tests for the chapter lifecycle."""

    def test_create_is_idle(self):
        chapter = Chapter.create("第1章", "正文内容", 0)
        assert chapter.status == ChapterStatus.IDLE
        assert chapter.translated_content is None
        assert chapter.original_char_count == 4
        assert chapter.retry_count == 0
        assert chapter.id

    def test_complete_then_retry(self):
        chapter = Chapter.create("第1章", "正文", 0).mark_processing()
        assert chapter.status == ChapterStatus.PROCESSING

        done = chapter.mark_completed("Chính văn", "gemini", name="Chương 1")
        assert done.status == ChapterStatus.COMPLETED
        assert done.translated_content == "Chính văn"
        assert done.used_model == "gemini"
        assert done.name == "Chương 1"
        assert done.content == "正文"

        retried = done.reset_for_retry()
        assert retried.status == ChapterStatus.IDLE
        assert retried.translated_content is None
        assert retried.retry_count == 1
        assert retried.name == "Chương 1"

    def test_error_clears_translation(self):
        done = Chapter.create("a", "b", 0).mark_completed("x", "m")
        assert done.mark_error().translated_content is None
        assert done.mark_processing().translated_content is None

    def test_records_are_immutable(self):
        chapter = Chapter.create("a", "b", 0)
        chapter.mark_processing()
        assert chapter.status == ChapterStatus.IDLE
        with pytest.raises(AttributeError):
            chapter.name = "other"

    def test_empty_translation_rejected(self):
        with pytest.raises(ValueError):
            Chapter.create("a", "b", 0).mark_completed("", "m")

    @pytest.mark.parametrize("status,text", [
        (ChapterStatus.COMPLETED, None),
        (ChapterStatus.IDLE, "text"),
        (ChapterStatus.ERROR, "text"),
    ])
    def test_translation_only_when_completed(self, status, text):
        with pytest.raises(ValueError):
            Chapter(id="x", order_index=0, name="n", content="c", translated_content=text, status=status)


class TestChapterSerialization:
    """Tests for the camelCase record schema."""

    def test_to_dict(self):
        chapter = Chapter.create("第1章", "正文", 3, chapter_id="c1").mark_completed("Dịch", "m1")
        assert chapter.to_dict() == {
            'id': 'c1',
            'orderIndex': 3,
            'name': '第1章',
            'content': '正文',
            'translatedContent': 'Dịch',
            'status': 'completed',
            'retryCount': 0,
            'originalCharCount': 2,
            'usedModel': 'm1',
        }

    def test_used_model_omitted_when_unset(self):
        assert 'usedModel' not in Chapter.create("a", "b", 0).to_dict()

    def test_from_dict_fills_defaults(self):
        chapter = Chapter.from_dict({'id': 'x', 'orderIndex': '7', 'content': 'abc'})
        assert chapter.order_index == 7
        assert chapter.status == ChapterStatus.IDLE
        assert chapter.original_char_count == 3
        assert chapter.used_model is None

    def test_from_dict_restores_completed(self):
        original = Chapter.create("n", "c", 1).mark_completed("t", "m")
        assert Chapter.from_dict(original.to_dict()) == original


class TestProject:
    """Tests for project helpers."""

    def test_next_order_index_uses_maximum(self, story_info):
        chapters = (Chapter.create("a", "x", 0), Chapter.create("b", "y", 7))
        project = Project.create(story_info, chapters=chapters)
        assert project.next_order_index() == 8
        assert Project.create(story_info).next_order_index() == 0

    def test_sorted_chapters(self, story_info):
        chapters = (Chapter.create("late", "x", 5), Chapter.create("early", "y", 1))
        project = Project.create(story_info, chapters=chapters)
        assert [c.name for c in project.sorted_chapters()] == ["early", "late"]

    def test_duplicate_ids_rejected(self, story_info):
        chapter = Chapter.create("a", "x", 0, chapter_id="same")
        with pytest.raises(ValueError):
            Project.create(story_info, chapters=(chapter, chapter))

    def test_chapter_helpers(self, project):
        updated = project.replace_chapters({"c2": project.get_chapter("c2").mark_error(), "zz": None})
        assert updated.get_chapter("c2").status == ChapterStatus.ERROR
        assert len(updated.chapters) == 4
        assert project.get_chapter("c2").status == ChapterStatus.IDLE

        removed = updated.remove_chapter("c1")
        assert removed.get_chapter("c1") is None
        assert len(removed.chapters) == 3

        added = removed.add_chapters([Chapter.create("new", "x", removed.next_order_index(), chapter_id="n")])
        assert added.get_chapter("n").order_index == 4

    def test_update_stamps_last_modified(self, project):
        updated = project.update(global_context="ctx", last_modified=project.last_modified + 5)
        assert updated.global_context == "ctx"
        assert updated.last_modified == project.last_modified + 5
        assert project.global_context == ""

    def test_story_info_defaults(self):
        info = StoryInfo(title="T")
        assert info.genres == ()
        assert info.author == ""
