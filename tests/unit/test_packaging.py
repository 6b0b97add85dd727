"""
Unit tests for the merged text export.
"""
import pytest

from novel_translator.core.packaging import completed_chapters, create_merged_text, write_merged_text
from novel_translator.models import Chapter


@pytest.fixture
def mixed_chapters():
    return [
        Chapter.create("Hai", "二", 2, chapter_id="b").mark_completed("Nội dung hai", "m", name="Chương 2"),
        Chapter.create("Một", "一", 1, chapter_id="a").mark_completed("Nội dung một", "m", name="Chương 1"),
        Chapter.create("Ba", "三", 3, chapter_id="c").mark_error(),
    ]


class TestMergedText:
    """Tests for merging completed chapters."""

    def test_only_completed_in_order(self, mixed_chapters):
        assert [c.id for c in completed_chapters(mixed_chapters)] == ["a", "b"]

    def test_format(self, mixed_chapters):
        assert create_merged_text(mixed_chapters) == (
            "### Chương 1\n\nNội dung một\n\n### Chương 2\n\nNội dung hai"
        )

    def test_nothing_completed(self):
        assert create_merged_text([Chapter.create("a", "b", 0)]) == ""

    @pytest.mark.asyncio
    async def test_write_does_not_overwrite(self, tmp_path, mixed_chapters):
        target = tmp_path / "out" / "novel.txt"

        first = await write_merged_text(str(target), mixed_chapters)
        second = await write_merged_text(str(target), mixed_chapters[:1])

        assert first == str(target)
        assert second == str(tmp_path / "out" / "novel (1).txt")
        assert target.read_text(encoding='utf-8').startswith("### Chương 1")
        assert (tmp_path / "out" / "novel (1).txt").read_text(encoding='utf-8') == "### Chương 2\n\nNội dung hai"
