"""
Unit tests for prompt assembly.
"""
from novel_translator.core.translation.prompt_builder import (
    SYSTEM_INSTRUCTION, build_analysis_prompt, build_batch_prompt,
    build_user_payload, replace_prompt_variables
)
from novel_translator.models import Chapter, StoryInfo


class TestReplacePromptVariables:
    """Tests for template variable substitution."""

    def test_all_variables(self, story_info):
        template = "{{title}}|{{author}}|{{languages}}|{{genres}}|{{personality}}|{{setting}}|{{flow}}"
        assert replace_prompt_variables(template, story_info) == (
            "Kiếm Đạo|Lão Ưng|Trung|Tiên hiệp, Huyền huyễn|Lạnh lùng|Tu chân giới|Phàm nhân lưu"
        )

    def test_unknown_placeholder_left_intact(self, story_info):
        assert replace_prompt_variables("{{title}} {{unknown}}", story_info) == "Kiếm Đạo {{unknown}}"

    def test_empty_lists(self):
        assert replace_prompt_variables("[{{genres}}]", StoryInfo(title="X")) == "[]"

    def test_empty_template(self, story_info):
        assert replace_prompt_variables("", story_info) == ""


class TestBuildBatchPrompt:
    """Tests for the batch request payload."""

    def test_payload_sections(self):
        assert build_user_payload("ctx", "dict", "req", "content") == (
            "[STORY_CONTEXT]\nctx\n\n[DICTIONARY]\ndict\n\n[REQUIREMENTS]\nreq\n\n[CONTENT]\ncontent"
        )

    def test_batch_prompt_prunes_dictionary_and_wraps_chapters(self, project):
        project = project.update(
            dictionary="正文1=Chính văn một\n天剑宗=Thiên Kiếm Tông",
            prompt_template="Dịch {{title}}",
            global_context="Bối cảnh",
        )
        chapters = project.sorted_chapters()[:2]
        prompt = build_batch_prompt(chapters, project)

        assert prompt.system == SYSTEM_INSTRUCTION
        assert "[STORY_CONTEXT]\nBối cảnh\n" in prompt.user
        assert "[DICTIONARY]\n正文1=Chính văn một\n\n" in prompt.user
        assert "天剑宗" not in prompt.user
        assert "[REQUIREMENTS]\nDịch Kiếm Đạo\n" in prompt.user
        assert "[[[FILE_ID: c1]]]\n正文1\n[[[FILE_END: c1]]]" in prompt.user
        assert "[[[FILE_ID: c2]]]" in prompt.user
        assert "[[[FILE_ID: c3]]]" not in prompt.user

    def test_system_instruction_keeps_markers(self):
        assert "[[[FILE_ID: ID]]]" in SYSTEM_INSTRUCTION


class TestBuildAnalysisPrompt:
    """Tests for the story analysis prompt."""

    def test_samples_are_truncated_with_headers(self, story_info):
        chapters = [Chapter.create("Chương 1", "甲" * 50, 0), Chapter.create("Chương 2", "乙", 1)]
        prompt = build_analysis_prompt(chapters, story_info, sample_chars=10)

        assert prompt.user.startswith('Phân tích cốt truyện và nhân vật cho "Kiếm Đạo":')
        assert "--- Chương 1 ---\n" + "甲" * 10 + "\n\n--- Chương 2 ---\n乙" in prompt.user
