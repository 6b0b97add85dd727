"""
Prompt assembly for batch translation and story-context analysis.
"""

import re
from typing import NamedTuple, Sequence

from novel_translator.models import Chapter, Project, StoryInfo
from .batch_codec import encode_batch
from .dictionary_pruner import prune_dictionary


class PromptPair(NamedTuple):
    """A pair of system and user prompts for one model call."""
    system: str
    user: str


# ============================================================================
# SYSTEM PROMPTS
# ============================================================================

SYSTEM_INSTRUCTION = """BẠN LÀ CHUYÊN GIA DỊCH THUẬT VĂN HỌC TRUNG-VIỆT.
NHIỆM VỤ: Dịch nội dung được cung cấp sang tiếng Việt mượt mà, văn phong tiểu thuyết.

YÊU CẦU CỰC KỲ QUAN TRỌNG:
1. KHÔNG ĐƯỢC BỎ SÓT BẤT KỲ ĐOẠN VĂN NÀO. Dịch từ đầu đến cuối 100%.
2. DỊCH CẢ TIÊU ĐỀ CHƯƠNG (Thường nằm ở dòng đầu tiên của mỗi đoạn nội dung).
3. Nếu tiêu đề chương có dạng "Chương X: ...", hãy dịch sát nghĩa phần sau dấu hai chấm.
4. GIỮ NGUYÊN các tag [[[FILE_ID: ID]]] và [[[FILE_END: ID]]].
5. TUYỆT ĐỐI không trả về tiếng Trung.
6. Sử dụng từ điển để nhất quán tên riêng."""

GLOSSARY_ANALYSIS_PROMPT = """BẠN LÀ BIÊN TẬP VIÊN TRUYỆN DỊCH TRUNG-VIỆT.
Đọc các chương mẫu và viết bản tóm tắt bối cảnh để hỗ trợ người dịch:
- Tóm tắt cốt truyện chính và thế giới truyện.
- Liệt kê nhân vật quan trọng, quan hệ và cách xưng hô giữa họ.
- Đề xuất từ điển tên riêng theo dạng gốc=dịch, mỗi dòng một mục.
Chỉ trả lời bằng tiếng Việt, không lặp lại nguyên văn chương mẫu."""


# ============================================================================
# TEMPLATE VARIABLES
# ============================================================================

_VARIABLE_PATTERN = re.compile(r'\{\{\s*(\w+)\s*\}\}')


def _join(values: Sequence[str]) -> str:
    return ', '.join(values or ())


def replace_prompt_variables(template: str, info: StoryInfo) -> str:
    """
    Fill {{variable}} placeholders of a prompt template from story metadata.

    Supported: title, author, languages, genres, personality, setting, flow.
    List fields are joined with ", ". Unknown placeholders are left as is.

    Example:
        >>> replace_prompt_variables("{{title}} / {{genres}}", StoryInfo("X", genres=("A", "B")))
        'X / A, B'
    """
    if not template:
        return ''

    values = {
        'title': info.title,
        'author': info.author,
        'languages': _join(info.languages),
        'genres': _join(info.genres),
        'personality': _join(info.mc_personality),
        'setting': _join(info.world_setting),
        'flow': _join(info.sect_flow),
    }

    def substitute(match):
        key = match.group(1)
        return values[key] if key in values else match.group(0)

    return _VARIABLE_PATTERN.sub(substitute, template)


# ============================================================================
# BATCH PAYLOAD
# ============================================================================

def build_user_payload(global_context: str, dictionary: str,
                       requirements: str, content: str) -> str:
    """Sectioned user payload sent with every translation batch."""
    return (f"[STORY_CONTEXT]\n{global_context}\n\n"
            f"[DICTIONARY]\n{dictionary}\n\n"
            f"[REQUIREMENTS]\n{requirements}\n\n"
            f"[CONTENT]\n{content}")


def build_batch_prompt(chapters: Sequence[Chapter], project: Project) -> PromptPair:
    """
    Build the translation prompt for a batch of chapters.

    The glossary is pruned against the concatenated source text of the batch,
    and every chapter is wrapped in its id marker pair.

    Args:
        chapters: Chapters of the batch, in dispatch order
        project: Current project snapshot (template, glossary, context)

    Returns:
        PromptPair with the fixed system instruction and the batch payload
    """
    combined = '\n'.join(chapter.content for chapter in chapters)
    relevant_dictionary = prune_dictionary(project.dictionary, combined)
    requirements = replace_prompt_variables(project.prompt_template, project.info)
    content = encode_batch((chapter.id, chapter.content) for chapter in chapters)

    user = build_user_payload(project.global_context, relevant_dictionary, requirements, content)
    return PromptPair(system=SYSTEM_INSTRUCTION, user=user)


def build_analysis_prompt(samples: Sequence[Chapter], info: StoryInfo,
                          sample_chars: int) -> PromptPair:
    """Prompt asking the model for plot, characters and glossary suggestions."""
    context_content = '\n\n'.join(
        f"--- {chapter.name} ---\n{chapter.content[:sample_chars]}" for chapter in samples
    )
    user = f'Phân tích cốt truyện và nhân vật cho "{info.title}":\n\n{context_content}'
    return PromptPair(system=GLOSSARY_ANALYSIS_PROMPT, user=user)
