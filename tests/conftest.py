"""
Pytest configuration and fixtures for all tests.

This file is automatically loaded by pytest and provides common fixtures
and configuration for all test modules.
"""

import re
import sys
from pathlib import Path

import httpx
import pytest

# Add project root to Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from novel_translator.core.exceptions import LLMError
from novel_translator.core.llm.base import LLMProvider, LLMResponse
from novel_translator.core.project_store import ProjectStore
from novel_translator.core.translation.batch_codec import encode_batch
from novel_translator.models import Chapter, Project, StoryInfo

VALID_API_KEY = "AIza" + "x" * 35

_BATCH_ITEM = re.compile(r"\[\[\[FILE_ID: (.+?)\]\]\]\n(.*?)\n\[\[\[FILE_END: \1\]\]\]", re.DOTALL)


class FakeProvider(LLMProvider):
    """Provider returning scripted answers and recording every call."""

    def __init__(self, responses=None, model="test-model"):
        super().__init__(model)
        self.responses = list(responses or [])
        self.calls = []

    async def generate(self, prompt, system_prompt=None, temperature=0.1,
                       max_output_tokens=None, timeout=None):
        self.calls.append({
            'prompt': prompt,
            'system_prompt': system_prompt,
            'temperature': temperature,
            'max_output_tokens': max_output_tokens,
        })
        answer = self.responses.pop(0) if self.responses else ""
        if callable(answer):
            answer = answer(prompt)
        if isinstance(answer, LLMError):
            raise answer
        return LLMResponse(content=answer, model=self.model)


def echo_translation(prefix="VI ", drop=()):
    """Scripted answer that 'translates' every chapter of the prompt by prefixing it.

    Ids listed in drop are left out of the answer, as a truncating model would.
    """
    def respond(prompt):
        items = [
            (chapter_id, prefix + text)
            for chapter_id, text in _BATCH_ITEM.findall(prompt)
            if chapter_id not in drop
        ]
        return encode_batch(items)
    return respond


def make_chapters(count, prefix="c"):
    return [
        Chapter.create(name=f"第{i + 1}章", content=f"正文{i + 1}", order_index=i,
                       chapter_id=f"{prefix}{i + 1}")
        for i in range(count)
    ]


@pytest.fixture
def story_info():
    """Story metadata with every template field filled."""
    return StoryInfo(
        title="Kiếm Đạo",
        author="Lão Ưng",
        languages=("Trung",),
        genres=("Tiên hiệp", "Huyền huyễn"),
        mc_personality=("Lạnh lùng",),
        world_setting=("Tu chân giới",),
        sect_flow=("Phàm nhân lưu",),
    )


@pytest.fixture
def project(story_info):
    """Project with four idle chapters c1..c4."""
    return Project.create(story_info, chapters=tuple(make_chapters(4)))


@pytest.fixture
def store(project):
    return ProjectStore(project)


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def mock_client_factory():
    """Build an httpx.AsyncClient answering through a handler function."""
    clients = []

    def factory(handler):
        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        clients.append(client)
        return client

    return factory
