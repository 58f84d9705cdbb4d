"""Provider 测试 fixtures"""

import pytest


@pytest.fixture
def daily_messages() -> list[dict[str, str]]:
    """单日任务生成消息"""
    return [
        {"role": "system", "content": "You are an expert task manager."},
        {"role": "user", "content": "Finish chemistry lab report\nReview flashcards"},
    ]
