"""OfflineMessageAdapter 单元测试"""

import json

from taskjar.provider.offline_adapter import OfflineMessageAdapter


class TestOfflineMessageAdapter:
    async def test_first_line_becomes_task_name(self, daily_messages):
        result = await OfflineMessageAdapter().complete(daily_messages)

        tasks = json.loads(result.content)
        assert len(tasks) == 1
        assert tasks[0]["name"] == "Finish chemistry lab report"
        assert tasks[0]["priority"] == "medium"
        assert tasks[0]["difficulty"] == "moderate"
        assert "Review flashcards" in tasks[0]["description"]

    async def test_uses_last_user_message(self):
        messages = [
            {"role": "user", "content": "old"},
            {"role": "assistant", "content": "reply"},
            {"role": "user", "content": "new"},
        ]

        result = await OfflineMessageAdapter().complete(messages)

        assert json.loads(result.content)[0]["name"] == "new"

    async def test_result_metadata(self, daily_messages):
        result = await OfflineMessageAdapter().complete(daily_messages, model_alias="main")

        assert result.model_alias == "main"
        assert result.provider == "offline"
        assert result.is_fallback is False
        assert result.token_usage.total_tokens == (
            result.token_usage.prompt_tokens + result.token_usage.completion_tokens
        )

    async def test_empty_messages(self):
        result = await OfflineMessageAdapter().complete([])

        assert json.loads(result.content) == [
            {"name": "", "description": "", "priority": "medium", "difficulty": "moderate"}
        ]
