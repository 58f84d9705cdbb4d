"""任务生成 API 测试

离线适配器作为 primary；异常与脏数据场景通过 AsyncMock 替换 primary。
"""

from unittest.mock import AsyncMock

from httpx import AsyncClient
from taskjar.gateway.services.generation_service import GenerationService
from taskjar.provider import (
    FallbackManager,
    ModelCallResult,
    OfflineMessageAdapter,
    ProviderError,
)

WEEK = [f"2024-06-{day:02d}" for day in range(10, 17)]


def _use_primary(test_app, primary) -> None:
    test_app.state.generation_service = GenerationService(
        fallback_manager=FallbackManager(primary=primary),
    )


def _mock_primary(content: str | None = None, error: Exception | None = None) -> AsyncMock:
    primary = AsyncMock()
    if error is not None:
        primary.complete = AsyncMock(side_effect=error)
    else:
        primary.complete = AsyncMock(
            return_value=ModelCallResult(content=content, model_alias="main", duration_ms=1)
        )
    return primary


class TestGenerateTasks:
    async def test_offline_echo(self, client: AsyncClient):
        resp = await client.post("/api/generate-tasks", json={"prompt": "plan my day"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["is_fallback"] is False
        assert data["tasks"][0]["name"] == "plan my day"
        assert data["tasks"][0]["priority"] == "scheduled"
        assert data["tasks"][0]["difficulty"] == "standard"

    async def test_missing_prompt_rejected(self, client: AsyncClient):
        resp = await client.post("/api/generate-tasks", json={})

        assert resp.status_code == 400
        assert resp.json()["error"]["code"] == "VALIDATION_ERROR"

    async def test_provider_output_mapped_with_settings(self, client: AsyncClient, test_app):
        await client.put("/api/settings", json={"xp_values": {"challenging": 30}})
        _use_primary(
            test_app,
            _mock_primary('[{"name": "Run 5k", "priority": "high", "difficulty": "hard"}]'),
        )

        data = (await client.post("/api/generate-tasks", json={"prompt": "train"})).json()

        assert data["tasks"] == [
            {
                "name": "Run 5k",
                "description": "",
                "priority": "urgent",
                "difficulty": "challenging",
                "xp_value": 30,
                "scheduled_for": None,
            }
        ]

    async def test_unparseable_output_falls_back(self, client: AsyncClient, test_app):
        _use_primary(test_app, _mock_primary("Sure! Here are some tasks: 1. read"))

        resp = await client.post("/api/generate-tasks", json={"prompt": "plan my day"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["is_fallback"] is True
        assert len(data["tasks"]) >= 1

    async def test_provider_failure_falls_back(self, client: AsyncClient, test_app):
        _use_primary(test_app, _mock_primary(error=ProviderError("quota exceeded")))

        resp = await client.post("/api/generate-tasks", json={"prompt": "a\nb"})

        assert resp.status_code == 200
        data = resp.json()
        assert data["is_fallback"] is True
        assert [t["name"] for t in data["tasks"]] == ["a", "b"]


class TestGenerateWeeklyTasks:
    async def test_dates_clamped_into_window(self, client: AsyncClient, test_app):
        _use_primary(
            test_app,
            _mock_primary(
                '```json\n[{"name": "a", "scheduledDate": "2024-06-12"},'
                ' {"name": "b", "scheduledDate": "2031-01-01"}]\n```'
            ),
        )

        resp = await client.post(
            "/api/generate-weekly-tasks", json={"prompt": "study", "weekWindow": WEEK}
        )

        assert resp.status_code == 200
        tasks = resp.json()["tasks"]
        assert tasks[0]["scheduled_for"] == "2024-06-12"
        assert tasks[1]["scheduled_for"] in WEEK

    async def test_invalid_window_rejected(self, client: AsyncClient):
        resp = await client.post(
            "/api/generate-weekly-tasks", json={"prompt": "study", "week_window": WEEK[:3]}
        )

        assert resp.status_code == 400

    async def test_offline_weekly_fallback_has_dates(self, client: AsyncClient):
        resp = await client.post(
            "/api/generate-weekly-tasks", json={"prompt": "study", "week_window": WEEK}
        )

        tasks = resp.json()["tasks"]
        assert tasks and all(t["scheduled_for"] in WEEK for t in tasks)

    async def test_weekly_fallback_reason_names_kind(self, client: AsyncClient, test_app):
        test_app.state.generation_service = GenerationService(
            fallback_manager=FallbackManager(
                primary=_mock_primary(error=ProviderError("proxy down")),
                fallback=OfflineMessageAdapter(),
            ),
        )

        resp = await client.post(
            "/api/generate-weekly-tasks", json={"prompt": "study", "week_window": WEEK}
        )

        data = resp.json()
        assert data["is_fallback"] is True
        assert data["fallback_reason"].startswith("weekly generation fell back")
