"""分析 API 测试"""

from datetime import UTC, datetime

from httpx import AsyncClient


class TestAnalyticsSummary:
    async def test_empty_user(self, client: AsyncClient):
        resp = await client.get("/api/analytics/summary")

        assert resp.status_code == 200
        data = resp.json()
        assert data["today_pct"] == 0
        assert data["streak"] == 0
        assert data["established"] is False
        assert len(data["series"]) == 30
        assert len(data["heatmap"]) == 5
        assert all(len(row) == 7 for row in data["heatmap"])
        assert data["insights"] == ["Insufficient data"]
        assert data["average_completion_minutes"] is None
        assert {b["dimension"] for b in data["breakdowns"]} == {"priority", "difficulty"}

    async def test_today_completion(self, client: AsyncClient, create_task):
        today = datetime.now(UTC).date().isoformat()
        tasks = [await create_task(str(i), scheduled_for=today) for i in range(3)]
        for task in tasks[:2]:
            await client.post(f"/api/tasks/{task['task_id']}/complete")

        data = (await client.get("/api/analytics/summary")).json()

        assert data["today_pct"] == 67
        assert data["streak"] == 1
        assert data["completed_count"] == 2
        assert data["series"][-1]["date_iso"] == today
        priority = next(b for b in data["breakdowns"] if b["dimension"] == "priority")
        assert priority["counts"] == {"urgent": 0, "scheduled": 2, "optional": 0}


class TestStoredDailyCompletion:
    async def test_task_mutations_sync_daily_record(self, client: AsyncClient, create_task):
        today = datetime.now(UTC).date().isoformat()
        task = await create_task(scheduled_for=today)
        await client.post(f"/api/tasks/{task['task_id']}/complete")

        resp = await client.get("/api/analytics/daily-completion")

        assert resp.status_code == 200
        days = resp.json()["days"]
        assert len(days) == 30
        assert days[-1] == {"date_iso": today, "completion_pct": 100}
