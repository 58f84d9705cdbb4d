"""领域模型校验测试

测试内容：
1. Task 完成状态与完成时间一致性
2. Jar 上限不变量
3. Settings 取值范围
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError
from taskjar.core.models import Jar, JarStatus, Settings, Task, XpValues
from taskjar.core.models.generation import GeneratedTask

NOW = datetime(2024, 6, 10, tzinfo=UTC)


class TestTaskModel:
    def test_name_is_stripped(self):
        task = Task(task_id="t1", name="  read  ", xp_value=5, created_at=NOW, updated_at=NOW)
        assert task.name == "read"

    def test_blank_name_rejected(self):
        with pytest.raises(ValidationError):
            Task(task_id="t1", name="   ", xp_value=5, created_at=NOW, updated_at=NOW)

    def test_xp_value_must_be_positive(self):
        with pytest.raises(ValidationError):
            Task(task_id="t1", name="read", xp_value=0, created_at=NOW, updated_at=NOW)

    def test_completed_requires_completed_at(self):
        with pytest.raises(ValidationError):
            Task(
                task_id="t1",
                name="read",
                xp_value=5,
                completed=True,
                created_at=NOW,
                updated_at=NOW,
            )

    def test_completed_at_requires_completed(self):
        with pytest.raises(ValidationError):
            Task(
                task_id="t1",
                name="read",
                xp_value=5,
                completed_at=NOW,
                created_at=NOW,
                updated_at=NOW,
            )


class TestJarModel:
    def test_active_jar_cannot_exceed_target(self):
        with pytest.raises(ValidationError):
            Jar(jar_id="j1", current_xp=101, target_xp=100, created_at=NOW)

    def test_sealed_jar_holds_exact_target(self):
        with pytest.raises(ValidationError):
            Jar(
                jar_id="j1",
                current_xp=90,
                target_xp=100,
                status=JarStatus.SEALED,
                completed_at=NOW,
                created_at=NOW,
            )

    def test_sealed_jar_requires_completed_at(self):
        with pytest.raises(ValidationError):
            Jar(
                jar_id="j1",
                current_xp=100,
                target_xp=100,
                status=JarStatus.SEALED,
                created_at=NOW,
            )

    def test_task_ids_deduplicated(self):
        jar = Jar(jar_id="j1", target_xp=100, task_ids=["a", "b", "a"], created_at=NOW)
        assert jar.task_ids == ["a", "b"]

    def test_fill_pct(self):
        jar = Jar(jar_id="j1", current_xp=25, target_xp=200, created_at=NOW)
        assert jar.fill_pct == 13
        assert jar.completed is False


class TestSettingsModel:
    def test_defaults(self):
        settings = Settings()
        assert settings.jar_target == 100
        assert settings.xp_values == XpValues(light=5, standard=10, challenging=15)

    @pytest.mark.parametrize("target", [49, 501, 0])
    def test_jar_target_out_of_range(self, target: int):
        with pytest.raises(ValidationError):
            Settings(jar_target=target)

    @pytest.mark.parametrize("target", [50, 500])
    def test_jar_target_bounds_inclusive(self, target: int):
        assert Settings(jar_target=target).jar_target == target

    @pytest.mark.parametrize("xp", [0, 101])
    def test_xp_value_out_of_range(self, xp: int):
        with pytest.raises(ValidationError):
            XpValues(challenging=xp)


class TestGeneratedTask:
    def test_accepts_camel_case_scheduled_date(self):
        task = GeneratedTask.model_validate({"name": "x", "scheduledDate": "2024-06-03"})
        assert task.scheduled_date == "2024-06-03"

    def test_non_string_values_coerced(self):
        task = GeneratedTask.model_validate({"name": 42, "priority": None})
        assert task.name == "42"
        assert task.priority is None
