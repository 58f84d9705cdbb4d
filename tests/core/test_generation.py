"""任务生成辅助函数测试

测试内容：
1. 消息构造与输入校验
2. 响应解析（代码块、{"tasks": [...]}、脏数据）
3. 周计划日期归一
4. 词汇映射与 XP 推导
5. 降级占位列表
"""

import json
from datetime import date

import pytest
from taskjar.core import generation
from taskjar.core.exceptions import GenerationParseError, TaskValidationError
from taskjar.core.models import Difficulty, GeneratedTask, Priority, Settings, XpValues

WINDOW = generation.week_window(date(2024, 6, 10))


class TestMessages:
    def test_daily_messages_pass_prompt_through(self):
        messages = generation.build_daily_messages("plan my day")

        assert messages[0]["role"] == "system"
        assert messages[-1] == {"role": "user", "content": "plan my day"}

    @pytest.mark.parametrize("prompt", [None, "", "   "])
    def test_missing_prompt_rejected(self, prompt):
        with pytest.raises(TaskValidationError):
            generation.build_daily_messages(prompt)

    def test_weekly_messages_list_window_dates(self):
        messages = generation.build_weekly_messages("study", WINDOW)

        system = messages[0]["content"]
        assert "Monday: 2024-06-10" in system
        assert "Sunday: 2024-06-16" in system

    def test_week_window_is_seven_consecutive_days(self):
        assert len(WINDOW) == 7
        assert WINDOW[-1] == date(2024, 6, 16)

    @pytest.mark.parametrize(
        "window",
        [None, [], WINDOW[:6], [*WINDOW[:6], "not-a-date"]],
    )
    def test_invalid_week_window_rejected(self, window):
        with pytest.raises(TaskValidationError):
            generation.validate_week_window(window)

    def test_week_window_accepts_iso_strings(self):
        window = generation.validate_week_window([d.isoformat() for d in WINDOW])

        assert window == WINDOW


class TestParseGeneratedTasks:
    """响应解析"""

    def test_plain_json_array(self):
        text = json.dumps([{"name": "read", "priority": "high", "difficulty": "easy"}])

        tasks = generation.parse_generated_tasks(text)

        assert tasks == [GeneratedTask(name="read", priority="high", difficulty="easy")]

    def test_fenced_json(self):
        text = '```json\n[{"name": "write essay"}]\n```'

        tasks = generation.parse_generated_tasks(text)

        assert tasks[0].name == "write essay"

    def test_tasks_wrapper_object(self):
        text = json.dumps({"tasks": [{"name": "a"}, {"name": "b"}]})

        assert [t.name for t in generation.parse_generated_tasks(text)] == ["a", "b"]

    def test_non_object_items_skipped(self):
        text = json.dumps(["junk", 3, {"name": "keep"}])

        assert [t.name for t in generation.parse_generated_tasks(text)] == ["keep"]

    @pytest.mark.parametrize(
        "text",
        [None, "", "plan my day", "{not json", '{"name": "x"}', "[]", '["a", 1]'],
    )
    def test_unusable_response_raises(self, text):
        with pytest.raises(GenerationParseError):
            generation.parse_generated_tasks(text)


class TestClampScheduledDates:
    """周计划日期归一"""

    def test_in_window_dates_kept(self):
        tasks = [GeneratedTask(name="a", scheduled_date="2024-06-12")]

        clamped = generation.clamp_scheduled_dates(tasks, WINDOW)

        assert clamped[0].scheduled_date == "2024-06-12"

    def test_out_of_window_and_missing_dates_replaced(self):
        tasks = [
            GeneratedTask(name="a", scheduled_date="2030-01-01"),
            GeneratedTask(name="b", scheduled_date="garbage"),
            GeneratedTask(name="c"),
        ]

        clamped = generation.clamp_scheduled_dates(tasks, WINDOW)

        allowed = {d.isoformat() for d in WINDOW}
        assert all(t.scheduled_date in allowed for t in clamped)

    def test_spread_evenly_by_index(self):
        tasks = [GeneratedTask(name=str(i)) for i in range(14)]

        clamped = generation.clamp_scheduled_dates(tasks, WINDOW)

        days = [t.scheduled_date for t in clamped]
        assert days[0] == days[1] == "2024-06-10"
        assert days[-1] == "2024-06-16"


class TestToDrafts:
    """外部词汇映射"""

    def test_hard_maps_to_challenging_xp(self):
        settings = Settings(xp_values=XpValues(challenging=42))
        tasks = [GeneratedTask(name="climb", priority="high", difficulty="hard")]

        draft = generation.to_drafts(tasks, settings)[0]

        assert draft.difficulty == Difficulty.CHALLENGING
        assert draft.priority == Priority.URGENT
        assert draft.xp_value == settings.xp_values.challenging

    def test_unknown_vocabulary_falls_to_middle(self):
        tasks = [GeneratedTask(name="x", priority="asap", difficulty="brutal")]

        draft = generation.to_drafts(tasks, Settings())[0]

        assert draft.priority == Priority.SCHEDULED
        assert draft.difficulty == Difficulty.STANDARD
        assert draft.xp_value == 10

    def test_missing_name_defaulted_and_long_name_truncated(self):
        tasks = [GeneratedTask(name="  "), GeneratedTask(name="x" * 300)]

        drafts = generation.to_drafts(tasks, Settings())

        assert drafts[0].name == "Task 1"
        assert len(drafts[1].name) == 200

    def test_scheduled_date_parsed(self):
        tasks = [GeneratedTask(name="a", scheduled_date="2024-06-11")]

        assert generation.to_drafts(tasks, Settings())[0].scheduled_for == date(2024, 6, 11)


class TestFallbackDrafts:
    """降级占位列表"""

    def test_unparseable_prompt_yields_non_empty_list(self):
        drafts = generation.fallback_drafts("plan my day", Settings())

        assert len(drafts) >= 1
        assert drafts[0].name == "plan my day"
        assert drafts[0].xp_value == Settings().xp_values.standard

    def test_each_line_becomes_task(self):
        drafts = generation.fallback_drafts("read\n\n  gym  \nlaundry", Settings())

        assert [d.name for d in drafts] == ["read", "gym", "laundry"]

    def test_empty_prompt_gets_placeholder(self):
        drafts = generation.fallback_drafts("", Settings())

        assert [d.name for d in drafts] == [generation.FALLBACK_TASK_NAME]

    def test_weekly_fallback_spreads_dates(self):
        drafts = generation.fallback_drafts("a\nb", Settings(), WINDOW)

        assert all(d.scheduled_for in WINDOW for d in drafts)
