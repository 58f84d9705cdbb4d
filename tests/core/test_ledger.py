"""Jar 账本单元测试

测试内容：
1. 入账与封存/结转（单次、恰好满、连续封存）
2. 随机完成序列下的不变量：上限、唯一 ACTIVE、XP 守恒
3. 目标值变更
4. ACTIVE Jar 合成与多 ACTIVE 检测
5. 撤销完成策略
"""

import random

import pytest
from taskjar.core import ledger
from taskjar.core.exceptions import (
    LedgerInvariantError,
    TaskAlreadyCompletedError,
    TaskAlreadyCountedError,
    TaskValidationError,
)
from taskjar.core.models import JarStatus, Settings


class TestCompleteTask:
    """完成任务入账"""

    def test_credit_without_sealing(self, make_task, make_jar, now):
        task = make_task(xp_value=10)
        jar = make_jar(current_xp=20)

        result = ledger.complete_task(task, jar, Settings(), now=now)

        assert result.sealed_jars == []
        assert result.created_jars == []
        assert result.active_jar.jar_id == jar.jar_id
        assert result.active_jar.current_xp == 30
        assert task.task_id in result.active_jar.task_ids
        assert result.task.completed is True
        assert result.task.completed_at == now

    def test_overflow_seals_and_rolls_over(self, make_task, make_jar, now):
        """92 + 15 -> 封存 100，新 Jar 携带 7"""
        task = make_task(xp_value=15)
        jar = make_jar(current_xp=92, target_xp=100)

        result = ledger.complete_task(task, jar, Settings(jar_target=100), now=now)

        assert len(result.sealed_jars) == 1
        sealed = result.sealed_jars[0]
        assert sealed.jar_id == jar.jar_id
        assert sealed.status == JarStatus.SEALED
        assert sealed.current_xp == 100
        assert sealed.completed_at == now
        assert task.task_id in sealed.task_ids

        active = result.active_jar
        assert active.status == JarStatus.ACTIVE
        assert active.current_xp == 7
        assert active.target_xp == 100
        assert active.jar_id != jar.jar_id
        assert result.created_jars == [active]

    def test_exact_fill_seals_with_empty_successor(self, make_task, make_jar, now):
        result = ledger.complete_task(
            make_task(xp_value=10), make_jar(current_xp=90), Settings(), now=now
        )

        assert [j.current_xp for j in result.sealed_jars] == [100]
        assert result.active_jar.current_xp == 0

    def test_new_jar_uses_current_settings_target(self, make_task, make_jar, now):
        jar = make_jar(current_xp=95, target_xp=100)

        result = ledger.complete_task(
            make_task(xp_value=10), jar, Settings(jar_target=250), now=now
        )

        assert result.sealed_jars[0].target_xp == 100
        assert result.active_jar.target_xp == 250
        assert result.active_jar.current_xp == 5

    def test_cascading_seal(self, make_task, make_jar, now):
        """单次 XP 超过多个 Jar 目标值时连续封存"""
        jar = make_jar(current_xp=0, target_xp=50)

        result = ledger.complete_task(
            make_task(xp_value=100), jar, Settings(jar_target=50), now=now
        )

        assert len(result.sealed_jars) == 2
        assert all(j.current_xp == j.target_xp == 50 for j in result.sealed_jars)
        assert result.active_jar.current_xp == 0
        assert result.active_jar.target_xp == 50
        assert len(result.created_jars) == 2
        assert result.touched_jars[-1] == result.active_jar

    def test_already_completed_rejected(self, make_task, make_jar, now):
        task = make_task(completed=True)

        with pytest.raises(TaskAlreadyCompletedError):
            ledger.complete_task(task, make_jar(), Settings(), now=now)

    def test_missing_active_jar_rejected(self, make_task, now):
        with pytest.raises(LedgerInvariantError):
            ledger.complete_task(make_task(), None, Settings(), now=now)

    def test_input_snapshots_not_mutated(self, make_task, make_jar, now):
        task = make_task(xp_value=15)
        jar = make_jar(current_xp=92)

        ledger.complete_task(task, jar, Settings(), now=now)

        assert task.completed is False
        assert jar.current_xp == 92
        assert jar.status == JarStatus.ACTIVE
        assert jar.task_ids == []


class TestLedgerInvariants:
    """随机完成序列下的账本不变量"""

    @pytest.mark.parametrize("seed", range(20))
    def test_random_completion_sequences(self, seed, make_task, make_jar, now):
        rng = random.Random(seed)
        settings = Settings(jar_target=rng.randint(50, 500))
        active = make_jar(current_xp=0, target_xp=settings.jar_target)
        sealed_total = 0
        sealed_ids: set[str] = set()
        credited = 0

        for _ in range(rng.randint(1, 60)):
            xp = rng.randint(1, 100)
            result = ledger.complete_task(make_task(xp_value=xp), active, settings, now=now)
            credited += xp

            for jar in result.sealed_jars:
                assert jar.status == JarStatus.SEALED
                assert jar.current_xp == jar.target_xp
                assert jar.jar_id not in sealed_ids
                sealed_ids.add(jar.jar_id)
                sealed_total += jar.current_xp

            active = result.active_jar
            assert active.status == JarStatus.ACTIVE
            assert 0 <= active.current_xp < active.target_xp
            assert ledger.find_active_jar(result.touched_jars) == active
            assert sealed_total + active.current_xp == credited


class TestJarTargetChange:
    """Jar 目标值变更"""

    def test_raise_target_keeps_xp(self, make_jar, now):
        jar = make_jar(current_xp=40, target_xp=100)

        result = ledger.on_jar_target_changed(jar, 200, now=now)

        assert result.sealed_jars == []
        assert result.active_jar.jar_id == jar.jar_id
        assert result.active_jar.target_xp == 200
        assert result.active_jar.current_xp == 40

    def test_lower_target_above_current(self, make_jar, now):
        jar = make_jar(current_xp=40, target_xp=100)

        result = ledger.on_jar_target_changed(jar, 60, now=now)

        assert result.sealed_jars == []
        assert result.active_jar.target_xp == 60

    def test_lower_target_below_current_seals(self, make_jar, now):
        jar = make_jar(current_xp=80, target_xp=100)

        result = ledger.on_jar_target_changed(jar, 50, now=now)

        assert len(result.sealed_jars) == 1
        assert result.sealed_jars[0].jar_id == jar.jar_id
        assert result.sealed_jars[0].current_xp == 50
        assert result.active_jar.current_xp == 30
        assert result.active_jar.target_xp == 50

    @pytest.mark.parametrize("target", [0, 49, 501])
    def test_out_of_range_target_rejected(self, make_jar, target, now):
        with pytest.raises(TaskValidationError):
            ledger.on_jar_target_changed(make_jar(), target, now=now)


class TestActiveJar:
    """ACTIVE Jar 查找与合成"""

    def test_synthesized_when_missing(self, now):
        jar, created = ledger.ensure_active_jar([], Settings(jar_target=150), "owner", now=now)

        assert created is True
        assert jar.status == JarStatus.ACTIVE
        assert jar.current_xp == 0
        assert jar.target_xp == 150
        assert jar.user_id == "owner"

    def test_existing_active_returned(self, make_jar, now):
        existing = make_jar(current_xp=30)

        jar, created = ledger.ensure_active_jar([existing], Settings(), "owner", now=now)

        assert created is False
        assert jar == existing

    def test_multiple_active_rejected(self, make_jar):
        with pytest.raises(LedgerInvariantError):
            ledger.find_active_jar([make_jar(), make_jar()])


class TestUncompleteTask:
    """撤销完成"""

    def test_counted_task_rejected(self, make_task, make_jar, now):
        task = make_task(xp_value=10)
        result = ledger.complete_task(task, make_jar(), Settings(), now=now)

        with pytest.raises(TaskAlreadyCountedError):
            ledger.uncomplete_task(result.task, result.touched_jars, now=now)

    def test_counted_in_sealed_jar_rejected(self, make_task, make_jar, now):
        task = make_task(xp_value=15)
        result = ledger.complete_task(task, make_jar(current_xp=92), Settings(), now=now)

        with pytest.raises(TaskAlreadyCountedError) as exc_info:
            ledger.uncomplete_task(result.task, result.sealed_jars, now=now)
        assert exc_info.value.jar_id == result.sealed_jars[0].jar_id

    def test_uncounted_completed_task_reverted(self, make_task, make_jar, now):
        task = make_task(completed=True)

        reverted = ledger.uncomplete_task(task, [make_jar()], now=now)

        assert reverted.completed is False
        assert reverted.completed_at is None

    def test_not_completed_is_noop(self, make_task):
        task = make_task()

        assert ledger.uncomplete_task(task, []) == task
