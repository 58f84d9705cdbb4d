"""Core 异常体系

账本、分析与生成辅助函数抛出的业务异常。
gateway 层负责映射为 HTTP 错误响应。
"""


class TaskJarError(Exception):
    """Core 包基础异常"""

    code = "TASKJAR_ERROR"

    def __init__(self, message: str, recoverable: bool = False) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 调用方是否可通过重试或降级恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class TaskValidationError(TaskJarError):
    """输入校验失败（缺少名称、缺少 prompt、设置越界等），不修改任何状态"""

    code = "VALIDATION_ERROR"


class TaskNotFoundError(TaskJarError):
    """任务不存在"""

    code = "TASK_NOT_FOUND"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task with id {task_id} does not exist")
        self.task_id = task_id


class TaskAlreadyCompletedError(TaskJarError):
    """任务已完成，重复完成会重复计 XP"""

    code = "TASK_ALREADY_COMPLETED"

    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} is already completed")
        self.task_id = task_id


class TaskAlreadyCountedError(TaskJarError):
    """任务 XP 已计入 Jar，不允许撤销完成"""

    code = "TASK_ALREADY_COUNTED"

    def __init__(self, task_id: str, jar_id: str) -> None:
        super().__init__(
            f"Task {task_id} already contributed XP to jar {jar_id} "
            "and cannot be uncompleted"
        )
        self.task_id = task_id
        self.jar_id = jar_id


class LedgerInvariantError(TaskJarError):
    """账本不变量被破坏（缺少或存在多个 ACTIVE Jar 等），拒绝本次操作"""

    code = "LEDGER_INVARIANT_VIOLATED"


class GenerationParseError(TaskJarError):
    """生成服务响应无法解析为任务列表"""

    code = "GENERATION_PARSE_ERROR"

    def __init__(self, message: str) -> None:
        super().__init__(message, recoverable=True)
