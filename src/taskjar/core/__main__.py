"""CLI 入口模块 -- python -m taskjar.core <command>

支持的命令：
  rebuild-daily-completion [user_id]  从 tasks 表重建每日完成率记录
"""

import asyncio
import sys

from .config import get_db_path, get_default_user_id


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print("用法: python -m taskjar.core <command>")
        print("命令:")
        print("  rebuild-daily-completion [user_id]  从 tasks 表重建每日完成率记录")
        sys.exit(1)

    command = sys.argv[1]

    if command == "rebuild-daily-completion":
        user_id = sys.argv[2] if len(sys.argv) > 2 else get_default_user_id()
        asyncio.run(rebuild_daily(user_id))
    else:
        print(f"未知命令: {command}")
        print("可用命令: rebuild-daily-completion")
        sys.exit(1)


async def rebuild_daily(user_id: str) -> None:
    """执行每日完成率重建"""
    from .daily_sync import rebuild_daily_completion
    from .store import create_store_group

    db_path = get_db_path()

    print(f"数据库路径: {db_path}")
    print(f"用户: {user_id}")
    print("开始重建每日完成率...")

    store_group = await create_store_group(db_path)

    try:
        count = await rebuild_daily_completion(
            store_group.conn,
            store_group.task_store,
            store_group.daily_store,
            user_id,
        )
        print(f"重建完成，写入 {count} 条记录")
    finally:
        await store_group.conn.close()


if __name__ == "__main__":
    main()
