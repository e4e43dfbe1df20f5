"""ZenTodo Store -- 文档与设置存储

提供工厂函数创建文件系统文档存储 + SQLite 设置存储的实例组。
"""

from pathlib import Path

import aiosqlite
import structlog

from .file_store import FileDocumentStore, FileWatch
from .memory_store import MemoryDocumentStore, MemorySettingsStore
from .protocols import ChangeCallback, DocumentChange, DocumentStore, DocumentWatch, SettingsStore
from .settings_store import SqliteSettingsStore
from .sqlite_init import init_db, verify_wal_mode

log = structlog.get_logger()


class StoreGroup:
    """Store 实例组"""

    def __init__(
        self,
        conn: aiosqlite.Connection,
        vault_dir: Path,
    ) -> None:
        self.conn = conn
        self.document_store = FileDocumentStore(vault_dir)
        self.settings_store = SqliteSettingsStore(conn)

    async def close(self) -> None:
        await self.conn.close()


async def create_store_group(
    vault_dir: str | Path,
    settings_db_path: str,
) -> StoreGroup:
    """创建 Store 实例组

    Args:
        vault_dir: 文档根目录
        settings_db_path: SQLite 设置数据库文件路径

    Returns:
        StoreGroup 实例
    """
    vault_path = Path(vault_dir)
    vault_path.mkdir(parents=True, exist_ok=True)

    # 确保数据库目录存在
    db_dir = Path(settings_db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(settings_db_path)
    await init_db(conn)
    if not await verify_wal_mode(conn):
        # 内存数据库或只读文件系统上 WAL 不可用，退回默认日志模式
        log.warning("sqlite_wal_unavailable", db_path=settings_db_path)

    return StoreGroup(conn=conn, vault_dir=vault_path)


__all__ = [
    "StoreGroup",
    "create_store_group",
    "DocumentStore",
    "SettingsStore",
    "DocumentWatch",
    "DocumentChange",
    "ChangeCallback",
    "FileDocumentStore",
    "FileWatch",
    "MemoryDocumentStore",
    "MemorySettingsStore",
    "SqliteSettingsStore",
    "init_db",
]
