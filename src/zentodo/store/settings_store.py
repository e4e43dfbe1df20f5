"""SettingsStore SQLite 实现

settings 表按字段存储 ZenTodoSettings，value 为 JSON。
未知键被忽略，缺失键使用模型默认值，便于新增偏好项时向后兼容。
"""

import json
from datetime import UTC, datetime

import aiosqlite
import structlog

from ..exceptions import StorageError
from ..models.settings import ZenTodoSettings

log = structlog.get_logger()


class SqliteSettingsStore:
    """SettingsStore 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn

    async def load_settings(self) -> ZenTodoSettings:
        """读取设置"""
        try:
            cursor = await self._conn.execute("SELECT key, value FROM settings")
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StorageError("读取设置失败", original_error=e) from e

        known = ZenTodoSettings.model_fields
        data: dict = {}
        for key, value in rows:
            if key not in known:
                continue
            try:
                data[key] = json.loads(value)
            except json.JSONDecodeError:
                log.warning("invalid_setting_value", key=key)
        return ZenTodoSettings.model_validate(data)

    async def save_settings(self, settings: ZenTodoSettings) -> None:
        """在同一事务内写入全部字段"""
        now = datetime.now(UTC).isoformat()
        rows = [
            (key, json.dumps(value, ensure_ascii=False), now)
            for key, value in settings.model_dump().items()
        ]
        try:
            await self._conn.executemany(
                """
                INSERT INTO settings (key, value, updated_at)
                VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET
                    value = excluded.value,
                    updated_at = excluded.updated_at
                """,
                rows,
            )
            await self._conn.commit()
        except aiosqlite.Error as e:
            await self._conn.rollback()
            raise StorageError("保存设置失败", original_error=e) from e
