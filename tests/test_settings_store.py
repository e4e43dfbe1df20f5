"""SqliteSettingsStore 测试"""

from pathlib import Path

import aiosqlite
from zentodo.models import ZenTodoSettings
from zentodo.store import SqliteSettingsStore, create_store_group
from zentodo.store.sqlite_init import init_db, verify_wal_mode


class TestSqliteSettingsStore:
    async def test_defaults_when_empty(self, settings_db):
        settings = await SqliteSettingsStore(settings_db).load_settings()
        assert settings == ZenTodoSettings()

    async def test_save_and_load(self, settings_db):
        store = SqliteSettingsStore(settings_db)
        await store.save_settings(
            ZenTodoSettings(list_order=["30_ToDos/Work.md"], auto_complete_parent=False)
        )
        loaded = await store.load_settings()
        assert loaded.list_order == ["30_ToDos/Work.md"]
        assert loaded.auto_complete_parent is False

    async def test_overwrite(self, settings_db):
        store = SqliteSettingsStore(settings_db)
        await store.save_settings(ZenTodoSettings(list_order=["a.md", "b.md"]))
        await store.save_settings(ZenTodoSettings(list_order=["b.md"]))
        assert (await store.load_settings()).list_order == ["b.md"]

    async def test_survives_reconnect(self, tmp_path: Path):
        db_path = str(tmp_path / "settings.db")
        conn = await aiosqlite.connect(db_path)
        await init_db(conn)
        await SqliteSettingsStore(conn).save_settings(
            ZenTodoSettings(todo_folder="Tasks", show_completed_by_default=True)
        )
        await conn.close()

        conn = await aiosqlite.connect(db_path)
        await init_db(conn)
        try:
            loaded = await SqliteSettingsStore(conn).load_settings()
        finally:
            await conn.close()
        assert loaded.todo_folder == "Tasks"
        assert loaded.show_completed_by_default is True

    async def test_unknown_and_corrupt_keys_ignored(self, settings_db):
        await settings_db.executemany(
            "INSERT INTO settings (key, value, updated_at) VALUES (?, ?, ?)",
            [
                ("retired_option", "true", "2024-01-01T00:00:00+00:00"),
                ("todo_folder", "not json", "2024-01-01T00:00:00+00:00"),
            ],
        )
        await settings_db.commit()
        loaded = await SqliteSettingsStore(settings_db).load_settings()
        assert loaded == ZenTodoSettings()

    async def test_wal_mode(self, settings_db):
        assert await verify_wal_mode(settings_db)


class TestStoreGroup:
    async def test_create_store_group(self, tmp_path: Path):
        group = await create_store_group(tmp_path / "vault", str(tmp_path / "data" / "z.db"))
        try:
            assert (tmp_path / "vault").is_dir()
            assert await verify_wal_mode(group.conn)
            await group.document_store.create_file("30_ToDos/A.md", "# A\n\n")
            assert await group.document_store.list_files("30_ToDos") == ["30_ToDos/A.md"]
            await group.settings_store.save_settings(ZenTodoSettings(list_order=["30_ToDos/A.md"]))
            assert (await group.settings_store.load_settings()).list_order == ["30_ToDos/A.md"]
        finally:
            await group.close()
