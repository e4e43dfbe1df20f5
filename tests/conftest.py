"""zentodo 测试配置 -- 内存存储 + controller fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from zentodo.controller import TodoListController
from zentodo.models import ZenTodoSettings
from zentodo.store import MemoryDocumentStore, MemorySettingsStore
from zentodo.store.sqlite_init import init_db

WORK_PATH = "30_ToDos/Work.md"
HOME_PATH = "30_ToDos/Home.md"

# 测试用短防抖（秒）
TEST_DEBOUNCE_S = 0.02

WORK_MD = """# Work

- [ ] Write report ➕ 2024-01-02 📅 2024-01-10
\t- [ ] Outline
\t- [ ] Draft
- [ ] Call Alice
- [x] Send invoice ✅ 2024-01-03
"""

HOME_MD = """# Home

- [ ] Water plants
"""


@pytest.fixture
def document_store() -> MemoryDocumentStore:
    """预置两份列表文档的内存文档存储"""
    return MemoryDocumentStore({WORK_PATH: WORK_MD, HOME_PATH: HOME_MD})


@pytest.fixture
def settings_store() -> MemorySettingsStore:
    """列表顺序为 Work 在前的内存设置存储"""
    return MemorySettingsStore(ZenTodoSettings(list_order=[WORK_PATH, HOME_PATH]))


@pytest.fixture
def rendered() -> list[TodoListController]:
    """记录每次 render 回调"""
    return []


@pytest_asyncio.fixture
async def controller(
    document_store: MemoryDocumentStore,
    settings_store: MemorySettingsStore,
    rendered: list[TodoListController],
) -> AsyncGenerator[TodoListController, None]:
    """已初始化的 controller，当前列表为 Work"""
    ctrl = TodoListController(
        document_store,
        settings_store,
        debounce_s=TEST_DEBOUNCE_S,
        on_render=rendered.append,
    )
    await ctrl.initialize()
    yield ctrl
    ctrl.destroy()


@pytest_asyncio.fixture
async def settings_db(tmp_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """已初始化的设置数据库连接"""
    conn = await aiosqlite.connect(str(tmp_path / "settings.db"))
    await init_db(conn)
    yield conn
    await conn.close()


def task_by_text(tasks, text: str):
    """按文本深度优先查找任务（测试辅助）"""
    for task in tasks:
        if task.text == text:
            return task
        found = task_by_text(task.subtasks, text)
        if found is not None:
            return found
    return None
