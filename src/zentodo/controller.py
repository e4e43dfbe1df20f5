"""TodoListController -- 列表控制器

持有全部已加载列表、当前选中列表以及所有结构性修改。
每次修改的流程固定为：修改内存森林 -> 序列化 -> 写入 DocumentStore -> 渲染。

并发模型：
1. 单事件循环协作调度，修改与重新加载经同一把 asyncio.Lock 串行化
2. SAVING：自身写入进行中，忽略外部变更通知（包括同步到达的写入回声）；
   延迟到达的回声在防抖结束时按内容与最近一次写入比对后丢弃
3. DRAGGING：拖拽排序进行中，忽略外部变更通知，写入推迟到 end_drag
4. 外部变更经防抖定时器合并，定时器归属于控制器实例，destroy() 时取消

目标列表或任务找不到时操作为 no-op；存储失败（StorageError）原样抛给调用方，
内存森林保留为尝试写入的状态，可通过 save_list() 手动重试。
"""

import asyncio
from collections.abc import Callable
from dataclasses import dataclass
from typing import assert_never

import structlog

from .config import DEFAULT_DEBOUNCE_MS
from .dates import normalize_date
from .exceptions import StorageError
from .markdown import ARCHIVED_HEADING, parse_markdown, serialize_markdown, serialize_task_lines
from .models import (
    AddSubtaskAction,
    AddTaskAction,
    ArchiveAction,
    ArchiveCompletedAction,
    ControllerState,
    DeleteAction,
    EditAction,
    EditNotesAction,
    ReorderAction,
    SetDueAction,
    TaskAction,
    TaskItem,
    TaskLocation,
    TodoList,
    ToggleAction,
    ZenTodoSettings,
    all_subtasks_completed,
    clean_task_text,
    complete_task,
    normalize_notes,
    create_task,
    locate_task,
    split_by_completion,
    uncomplete_task,
)
from .store.protocols import DocumentChange, DocumentStore, DocumentWatch, SettingsStore

log = structlog.get_logger()

RenderCallback = Callable[["TodoListController"], None]


@dataclass(frozen=True, slots=True)
class ListView:
    """渲染快照：当前列表的根任务按完成状态分组"""

    todo_list: TodoList | None
    incomplete: list[TaskItem]
    completed: list[TaskItem]
    show_completed: bool


class TodoListController:
    """任务列表控制器"""

    def __init__(
        self,
        document_store: DocumentStore,
        settings_store: SettingsStore,
        *,
        debounce_s: float = DEFAULT_DEBOUNCE_MS / 1000,
        on_render: RenderCallback | None = None,
    ) -> None:
        """
        Args:
            document_store: 文档存储
            settings_store: 设置存储
            debounce_s: 外部变更防抖时长（秒）
            on_render: 宿主渲染回调，每次状态变化后调用
        """
        self._documents = document_store
        self._settings_store = settings_store
        self._debounce_s = debounce_s
        self._on_render = on_render

        self.settings = ZenTodoSettings()
        self.active_file_path: str | None = None
        self.reload_count = 0
        self._lists: list[TodoList] = []

        self._lock = asyncio.Lock()
        self._saving = False
        self._dragging = False
        self._deferred_saves: list[str] = []
        self._refresh_handle: asyncio.TimerHandle | None = None
        self._refresh_task: asyncio.Task | None = None
        # 防抖窗口内收到变更通知的路径
        self._pending_changes: set[str] = set()
        # 自身最近一次写入各文档的内容，用于识别延迟到达的写入回声
        self._written: dict[str, str] = {}
        self._watch: DocumentWatch | None = None
        self._closed = False

    # 状态查询

    @property
    def state(self) -> ControllerState:
        if self._dragging:
            return ControllerState.DRAGGING
        if self._saving:
            return ControllerState.SAVING
        return ControllerState.IDLE

    @property
    def lists(self) -> list[TodoList]:
        return list(self._lists)

    @property
    def active_list(self) -> TodoList | None:
        return self._find_list(None)

    @property
    def todo_folder(self) -> str:
        return self.settings.todo_folder.strip().strip("/")

    def is_todo_file(self, path: str) -> bool:
        return path.startswith(self.todo_folder + "/") and path.endswith(".md")

    def view(self) -> ListView:
        todo_list = self.active_list
        incomplete, completed = split_by_completion(todo_list.tasks if todo_list else [])
        return ListView(
            todo_list=todo_list,
            incomplete=incomplete,
            completed=completed,
            show_completed=self.settings.show_completed_by_default,
        )

    def render(self) -> None:
        if self._on_render is not None:
            self._on_render(self)

    # 生命周期

    async def initialize(self) -> None:
        """读取设置并加载全部列表"""
        self.settings = await self._settings_store.load_settings()
        await self.reload()

    async def start_watching(self) -> None:
        """订阅 DocumentStore 对 todo 目录的监听"""
        if self._watch is not None:
            return
        self._watch = await self._documents.watch(self.todo_folder, self._on_document_change)

    def destroy(self) -> None:
        """拆除控制器：取消防抖定时器与进行中的刷新，停止监听"""
        self._closed = True
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
            self._refresh_handle = None
        if self._refresh_task is not None and not self._refresh_task.done():
            self._refresh_task.cancel()
        self._refresh_task = None
        if self._watch is not None:
            self._watch.stop()
            self._watch = None
        log.debug("controller_destroyed")

    # 加载与列表顺序

    async def reload(self) -> None:
        """重新读取并解析目录下的全部文档（整体替换，不做增量修补）"""
        async with self._lock:
            await self._load_lists()
        self.render()

    async def _load_lists(self) -> None:
        folder = self.todo_folder
        paths = await self._documents.list_files(folder)
        contents = await asyncio.gather(*(self._read_document(p) for p in paths))
        # 磁盘内容已重新对齐，之前记录的自身写入不再用于回声判断
        self._written.clear()

        lists: list[TodoList] = []
        for path, content in zip(paths, contents, strict=True):
            if content is None:
                continue
            doc = parse_markdown(content)
            lists.append(
                TodoList(
                    file_path=path,
                    title=doc.title,
                    tasks=doc.tasks,
                    archived_section=doc.archived_section,
                )
            )
        self._lists = lists

        self._sort_lists_by_order()
        await self._reconcile_list_order()

        if self._lists:
            if self._find_list(self.active_file_path) is None:
                self.active_file_path = self._lists[0].file_path
        else:
            self.active_file_path = None

        self.reload_count += 1
        log.info("lists_loaded", folder=folder, list_count=len(self._lists))

    async def _read_document(self, path: str) -> str | None:
        """读取单个文档；读取失败时跳过该文档，不影响其他列表"""
        try:
            return await self._documents.read_file(path)
        except StorageError:
            log.warning("document_read_failed", file_path=path, exc_info=True)
            return None

    def _sort_lists_by_order(self) -> None:
        order = self.settings.list_order
        if not order:
            return
        rank = {path: i for i, path in enumerate(order)}
        # 不在顺序记录中的列表排在最后，保持原有相对顺序
        self._lists.sort(key=lambda lst: rank.get(lst.file_path, len(rank)))

    async def _reconcile_list_order(self) -> None:
        valid = {lst.file_path for lst in self._lists}
        cleaned = [p for p in self.settings.list_order if p in valid]
        if len(cleaned) != len(self.settings.list_order):
            self.settings.list_order = cleaned
            await self._settings_store.save_settings(self.settings)
            log.info("list_order_pruned", remaining=len(cleaned))

    async def reorder_lists(self, ordered_file_paths: list[str]) -> None:
        """替换列表顺序记录（仅元数据，不写文档）"""
        async with self._lock:
            self.settings.list_order = list(ordered_file_paths)
            await self._settings_store.save_settings(self.settings)
            self._sort_lists_by_order()
        self.render()

    def select_list(self, file_path: str) -> None:
        if self._find_list(file_path) is None:
            log.debug("list_not_found", file_path=file_path)
            return
        self.active_file_path = file_path
        self.render()

    async def create_list(self, name: str) -> str | None:
        """在 todo 目录下新建列表文档并设为当前列表

        Returns:
            新文档路径；名称为空时返回 None
        """
        name = name.strip()
        if not name:
            return None
        file_path = f"{self.todo_folder}/{name}.md"
        async with self._lock:
            content = serialize_markdown(name, [])
            await self._documents.create_file(file_path, content)
            self.active_file_path = file_path
            await self._load_lists()
            self._written[file_path] = content
        log.info("list_created", file_path=file_path)
        self.render()
        return file_path

    # 任务修改

    async def add_task(
        self,
        text: str,
        due_date: str | None = None,
        *,
        file_path: str | None = None,
    ) -> TaskItem | None:
        """在根层级追加任务"""
        due = normalize_date(due_date)
        async with self._lock:
            todo = self._find_list(file_path)
            if todo is None or not text.strip():
                return None
            task = create_task(text, due)
            todo.tasks.append(task)
            await self._save(todo)
        return task

    async def add_subtask(
        self,
        parent_id: str,
        text: str,
        *,
        file_path: str | None = None,
    ) -> TaskItem | None:
        """在 parent_id 下追加子任务"""
        async with self._lock:
            todo = self._find_list(file_path)
            parent = self._locate(todo, parent_id)
            if parent is None or not text.strip():
                return None
            subtask = create_task(text)
            subtask.indent_level = parent.task.indent_level + 1
            parent.task.subtasks.append(subtask)
            await self._save(todo)
        return subtask

    async def toggle_task(self, task_id: str, *, file_path: str | None = None) -> TaskItem | None:
        """切换完成状态；开启 auto_complete_parent 时向上联动一层"""
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return None

            updated = uncomplete_task(loc.task) if loc.task.completed else complete_task(loc.task)
            loc.siblings[loc.index] = updated

            parent = loc.parent
            if parent is not None and self.settings.auto_complete_parent:
                if not updated.completed and parent.completed:
                    self._replace(todo, parent, uncomplete_task(parent))
                    log.debug("parent_auto_uncompleted", task_id=parent.id)
                elif (
                    updated.completed
                    and not parent.completed
                    and all_subtasks_completed(parent)
                ):
                    self._replace(todo, parent, complete_task(parent))
                    log.debug("parent_auto_completed", task_id=parent.id)

            await self._save(todo)
        return updated

    async def edit_task(self, task_id: str, text: str, *, file_path: str | None = None) -> None:
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return
            loc.task.text = clean_task_text(text)
            await self._save(todo)

    async def set_due_date(
        self,
        task_id: str,
        due_date: str | None,
        *,
        file_path: str | None = None,
    ) -> None:
        """设置或清除截止日期；日期非法时抛出 ValueError"""
        due = normalize_date(due_date)
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return
            loc.task.due_date = due
            await self._save(todo)

    async def edit_notes(self, task_id: str, notes: str, *, file_path: str | None = None) -> None:
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return
            loc.task.notes = normalize_notes(notes)
            await self._save(todo)

    async def delete_task(self, task_id: str, *, file_path: str | None = None) -> None:
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return
            del loc.siblings[loc.index]
            await self._save(todo)

    async def archive_task(self, task_id: str, *, file_path: str | None = None) -> None:
        """把任务子树渲染为文本追加到归档区，并从森林中移除"""
        async with self._lock:
            todo = self._find_list(file_path)
            loc = self._locate(todo, task_id)
            if loc is None:
                return
            self._append_archived(todo, serialize_task_lines(loc.task))
            del loc.siblings[loc.index]
            await self._save(todo)

    async def archive_completed(self, *, file_path: str | None = None) -> int:
        """归档全部已完成的根任务

        Returns:
            归档的任务数
        """
        async with self._lock:
            todo = self._find_list(file_path)
            if todo is None:
                return 0
            incomplete, completed = split_by_completion(todo.tasks)
            if not completed:
                return 0
            lines = [line for task in completed for line in serialize_task_lines(task)]
            self._append_archived(todo, lines)
            todo.tasks[:] = incomplete
            await self._save(todo)
        log.info("completed_tasks_archived", file_path=todo.file_path, count=len(completed))
        return len(completed)

    async def reorder_tasks(
        self,
        ordered_ids: list[str],
        parent_id: str | None = None,
        *,
        file_path: str | None = None,
    ) -> None:
        """拖拽结果：重排同一父节点下某一完成分组

        被重排的分组由 ordered_ids 中第一个可识别的 id 决定；另一分组的 id
        与未知 id 被忽略，分组内未列出的任务保持相对顺序接在末尾。
        结果总是未完成分组在前、已完成分组在后。
        """
        async with self._lock:
            todo = self._find_list(file_path)
            if todo is None:
                return
            if parent_id is None:
                siblings = todo.tasks
            else:
                parent = self._locate(todo, parent_id)
                if parent is None:
                    return
                siblings = parent.task.subtasks

            by_id = {t.id: t for t in siblings}
            first = next((by_id[i] for i in ordered_ids if i in by_id), None)
            if first is None:
                return
            group_completed = first.completed

            reordered: list[TaskItem] = []
            seen: set[str] = set()
            for task_id in ordered_ids:
                task = by_id.get(task_id)
                if task is None or task.completed != group_completed or task_id in seen:
                    continue
                reordered.append(task)
                seen.add(task_id)
            reordered += [t for t in siblings if t.completed == group_completed and t.id not in seen]
            others = [t for t in siblings if t.completed != group_completed]

            siblings[:] = others + reordered if group_completed else reordered + others
            await self._save(todo)

    # 操作分派

    async def handle_action(self, action: TaskAction, file_path: str | None = None) -> None:
        """按 kind 分派用户操作，默认作用于当前列表"""
        match action:
            case AddTaskAction():
                await self.add_task(action.text, action.due_date, file_path=file_path)
            case AddSubtaskAction():
                await self.add_subtask(action.parent_id, action.text, file_path=file_path)
            case ToggleAction():
                await self.toggle_task(action.task_id, file_path=file_path)
            case DeleteAction():
                await self.delete_task(action.task_id, file_path=file_path)
            case EditAction():
                await self.edit_task(action.task_id, action.text, file_path=file_path)
            case SetDueAction():
                await self.set_due_date(action.task_id, action.due_date, file_path=file_path)
            case EditNotesAction():
                await self.edit_notes(action.task_id, action.notes, file_path=file_path)
            case ArchiveAction():
                await self.archive_task(action.task_id, file_path=file_path)
            case ArchiveCompletedAction():
                await self.archive_completed(file_path=file_path)
            case ReorderAction():
                await self.reorder_tasks(action.ordered_ids, action.parent_id, file_path=file_path)
            case _:
                assert_never(action)

    # 拖拽

    def begin_drag(self) -> None:
        self._dragging = True

    async def end_drag(self) -> None:
        """结束拖拽并写入期间推迟的保存"""
        self._dragging = False
        pending, self._deferred_saves = self._deferred_saves, []
        if not pending:
            return
        async with self._lock:
            for path in pending:
                todo = self._find_list(path)
                if todo is not None:
                    await self._write(todo)
        self.render()

    # 持久化

    async def save_list(self, file_path: str | None = None) -> None:
        """序列化并写入列表（写入失败后的手动重试入口）"""
        async with self._lock:
            todo = self._find_list(file_path)
            if todo is None:
                return
            await self._write(todo)
        self.render()

    async def _save(self, todo: TodoList) -> None:
        if self._dragging:
            if todo.file_path not in self._deferred_saves:
                self._deferred_saves.append(todo.file_path)
            log.debug("save_deferred_while_dragging", file_path=todo.file_path)
        else:
            await self._write(todo)
        self.render()

    async def _write(self, todo: TodoList) -> None:
        if not await self._documents.exists(todo.file_path):
            log.warning("save_skipped_missing_document", file_path=todo.file_path)
            return
        content = serialize_markdown(todo.title, todo.tasks, todo.archived_section)
        self._saving = True
        try:
            await self._documents.write_file(todo.file_path, content)
        finally:
            self._saving = False
        self._written[todo.file_path] = content
        log.debug("list_saved", file_path=todo.file_path, task_count=len(todo.tasks))

    # 外部变更

    def _on_document_change(self, change: DocumentChange) -> None:
        if self.is_todo_file(change.path) or (
            change.old_path is not None and self.is_todo_file(change.old_path)
        ):
            self.on_external_change(change.path)

    def on_external_change(self, file_path: str) -> None:
        """外部变更通知：SAVING/DRAGGING 时忽略，否则（重新）启动防抖定时器"""
        if self._closed:
            return
        if self._saving or self._dragging:
            log.debug("external_change_ignored", file_path=file_path, state=self.state.value)
            return
        self._pending_changes.add(file_path)
        self._arm_refresh()

    def _arm_refresh(self) -> None:
        if self._refresh_handle is not None:
            self._refresh_handle.cancel()
        loop = asyncio.get_running_loop()
        self._refresh_handle = loop.call_later(self._debounce_s, self._fire_refresh)

    def _fire_refresh(self) -> None:
        self._refresh_handle = None
        if self._closed:
            return
        # 定时器在拖拽开始前已启动：等拖拽结束后再刷新
        if self._dragging:
            self._arm_refresh()
            return
        self._refresh_task = asyncio.create_task(self._debounced_reload())

    async def _debounced_reload(self) -> None:
        paths, self._pending_changes = self._pending_changes, set()
        try:
            async with self._lock:
                if await self._only_own_echoes(paths):
                    log.debug("own_write_echo_ignored", paths=sorted(paths))
                    return
                await self._load_lists()
            self.render()
        except Exception:
            # 后台刷新没有调用方可以传播，记录后等待下一次通知
            log.exception("debounced_reload_failed")

    async def _only_own_echoes(self, paths: set[str]) -> bool:
        """通知的文档内容都与自身最近一次写入一致时返回 True

        文件系统监听的回声可能在 SAVING 结束后才到达，此时按内容识别。
        """
        if not paths:
            return False
        for path in paths:
            expected = self._written.get(path)
            if expected is None:
                return False
            try:
                content = await self._documents.read_file(path)
            except StorageError:
                return False
            if content != expected:
                return False
        return True

    # 内部工具

    def _find_list(self, file_path: str | None) -> TodoList | None:
        path = file_path or self.active_file_path
        if path is None:
            return None
        for todo in self._lists:
            if todo.file_path == path:
                return todo
        return None

    @staticmethod
    def _locate(todo: TodoList | None, task_id: str) -> TaskLocation | None:
        if todo is None:
            return None
        loc = locate_task(todo.tasks, task_id)
        if loc is None:
            log.debug("task_not_found", task_id=task_id, file_path=todo.file_path)
        return loc

    @staticmethod
    def _replace(todo: TodoList, task: TaskItem, updated: TaskItem) -> None:
        loc = locate_task(todo.tasks, task.id)
        if loc is not None:
            loc.siblings[loc.index] = updated

    @staticmethod
    def _append_archived(todo: TodoList, lines: list[str]) -> None:
        block = "\n".join(lines)
        if todo.archived_section:
            existing = todo.archived_section
            sep = "" if existing.endswith("\n") else "\n"
            todo.archived_section = f"{existing}{sep}{block}\n"
        else:
            todo.archived_section = f"{ARCHIVED_HEADING}\n\n{block}\n"
