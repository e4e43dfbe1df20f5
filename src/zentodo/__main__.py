"""CLI 入口模块 -- python -m zentodo <command>

支持的命令：
  show                              列出全部列表及任务
  new-list <name>                   新建列表
  add <list-title> <text> [due]     向列表追加任务，可选截止日期 YYYY-MM-DD
  archive-completed <list-title>    归档列表中已完成的根任务
  watch                             监听目录，外部修改后重新加载并打印
"""

import asyncio
import sys

from .config import ZenTodoConfig, load_config
from .controller import RenderCallback, TodoListController
from .dates import is_overdue
from .logging_config import setup_logging
from .markdown import format_task_line
from .models import TaskItem, TodoList
from .store import StoreGroup, create_store_group

_USAGE = """用法: python -m zentodo <command>
命令:
  show                              列出全部列表及任务
  new-list <name>                   新建列表
  add <list-title> <text> [due]     向列表追加任务，可选截止日期 YYYY-MM-DD
  archive-completed <list-title>    归档列表中已完成的根任务
  watch                             监听目录，外部修改后重新加载并打印"""


def main() -> None:
    """CLI 主入口"""
    if len(sys.argv) < 2:
        print(_USAGE)
        sys.exit(1)

    command, args = sys.argv[1], sys.argv[2:]
    config = load_config()
    setup_logging(config.log_format)

    if command == "show":
        asyncio.run(show(config))
    elif command == "new-list" and len(args) == 1:
        asyncio.run(new_list(config, args[0]))
    elif command == "add" and len(args) in (2, 3):
        asyncio.run(add(config, *args))
    elif command == "archive-completed" and len(args) == 1:
        asyncio.run(archive_completed(config, args[0]))
    elif command == "watch":
        try:
            asyncio.run(watch(config))
        except KeyboardInterrupt:
            pass
    else:
        print(f"未知命令或参数错误: {' '.join(sys.argv[1:])}")
        print(_USAGE)
        sys.exit(1)


async def _open(
    config: ZenTodoConfig,
    on_render: RenderCallback | None = None,
) -> tuple[StoreGroup, TodoListController]:
    store_group = await create_store_group(config.vault_dir, config.settings_db_path)
    controller = TodoListController(
        store_group.document_store,
        store_group.settings_store,
        debounce_s=config.debounce_s,
        on_render=on_render,
    )
    await controller.initialize()
    return store_group, controller


def _find_by_title(controller: TodoListController, title: str) -> TodoList | None:
    for todo in controller.lists:
        if todo.title == title:
            return todo
    return None


def _print_tasks(tasks: list[TaskItem], depth: int = 0) -> None:
    for task in tasks:
        line = format_task_line(task, depth)
        if not task.completed and task.due_date and is_overdue(task.due_date):
            line += "  (逾期)"
        print(line)
        _print_tasks(task.subtasks, depth + 1)


def print_lists(controller: TodoListController) -> None:
    if not controller.lists:
        print(f"目录 {controller.todo_folder} 下没有任务列表")
        return
    for todo in controller.lists:
        marker = "*" if todo.file_path == controller.active_file_path else " "
        print(f"{marker} {todo.title}  ({todo.file_path})")
        _print_tasks(todo.tasks, depth=1)


async def show(config: ZenTodoConfig) -> None:
    store_group, controller = await _open(config)
    try:
        print_lists(controller)
    finally:
        controller.destroy()
        await store_group.close()


async def new_list(config: ZenTodoConfig, name: str) -> None:
    store_group, controller = await _open(config)
    try:
        file_path = await controller.create_list(name)
        if file_path is None:
            print("列表名称不能为空")
            sys.exit(1)
        print(f"已创建: {file_path}")
    finally:
        controller.destroy()
        await store_group.close()


async def add(
    config: ZenTodoConfig,
    title: str,
    text: str,
    due_date: str | None = None,
) -> None:
    store_group, controller = await _open(config)
    try:
        todo = _find_by_title(controller, title)
        if todo is None:
            print(f"找不到列表: {title}")
            sys.exit(1)
        try:
            task = await controller.add_task(text, due_date, file_path=todo.file_path)
        except ValueError as e:
            print(e)
            sys.exit(1)
        if task is None:
            print("任务内容不能为空")
            sys.exit(1)
        print(f"已添加到 {todo.title}: {task.text}")
    finally:
        controller.destroy()
        await store_group.close()


async def archive_completed(config: ZenTodoConfig, title: str) -> None:
    store_group, controller = await _open(config)
    try:
        todo = _find_by_title(controller, title)
        if todo is None:
            print(f"找不到列表: {title}")
            sys.exit(1)
        count = await controller.archive_completed(file_path=todo.file_path)
        print(f"已归档 {count} 个任务")
    finally:
        controller.destroy()
        await store_group.close()


async def watch(config: ZenTodoConfig) -> None:
    """监听目录直到 Ctrl-C"""
    # 每次（重新）加载后打印
    store_group, controller = await _open(config, on_render=print_lists)
    try:
        await controller.start_watching()
        print(f"正在监听 {controller.todo_folder} ...")
        await asyncio.Event().wait()
    finally:
        controller.destroy()
        await store_group.close()


if __name__ == "__main__":
    main()
