"""ZenTodo Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .actions import (
    AddSubtaskAction,
    AddTaskAction,
    ArchiveAction,
    ArchiveCompletedAction,
    DeleteAction,
    EditAction,
    EditNotesAction,
    ReorderAction,
    SetDueAction,
    TaskAction,
    ToggleAction,
    parse_action,
)
from .enums import ChangeKind, ControllerState
from .settings import DEFAULT_TODO_FOLDER, ZenTodoSettings
from .task import (
    CREATED_DATE_MARKER,
    DONE_DATE_MARKER,
    DUE_DATE_MARKER,
    TaskItem,
    TaskLocation,
    TodoList,
    all_subtasks_completed,
    clean_task_text,
    complete_task,
    create_task,
    locate_task,
    new_task_id,
    normalize_notes,
    split_by_completion,
    uncomplete_task,
)

__all__ = [
    # 枚举
    "ControllerState",
    "ChangeKind",
    # Task
    "TaskItem",
    "TodoList",
    "TaskLocation",
    "DUE_DATE_MARKER",
    "DONE_DATE_MARKER",
    "CREATED_DATE_MARKER",
    "new_task_id",
    "create_task",
    "complete_task",
    "uncomplete_task",
    "clean_task_text",
    "normalize_notes",
    "all_subtasks_completed",
    "locate_task",
    "split_by_completion",
    # Settings
    "ZenTodoSettings",
    "DEFAULT_TODO_FOLDER",
    # Actions
    "TaskAction",
    "AddTaskAction",
    "AddSubtaskAction",
    "ToggleAction",
    "DeleteAction",
    "EditAction",
    "SetDueAction",
    "EditNotesAction",
    "ArchiveAction",
    "ArchiveCompletedAction",
    "ReorderAction",
    "parse_action",
]
