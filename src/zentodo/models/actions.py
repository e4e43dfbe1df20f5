"""用户操作 -- 以 kind 为判别字段的封闭联合类型

宿主 UI 把每次交互描述为一个 TaskAction，交给
TodoListController.handle_action 统一分派。
"""

from typing import Annotated, Literal

from pydantic import BaseModel, Field, TypeAdapter


class AddTaskAction(BaseModel):
    """在根层级追加任务"""

    kind: Literal["add_task"] = "add_task"
    text: str
    due_date: str | None = None


class AddSubtaskAction(BaseModel):
    """在指定任务下追加子任务"""

    kind: Literal["add_subtask"] = "add_subtask"
    parent_id: str
    text: str


class ToggleAction(BaseModel):
    """切换完成状态"""

    kind: Literal["toggle"] = "toggle"
    task_id: str


class DeleteAction(BaseModel):
    kind: Literal["delete"] = "delete"
    task_id: str


class EditAction(BaseModel):
    kind: Literal["edit"] = "edit"
    task_id: str
    text: str


class SetDueAction(BaseModel):
    """设置截止日期，due_date 为 None 表示清除"""

    kind: Literal["set_due"] = "set_due"
    task_id: str
    due_date: str | None = None


class EditNotesAction(BaseModel):
    kind: Literal["edit_notes"] = "edit_notes"
    task_id: str
    notes: str


class ArchiveAction(BaseModel):
    kind: Literal["archive"] = "archive"
    task_id: str


class ArchiveCompletedAction(BaseModel):
    kind: Literal["archive_completed"] = "archive_completed"


class ReorderAction(BaseModel):
    """拖拽结果：同一父节点下某一完成分组的新顺序"""

    kind: Literal["reorder"] = "reorder"
    ordered_ids: list[str]
    parent_id: str | None = None


TaskAction = Annotated[
    AddTaskAction
    | AddSubtaskAction
    | ToggleAction
    | DeleteAction
    | EditAction
    | SetDueAction
    | EditNotesAction
    | ArchiveAction
    | ArchiveCompletedAction
    | ReorderAction,
    Field(discriminator="kind"),
]

task_action_adapter: TypeAdapter[TaskAction] = TypeAdapter(TaskAction)


def parse_action(data: dict) -> TaskAction:
    """从宿主传来的字典构造 TaskAction（kind 未知时抛出 ValidationError）"""
    return task_action_adapter.validate_python(data)
