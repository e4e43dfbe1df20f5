"""Task Domain Model

TaskItem 是任务森林中的一个节点；TodoList 是一份解析后的文档。
id 在创建时以 ULID 生成，与内容无关，编辑不会改变身份。
完成/取消完成通过纯函数返回新副本，由 controller 统一替换回树中。
"""

import re
from dataclasses import dataclass

from pydantic import BaseModel, Field
from ulid import ULID

from ..dates import DATE_PATTERN, today

DUE_DATE_MARKER = "📅"
DONE_DATE_MARKER = "✅"
CREATED_DATE_MARKER = "➕"

_CLEANUP_PATTERNS = [
    re.compile(rf"{marker}\s+{DATE_PATTERN}")
    for marker in (DUE_DATE_MARKER, DONE_DATE_MARKER, CREATED_DATE_MARKER)
]

_DATE_FIELD_PATTERN = rf"^{DATE_PATTERN}$"
_LINE_BREAK_RE = re.compile(r"[\r\n]+")


def new_task_id() -> str:
    """生成任务 ID（ULID 格式，不复用）"""
    return str(ULID())


class TaskItem(BaseModel):
    """任务节点

    subtasks 的顺序即持久化的显示顺序；indent_level 等于节点在森林中的深度。
    done_date 当且仅当 completed 为 True 时存在。
    """

    id: str = Field(default_factory=new_task_id, description="唯一标识，ULID 格式")
    text: str = Field(default="", description="去除日期标注后的显示文本")
    completed: bool = Field(default=False, description="是否已完成")
    created_date: str | None = Field(
        default=None, pattern=_DATE_FIELD_PATTERN, description="创建日期"
    )
    due_date: str | None = Field(default=None, pattern=_DATE_FIELD_PATTERN, description="截止日期")
    done_date: str | None = Field(default=None, pattern=_DATE_FIELD_PATTERN, description="完成日期")
    notes: str | None = Field(default=None, description="备注，可包含换行")
    subtasks: list["TaskItem"] = Field(default_factory=list, description="子任务")
    indent_level: int = Field(default=0, ge=0, description="嵌套深度，根为 0")


class TodoList(BaseModel):
    """一份任务文档

    每次重新加载时整体替换，不做增量修补。
    archived_section 从 "## Archived" 标题开始原样保存，从不解析为任务。
    """

    file_path: str = Field(description="文档路径（唯一键）")
    title: str = Field(default="Untitled", description="一级标题")
    tasks: list[TaskItem] = Field(default_factory=list, description="根任务森林")
    archived_section: str | None = Field(default=None, description="归档区原文")


@dataclass(slots=True)
class TaskLocation:
    """任务在树中的位置"""

    task: TaskItem
    parent: TaskItem | None
    siblings: list[TaskItem]
    index: int


def clean_task_text(text: str) -> str:
    """去除文本中的全部日期标注，换行折叠为空格（任务文本只占一行）"""
    text = _LINE_BREAK_RE.sub(" ", text)
    for pattern in _CLEANUP_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def create_task(text: str, due_date: str | None = None) -> TaskItem:
    """创建新任务（未完成、无子任务、根层级）"""
    return TaskItem(
        text=clean_task_text(text),
        due_date=due_date,
    )


def complete_task(task: TaskItem) -> TaskItem:
    """返回已完成副本，done_date 总是重新记为今天"""
    return task.model_copy(update={"completed": True, "done_date": today()})


def uncomplete_task(task: TaskItem) -> TaskItem:
    """返回未完成副本，清除 done_date"""
    return task.model_copy(update={"completed": False, "done_date": None})


def normalize_notes(notes: str | None) -> str | None:
    """备注规范化：逐行去除首尾空白并丢弃空行，全部为空时返回 None

    与解析器读回的形式一致；以复选框开头的行读回时会成为子任务。
    """
    if not notes:
        return None
    lines = [line.strip() for line in notes.splitlines()]
    return "\n".join(line for line in lines if line) or None


def all_subtasks_completed(task: TaskItem) -> bool:
    """所有直接子任务均已完成；没有子任务时为 False"""
    if not task.subtasks:
        return False
    return all(sub.completed for sub in task.subtasks)


def locate_task(
    tasks: list[TaskItem],
    task_id: str,
    parent: TaskItem | None = None,
) -> TaskLocation | None:
    """深度优先查找任务，返回节点、父节点与所在的兄弟列表"""
    for index, task in enumerate(tasks):
        if task.id == task_id:
            return TaskLocation(task=task, parent=parent, siblings=tasks, index=index)
        found = locate_task(task.subtasks, task_id, parent=task)
        if found is not None:
            return found
    return None


def split_by_completion(tasks: list[TaskItem]) -> tuple[list[TaskItem], list[TaskItem]]:
    """按完成状态拆分兄弟任务，两组内部保持原有顺序"""
    incomplete = [t for t in tasks if not t.completed]
    complete = [t for t in tasks if t.completed]
    return incomplete, complete
