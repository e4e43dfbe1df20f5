"""Markdown 序列化器

把标题 + 任务森林（+ 归档区）还原为规范文本。
每一层兄弟任务都是未完成在前、已完成在后，两组内部保持存储顺序。
"""

from ..models.task import (
    CREATED_DATE_MARKER,
    DONE_DATE_MARKER,
    DUE_DATE_MARKER,
    TaskItem,
    split_by_completion,
)

INDENT_UNIT = "\t"


def serialize_markdown(
    title: str,
    tasks: list[TaskItem],
    archived_section: str | None = None,
) -> str:
    """序列化整份文档

    Args:
        title: 文档标题
        tasks: 根任务森林
        archived_section: 归档区原文（原样追加）

    Returns:
        文档全文，正文以换行结尾
    """
    lines = [f"# {title}", ""]
    _serialize_siblings(tasks, 0, lines)

    result = "\n".join(lines) + "\n"
    if archived_section:
        result += "\n" + archived_section
    return result


def serialize_task_lines(task: TaskItem) -> list[str]:
    """把单个任务（含子任务与备注）转为根层级的文本行，用于归档"""
    lines: list[str] = []
    _serialize_task(task, 0, lines)
    return lines


def format_task_line(task: TaskItem, depth: int = 0) -> str:
    """单行任务文本：缩进 + 复选框 + 文本 + 日期标注"""
    check_char = "x" if task.completed else " "
    text = task.text
    if task.created_date:
        text += f" {CREATED_DATE_MARKER} {task.created_date}"
    if task.due_date:
        text += f" {DUE_DATE_MARKER} {task.due_date}"
    if task.completed and task.done_date:
        text += f" {DONE_DATE_MARKER} {task.done_date}"
    return f"{INDENT_UNIT * depth}- [{check_char}] {text}"


def _serialize_siblings(tasks: list[TaskItem], depth: int, lines: list[str]) -> None:
    incomplete, complete = split_by_completion(tasks)
    for task in incomplete + complete:
        _serialize_task(task, depth, lines)


def _serialize_task(task: TaskItem, depth: int, lines: list[str]) -> None:
    lines.append(format_task_line(task, depth))

    if task.notes:
        note_indent = INDENT_UNIT * (depth + 1)
        for note_line in task.notes.split("\n"):
            lines.append(f"{note_indent}{note_line}")

    _serialize_siblings(task.subtasks, depth + 1, lines)
