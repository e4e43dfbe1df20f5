"""Markdown 任务树解析器

把文档文本解析为标题、任务森林与不透明的归档区。解析从不抛出异常：
无法识别的行要么作为备注挂到最近的任务上，要么直接忽略。

缩进只按前导空白的字符数比较（tab 与空格各计 1），
序列化端固定每层写一个 tab，两端保持一致。
"""

import re

from pydantic import BaseModel, Field

from ..dates import DATE_PATTERN
from ..models.task import (
    CREATED_DATE_MARKER,
    DONE_DATE_MARKER,
    DUE_DATE_MARKER,
    TaskItem,
    clean_task_text,
)

ARCHIVED_HEADING = "## Archived"
UNTITLED = "Untitled"

_ARCHIVED_BOUNDARY = "\n" + ARCHIVED_HEADING
_CHECKBOX_RE = re.compile(r"^([ \t]*)- \[([ xX])\]\s+(.*)$")
_LEADING_WS_RE = re.compile(r"^[ \t]*")
_DUE_RE = re.compile(rf"{DUE_DATE_MARKER}\s+({DATE_PATTERN})")
_DONE_RE = re.compile(rf"{DONE_DATE_MARKER}\s+({DATE_PATTERN})")
_CREATED_RE = re.compile(rf"{CREATED_DATE_MARKER}\s+({DATE_PATTERN})")


class ParsedDocument(BaseModel):
    """解析结果"""

    title: str = Field(default=UNTITLED)
    tasks: list[TaskItem] = Field(default_factory=list)
    archived_section: str | None = Field(default=None)


def split_archived(content: str) -> tuple[str, str | None]:
    """拆出归档区

    Returns:
        (正文, 归档区)；归档区从 "## Archived" 开始，不含其前面的换行
    """
    idx = content.find(_ARCHIVED_BOUNDARY)
    if idx == -1:
        return content, None
    return content[:idx], content[idx + 1 :]


def _first_date(pattern: re.Pattern[str], text: str) -> str | None:
    match = pattern.search(text)
    return match.group(1) if match else None


def parse_markdown(content: str) -> ParsedDocument:
    """解析文档文本

    Args:
        content: 文档全文

    Returns:
        ParsedDocument(title, tasks, archived_section)
    """
    body, archived_section = split_archived(content)

    title: str | None = None
    seen_checkbox = False
    roots: list[TaskItem] = []
    # 当前打开的祖先链：(任务, 前导空白宽度)
    stack: list[tuple[TaskItem, int]] = []

    for line in body.split("\n"):
        if title is None and not seen_checkbox and line.startswith("# "):
            title = line[2:].strip()
            continue

        match = _CHECKBOX_RE.match(line)
        if match is None:
            _attach_note(stack, line)
            continue

        seen_checkbox = True
        indent, check_char, rest = match.groups()
        width = len(indent)

        while stack and stack[-1][1] >= width:
            stack.pop()

        task = TaskItem(
            text=clean_task_text(rest),
            completed=check_char.lower() == "x",
            created_date=_first_date(_CREATED_RE, rest),
            due_date=_first_date(_DUE_RE, rest),
            done_date=_first_date(_DONE_RE, rest),
            indent_level=len(stack),
        )

        if stack:
            stack[-1][0].subtasks.append(task)
        else:
            roots.append(task)
        stack.append((task, width))

    return ParsedDocument(
        title=title or UNTITLED,
        tasks=roots,
        archived_section=archived_section,
    )


def _attach_note(stack: list[tuple[TaskItem, int]], line: str) -> None:
    """非复选框行：挂到前导空白比它浅的最近任务上"""
    note = line.strip()
    if not note:
        return
    width = len(_LEADING_WS_RE.match(line).group(0))
    for task, task_width in reversed(stack):
        if task_width < width:
            task.notes = f"{task.notes}\n{note}" if task.notes else note
            return
