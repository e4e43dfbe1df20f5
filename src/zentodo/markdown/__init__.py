"""Markdown 任务文档的解析与序列化"""

from .parser import ARCHIVED_HEADING, UNTITLED, ParsedDocument, parse_markdown, split_archived
from .serializer import INDENT_UNIT, format_task_line, serialize_markdown, serialize_task_lines

__all__ = [
    "ARCHIVED_HEADING",
    "UNTITLED",
    "INDENT_UNIT",
    "ParsedDocument",
    "parse_markdown",
    "split_archived",
    "serialize_markdown",
    "serialize_task_lines",
    "format_task_line",
]
