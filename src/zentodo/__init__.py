"""ZenTodo -- 以 Markdown 复选框文档为存储的任务列表引擎"""

from .controller import ListView, TodoListController
from .exceptions import StorageError, ZenTodoError
from .markdown import parse_markdown, serialize_markdown

__version__ = "0.1.0"

__all__ = [
    "TodoListController",
    "ListView",
    "ZenTodoError",
    "StorageError",
    "parse_markdown",
    "serialize_markdown",
    "__version__",
]
