"""Store Protocol 接口定义

定义 DocumentStore、SettingsStore 的抽象接口，
使用 Python Protocol 实现结构化子类型（duck typing）。
路径统一为相对 vault 根目录的 POSIX 字符串，例如 "30_ToDos/Work.md"。
"""

from collections.abc import Callable
from dataclasses import dataclass
from typing import Protocol

from ..models.enums import ChangeKind
from ..models.settings import ZenTodoSettings


@dataclass(frozen=True, slots=True)
class DocumentChange:
    """文档变更通知"""

    kind: ChangeKind
    path: str
    # 仅 rename 事件携带原路径
    old_path: str | None = None


ChangeCallback = Callable[[DocumentChange], None]


class DocumentWatch(Protocol):
    """监听句柄"""

    def stop(self) -> None:
        """停止监听（可重复调用）"""
        ...


class DocumentStore(Protocol):
    """文档存储接口

    读写失败统一抛出 StorageError。
    """

    async def list_files(self, folder: str) -> list[str]:
        """列出目录（含子目录）下的全部 .md 文档路径，按路径排序"""
        ...

    async def read_file(self, path: str) -> str:
        """读取文档全文"""
        ...

    async def create_file(self, path: str, text: str) -> None:
        """创建新文档，已存在时失败"""
        ...

    async def write_file(self, path: str, text: str) -> None:
        """整体原子替换文档内容（非追加）"""
        ...

    async def exists(self, path: str) -> bool:
        """文档是否存在"""
        ...

    async def watch(self, folder: str, callback: ChangeCallback) -> DocumentWatch:
        """监听目录下的 create/modify/delete/rename 事件

        callback 总是在调用 watch 时所在的事件循环线程中执行。
        """
        ...


class SettingsStore(Protocol):
    """设置存储接口"""

    async def load_settings(self) -> ZenTodoSettings:
        """读取设置，缺失字段使用默认值"""
        ...

    async def save_settings(self, settings: ZenTodoSettings) -> None:
        """持久化设置"""
        ...
