"""DocumentStore 文件系统实现

所有路径相对 vault 根目录；阻塞 I/O 通过 asyncio.to_thread 执行。
写入先落临时文件再 os.replace，保证整文件原子替换。
监听基于 watchdog，观察者线程通过 call_soon_threadsafe 把事件交回事件循环。
"""

import asyncio
import contextlib
import os
import tempfile
from pathlib import Path, PurePosixPath

import structlog
from watchdog.events import FileSystemEvent, FileSystemEventHandler
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from ..exceptions import StorageError
from ..models.enums import ChangeKind
from .protocols import ChangeCallback, DocumentChange

log = structlog.get_logger()

DOCUMENT_SUFFIX = ".md"


class FileDocumentStore:
    """DocumentStore 的文件系统实现"""

    def __init__(self, root: str | Path) -> None:
        self._root = Path(root).resolve()

    @property
    def root(self) -> Path:
        return self._root

    def _abs(self, path: str) -> Path:
        return self._root / PurePosixPath(path)

    def to_relative(self, abs_path: str | Path) -> str | None:
        """绝对路径 -> vault 相对 POSIX 路径；不在 vault 内时返回 None"""
        try:
            rel = Path(abs_path).resolve().relative_to(self._root)
        except ValueError:
            return None
        return rel.as_posix()

    async def list_files(self, folder: str) -> list[str]:
        """列出目录（含子目录）下的全部 .md 文档"""
        base = self._abs(folder)

        def _scan() -> list[str]:
            if not base.is_dir():
                return []
            return sorted(
                p.relative_to(self._root).as_posix()
                for p in base.rglob(f"*{DOCUMENT_SUFFIX}")
                if p.is_file()
            )

        try:
            return await asyncio.to_thread(_scan)
        except OSError as e:
            raise StorageError("列出文档失败", path=folder, original_error=e) from e

    async def read_file(self, path: str) -> str:
        target = self._abs(path)
        try:
            return await asyncio.to_thread(target.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise StorageError("读取文档失败", path=path, original_error=e) from e

    async def create_file(self, path: str, text: str) -> None:
        """创建新文档（父目录不存在时自动创建）"""
        target = self._abs(path)

        def _create() -> None:
            target.parent.mkdir(parents=True, exist_ok=True)
            # "x" 模式：已存在时抛出 FileExistsError
            with open(target, "x", encoding="utf-8", newline="") as f:
                f.write(text)

        try:
            await asyncio.to_thread(_create)
        except OSError as e:
            raise StorageError("创建文档失败", path=path, original_error=e) from e
        log.info("document_created", path=path)

    async def write_file(self, path: str, text: str) -> None:
        """原子替换文档内容"""
        target = self._abs(path)
        try:
            await asyncio.to_thread(_atomic_write, target, text)
        except OSError as e:
            raise StorageError("写入文档失败", path=path, original_error=e) from e

    async def exists(self, path: str) -> bool:
        return await asyncio.to_thread(self._abs(path).is_file)

    async def watch(self, folder: str, callback: ChangeCallback) -> "FileWatch":
        """启动 watchdog 观察者监听目录"""
        loop = asyncio.get_running_loop()
        base = self._abs(folder)
        base.mkdir(parents=True, exist_ok=True)

        handler = _ChangeHandler(self, loop, callback)
        observer = Observer()
        observer.schedule(handler, str(base), recursive=True)
        observer.start()
        log.info("document_watch_started", folder=folder)
        return FileWatch(observer, folder)


def _atomic_write(target: Path, text: str) -> None:
    target.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(
        prefix=f".{target.name}.",
        suffix=".tmp",
        dir=str(target.parent),
    )
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
            f.write(text)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_path, target)
    except BaseException:
        # 替换失败时清理临时文件，原文件保持不变
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise


class FileWatch:
    """watchdog 观察者句柄"""

    def __init__(self, observer: BaseObserver, folder: str) -> None:
        self._observer = observer
        self._folder = folder

    def stop(self) -> None:
        if not self._observer.is_alive():
            return
        self._observer.stop()
        self._observer.join(timeout=2.0)
        log.info("document_watch_stopped", folder=self._folder)


class _ChangeHandler(FileSystemEventHandler):
    """把 watchdog 事件翻译为 DocumentChange 并交回事件循环"""

    def __init__(
        self,
        store: FileDocumentStore,
        loop: asyncio.AbstractEventLoop,
        callback: ChangeCallback,
    ) -> None:
        self._store = store
        self._loop = loop
        self._callback = callback

    def _emit(self, kind: ChangeKind, src: str, dest: str | None = None) -> None:
        path = self._store.to_relative(dest or src)
        if path is None:
            return
        old_path = self._store.to_relative(src) if dest else None
        change = DocumentChange(kind=kind, path=path, old_path=old_path)
        if self._loop.is_closed():
            return
        self._loop.call_soon_threadsafe(self._callback, change)

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.CREATE, event.src_path)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.MODIFY, event.src_path)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.DELETE, event.src_path)

    def on_moved(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._emit(ChangeKind.RENAME, event.src_path, event.dest_path)
