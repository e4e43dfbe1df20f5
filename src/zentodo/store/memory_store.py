"""内存实现 -- DocumentStore / SettingsStore

用于嵌入式宿主与测试。写入后同步回调所有监听者，模拟外部监听器看到的回声。
"""

from ..exceptions import StorageError
from ..models.enums import ChangeKind
from ..models.settings import ZenTodoSettings
from .protocols import ChangeCallback, DocumentChange


class MemoryWatch:
    def __init__(self, store: "MemoryDocumentStore", callback: ChangeCallback) -> None:
        self._store = store
        self._callback = callback

    def stop(self) -> None:
        self._store._watchers.discard(self)

    def notify(self, change: DocumentChange) -> None:
        self._callback(change)


class MemoryDocumentStore:
    """DocumentStore 的内存实现"""

    def __init__(self, files: dict[str, str] | None = None) -> None:
        self.files: dict[str, str] = dict(files or {})
        self.write_count = 0
        self._watchers: set[MemoryWatch] = set()

    async def list_files(self, folder: str) -> list[str]:
        prefix = folder.rstrip("/") + "/"
        return sorted(p for p in self.files if p.startswith(prefix) and p.endswith(".md"))

    async def read_file(self, path: str) -> str:
        if path not in self.files:
            raise StorageError("读取文档失败", path=path)
        return self.files[path]

    async def create_file(self, path: str, text: str) -> None:
        if path in self.files:
            raise StorageError("文档已存在", path=path)
        self.files[path] = text
        self._emit(DocumentChange(kind=ChangeKind.CREATE, path=path))

    async def write_file(self, path: str, text: str) -> None:
        self.files[path] = text
        self.write_count += 1
        self._emit(DocumentChange(kind=ChangeKind.MODIFY, path=path))

    async def exists(self, path: str) -> bool:
        return path in self.files

    async def watch(self, folder: str, callback: ChangeCallback) -> MemoryWatch:
        watch = MemoryWatch(self, callback)
        self._watchers.add(watch)
        return watch

    def _emit(self, change: DocumentChange) -> None:
        for watch in list(self._watchers):
            watch.notify(change)


class MemorySettingsStore:
    """SettingsStore 的内存实现"""

    def __init__(self, settings: ZenTodoSettings | None = None) -> None:
        self.settings = settings or ZenTodoSettings()
        self.save_count = 0

    async def load_settings(self) -> ZenTodoSettings:
        return self.settings.model_copy(deep=True)

    async def save_settings(self, settings: ZenTodoSettings) -> None:
        self.settings = settings.model_copy(deep=True)
        self.save_count += 1
