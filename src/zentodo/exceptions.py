"""ZenTodo 异常体系

存储失败（Document Store / Settings Store 读写被拒绝）统一包装为 StorageError，
由 controller 原样向调用方传播，不做自动重试。
"""


class ZenTodoError(Exception):
    """ZenTodo 基础异常"""

    def __init__(self, message: str, recoverable: bool = True) -> None:
        """
        Args:
            message: 错误描述
            recoverable: 是否可通过手动重试恢复
        """
        super().__init__(message)
        self.recoverable = recoverable


class StorageError(ZenTodoError):
    """文档或设置读写失败

    失败的写入不会改动磁盘上的原文，内存中的任务树保留为尝试写入的状态，
    下一次成功保存即可重新对齐。
    """

    def __init__(
        self,
        message: str,
        path: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        """
        Args:
            message: 错误描述
            path: 相关文档路径（设置存储时为 None）
            original_error: 底层异常
        """
        detail = f"{message}: {path}" if path else message
        if original_error is not None:
            detail = f"{detail} -- {original_error}"
        super().__init__(detail, recoverable=True)
        self.path = path
        self.original_error = original_error
