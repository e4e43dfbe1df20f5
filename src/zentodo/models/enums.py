"""枚举定义

ControllerState 为 controller 的三态；ChangeKind 为文档监听事件类型。
"""

from enum import StrEnum


class ControllerState(StrEnum):
    """List Controller 状态"""

    IDLE = "idle"
    # 自身写入进行中，忽略外部变更通知
    SAVING = "saving"
    # 拖拽排序进行中，忽略外部变更通知且推迟写入
    DRAGGING = "dragging"


class ChangeKind(StrEnum):
    """文档监听事件类型"""

    CREATE = "create"
    MODIFY = "modify"
    DELETE = "delete"
    RENAME = "rename"
