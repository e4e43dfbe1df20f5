"""用户偏好设置

由 Settings Store 持久化：列表顺序记录 + 简单偏好开关。
"""

from pydantic import BaseModel, Field

DEFAULT_TODO_FOLDER = "30_ToDos"


class ZenTodoSettings(BaseModel):
    """持久化的用户设置"""

    todo_folder: str = Field(default=DEFAULT_TODO_FOLDER, description="任务文档所在目录")
    show_completed_by_default: bool = Field(
        default=False,
        description="是否默认展开已完成任务",
    )
    auto_complete_parent: bool = Field(
        default=True,
        description="子任务全部完成时是否自动完成父任务",
    )
    list_order: list[str] = Field(
        default_factory=list,
        description="用户偏好的列表顺序（文档路径）",
    )
