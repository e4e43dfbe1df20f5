"""ZenTodoConfig -- 运行配置加载

从环境变量加载 vault 目录、设置数据库路径、刷新防抖时长等。
用户偏好（列表顺序、自动完成父任务等）不在这里，见 models.settings。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()

# 外部变更后延迟重新加载的默认时长（毫秒）
DEFAULT_DEBOUNCE_MS: int = 300


class ZenTodoConfig(BaseModel):
    """运行配置 -- 从环境变量加载

    环境变量:
        ZENTODO_VAULT_DIR: 文档根目录（默认当前目录）
        ZENTODO_SETTINGS_DB: 设置数据库路径
        ZENTODO_DEBOUNCE_MS: 外部变更防抖时长（毫秒，默认 300）
        ZENTODO_LOG_FORMAT: 日志格式（dev/json）
    """

    vault_dir: str = Field(default=".", description="文档根目录")
    settings_db_path: str = Field(
        default="data/zentodo.db",
        description="SQLite 设置数据库路径",
    )
    debounce_ms: int = Field(
        default=DEFAULT_DEBOUNCE_MS,
        ge=0,
        description="外部变更防抖时长（毫秒）",
    )
    log_format: Literal["dev", "json"] = Field(default="dev", description="日志渲染模式")

    @property
    def debounce_s(self) -> float:
        return self.debounce_ms / 1000


def load_config() -> ZenTodoConfig:
    """从环境变量加载运行配置

    环境变量映射:
        ZENTODO_VAULT_DIR -> vault_dir (默认 ".")
        ZENTODO_SETTINGS_DB -> settings_db_path (默认 "data/zentodo.db")
        ZENTODO_DEBOUNCE_MS -> debounce_ms (默认 300)
        ZENTODO_LOG_FORMAT -> log_format (默认 "dev")

    Returns:
        ZenTodoConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("ZENTODO_VAULT_DIR"):
        kwargs["vault_dir"] = val

    if val := os.environ.get("ZENTODO_SETTINGS_DB"):
        kwargs["settings_db_path"] = val

    if val := os.environ.get("ZENTODO_DEBOUNCE_MS"):
        try:
            debounce_ms = int(val)
            if debounce_ms < 0:
                raise ValueError(val)
            kwargs["debounce_ms"] = debounce_ms
        except ValueError:
            log.warning(
                "invalid_debounce_config",
                env_var="ZENTODO_DEBOUNCE_MS",
                value=val,
                fallback=DEFAULT_DEBOUNCE_MS,
            )

    if val := os.environ.get("ZENTODO_LOG_FORMAT"):
        if val in ("dev", "json"):
            kwargs["log_format"] = val
        else:
            log.warning(
                "invalid_log_format_config",
                env_var="ZENTODO_LOG_FORMAT",
                value=val,
                fallback="dev",
            )

    return ZenTodoConfig(**kwargs)
