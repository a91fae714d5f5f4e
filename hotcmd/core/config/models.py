"""配置模型（Pydantic）"""

from __future__ import annotations

from pathlib import Path
from typing import Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, model_validator

from hotcmd.core.command.models import ValidationSettings
from hotcmd.core.constants import (
    DEFAULT_COOLDOWN,
    DEFAULT_DISABLED_MESSAGE,
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_GROUP,
    DEFAULT_SYSTEM_VERSION,
    MAX_COOLDOWN,
    MIN_COOLDOWN,
    RESOURCE_SUFFIX,
)


class PermissionSection(BaseModel):
    """权限等级配置

    levels 为等级名到数值的映射，default 可以是等级名或数值
    """

    levels: Dict[str, int] = Field(default_factory=dict)
    default: Optional[Union[int, str]] = None

    @model_validator(mode="after")
    def _check_default(self) -> "PermissionSection":
        if isinstance(self.default, str) and self.default not in self.levels:
            raise ValueError(f"默认权限等级 {self.default} 不在 levels 中")
        return self

    @property
    def default_level(self) -> Optional[int]:
        if self.default is None:
            return None
        if isinstance(self.default, str):
            return self.levels[self.default]
        return self.default


class CommandSection(BaseModel):
    error_message: str = DEFAULT_ERROR_MESSAGE
    disabled_message: str = DEFAULT_DISABLED_MESSAGE
    default_cooldown: int = Field(default=DEFAULT_COOLDOWN, ge=MIN_COOLDOWN, le=MAX_COOLDOWN)
    default_group: int = DEFAULT_GROUP


class ReloadSection(BaseModel):
    resource_root: Optional[str] = None
    resource_suffix: str = RESOURCE_SUFFIX


class ConfigMeta(BaseModel):
    workspace_dir: Path
    config_file_path: Optional[Path] = None
    source: Literal["user", "project", "default"] = "default"
    system_version: str = DEFAULT_SYSTEM_VERSION


class Config(BaseModel):
    model_config = ConfigDict(extra="allow", arbitrary_types_allowed=True)

    permissions: PermissionSection = Field(default_factory=PermissionSection)
    commands: CommandSection = Field(default_factory=CommandSection)
    reload: ReloadSection = Field(default_factory=ReloadSection)
    meta: ConfigMeta

    @property
    def validation_settings(self) -> ValidationSettings:
        levels = self.permissions.levels
        return ValidationSettings(
            default_permission_level=self.permissions.default_level,
            permission_levels=frozenset(levels.values()) if levels else None,
            default_cooldown=self.commands.default_cooldown,
            default_group=self.commands.default_group,
            error_message=self.commands.error_message,
            disabled_message=self.commands.disabled_message,
        )

    @property
    def resource_root(self) -> Optional[Path]:
        """结构化资源根目录，相对路径基于工作区目录"""
        if not self.reload.resource_root:
            return None
        root = Path(self.reload.resource_root).expanduser()
        if not root.is_absolute():
            root = self.workspace_dir / root
        return root

    @property
    def workspace_dir(self) -> Path:
        return self.meta.workspace_dir

    @property
    def config_file_path(self) -> Optional[Path]:
        return self.meta.config_file_path

    @property
    def source(self) -> str:
        return self.meta.source
