"""命令数据模型

定义命令元数据、调用上下文及 hook 相关的数据结构
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, FrozenSet, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from hotcmd.core.constants import (
    DEFAULT_COOLDOWN,
    DEFAULT_DISABLED_MESSAGE,
    DEFAULT_ERROR_MESSAGE,
    DEFAULT_GROUP,
)


class FlagEntry(BaseModel):
    """命令标志项

    严格模式：字段类型不符时不做任何转换
    """

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    text: str
    value: str
    default: bool


class MetaNote(BaseModel):
    """命令附加说明项"""

    model_config = ConfigDict(strict=True, extra="ignore", frozen=True)

    text: str
    value: str


class ValidationSettings(BaseModel):
    """校验器的注入配置

    权限等级及部分默认值由宿主配置提供，而不是模块内的隐式常量
    """

    model_config = ConfigDict(frozen=True)

    default_permission_level: Optional[int] = Field(
        default=None, description="元数据未声明权限时使用的等级"
    )
    permission_levels: Optional[FrozenSet[int]] = Field(
        default=None, description="允许的权限等级，None 表示不限制"
    )
    default_cooldown: int = DEFAULT_COOLDOWN
    default_group: int = DEFAULT_GROUP
    error_message: str = DEFAULT_ERROR_MESSAGE
    disabled_message: str = DEFAULT_DISABLED_MESSAGE


class NormalizedMetadata(BaseModel):
    """校验通过并补全默认值后的命令元数据"""

    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    aliases: List[str]
    description: str
    full_description: str
    syntax: str
    dm_allowed: bool = True
    flags: List[FlagEntry] = Field(default_factory=list)
    cooldown_seconds: int = DEFAULT_COOLDOWN
    permission_level: int
    permission_denied_message: Optional[str] = None
    error_message: str = DEFAULT_ERROR_MESSAGE
    disabled_message: str = DEFAULT_DISABLED_MESSAGE
    group: int = DEFAULT_GROUP
    meta_notes: List[MetaNote] = Field(default_factory=list)
    examples: List[str]
    requirement: Optional[Callable[..., Any]] = None
    exec_handler: Callable[..., Any]
    help_handler: Callable[..., Any]
    associated_resources: List[str] = Field(default_factory=list)
    enabled: bool = True
    default_subcommand_options: Dict[str, Any] = Field(default_factory=dict)
    source_location: Optional[str] = None


class InvocationContext(BaseModel):
    """命令调用上下文

    由外部分发层构造，message 为必需字段
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: Any = None
    args: List[Any] = Field(default_factory=list)
    settings: Any = Field(default=None, description="调用方的设置/文档对象，原样透传")


class HookResponse(BaseModel):
    """前置检查 hook 的返回值

    只有非 None 的字段会替换原有的 message/args
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    message: Any = None
    args: Optional[List[Any]] = None


@dataclass
class CommandHooks:
    """命令运行时 hook

    Attributes:
        pre_check: 执行前调用，签名 (message, args, is_main_invocation)，
            可返回 HookResponse 或包含 message/args 的字典
        post_check: 执行后调用，签名同上，返回值被忽略
    """

    pre_check: Optional[Callable[..., Any]] = None
    post_check: Optional[Callable[..., Any]] = None
