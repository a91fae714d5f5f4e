"""命令模块

提供命令实体的元数据校验、子命令注册、执行流水线和热重载
"""

from hotcmd.core.command.entity import SERIALIZED_FIELDS, Command, callable_reference
from hotcmd.core.command.models import (
    CommandHooks,
    FlagEntry,
    HookResponse,
    InvocationContext,
    MetaNote,
    NormalizedMetadata,
    ValidationSettings,
)
from hotcmd.core.command.pipeline import ExecutionPipeline, PipelineStage
from hotcmd.core.command.registry import SubcommandRegistry
from hotcmd.core.command.reload import (
    ReloadManager,
    ReloadReport,
    is_marked_for_deletion,
    load_command,
)
from hotcmd.core.command.sources import (
    DefinitionSource,
    DirectoryResourceLister,
    InMemoryDefinitionSource,
    ModuleDefinitionSource,
    ResourceLister,
)
from hotcmd.core.command.validator import MetadataValidator, get_default_validator

__all__ = [
    # 实体
    "Command",
    "SERIALIZED_FIELDS",
    "callable_reference",
    # 模型
    "CommandHooks",
    "FlagEntry",
    "HookResponse",
    "InvocationContext",
    "MetaNote",
    "NormalizedMetadata",
    "ValidationSettings",
    # 校验
    "MetadataValidator",
    "get_default_validator",
    # 注册表与执行
    "SubcommandRegistry",
    "ExecutionPipeline",
    "PipelineStage",
    # 热重载
    "ReloadManager",
    "ReloadReport",
    "is_marked_for_deletion",
    "load_command",
    "DefinitionSource",
    "ResourceLister",
    "ModuleDefinitionSource",
    "InMemoryDefinitionSource",
    "DirectoryResourceLister",
]
