"""命令实体

可注册、可设置别名、可启用/禁用、可通过 hook 流水线执行并支持热重载的命令节点
"""

import weakref
from typing import Any, Callable, Dict, List, Optional

from hotcmd.core.command.models import (
    CommandHooks,
    FlagEntry,
    MetaNote,
    NormalizedMetadata,
)
from hotcmd.core.command.pipeline import ExecutionPipeline
from hotcmd.core.command.registry import SubcommandRegistry
from hotcmd.core.command.validator import (
    MetadataValidator,
    get_default_validator,
    read_definition,
)
from hotcmd.core.constants import DISABLE_TOGGLE_VALUES, ENABLE_TOGGLE_VALUES
from hotcmd.core.utils.aio import resolve
from hotcmd.core.utils.logger import logger

# serialize() 输出的字段白名单，顺序即输出顺序
SERIALIZED_FIELDS = (
    "name",
    "description",
    "full_description",
    "syntax",
    "aliases",
    "requirement",
    "dm_allowed",
    "cooldown_seconds",
    "permission_level",
    "permission_denied_message",
    "error_message",
    "disabled_message",
    "enabled",
    "flags",
    "group",
    "meta_notes",
    "examples",
    "subcommands",
    "subcommand_aliases",
    "help",
    "exec",
)


def callable_reference(func: Optional[Callable[..., Any]]) -> Optional[str]:
    """返回可调用对象的引用标识 module:qualname"""
    if func is None:
        return None
    module = getattr(func, "__module__", None) or type(func).__module__
    qualname = getattr(func, "__qualname__", None) or type(func).__qualname__
    return f"{module}:{qualname}"


class Command:
    """命令实体

    顶层命令由外部加载器根据定义创建，子命令由父命令的注册表创建。
    父命令通过注册表独占子命令，子命令只持有父命令的弱引用。
    """

    def __init__(
        self,
        name: str,
        meta: Optional[Dict[str, Any]] = None,
        exec_handler: Optional[Callable[..., Any]] = None,
        *,
        source_location: Optional[str] = None,
        parent: Optional["Command"] = None,
        validator: Optional[MetadataValidator] = None,
    ):
        """创建命令

        Args:
            name: 命令名，只能包含小写字母
            meta: 命令元数据
            exec_handler: 执行函数，签名为 (message, args)
            source_location: 定义的来源位置，顶层命令必需，用于重载
            parent: 父命令，仅由子命令注册表传入
            validator: 元数据校验器，None 时使用全局配置的默认校验器

        Raises:
            ValidationFailure: 定义不满足约束
        """
        self._validator = validator or get_default_validator()
        metadata = self._validator.validate(
            {
                "name": name,
                "meta": meta,
                "exec": exec_handler,
                "source_location": source_location,
            },
            require_source_location=parent is None,
        )

        self._parent_ref = weakref.ref(parent) if parent is not None else None
        self.source_location = metadata.source_location
        self.hooks = CommandHooks()
        self._task: Any = None
        self._enabled = metadata.enabled
        self._registry = SubcommandRegistry(self)

        self.replace_metadata(metadata)

    @classmethod
    def from_definition(
        cls,
        definition: Any,
        *,
        source_location: Optional[str] = None,
        validator: Optional[MetadataValidator] = None,
    ) -> "Command":
        """根据加载器给出的定义 {name, meta, exec} 创建顶层命令

        Args:
            definition: 字典或定义模块
            source_location: 来源位置，未传入时从定义中读取
            validator: 元数据校验器

        Returns:
            Command: 新建的命令
        """
        fields = read_definition(definition)
        return cls(
            fields["name"],
            fields["meta"],
            fields["exec"],
            source_location=source_location or fields["source_location"],
            validator=validator,
        )

    def replace_metadata(self, metadata: NormalizedMetadata) -> None:
        """一次性替换所有描述和策略字段

        子命令、别名映射、父命令、hook、任务和启用状态保持不变。
        构造时和重载时都会调用。
        """
        self._name: str = metadata.name
        self.aliases: List[str] = list(metadata.aliases)
        self.description: str = metadata.description
        self.full_description: str = metadata.full_description
        self.syntax: str = metadata.syntax
        self.dm_allowed: bool = metadata.dm_allowed
        self.flags: List[FlagEntry] = list(metadata.flags)
        self.cooldown_seconds: int = metadata.cooldown_seconds
        self.permission_level: int = metadata.permission_level
        self.permission_denied_message: Optional[str] = metadata.permission_denied_message
        self.error_message: str = metadata.error_message
        self.disabled_message: str = metadata.disabled_message
        self.group: int = metadata.group
        self.meta_notes: List[MetaNote] = list(metadata.meta_notes)
        self.examples: List[str] = list(metadata.examples)
        self.requirement: Optional[Callable[..., Any]] = metadata.requirement
        self.exec_handler: Callable[..., Any] = metadata.exec_handler
        self.help_handler: Callable[..., Any] = metadata.help_handler
        self.associated_resources: List[str] = list(metadata.associated_resources)
        self.default_subcommand_options: Dict[str, Any] = dict(
            metadata.default_subcommand_options
        )

    @property
    def name(self) -> str:
        return self._name

    @property
    def validator(self) -> MetadataValidator:
        return self._validator

    @property
    def parent(self) -> Optional["Command"]:
        """父命令，顶层命令或父命令已被回收时为 None"""
        if self._parent_ref is None:
            return None
        return self._parent_ref()

    @property
    def subcommands(self) -> Dict[str, "Command"]:
        return self._registry.subcommands

    @property
    def subcommand_aliases(self) -> Dict[str, str]:
        return self._registry.aliases

    def full_label(self) -> str:
        """从根命令到当前命令的名称链，以空格连接

        每次调用都沿父命令引用重新计算，不做缓存
        """
        labels = []
        node: Optional[Command] = self
        while node is not None:
            labels.append(node.name)
            node = node.parent
        return " ".join(reversed(labels))

    @property
    def full_name(self) -> str:
        return self.full_label()

    @property
    def enabled(self) -> bool:
        """命令是否启用"""
        return bool(self._enabled)

    @enabled.setter
    def enabled(self, toggle: Any) -> None:
        """运行时启用或禁用命令

        接受 True/False 以及字面字符串 "true"/"enable"、"false"/"disable"。
        字符串按原样比较，不做大小写或空白处理；其他输入会被忽略，保留原值并记录警告。
        """
        if isinstance(toggle, bool):
            self._enabled = toggle
            return
        if isinstance(toggle, str) and toggle in ENABLE_TOGGLE_VALUES:
            self._enabled = True
        elif isinstance(toggle, str) and toggle in DISABLE_TOGGLE_VALUES:
            self._enabled = False
        else:
            logger.warning(f"无法识别的启用开关值，已忽略: {self.name} <- {toggle!r}")

    @property
    def task(self) -> Any:
        """当前执行绑定的任务会话"""
        return self._task

    @task.setter
    def task(self, task: Any) -> None:
        self._task = task

    # ------------------------------------------------------------------
    # 子命令
    # ------------------------------------------------------------------

    def register_subcommand(
        self,
        name: str,
        meta: Optional[Dict[str, Any]] = None,
        exec_handler: Optional[Callable[..., Any]] = None,
    ) -> "Command":
        """注册子命令，参见 SubcommandRegistry.register_subcommand"""
        return self._registry.register_subcommand(name, meta, exec_handler)

    def register_subcommand_alias(self, alias: str, name: str) -> None:
        """为子命令注册别名，参见 SubcommandRegistry.register_subcommand_alias"""
        self._registry.register_subcommand_alias(alias, name)

    def unregister_subcommand(self, name: str) -> bool:
        """注销子命令或别名，参见 SubcommandRegistry.unregister_subcommand"""
        return self._registry.unregister_subcommand(name)

    def resolve_subcommand(self, name: str) -> Optional["Command"]:
        """按名称或别名查找直接子命令"""
        return self._registry.resolve(name)

    # ------------------------------------------------------------------
    # 执行
    # ------------------------------------------------------------------

    def set_hooks(
        self,
        pre_check: Optional[Callable[..., Any]] = None,
        post_check: Optional[Callable[..., Any]] = None,
    ) -> None:
        """设置执行前后的 hook"""
        self.hooks = CommandHooks(pre_check=pre_check, post_check=post_check)

    async def run(self, context: Any) -> Any:
        """执行命令：前置检查 -> 执行 -> 后置检查

        Args:
            context: InvocationContext 或包含 message/args 的字典

        Returns:
            执行函数的返回值
        """
        return await ExecutionPipeline(self).run(context)

    async def meets_requirement(self, context: Any) -> bool:
        """调用 requirement 判断是否满足执行条件，未声明时视为满足"""
        if self.requirement is None:
            return True
        return bool(await resolve(self.requirement(context)))

    async def get_help(self, *args: Any, **kwargs: Any) -> Any:
        """调用 help 函数获取帮助内容"""
        return await resolve(self.help_handler(*args, **kwargs))

    # ------------------------------------------------------------------
    # 展示与序列化
    # ------------------------------------------------------------------

    def to_display_string(self) -> str:
        return f"{self.name} — {self.description}"

    def __str__(self) -> str:
        return self.to_display_string()

    def __repr__(self) -> str:
        return f"Command(name={self.full_label()!r}, subcommands={list(self.subcommands)!r})"

    def serialize(self) -> Dict[str, Any]:
        """序列化为普通字典

        只输出 SERIALIZED_FIELDS 中的字段，可调用对象以引用标识表示，
        父命令、校验器、任务等内部状态不会输出
        """
        data = {
            "name": self.name,
            "description": self.description,
            "full_description": self.full_description,
            "syntax": self.syntax,
            "aliases": list(self.aliases),
            "requirement": callable_reference(self.requirement),
            "dm_allowed": self.dm_allowed,
            "cooldown_seconds": self.cooldown_seconds,
            "permission_level": self.permission_level,
            "permission_denied_message": self.permission_denied_message,
            "error_message": self.error_message,
            "disabled_message": self.disabled_message,
            "enabled": self.enabled,
            "flags": [flag.model_dump() for flag in self.flags],
            "group": self.group,
            "meta_notes": [note.model_dump() for note in self.meta_notes],
            "examples": list(self.examples),
            "subcommands": {
                name: subcommand.serialize() for name, subcommand in self.subcommands.items()
            },
            "subcommand_aliases": dict(self.subcommand_aliases),
            "help": callable_reference(self.help_handler),
            "exec": callable_reference(self.exec_handler),
        }
        return {key: data[key] for key in SERIALIZED_FIELDS}
