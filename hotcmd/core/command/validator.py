"""命令元数据校验器

把加载器给出的原始定义校验并规范化为 NormalizedMetadata
"""

import re
from collections.abc import Mapping
from typing import Any, Dict, List, Optional, Type, Union

from pydantic import BaseModel, ValidationError

from hotcmd.core.command.models import (
    FlagEntry,
    MetaNote,
    NormalizedMetadata,
    ValidationSettings,
)
from hotcmd.core.constants import (
    COMMAND_NAME_PATTERN,
    MAX_COOLDOWN,
    MAX_DESCRIPTION_LENGTH,
    MAX_FULL_DESCRIPTION_LENGTH,
    MIN_COOLDOWN,
)
from hotcmd.core.errors import ValidationFailure, ValidationRule

NAME_PATTERN = re.compile(COMMAND_NAME_PATTERN)


def _is_int(value: Any) -> bool:
    # bool 是 int 的子类，这里不接受
    return isinstance(value, int) and not isinstance(value, bool)


def read_definition(raw: Any) -> Dict[str, Any]:
    """从字典或模块/对象中读取定义字段

    Args:
        raw: 原始定义，字典或带有 name/meta/exec 属性的对象

    Returns:
        Dict[str, Any]: 包含 name、meta、exec、source_location、parent 的字典
    """
    if isinstance(raw, Mapping):
        getter = raw.get
    else:
        def getter(key, default=None):
            return getattr(raw, key, default)

    exec_handler = getter("exec")
    if exec_handler is None:
        exec_handler = getter("execute")
    if exec_handler is None:
        exec_handler = getter("exec_handler")

    return {
        "name": getter("name"),
        "meta": getter("meta"),
        "exec": exec_handler,
        "source_location": getter("source_location"),
        "parent": getter("parent"),
    }


class MetadataValidator:
    """命令元数据校验器

    构造时（require_source_location=True）和重载时（False）使用同一套规则
    """

    def __init__(self, settings: Optional[ValidationSettings] = None):
        """初始化校验器

        Args:
            settings: 注入的校验配置，None 时使用全部默认值且不提供默认权限等级
        """
        self.settings = settings or ValidationSettings()

    def validate(self, raw: Any, *, require_source_location: bool = True) -> NormalizedMetadata:
        """校验并规范化原始定义

        Args:
            raw: 原始定义
            require_source_location: 是否要求提供来源位置

        Returns:
            NormalizedMetadata: 规范化后的元数据

        Raises:
            ValidationFailure: 任一规则不满足
        """
        definition = read_definition(raw)
        name = definition["name"]
        meta = definition["meta"]
        exec_handler = definition["exec"]
        source_location = definition["source_location"]

        if not isinstance(name, str) or not name.strip():
            raise ValidationFailure(ValidationRule.NAME, "命令名缺失或不是字符串")
        if not NAME_PATTERN.fullmatch(name):
            raise ValidationFailure(
                ValidationRule.NAME, f"命令名只能包含小写字母: {name!r}", name
            )

        if meta is None:
            meta = {}
        if not isinstance(meta, Mapping):
            raise ValidationFailure(ValidationRule.META, "命令 meta 必须是字典", name)

        if exec_handler is None or not callable(exec_handler):
            raise ValidationFailure(ValidationRule.EXEC, "exec 缺失或不可调用", name)
        help_handler = meta.get("help")
        if help_handler is None or not callable(help_handler):
            raise ValidationFailure(ValidationRule.HELP, "help 缺失或不可调用", name)

        if require_source_location and (
            not source_location or not isinstance(source_location, str)
        ):
            raise ValidationFailure(
                ValidationRule.SOURCE_LOCATION, "缺少来源位置或不是字符串", name
            )

        aliases = self._check_aliases(name, meta.get("aliases"))
        permission_level = self._check_permission(name, meta.get("permission"))
        cooldown = self._check_cooldown(name, meta.get("cooldown"))

        description = self._check_description(
            name, meta.get("desc"), MAX_DESCRIPTION_LENGTH, ValidationRule.DESCRIPTION
        )
        full_description = self._check_description(
            name,
            meta.get("full_desc"),
            MAX_FULL_DESCRIPTION_LENGTH,
            ValidationRule.FULL_DESCRIPTION,
        )

        examples = meta.get("examples")
        if examples is not None:
            if not isinstance(examples, list) or not examples:
                raise ValidationFailure(ValidationRule.EXAMPLES, "examples 为空或不是列表", name)
            if not all(isinstance(e, str) for e in examples):
                raise ValidationFailure(ValidationRule.EXAMPLES, "examples 必须都是字符串", name)

        flags = self._check_entries(name, meta.get("flags"), FlagEntry, ValidationRule.FLAGS)
        meta_notes = self._check_entries(
            name, meta.get("meta_notes"), MetaNote, ValidationRule.META_NOTES
        )

        group = meta.get("group")
        if group is not None and not _is_int(group):
            raise ValidationFailure(ValidationRule.GROUP, "group 必须是整数", name)

        syntax = meta.get("syntax")
        if syntax is not None and (not isinstance(syntax, str) or not syntax):
            raise ValidationFailure(ValidationRule.SYNTAX, "syntax 必须是非空字符串", name)

        requirement = meta.get("requirement")
        if requirement is not None and not callable(requirement):
            raise ValidationFailure(
                ValidationRule.REQUIREMENT, "requirement 必须是返回 True/False 的函数", name
            )

        resources = meta.get("associated_resources")
        if resources is not None:
            if not isinstance(resources, list) or not resources:
                raise ValidationFailure(
                    ValidationRule.ASSOCIATED_RESOURCES, "关联资源列表为空或不是列表", name
                )
            if not all(isinstance(r, str) for r in resources):
                raise ValidationFailure(
                    ValidationRule.ASSOCIATED_RESOURCES, "关联资源必须都是字符串", name
                )

        enabled = meta.get("enabled")
        if enabled is not None and not isinstance(enabled, bool):
            raise ValidationFailure(ValidationRule.ENABLED, "enabled 必须是布尔值", name)
        dm_allowed = meta.get("dm")
        if dm_allowed is not None and not isinstance(dm_allowed, bool):
            raise ValidationFailure(ValidationRule.DM, "dm 必须是布尔值", name)

        for key in ("error_message", "permission_denied_message"):
            value = meta.get(key)
            if value is not None and not isinstance(value, str):
                raise ValidationFailure(ValidationRule.MESSAGES, f"{key} 必须是字符串", name)

        defaults = meta.get("default_subcommand_options")
        if defaults is not None and not isinstance(defaults, Mapping):
            raise ValidationFailure(
                ValidationRule.DEFAULT_SUBCOMMAND_OPTIONS,
                "default_subcommand_options 必须是字典",
                name,
            )

        return NormalizedMetadata(
            name=name,
            aliases=aliases if aliases is not None else [name],
            description=description,
            full_description=full_description,
            syntax=syntax or name,
            dm_allowed=True if dm_allowed is None else dm_allowed,
            flags=flags,
            cooldown_seconds=self.settings.default_cooldown if cooldown is None else cooldown,
            permission_level=permission_level,
            permission_denied_message=meta.get("permission_denied_message"),
            error_message=meta.get("error_message") or self.settings.error_message,
            disabled_message=self.settings.disabled_message,
            group=self.settings.default_group if group is None else group,
            meta_notes=meta_notes,
            examples=list(examples) if examples is not None else [name],
            requirement=requirement,
            exec_handler=exec_handler,
            help_handler=help_handler,
            associated_resources=list(resources) if resources is not None else [],
            enabled=True if enabled is None else enabled,
            default_subcommand_options=dict(defaults or {}),
            source_location=source_location if isinstance(source_location, str) else None,
        )

    def check(
        self, raw: Any, *, require_source_location: bool = True
    ) -> Union[NormalizedMetadata, ValidationFailure]:
        """校验原始定义，失败时返回 ValidationFailure 而不是抛出"""
        try:
            return self.validate(raw, require_source_location=require_source_location)
        except ValidationFailure as e:
            return e

    def _check_aliases(self, name: str, aliases: Any) -> Optional[List[str]]:
        if aliases is None:
            return None
        if not isinstance(aliases, list):
            raise ValidationFailure(ValidationRule.ALIASES, "aliases 不是列表", name)
        if not all(isinstance(a, str) for a in aliases):
            raise ValidationFailure(ValidationRule.ALIASES, "aliases 必须都是字符串", name)
        if len(set(aliases)) != len(aliases):
            raise ValidationFailure(ValidationRule.ALIASES, "aliases 中存在重复项", name)
        return list(aliases)

    def _check_permission(self, name: str, permission: Any) -> int:
        if permission is None:
            permission = self.settings.default_permission_level
            if permission is None:
                raise ValidationFailure(
                    ValidationRule.PERMISSION, "未声明权限等级，且宿主配置未提供默认值", name
                )
        if not _is_int(permission):
            raise ValidationFailure(ValidationRule.PERMISSION, "权限等级必须是整数", name)
        levels = self.settings.permission_levels
        if levels is not None and permission not in levels:
            raise ValidationFailure(
                ValidationRule.PERMISSION, f"未知的权限等级: {permission}", name
            )
        return permission

    def _check_cooldown(self, name: str, cooldown: Any) -> Optional[int]:
        if cooldown is None:
            return None
        if not _is_int(cooldown):
            raise ValidationFailure(ValidationRule.COOLDOWN, "cooldown 必须是整数", name)
        if cooldown < MIN_COOLDOWN or cooldown > MAX_COOLDOWN:
            raise ValidationFailure(
                ValidationRule.COOLDOWN,
                f"cooldown 超出范围: 最小 {MIN_COOLDOWN}，最大 {MAX_COOLDOWN}",
                name,
            )
        return cooldown

    def _check_description(
        self, name: str, value: Any, max_length: int, rule: ValidationRule
    ) -> str:
        if not isinstance(value, str) or not value:
            raise ValidationFailure(rule, f"{rule.value} 缺失", name)
        if len(value) > max_length:
            raise ValidationFailure(rule, f"{rule.value} 不能超过 {max_length} 个字符", name)
        return value

    def _check_entries(
        self, name: str, entries: Any, model: Type[BaseModel], rule: ValidationRule
    ) -> list:
        if entries is None:
            return []
        if not isinstance(entries, list):
            raise ValidationFailure(rule, f"{rule.value} 必须是列表", name)
        keys = ", ".join(model.model_fields)
        result = []
        for entry in entries:
            if not isinstance(entry, Mapping):
                raise ValidationFailure(rule, f"{rule.value} 必须是对象列表", name)
            try:
                result.append(model.model_validate(dict(entry)))
            except ValidationError as e:
                raise ValidationFailure(
                    rule, f"{rule.value} 中存在缺失或类型错误的字段，需要: {keys}", name
                ) from e
        return result


_default_validator: Optional[MetadataValidator] = None


def get_default_validator() -> MetadataValidator:
    """获取基于全局配置的默认校验器

    Returns:
        MetadataValidator: 使用 ConfigManager 配置构造的校验器
    """
    global _default_validator
    if _default_validator is None:
        from hotcmd.core.config.config_manager import ConfigManager

        settings = ConfigManager.get_instance().get_config().validation_settings
        _default_validator = MetadataValidator(settings)
    return _default_validator


def reset_default_validator() -> None:
    """重置默认校验器（主要用于测试）"""
    global _default_validator
    _default_validator = None
