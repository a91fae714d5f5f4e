"""命令相关错误定义"""

from enum import Enum


class ValidationRule(str, Enum):
    """校验失败的规则标识"""

    META = "meta"
    NAME = "name"
    EXEC = "exec"
    HELP = "help"
    SOURCE_LOCATION = "source_location"
    ALIASES = "aliases"
    PERMISSION = "permission"
    COOLDOWN = "cooldown"
    DESCRIPTION = "description"
    FULL_DESCRIPTION = "full_description"
    EXAMPLES = "examples"
    FLAGS = "flags"
    META_NOTES = "meta_notes"
    GROUP = "group"
    SYNTAX = "syntax"
    REQUIREMENT = "requirement"
    ASSOCIATED_RESOURCES = "associated_resources"
    ENABLED = "enabled"
    DM = "dm"
    MESSAGES = "messages"
    DEFAULT_SUBCOMMAND_OPTIONS = "default_subcommand_options"


class CommandError(Exception):
    """命令基础错误类"""

    def __init__(self, message: str, command_name: str = ""):
        """初始化命令错误

        Args:
            message: 错误消息
            command_name: 相关命令名称
        """
        self.message = message
        self.command_name = command_name
        super().__init__(self.message)

    def __str__(self) -> str:
        """返回错误字符串表示"""
        if self.command_name:
            return f"[{self.command_name}] {self.message}"
        return self.message


class ValidationFailure(CommandError):
    """命令定义校验失败

    当命令名、元数据或处理函数不满足约束时抛出
    """

    def __init__(self, rule: ValidationRule, message: str, command_name: str = ""):
        """初始化校验失败

        Args:
            rule: 违反的规则
            message: 错误消息
            command_name: 相关命令名称
        """
        self.rule = rule
        super().__init__(message, command_name)


class RegistryConflict(CommandError):
    """子命令注册冲突

    重名、别名重复或别名目标不存在时抛出
    """

    pass


class InvocationError(CommandError):
    """调用上下文缺失或无效"""

    pass


class ReloadError(CommandError):
    """命令无法重载

    当命令没有可用于重新获取定义的来源位置时抛出
    """

    pass
