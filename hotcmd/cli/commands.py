"""CLI 子命令实现

check / inspect / run 都从 Python 定义文件加载命令
"""

import asyncio
from typing import Optional

from hotcmd.cli.output import TerminalOutput
from hotcmd.core.command import (
    Command,
    InvocationContext,
    MetadataValidator,
    ModuleDefinitionSource,
    get_default_validator,
    load_command,
)
from hotcmd.core.config import ConfigManager
from hotcmd.core.errors import CommandError
from hotcmd.core.utils.logger import logger


def build_validator(args) -> MetadataValidator:
    """根据命令行参数构造校验器

    --default-permission 覆盖配置中的默认权限等级
    """
    default_permission = getattr(args, "default_permission", None)
    if default_permission is None:
        return get_default_validator()
    settings = ConfigManager.get_instance().get_config().validation_settings
    return MetadataValidator(
        settings.model_copy(update={"default_permission_level": default_permission})
    )


def _load(path: str, validator: MetadataValidator) -> Command:
    source = ModuleDefinitionSource()
    return asyncio.run(load_command(source, path, validator))


def check_command(args, output: Optional[TerminalOutput] = None) -> int:
    """校验一个或多个定义文件

    Returns:
        int: 全部通过返回 0，否则返回 1
    """
    output = output or TerminalOutput()
    validator = build_validator(args)
    failed = 0
    for path in args.files:
        try:
            command = _load(path, validator)
        except CommandError as e:
            failed += 1
            rule = getattr(e, "rule", None)
            suffix = f" ({rule.value})" if rule is not None else ""
            output.error(f"{path}: {e}{suffix}")
            continue
        except (OSError, ImportError, SyntaxError) as e:
            failed += 1
            output.error(f"{path}: 无法加载定义: {e}")
            continue
        output.success(f"{path}: {command}")
    logger.info(f"校验完成，共 {len(args.files)} 个文件，失败 {failed} 个")
    return 1 if failed else 0


def inspect_command(args, output: Optional[TerminalOutput] = None) -> int:
    """显示命令的序列化内容"""
    output = output or TerminalOutput()
    command = _load(args.file, build_validator(args))
    data = command.serialize()
    if args.json:
        output.show_json(data)
    else:
        output.show_command(data)
    return 0


def run_command(args, output: Optional[TerminalOutput] = None) -> int:
    """通过执行流水线调用一次命令并输出结果"""
    output = output or TerminalOutput()
    command = _load(args.file, build_validator(args))
    if not command.enabled:
        output.error(command.disabled_message)
        return 1
    context = InvocationContext(message=args.message, args=list(args.args or []))
    result = asyncio.run(command.run(context))
    if result is not None:
        output.info(str(result))
    return 0
