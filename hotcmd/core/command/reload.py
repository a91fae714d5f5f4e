"""命令热重载

重新获取命令定义并原地替换字段，同时刷新关联资源
"""

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, List, Optional

from hotcmd.core.command.entity import Command
from hotcmd.core.command.sources import (
    DefinitionSource,
    DirectoryResourceLister,
    ResourceLister,
)
from hotcmd.core.command.validator import MetadataValidator
from hotcmd.core.constants import DELETION_MARKER
from hotcmd.core.errors import ReloadError
from hotcmd.core.utils.aio import resolve
from hotcmd.core.utils.logger import logger


def is_marked_for_deletion(value: Any) -> bool:
    """资源是否声明了删除标记，例如模块中的 DELETE = True"""
    if isinstance(value, Mapping):
        return value.get(DELETION_MARKER) is True
    return getattr(value, DELETION_MARKER, None) is True


@dataclass
class ReloadReport:
    """单次重载的结果

    Attributes:
        command_name: 重载后的命令名
        previous_name: 重载前的命令名
        reloaded_resources: 重新加载并保留在缓存中的资源
        evicted_resources: 因删除标记被移出缓存的资源
    """

    command_name: str
    previous_name: str
    reloaded_resources: List[str] = field(default_factory=list)
    evicted_resources: List[str] = field(default_factory=list)


class ReloadManager:
    """命令热重载管理器

    重载不是事务性的：任一步骤失败会中止后续步骤并向上抛出异常，
    已经完成的字段替换和资源刷新不会回滚。
    """

    def __init__(
        self,
        source: DefinitionSource,
        resource_lister: Optional[ResourceLister] = None,
        validator: Optional[MetadataValidator] = None,
        resource_source: Optional[DefinitionSource] = None,
    ):
        """初始化重载管理器

        Args:
            source: 命令定义来源
            resource_lister: 结构化资源枚举器，None 表示不扫描资源目录
            validator: 校验器，None 时使用命令自身的校验器
            resource_source: 关联资源来源，None 时与 source 相同
        """
        self.source = source
        self.resource_lister = resource_lister
        self.validator = validator
        self.resource_source = resource_source or source

    @classmethod
    def from_config(
        cls,
        source: DefinitionSource,
        config: Any = None,
        validator: Optional[MetadataValidator] = None,
    ) -> "ReloadManager":
        """根据配置中的 reload 段创建重载管理器

        Args:
            source: 命令定义来源
            config: Config 对象，None 时使用全局配置
            validator: 校验器

        Returns:
            ReloadManager: 配置了 resource_root 时带有目录资源枚举器
        """
        if config is None:
            from hotcmd.core.config.config_manager import ConfigManager

            config = ConfigManager.get_instance().get_config()

        lister = None
        if config.resource_root is not None:
            lister = DirectoryResourceLister(config.resource_root, config.reload.resource_suffix)
        return cls(source, resource_lister=lister, validator=validator)

    async def reload(self, command: Command) -> ReloadReport:
        """重载命令

        1. 使定义缓存失效并重新获取
        2. 以 require_source_location=False 重新校验
        3. 一次性替换描述和策略字段，子命令树保持不变
        4. 刷新仍然存在的关联资源
        5. 刷新资源目录中的结构化资源

        Raises:
            ReloadError: 命令没有来源位置
        """
        locator = command.source_location
        if not locator:
            raise ReloadError("命令没有来源位置，无法重载", command.name)

        logger.debug(f"重载命令模块: {command.name}")
        await resolve(self.source.invalidate(locator))
        definition = await resolve(self.source.fetch(locator))

        validator = self.validator or command.validator
        metadata = validator.validate(definition, require_source_location=False)

        report = ReloadReport(command_name=metadata.name, previous_name=command.name)
        command.replace_metadata(metadata)
        logger.debug(f"主模块重载完成: {command.name}")

        for index, resource in enumerate(command.associated_resources):
            if not await resolve(self.resource_source.exists(resource)):
                logger.warning(f"关联资源不存在，跳过: {command.name}[{index}] {resource}")
                continue
            logger.debug(f"重载关联资源: {command.name}[{index}]")
            await self._refresh_resource(resource, report)

        if self.resource_lister is not None:
            resources = await resolve(self.resource_lister.list_resources(command))
            for index, resource in enumerate(resources):
                logger.debug(f"重载结构化资源: {command.name}[{index}]")
                await self._refresh_resource(resource, report)

        logger.info(
            f"命令重载完成: {command.name}，"
            f"刷新 {len(report.reloaded_resources)} 个资源，"
            f"移除 {len(report.evicted_resources)} 个资源"
        )
        return report

    async def _refresh_resource(self, resource: str, report: ReloadReport) -> None:
        await resolve(self.resource_source.invalidate(resource))
        value = await resolve(self.resource_source.fetch(resource))
        if is_marked_for_deletion(value):
            await resolve(self.resource_source.invalidate(resource))
            report.evicted_resources.append(resource)
            logger.debug(f"资源已标记删除，移出缓存: {resource}")
        else:
            report.reloaded_resources.append(resource)


async def load_command(
    source: DefinitionSource,
    locator: str,
    validator: Optional[MetadataValidator] = None,
) -> Command:
    """首次从来源加载并创建顶层命令

    Args:
        source: 定义来源
        locator: 定义位置，会作为命令的 source_location
        validator: 校验器

    Returns:
        Command: 新建的命令
    """
    definition = await resolve(source.fetch(locator))
    return Command.from_definition(definition, source_location=locator, validator=validator)
