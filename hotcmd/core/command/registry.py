"""子命令注册表

由命令实体持有，负责子命令及其别名的注册和注销
"""

import weakref
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Optional

from hotcmd.core.command.validator import NAME_PATTERN
from hotcmd.core.errors import RegistryConflict
from hotcmd.core.utils.logger import logger

if TYPE_CHECKING:
    from hotcmd.core.command.entity import Command


def _is_blank(value: Any) -> bool:
    return not isinstance(value, str) or not value.strip()


class SubcommandRegistry:
    """子命令注册表

    subcommands 保存 子命令名 -> 子命令，aliases 保存 别名 -> 子命令名。
    同一层级中别名不会与子命令名重复，也不会被注册两次。
    """

    def __init__(self, owner: "Command"):
        """初始化注册表

        Args:
            owner: 持有该注册表的命令
        """
        self._owner_ref = weakref.ref(owner)
        self.subcommands: Dict[str, "Command"] = {}
        self.aliases: Dict[str, str] = {}

    @property
    def owner(self) -> "Command":
        owner = self._owner_ref()
        if owner is None:
            raise RegistryConflict("注册表所属的命令已被回收")
        return owner

    def register_subcommand(
        self,
        name: str,
        meta: Optional[Dict[str, Any]] = None,
        exec_handler: Optional[Callable[..., Any]] = None,
    ) -> "Command":
        """注册子命令

        父命令的 default_subcommand_options 会补全子命令 meta 中未声明的字段。
        meta 中的 aliases 会在插入前全部检查，插入后逐个注册为别名。

        Args:
            name: 子命令名，会被转换为小写
            meta: 子命令元数据，不会被修改
            exec_handler: 执行函数

        Returns:
            Command: 新建的子命令

        Raises:
            RegistryConflict: 名称无效或已被占用，或别名冲突
            ValidationFailure: 子命令元数据校验失败
        """
        owner = self.owner
        if _is_blank(name):
            raise RegistryConflict("缺少子命令名", owner.name)
        name = name.lower()
        if any(c.isspace() for c in name) or not NAME_PATTERN.fullmatch(name):
            raise RegistryConflict(f"无效的子命令名: {name!r}", owner.name)
        if name in self.subcommands:
            raise RegistryConflict(f"已存在名为 {name} 的子命令", owner.name)
        if name in self.aliases:
            raise RegistryConflict(f"{name} 已被用作子命令别名", owner.name)

        child_meta = dict(meta or {})

        # 子命令未声明的字段使用父命令的默认值，继承到的默认值继续向下传递
        inherited = dict(child_meta.get("default_subcommand_options") or {})
        for key, value in owner.default_subcommand_options.items():
            if child_meta.get(key) is None:
                child_meta[key] = value
                inherited.setdefault(key, value)
        child_meta["default_subcommand_options"] = inherited

        pending_aliases: List[str] = []
        aliases = child_meta.get("aliases")
        if isinstance(aliases, list) and all(isinstance(a, str) for a in aliases):
            child_meta["aliases"] = [alias.lower() for alias in aliases]
            for alias in child_meta["aliases"]:
                if alias == name:
                    continue
                self._check_alias_available(alias)
                pending_aliases.append(alias)

        subcommand = owner.__class__(
            name,
            child_meta,
            exec_handler,
            parent=owner,
            validator=owner.validator,
        )
        self.subcommands[name] = subcommand
        for alias in pending_aliases:
            self.register_subcommand_alias(alias, name)

        logger.debug(f"注册子命令: {subcommand.full_label()}")
        return subcommand

    def register_subcommand_alias(self, alias: str, name: str) -> None:
        """为子命令注册别名

        Args:
            alias: 新别名，会被转换为小写
            name: 子命令名，会被转换为小写

        Raises:
            RegistryConflict: 参数为空、子命令不存在或别名已被占用
        """
        if _is_blank(alias):
            raise RegistryConflict("缺少新的别名", self.owner.name)
        if _is_blank(name):
            raise RegistryConflict("缺少子命令名", self.owner.name)
        alias = alias.lower()
        name = name.lower()
        if name not in self.subcommands:
            raise RegistryConflict(
                f"添加别名 {alias} 时找不到子命令 {name}", self.owner.name
            )
        self._check_alias_available(alias)

        self.aliases[alias] = name
        target = self.subcommands[name]
        if alias not in target.aliases:
            target.aliases.append(alias)
        logger.debug(f"注册子命令别名: {alias} -> {target.full_label()}")

    def unregister_subcommand(self, name: str) -> bool:
        """注销子命令或别名

        如果 name 是别名，只移除该别名；否则按子命令名删除子命令。
        删除子命令时不会清理仍指向它的别名。

        Args:
            name: 子命令名或别名

        Returns:
            bool: 是否移除了任何条目
        """
        if _is_blank(name):
            raise RegistryConflict("缺少子命令名", self.owner.name)
        name = name.lower()

        original = self.aliases.get(name)
        if original is not None:
            del self.aliases[name]
            target = self.subcommands.get(original)
            if target is not None and name in target.aliases:
                target.aliases.remove(name)
            logger.debug(f"注销子命令别名: {name} -> {original}")
            return True

        if name in self.subcommands:
            del self.subcommands[name]
            logger.debug(f"注销子命令: {self.owner.name} {name}")
            return True

        return False

    def resolve(self, name: str) -> Optional["Command"]:
        """按子命令名或别名查找子命令

        Returns:
            Optional[Command]: 子命令，找不到或别名指向已删除的子命令时返回 None
        """
        if _is_blank(name):
            return None
        name = name.lower()
        if name in self.subcommands:
            return self.subcommands[name]
        original = self.aliases.get(name)
        if original is None:
            return None
        return self.subcommands.get(original)

    def _check_alias_available(self, alias: str) -> None:
        if _is_blank(alias):
            raise RegistryConflict("缺少新的别名", self.owner.name)
        if alias in self.aliases:
            raise RegistryConflict(f"别名 {alias} 已被使用", self.owner.name)
        if alias in self.subcommands:
            raise RegistryConflict(f"别名 {alias} 与已有子命令重名", self.owner.name)
