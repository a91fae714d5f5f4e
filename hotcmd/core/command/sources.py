"""定义来源

热重载所依赖的可插拔能力：按位置获取定义、使缓存失效、列出关联资源
"""

import hashlib
import importlib.util
import sys
from pathlib import Path
from types import ModuleType
from typing import TYPE_CHECKING, Any, Dict, List, Optional, Protocol, Union, runtime_checkable

from hotcmd.core.constants import RESOURCE_SUFFIX
from hotcmd.core.utils.logger import logger

if TYPE_CHECKING:
    from hotcmd.core.command.entity import Command


@runtime_checkable
class DefinitionSource(Protocol):
    """定义来源协议

    fetch 返回 {name, meta, exec} 形式的定义或资源模块，可以返回 awaitable
    """

    def fetch(self, locator: str) -> Any:
        ...

    def invalidate(self, locator: str) -> None:
        ...

    def exists(self, locator: str) -> bool:
        ...


@runtime_checkable
class ResourceLister(Protocol):
    """结构化资源枚举协议"""

    def list_resources(self, command: "Command") -> List[str]:
        ...


class ModuleDefinitionSource:
    """从 Python 文件加载定义的来源

    使用 importlib 按文件路径加载模块，并维护自己的模块缓存。
    失效时同时删除该文件的字节码缓存，保证重载读到最新的源码。
    """

    def __init__(self, base_dir: Optional[Union[str, Path]] = None):
        """初始化来源

        Args:
            base_dir: 相对位置的基准目录，None 表示当前工作目录
        """
        self.base_dir = Path(base_dir) if base_dir is not None else None
        self._cache: Dict[str, ModuleType] = {}

    def resolve_path(self, locator: str) -> Path:
        path = Path(locator).expanduser()
        if not path.is_absolute() and self.base_dir is not None:
            path = self.base_dir / path
        return path.resolve()

    @staticmethod
    def _module_name(path: Path) -> str:
        digest = hashlib.md5(str(path).encode("utf-8")).hexdigest()[:12]
        return f"_hotcmd_source_{digest}_{path.stem}"

    def exists(self, locator: str) -> bool:
        return self.resolve_path(locator).is_file()

    def is_cached(self, locator: str) -> bool:
        return str(self.resolve_path(locator)) in self._cache

    def fetch(self, locator: str) -> ModuleType:
        """加载模块，已缓存时直接返回缓存

        Raises:
            FileNotFoundError: 文件不存在
        """
        path = self.resolve_path(locator)
        key = str(path)
        if key in self._cache:
            return self._cache[key]
        if not path.is_file():
            raise FileNotFoundError(f"定义文件不存在: {path}")

        module_name = self._module_name(path)
        spec = importlib.util.spec_from_file_location(module_name, path)
        if spec is None or spec.loader is None:
            raise ImportError(f"无法为定义文件创建模块: {path}")
        module = importlib.util.module_from_spec(spec)

        sys.modules[module_name] = module
        try:
            spec.loader.exec_module(module)
        except BaseException:
            sys.modules.pop(module_name, None)
            raise

        self._cache[key] = module
        logger.debug(f"加载模块: {path}")
        return module

    @staticmethod
    def bytecode_path(path: Path) -> Optional[Path]:
        """返回源码文件对应的 .pyc 路径，解释器不支持字节码缓存时返回 None"""
        try:
            return Path(importlib.util.cache_from_source(str(path)))
        except NotImplementedError:
            return None

    def invalidate(self, locator: str) -> None:
        path = self.resolve_path(locator)
        self._cache.pop(str(path), None)
        sys.modules.pop(self._module_name(path), None)

        # .pyc 只按秒级 mtime 和文件大小校验，同一秒内的等长修改会读到旧内容
        bytecode = self.bytecode_path(path)
        if bytecode is not None and bytecode.is_file():
            bytecode.unlink(missing_ok=True)
            logger.debug(f"删除字节码缓存: {bytecode}")


class InMemoryDefinitionSource:
    """基于字典的定义来源

    用于嵌入式场景和测试，记录每个位置的获取次数和失效记录
    """

    def __init__(self, definitions: Optional[Dict[str, Any]] = None):
        self.definitions: Dict[str, Any] = dict(definitions or {})
        self.fetch_counts: Dict[str, int] = {}
        self.invalidations: List[str] = []
        self._cache: Dict[str, Any] = {}

    def put(self, locator: str, definition: Any) -> None:
        self.definitions[locator] = definition

    def remove(self, locator: str) -> None:
        self.definitions.pop(locator, None)

    def exists(self, locator: str) -> bool:
        return locator in self.definitions

    def is_cached(self, locator: str) -> bool:
        return locator in self._cache

    def fetch(self, locator: str) -> Any:
        if locator in self._cache:
            return self._cache[locator]
        if locator not in self.definitions:
            raise KeyError(f"找不到定义: {locator}")
        value = self.definitions[locator]
        self.fetch_counts[locator] = self.fetch_counts.get(locator, 0) + 1
        self._cache[locator] = value
        return value

    def invalidate(self, locator: str) -> None:
        self._cache.pop(locator, None)
        self.invalidations.append(locator)


class DirectoryResourceLister:
    """按命令名约定的资源目录枚举器

    枚举 <root>/<命令名>/ 下所有指定后缀的文件
    """

    def __init__(self, root: Union[str, Path], suffix: str = RESOURCE_SUFFIX):
        self.root = Path(root)
        self.suffix = suffix

    def list_resources(self, command: "Command") -> List[str]:
        directory = self.root / command.name
        if not directory.is_dir():
            logger.debug(f"资源目录不存在: {directory}")
            return []
        return [
            str(path)
            for path in sorted(directory.glob(f"*{self.suffix}"))
            if path.is_file()
        ]
