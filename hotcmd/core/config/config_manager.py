"""配置管理模块

负责查找和加载配置文件，支持从项目目录或用户目录读取配置
"""

from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import yaml
from pydantic import ValidationError

from hotcmd.core.config.models import Config, ConfigMeta
from hotcmd.core.constants import (
    CONFIG_FILE,
    DEFAULT_SYSTEM_VERSION,
    HOTCMD_DIR,
    WORKSPACE_SEARCH_MAX_DEPTH,
)
from hotcmd.core.utils.logger import logger


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """深度合并两个配置字典

    合并策略：
    - 字典：递归合并
    - 其他类型：override 覆盖 base

    Args:
        base: 基础配置字典，用户配置
        override: 覆盖配置字典，项目配置

    Returns:
        Dict[str, Any]: 合并后的配置字典
    """
    result = base.copy()

    for key, override_value in override.items():
        if isinstance(result.get(key), dict) and isinstance(override_value, dict):
            result[key] = _deep_merge(result[key], override_value)
        else:
            result[key] = override_value

    return result


def resolve_workspace_dir(start_dir: Optional[Path] = None) -> Path:
    """解析工作区目录

    从当前目录向上查找含有 .hotcmd 目录的路径，最多向上查找 3 级，
    用户主目录不视为工作区。找不到时返回起始目录。

    Args:
        start_dir: 起始目录，None 表示当前工作目录

    Returns:
        Path: 工作区目录路径
    """
    initial_dir = (start_dir or Path.cwd()).resolve()
    current_dir = initial_dir
    user_home = Path.home().resolve()

    for _ in range(WORKSPACE_SEARCH_MAX_DEPTH):
        if (current_dir / HOTCMD_DIR).is_dir() and current_dir != user_home:
            return current_dir
        if current_dir.parent == current_dir:
            break
        current_dir = current_dir.parent

    return initial_dir


def get_user_config_dir() -> Path:
    """获取用户配置目录

    Returns:
        Path: 用户配置目录路径 (~/.hotcmd)
    """
    return Path.home() / HOTCMD_DIR


def find_config_files(
    start_dir: Optional[Path] = None,
) -> Tuple[Optional[Path], Optional[Path], Path]:
    """查找配置文件

    Returns:
        Tuple[Optional[Path], Optional[Path], Path]:
            (用户配置路径, 项目配置路径, 工作区目录)
    """
    user_config_path = get_user_config_dir() / CONFIG_FILE
    if not user_config_path.is_file():
        user_config_path = None

    workspace_dir = resolve_workspace_dir(start_dir)
    project_config_path = workspace_dir / HOTCMD_DIR / CONFIG_FILE
    if not project_config_path.is_file() or project_config_path == user_config_path:
        project_config_path = None

    return user_config_path, project_config_path, workspace_dir


def load_config_from_file(config_path: Path) -> dict:
    """从 YAML 文件加载配置

    Raises:
        FileNotFoundError: 如果文件不存在
        yaml.YAMLError: 如果 YAML 解析失败
    """
    if not config_path.exists():
        raise FileNotFoundError(f"配置文件不存在: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
    if not isinstance(data, dict):
        raise ValueError(f"配置文件顶层必须是字典: {config_path}")
    return data


def build_config(
    config_data: Dict[str, Any],
    workspace_dir: Path,
    config_file_path: Optional[Path] = None,
    source: str = "default",
) -> Config:
    """把配置字典解析为 Config

    Raises:
        pydantic.ValidationError: 配置字段不合法
    """
    data = dict(config_data)
    data["meta"] = ConfigMeta(
        workspace_dir=workspace_dir,
        config_file_path=config_file_path,
        source=source,
        system_version=DEFAULT_SYSTEM_VERSION,
    )
    return Config.model_validate(data)


class ConfigManager:
    """全局配置管理器单例

    支持懒加载配置，首次访问时自动加载
    """

    _instance: Optional["ConfigManager"] = None

    def __init__(self, start_dir: Optional[Path] = None):
        """初始化配置管理器

        Args:
            start_dir: 查找工作区的起始目录，None 表示当前工作目录
        """
        self.start_dir = start_dir
        self.config: Optional[Config] = None
        self._initialized: bool = False

    @classmethod
    def get_instance(cls) -> "ConfigManager":
        """获取单例实例"""
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def reset_instance(cls) -> None:
        """重置单例实例（主要用于测试）"""
        cls._instance = None

    def _load_config(self) -> Config:
        """内部方法：加载配置

        1. 先加载用户目录配置 (~/.hotcmd/config.yaml) 作为基础
        2. 再加载项目目录配置并与用户配置合并，项目配置优先
        3. 如果都没有或解析失败，使用默认配置
        """
        user_config_path, project_config_path, workspace_dir = find_config_files(self.start_dir)

        config_data: Dict[str, Any] = {}
        config_file_path = None
        source = "default"

        if user_config_path:
            try:
                config_data = load_config_from_file(user_config_path)
                config_file_path = user_config_path
                source = "user"
            except Exception as e:
                logger.warning(f"加载用户配置文件失败: {e}")

        if project_config_path:
            try:
                project_config_data = load_config_from_file(project_config_path)
                config_data = _deep_merge(config_data, project_config_data)
                config_file_path = project_config_path
                source = "project"
            except Exception as e:
                logger.warning(f"加载项目配置文件失败: {e}，使用用户配置")

        if config_data:
            try:
                return build_config(config_data, workspace_dir, config_file_path, source)
            except ValidationError as e:
                logger.warning(f"解析配置失败: {e}，使用默认配置")

        return build_config({}, workspace_dir)

    def load(self) -> Config:
        """显式加载配置"""
        self.config = self._load_config()
        self._initialized = True
        return self.config

    def get_config(self) -> Config:
        """获取配置对象，如果未加载则自动加载"""
        if not self._initialized or self.config is None:
            self.load()
        return self.config

    def get_workspace_dir(self) -> Path:
        return self.get_config().workspace_dir
