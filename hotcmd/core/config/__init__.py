"""配置模块

包含配置文件的查找、合并与解析
"""

from hotcmd.core.config.config_manager import (
    ConfigManager,
    build_config,
    find_config_files,
    get_user_config_dir,
    load_config_from_file,
    resolve_workspace_dir,
)
from hotcmd.core.config.models import (
    CommandSection,
    Config,
    ConfigMeta,
    PermissionSection,
    ReloadSection,
)

__all__ = [
    "Config",
    "ConfigMeta",
    "PermissionSection",
    "CommandSection",
    "ReloadSection",
    "ConfigManager",
    "build_config",
    "find_config_files",
    "get_user_config_dir",
    "load_config_from_file",
    "resolve_workspace_dir",
]
