"""项目常量定义

统一管理项目中的魔法数字和默认配置值
"""

# ============================================================================
# 路径和文件名常量
# ============================================================================

# 工作区目录名
HOTCMD_DIR = ".hotcmd"

# 配置文件
CONFIG_FILE = "config.yaml"

# 日志目录
LOG_DIR = "logs"

# ============================================================================
# 日志配置常量
# ============================================================================

LOG_LEVEL = "INFO"
LOG_FILE = "hotcmd.log"
LOG_ROTATION = "10 MB"
LOG_RETENTION = "14 days"
LOG_COMPRESSION = "tar.gz"
LOG_ENCODING = "utf-8"

# 日志格式
LOG_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "{thread.name}:{thread.id} | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
    "<level>{message}</level>"
)

# ============================================================================
# 命令元数据常量
# ============================================================================

# 命令名和子命令名只允许小写字母
COMMAND_NAME_PATTERN = r"^[a-z]+$"

MAX_DESCRIPTION_LENGTH = 65
MAX_FULL_DESCRIPTION_LENGTH = 300

DEFAULT_COOLDOWN = 3  # 秒
MIN_COOLDOWN = 0
MAX_COOLDOWN = 200

DEFAULT_GROUP = 1

DEFAULT_ERROR_MESSAGE = "**Oops!** An error occurred! Incident has been logged."
DEFAULT_DISABLED_MESSAGE = "**Maintenance:** Command has been disabled for maintenance."

# 启用开关接受的字符串
ENABLE_TOGGLE_VALUES = ("true", "enable")
DISABLE_TOGGLE_VALUES = ("false", "disable")

# ============================================================================
# 热重载常量
# ============================================================================

# 资源模块通过该标记声明自己应当被永久移出缓存
DELETION_MARKER = "DELETE"
RESOURCE_SUFFIX = ".py"

# ============================================================================
# 配置管理常量
# ============================================================================

DEFAULT_SYSTEM_VERSION = "0.1.0"
WORKSPACE_SEARCH_MAX_DEPTH = 3
