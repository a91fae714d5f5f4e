import os
from pathlib import Path
from typing import Optional, Union

from loguru import logger as _logger

from hotcmd.core.constants import (
    HOTCMD_DIR,
    LOG_COMPRESSION,
    LOG_DIR,
    LOG_ENCODING,
    LOG_FILE,
    LOG_FORMAT,
    LOG_LEVEL,
    LOG_RETENTION,
    LOG_ROTATION,
)


def _env_bool(name: str, default: bool) -> bool:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_str(name: str, default: str) -> str:
    val = os.getenv(name)
    if val is None:
        return default
    return val.strip()


LOGGER_NAME = "hotcmd"

_LOGGER_CONFIGURED = False
# init_logger 添加的文件 sink，重新配置时只移除它
_SINK_ID: Optional[int] = None
# loguru 导入时自带的 stderr handler
_DEFAULT_HANDLER_ID = 0


def _only_hotcmd(record) -> bool:
    """只接收通过本模块 logger 记录的日志，宿主程序的日志不写入 hotcmd 的文件"""
    return record["extra"].get("name") == LOGGER_NAME


def _remove_default_handler() -> None:
    try:
        _logger.remove(_DEFAULT_HANDLER_ID)
    except ValueError:
        # 宿主程序已经移除或接管了默认 handler
        pass


def init_logger(
    *,
    level: Optional[str] = None,
    log_dir: Optional[Union[str, Path]] = None,
    log_file: Optional[str] = None,
    rotation: Optional[str] = None,
    retention: Optional[str] = None,
    compression: Optional[str] = None,
    enqueue: Optional[bool] = None,
    backtrace: Optional[bool] = None,
    diagnose: Optional[bool] = None,
    serialize: Optional[bool] = None,
    fmt: Optional[str] = None,
    force: bool = False,
) -> Optional[int]:
    """配置 hotcmd 的日志文件 sink

    未显式传入的参数从 HOTCMD_LOG_* 环境变量读取，再回退到默认值。
    hotcmd 作为库嵌入宿主程序时，只管理自己添加的 sink，不会移除宿主已有的 handler。

    Returns:
        Optional[int]: 当前文件 sink 的 id，HOTCMD_LOG_DISABLED 为真时为 None
    """
    global _LOGGER_CONFIGURED, _SINK_ID
    if _LOGGER_CONFIGURED and not force:
        return _SINK_ID

    level = (level or _env_str("HOTCMD_LOG_LEVEL", LOG_LEVEL)).upper()
    log_dir = log_dir or _env_str("HOTCMD_LOG_DIR", f"{HOTCMD_DIR}/{LOG_DIR}")
    log_file = log_file or _env_str("HOTCMD_LOG_FILE", LOG_FILE)
    log_dirpath = Path(log_dir).expanduser().resolve()

    rotation = rotation or _env_str("HOTCMD_LOG_ROTATION", LOG_ROTATION)
    retention = retention or _env_str("HOTCMD_LOG_RETENTION", LOG_RETENTION)
    compression = compression or _env_str("HOTCMD_LOG_COMPRESSION", LOG_COMPRESSION)

    enqueue = enqueue if enqueue is not None else _env_bool("HOTCMD_LOG_ENQUEUE", False)
    backtrace = backtrace if backtrace is not None else _env_bool("HOTCMD_LOG_BACKTRACE", True)
    diagnose = diagnose if diagnose is not None else _env_bool("HOTCMD_LOG_DIAGNOSE", False)
    serialize = serialize if serialize is not None else _env_bool("HOTCMD_LOG_SERIALIZE", False)

    fmt = fmt or LOG_FORMAT

    if not _LOGGER_CONFIGURED:
        _remove_default_handler()
    if _SINK_ID is not None:
        _logger.remove(_SINK_ID)
        _SINK_ID = None

    _LOGGER_CONFIGURED = True
    # HOTCMD_LOG_DISABLED 为真时不写日志文件
    if _env_bool("HOTCMD_LOG_DISABLED", False):
        return None

    log_dirpath.mkdir(parents=True, exist_ok=True)
    _SINK_ID = _logger.add(
        log_dirpath / log_file,
        level=level,
        format=fmt,
        filter=_only_hotcmd,
        rotation=rotation,
        retention=retention,
        compression=compression,
        backtrace=backtrace,
        diagnose=diagnose,
        enqueue=enqueue,
        serialize=serialize,
        encoding=LOG_ENCODING,
    )
    return _SINK_ID


logger = _logger.bind(name=LOGGER_NAME)

init_logger()
