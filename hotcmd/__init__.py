"""hotcmd

可热重载的分层命令实体：元数据校验、子命令注册、执行流水线和热重载
"""

__version__ = "0.1.0"
