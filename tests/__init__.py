import os

# 测试期间不写日志文件
os.environ.setdefault("HOTCMD_LOG_DISABLED", "1")
