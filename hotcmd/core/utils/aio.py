import inspect
from typing import Any


async def resolve(value: Any) -> Any:
    """如果值是 awaitable 则等待其完成，否则原样返回

    用于统一处理同步和异步的 hook、执行函数及定义来源
    """
    if inspect.isawaitable(value):
        return await value
    return value
