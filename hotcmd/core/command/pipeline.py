"""命令执行流水线

单次调用的执行顺序：前置检查 hook -> 执行函数 -> 后置检查 hook
"""

from collections.abc import Mapping
from enum import Enum
from typing import TYPE_CHECKING, Any, List, Tuple

from hotcmd.core.command.models import HookResponse, InvocationContext
from hotcmd.core.errors import InvocationError
from hotcmd.core.utils.aio import resolve
from hotcmd.core.utils.logger import logger

if TYPE_CHECKING:
    from hotcmd.core.command.entity import Command


class PipelineStage(str, Enum):
    """流水线阶段"""

    IDLE = "idle"
    PRE_CHECK = "pre_check"
    EXECUTING = "executing"
    POST_CHECK = "post_check"
    DONE = "done"


def to_invocation_context(context: Any) -> InvocationContext:
    """把字典或对象转换为 InvocationContext"""
    if isinstance(context, InvocationContext):
        return context
    if context is None:
        return InvocationContext()
    if isinstance(context, Mapping):
        message = context.get("message")
        args = context.get("args")
        settings = context.get("settings")
    else:
        message = getattr(context, "message", None)
        args = getattr(context, "args", None)
        settings = getattr(context, "settings", None)
    return InvocationContext(message=message, args=list(args or []), settings=settings)


class ExecutionPipeline:
    """命令执行流水线

    任一阶段抛出的异常原样向上传播，不做重试
    """

    def __init__(self, command: "Command"):
        self.command = command
        self.stage = PipelineStage.IDLE

    async def run(self, context: Any) -> Any:
        """执行一次调用

        Args:
            context: InvocationContext 或包含 message/args 的字典

        Returns:
            执行函数的返回值

        Raises:
            InvocationError: 调用上下文缺少 message
        """
        context = to_invocation_context(context)
        if context.message is None:
            raise InvocationError("调用上下文缺少 message", self.command.name)

        message, args = context.message, context.args
        hooks = self.command.hooks

        self.stage = PipelineStage.PRE_CHECK
        if hooks.pre_check is not None:
            response = await resolve(hooks.pre_check(message, args, True))
            message, args = self._apply_response(response, message, args)

        self.stage = PipelineStage.EXECUTING
        logger.debug(f"执行命令: {self.command.full_label()}")
        result = await resolve(self.command.exec_handler(message, args))

        self.stage = PipelineStage.POST_CHECK
        if hooks.post_check is not None:
            # 后置 hook 只产生副作用，返回值被忽略
            await resolve(hooks.post_check(message, args, True))

        self.stage = PipelineStage.DONE
        return result

    @staticmethod
    def _apply_response(response: Any, message: Any, args: List[Any]) -> Tuple[Any, List[Any]]:
        if response is None:
            return message, args
        if isinstance(response, Mapping):
            response = HookResponse(message=response.get("message"), args=response.get("args"))
        elif not isinstance(response, HookResponse):
            response = HookResponse(
                message=getattr(response, "message", None),
                args=getattr(response, "args", None),
            )
        if response.message is not None:
            message = response.message
        if response.args is not None:
            args = response.args
        return message, args
