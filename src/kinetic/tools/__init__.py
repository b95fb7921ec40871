"""Tool system for the cherry-pick agent."""

import inspect
import time
from functools import wraps

from pydantic_ai import RunContext
from pydantic_ai.exceptions import ModelRetry

from kinetic.core.log import logger
from kinetic.tools.cherry_pick import (
    CherryPickDeps,
    check_cherry_pick_conflicts,
    create_cherry_pick_pr,
    list_merged_prs,
    request_confirmation,
)
from kinetic.tools.pull_request import fetch_pull_request, get_pull_request_diff


def _context_info(args) -> dict:
    """Repository attributes of the call, when the tool takes a context."""
    if args and isinstance(args[0], RunContext):
        deps = getattr(args[0], 'deps', None)
        if isinstance(deps, CherryPickDeps):
            return {
                'repository': f"{deps.client.owner}/{deps.client.repo}",
                'confirmed_prs': sorted(deps.confirmations.granted),
            }
    return {}


def _log_tool_execution(func):
    """Tool execution logger with pre/post/error logging.

    Logs tool execution at all stages:
    - BEFORE: tool name, arguments, repository
    - ON SUCCESS: return value, execution time
    - ON ModelRetry: retry message with context
    - ON ERROR: full exception with traceback

    Works for both plain and async tools; the wrapper keeps the
    wrapped function's signature so pydantic-ai builds the same schema.
    """
    tool_name = func.__name__

    def before(args, kwargs):
        info = _context_info(args)
        logger.info(
            f"Tool '{tool_name}' invoked",
            tool_name=tool_name,
            args=args[1:] if len(args) > 1 else [],
            kwargs=kwargs,
            **info,
        )
        return info, time.time()

    def succeeded(result, start_time):
        execution_time = time.time() - start_time
        result_preview = str(result)[:200] if result else ""
        result_size = len(str(result)) if result else 0

        logger.info(
            f"Tool '{tool_name}' succeeded",
            tool_name=tool_name,
            execution_time_ms=round(execution_time * 1000, 2),
            result_size=result_size,
            result_preview=result_preview,
        )
        logger.trace(
            f"Tool '{tool_name}' full result:\n{result}",
            tool_name=tool_name,
        )

    def failed(e, args, kwargs, info, start_time):
        execution_time = time.time() - start_time
        if isinstance(e, ModelRetry):
            # Expected failures the model should react to
            logger.warning(
                f"Tool '{tool_name}' raised ModelRetry",
                tool_name=tool_name,
                execution_time_ms=round(execution_time * 1000, 2),
                retry_message=str(e),
                args=args[1:] if len(args) > 1 else [],
                kwargs=kwargs,
                **info,
            )
        else:
            logger.error(
                f"Tool '{tool_name}' raised unexpected exception",
                tool_name=tool_name,
                execution_time_ms=round(execution_time * 1000, 2),
                exception_type=type(e).__name__,
                exception_message=str(e),
                args=args[1:] if len(args) > 1 else [],
                kwargs=kwargs,
                _exc_info=e,
                **info,
            )

    if inspect.iscoroutinefunction(func):
        @wraps(func)
        async def async_wrapper(*args, **kwargs):
            info, start_time = before(args, kwargs)
            try:
                result = await func(*args, **kwargs)
            except Exception as e:
                failed(e, args, kwargs, info, start_time)
                raise
            succeeded(result, start_time)
            return result

        return async_wrapper

    @wraps(func)
    def wrapper(*args, **kwargs):
        info, start_time = before(args, kwargs)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            failed(e, args, kwargs, info, start_time)
            raise
        succeeded(result, start_time)
        return result

    return wrapper


# Logging is applied centrally to every agent tool
_raw_tools = [
    list_merged_prs,
    check_cherry_pick_conflicts,
    request_confirmation,
    create_cherry_pick_pr,
    fetch_pull_request,
    get_pull_request_diff,
]

# Tools list for use with Agent(tools=[...])
cherry_pick_tools = [_log_tool_execution(tool) for tool in _raw_tools]

__all__ = [
    "CherryPickDeps",
    "cherry_pick_tools",
    "list_merged_prs",
    "check_cherry_pick_conflicts",
    "request_confirmation",
    "create_cherry_pick_pr",
    "fetch_pull_request",
    "get_pull_request_diff",
]
