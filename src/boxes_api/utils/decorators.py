"""Timing decorators for box operations."""
import functools
import inspect
import logging
import time
from typing import Any, Callable, Dict, Tuple, TypeVar, cast

# Setup logging
logger = logging.getLogger(__name__)

F = TypeVar('F', bound=Callable[..., Any])

# Arguments (or attributes of ``self``) worth naming in a timing line.
CONTEXT_FIELDS = ("box", "file_name", "object_key", "device_id")


def call_context(func: Callable[..., Any], args: Tuple[Any, ...], kwargs: Dict[str, Any]) -> str:
    """Describe which box, file or device a call is about, e.g. `(box=2, file_name=a.txt)`.

    Values are taken from the call's arguments first, then from ``self`` for
    methods such as ``FileTransfer.finish``.
    """
    try:
        bound = inspect.signature(func).bind_partial(*args, **kwargs)
    except TypeError:
        return ""
    arguments = dict(bound.arguments)
    owner = arguments.pop("self", None)

    context = {}
    for field in CONTEXT_FIELDS:
        if field in arguments:
            context[field] = arguments[field]
        elif owner is not None and hasattr(owner, field):
            context[field] = getattr(owner, field)
    if not context:
        return ""
    return " (" + ", ".join(f"{name}={value}" for name, value in context.items()) + ")"


def log_execution_time(func: F) -> F:
    """Log how long a box operation took, and for which box or file.

    Args:
        func: The function to decorate

    Returns:
        Decorated function that logs execution time
    """
    @functools.wraps(func)
    def wrapper(*args, **kwargs):
        context = call_context(func, args, kwargs)
        start_time = time.perf_counter()
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"{func.__name__}{context} failed after {duration:.3f}s: {str(e)}")
            raise
        duration = time.perf_counter() - start_time
        logger.info(f"{func.__name__}{context} completed in {duration:.3f}s")
        return result
    return cast(F, wrapper)


def async_log_execution_time(func: F) -> F:
    """Async counterpart of :func:`log_execution_time`."""
    @functools.wraps(func)
    async def wrapper(*args, **kwargs):
        context = call_context(func, args, kwargs)
        start_time = time.perf_counter()
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            duration = time.perf_counter() - start_time
            logger.error(f"{func.__name__}{context} failed after {duration:.3f}s: {str(e)}")
            raise
        duration = time.perf_counter() - start_time
        logger.info(f"{func.__name__}{context} completed in {duration:.3f}s")
        return result
    return cast(F, wrapper)
