import time
from typing import Any, Callable

from src.platform.logging.loguru_io_config import (
    SENSITIVE_KEYWORDS,
    call_depth_var,
    chain_start_time_var,
)


MASK = '***'
MAX_CONTENT_LENGTH = 500


def build_call_target_func_path(func: Callable[..., Any]) -> str:
    module = getattr(func, '__module__', '') or ''
    short_module = module.rsplit('.', 1)[-1]
    return f'{short_module}.{getattr(func, "__qualname__", repr(func))}'


def get_chain_start_time() -> float:
    """Start time of the outermost decorated call in this context (set once per chain)."""
    start = chain_start_time_var.get()
    if not start:
        start = time.time()
        chain_start_time_var.set(start)
    return start


def reset_call_depth() -> None:
    depth = max(call_depth_var.get() - 1, 0)
    call_depth_var.set(depth)
    if depth == 0:
        chain_start_time_var.set(0)


def should_mask_keyword(key: Any, value: Any) -> Any:
    if isinstance(key, str) and key.lower() in SENSITIVE_KEYWORDS:
        return MASK
    return value


def mask_sensitive(data: Any) -> Any:
    # SecretStr and friends already render masked
    if hasattr(data, 'get_secret_value'):
        return MASK
    return data


def truncate_content(data: Any) -> Any:
    if isinstance(data, (str, bytes)) and len(data) > MAX_CONTENT_LENGTH:
        return f'{data[:MAX_CONTENT_LENGTH]!r}...(+{len(data) - MAX_CONTENT_LENGTH})'
    return data
