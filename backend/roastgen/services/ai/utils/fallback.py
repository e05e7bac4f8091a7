"""
生成调用的兜底与日志装饰器

ai_fallback: 辅助调用（如上下文分析）失败时记录原因并返回兜底值
log_and_reraise: 主调用失败时记录底层原因后原样抛出
"""
import functools
from typing import Any, Callable, Optional, Tuple, Type

from loguru import logger

from ..errors import GenerationFailedError, classify_error


def _describe_failure(exc: BaseException) -> str:
    # GenerationFailedError only carries the user message; the real reason is its cause
    cause = exc.__cause__ if isinstance(exc, GenerationFailedError) and exc.__cause__ else exc
    return f"{exc} [{classify_error(cause).label}: {cause!r}]"


def ai_fallback(
    fallback_func: Optional[Callable] = None,
    fallback_value: Any = None,
    log_level: str = "warning",
    log_message: Optional[str] = None,
    passthrough: Tuple[Type[BaseException], ...] = (),
):
    """
    失败时返回兜底结果的装饰器

    Args:
        fallback_func: 以相同参数调用，动态生成兜底结果（优先）
        fallback_value: 静态兜底值，fallback_func 也失败时同样使用
        log_level: loguru 日志级别名
        log_message: 日志前缀，默认 "<函数名> 失败"
        passthrough: 直接抛出、不兜底的异常类型（如取消）

    Usage:
        @ai_fallback(fallback_value="", passthrough=(GenerationCancelled,))
        def analyze_context(self, text):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except passthrough:
                raise
            except Exception as e:
                prefix = log_message or f"{func.__name__} 失败"
                getattr(logger, log_level)(f"{prefix}，使用兜底结果: {_describe_failure(e)}")

                if fallback_func is None:
                    return fallback_value
                try:
                    return fallback_func(*args, **kwargs)
                except Exception as fallback_error:
                    logger.error(f"{prefix}，兜底函数同样失败: {fallback_error!r}")
                    return fallback_value
        return wrapper
    return decorator


def log_and_reraise(log_message: Optional[str] = None):
    """
    记录失败原因后原样抛出

    调用方参数错误（ValueError）只记 warning；其余记 error，
    GenerationFailedError 会附带被链接的底层原因。

    Usage:
        @log_and_reraise("流式生成失败")
        def generate_roasts(self, text, on_roast):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            try:
                return func(*args, **kwargs)
            except ValueError as e:
                logger.warning(f"{log_message or func.__name__}: 参数无效: {e}")
                raise
            except Exception as e:
                logger.error(f"{log_message or func.__name__ + ' 失败'}: {_describe_failure(e)}")
                raise
        return wrapper
    return decorator
