"""
@PURPOSE: 日志系统设置 - 配置结构化日志, 日志轮转和多级别输出
@OUTLINE:
  - def setup_logger(): 配置全局日志系统
  - def get_logger_with_context(): 获取带上下文的logger
  - def format_detailed(): 详细格式化器
  - def format_json(): JSON格式化器
  - def format_simple(): 简单格式化器
@GOTCHAS:
  - loguru 会自动管理日志轮转
  - 需要在 CLI 启动时调用 setup_logger(), 导入本模块不会修改 logger
  - JSON 格式适合生产环境日志分析
@DEPENDENCIES:
  - 外部: loguru
  - 内部: config.settings
"""

import json
import sys
from typing import Any, Dict, Optional

from loguru import logger

CONTEXT_KEYS = ("run_id", "phase", "action")


# ========== 日志格式化器 ==========


def _context_parts(extra: Dict[str, Any]) -> list[str]:
    parts = []
    run_id = extra.get("run_id", "")
    if run_id:
        parts.append(f"run={str(run_id)[:8]}")
    for key in ("phase", "action"):
        if extra.get(key):
            parts.append(f"{key}={extra[key]}")
    return parts


def format_detailed(record: Dict[str, Any]) -> str:
    """详细格式化器(开发环境).

    Args:
        record: 日志记录

    Returns:
        格式化模板
    """
    context_parts = _context_parts(record["extra"])
    context_str = f" [{', '.join(context_parts)}]" if context_parts else ""
    # 上下文值可能含有花括号, 需要转义后再拼进模板
    context_str = context_str.replace("{", "{{").replace("}", "}}")

    return (
        "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan>"
        f"{context_str} - "
        "<level>{message}</level>\n"
        "{exception}"
    )


def format_json(record: Dict[str, Any]) -> str:
    """JSON格式化器(生产环境).

    loguru 会把返回值当作模板, 因此序列化结果放进 extra 再引用.
    """
    log_entry = {
        "timestamp": record["time"].isoformat(),
        "level": record["level"].name,
        "logger": record["name"],
        "function": record["function"],
        "line": record["line"],
        "message": record["message"],
    }

    context = {key: record["extra"][key] for key in CONTEXT_KEYS if key in record["extra"]}
    if context:
        log_entry["context"] = context

    if record["exception"]:
        log_entry["exception"] = {
            "type": record["exception"].type.__name__,
            "value": str(record["exception"].value),
        }

    record["extra"]["_json"] = json.dumps(log_entry, ensure_ascii=False, default=str)
    return "{extra[_json]}\n"


def format_simple(record: Dict[str, Any]) -> str:
    """简单格式化器."""
    return "{time:HH:mm:ss} | {level: <8} | {message}\n"


# ========== 日志设置 ==========


def setup_logger(config: Optional[Any] = None, force: bool = False) -> None:
    """配置全局日志系统.

    Args:
        config: 日志配置, 默认使用 settings.logging
        force: 是否移除已有处理器后重新配置

    Examples:
        >>> from autopost.utils.logger_setup import setup_logger
        >>> setup_logger(force=True)
    """
    from config.settings import settings

    if config is None:
        config = settings.logging

    if force:
        logger.remove()

    if config.format == "json":
        formatter = format_json
    elif config.format == "simple":
        formatter = format_simple
    else:
        formatter = format_detailed

    if "console" in config.output:
        logger.add(
            sys.stderr,
            format=formatter,
            level=config.level,
            colorize=config.format != "json",
            backtrace=True,
            diagnose=False,
        )

    if "file" in config.output:
        log_file = settings.get_absolute_path(config.file_path)
        log_file.parent.mkdir(parents=True, exist_ok=True)

        logger.add(
            str(log_file),
            format=formatter,
            level=config.level,
            rotation=config.rotation,
            retention=config.retention,
            compression="zip",
            backtrace=True,
            diagnose=False,
            encoding="utf-8",
        )

    logger.debug(
        f"日志系统已配置: level={config.level}, format={config.format}, output={config.output}"
    )


def get_logger_with_context(**context) -> Any:
    """获取带上下文的logger.

    Examples:
        >>> log = get_logger_with_context(run_id="abc123", phase="form_fill", action="fill_title")
        >>> log.info("开始填写标题")
    """
    return logger.bind(**context)
