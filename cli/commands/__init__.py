"""
@PURPOSE: CLI 命令模块包初始化
@OUTLINE:
  - 导出所有命令组
@DEPENDENCIES:
  - 内部: cli.commands.*
"""

from cli.commands.workflow import workflow_app

__all__ = ["workflow_app"]
