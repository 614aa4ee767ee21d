"""
@PURPOSE: CLI 入口层包初始化
@OUTLINE:
  - 导出主应用 app
@DEPENDENCIES:
  - 内部: cli.main
"""

from cli.main import app

__all__ = ["app"]
