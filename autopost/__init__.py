"""
@PURPOSE: Craigslist 自动发布 - 跨页面重载的多阶段发布工作流执行器
@OUTLINE:
  - models: 阶段枚举, 发布数据, 运行状态, 步骤结果, 事件
  - core: 环境探测, 重试执行, 状态持久化, 进度上报, 编排器, 消息路由
  - steps: 各阶段步骤处理器
  - browser: ActionSink 契约与 Playwright 实现, 页面驱动
  - data_processor: 类目/地区匹配表与打分函数
@DEPENDENCIES:
  - 外部: playwright, loguru, pydantic
"""

__version__ = "1.0.0"
