"""
@PURPOSE: 应用配置管理, 使用Pydantic Settings管理配置, 支持多环境和从YAML加载
@OUTLINE:
  - class LoggingConfig: 日志配置
  - class BrowserConfig: 浏览器配置
  - class RetryConfig: 重试配置(hard/soft 两种策略)
  - class WorkflowConfig: 工作流配置(尝试次数, 轮询, 状态文件)
  - class EventsConfig: 事件通道配置
  - class Settings: 应用配置主类
  - def load_environment_config(): 加载环境配置
  - def create_settings(): 创建配置实例
@GOTCHAS:
  - 环境配置文件优先级: 环境变量 > YAML > 默认值
  - Webhook 地址等敏感信息应放在 .env 中
  - 导入时不创建目录, 由 CLI 启动时调用 ensure_directories()
@DEPENDENCIES:
  - 外部: pydantic, pydantic_settings, pyyaml
@RELATED: __init__.py, environments/*.yaml
"""

import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


# ========== 子配置类 ==========


class LoggingConfig(BaseSettings):
    """日志配置.

    Attributes:
        level: 日志级别
        format: 日志格式(detailed/simple/json)
        output: 输出目标列表
        file_path: 文件路径
        rotation: 轮转大小
        retention: 保留时间
    """

    level: str = Field(default="INFO", description="日志级别")
    format: str = Field(default="detailed", description="日志格式")
    output: List[str] = Field(default=["console", "file"], description="输出目标")
    file_path: str = Field(default="data/logs/autopost.log", description="文件路径")
    rotation: str = Field(default="10 MB", description="轮转大小")
    retention: str = Field(default="7 days", description="保留时间")


class BrowserConfig(BaseSettings):
    """浏览器配置.

    Attributes:
        headless: 无头模式
        slow_mo: 慢速模式(毫秒)
        timeout: 默认超时(毫秒)
        viewport: 视口大小
        user_agent: 用户代理
        user_data_dir: 持久化用户目录(保留 Craigslist 登录态)
    """

    headless: bool = Field(default=False, description="无头模式")
    slow_mo: int = Field(default=0, description="慢速模式(毫秒)")
    timeout: int = Field(default=30000, description="默认超时(毫秒)")
    viewport: Dict[str, int] = Field(
        default={"width": 1280, "height": 800},
        description="视口大小",
    )
    user_agent: Optional[str] = Field(default=None, description="用户代理")
    user_data_dir: Optional[str] = Field(default=None, description="持久化用户目录")


class RetryConfig(BaseSettings):
    """重试配置.

    Attributes:
        hard_max_retries: 必需阶段的最大调用次数
        hard_base_delay_ms: 必需阶段的初始延迟
        soft_max_retries: 可选阶段的最大调用次数
        soft_base_delay_ms: 可选阶段的初始延迟
        backoff_factor: 退避因子
        delay_cap_ms: 延迟上限
    """

    hard_max_retries: int = Field(default=2, ge=1, description="必需阶段最大调用次数")
    hard_base_delay_ms: int = Field(default=1000, ge=0, description="必需阶段初始延迟(毫秒)")
    soft_max_retries: int = Field(default=1, ge=1, description="可选阶段最大调用次数")
    soft_base_delay_ms: int = Field(default=800, ge=0, description="可选阶段初始延迟(毫秒)")
    backoff_factor: float = Field(default=1.2, ge=1.0, description="退避因子")
    delay_cap_ms: int = Field(default=3000, ge=0, description="延迟上限(毫秒)")


class WorkflowConfig(BaseSettings):
    """工作流配置.

    Attributes:
        start_url: 发布入口地址
        state_file: 运行状态文件
        max_attempts: 最大工作流尝试次数
        poll_timeout_ms: 等待页面标记的超时
        poll_interval_ms: 轮询间隔
        settle_ms: 操作后的稳定等待
        navigation_timeout_ms: 等待下一页加载的超时
        max_images: 单次附加的最大图片数
        image_download_dir: 图片下载目录
    """

    start_url: str = Field(default="https://post.craigslist.org/c/sfo", description="发布入口")
    state_file: str = Field(default="data/state/run_state.json", description="运行状态文件")
    max_attempts: int = Field(default=3, ge=1, description="最大工作流尝试次数")
    poll_timeout_ms: int = Field(default=12000, ge=100, description="标记等待超时(毫秒)")
    poll_interval_ms: int = Field(default=500, ge=10, description="轮询间隔(毫秒)")
    settle_ms: int = Field(default=500, ge=0, description="操作后稳定等待(毫秒)")
    navigation_timeout_ms: int = Field(default=60000, ge=1000, description="页面跳转超时(毫秒)")
    max_images: int = Field(default=24, ge=1, le=24, description="最大图片数")
    image_download_dir: str = Field(default="data/temp/images", description="图片下载目录")


class EventsConfig(BaseSettings):
    """事件通道配置.

    Attributes:
        channel: 通道类型(log/jsonl/webhook)
        events_file: JSONL 事件文件
        webhook_url: Webhook 地址
        webhook_timeout: Webhook 超时(秒)
    """

    channel: str = Field(default="log", description="事件通道")
    events_file: str = Field(default="data/events/events.jsonl", description="JSONL 事件文件")
    webhook_url: str = Field(default="", description="Webhook 地址")
    webhook_timeout: float = Field(default=10.0, gt=0, description="Webhook 超时(秒)")

    @field_validator("channel")
    @classmethod
    def validate_channel(cls, v: str) -> str:
        """验证通道类型."""
        valid_channels = ["log", "jsonl", "webhook"]
        if v not in valid_channels:
            raise ValueError(f"事件通道必须是: {valid_channels}")
        return v


# ========== 主配置类 ==========


class Settings(BaseSettings):
    """应用配置主类.

    从环境变量, .env文件和YAML配置文件加载配置.
    优先级: 环境变量 > YAML > 默认值

    Examples:
        >>> from config.settings import settings
        >>> settings.workflow.max_attempts
        3
    """

    environment: str = Field(default="development", description="运行环境")
    data_temp_dir: str = Field(default="data/temp", description="临时目录")
    data_logs_dir: str = Field(default="data/logs", description="日志目录")

    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    browser: BrowserConfig = Field(default_factory=BrowserConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    workflow: WorkflowConfig = Field(default_factory=WorkflowConfig)
    events: EventsConfig = Field(default_factory=EventsConfig)

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
        env_nested_delimiter="__",  # 支持 WORKFLOW__MAX_ATTEMPTS=5
    )

    @field_validator("environment")
    @classmethod
    def validate_environment(cls, v: str) -> str:
        """验证环境名称."""
        valid_envs = ["development", "staging", "production"]
        if v not in valid_envs:
            raise ValueError(f"环境必须是: {valid_envs}")
        return v

    def get_absolute_path(self, relative_path: str) -> Path:
        """将相对路径转换为绝对路径(相对于项目根目录)."""
        path = Path(relative_path)
        if path.is_absolute():
            return path
        base_dir = Path(__file__).parent.parent
        return base_dir / relative_path

    def ensure_directories(self) -> None:
        """确保所有必需的目录存在."""
        for dir_path in [
            self.data_temp_dir,
            self.data_logs_dir,
            self.workflow.image_download_dir,
            str(Path(self.workflow.state_file).parent),
            str(Path(self.events.events_file).parent),
        ]:
            self.get_absolute_path(dir_path).mkdir(parents=True, exist_ok=True)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典(隐藏敏感信息)."""
        data = self.model_dump()
        if data["events"].get("webhook_url"):
            data["events"]["webhook_url"] = "***"
        return data


# ========== 配置加载 ==========


def load_environment_config(env: str = "development") -> Dict[str, Any]:
    """从YAML文件加载环境配置, 支持别名引用(文件内容为另一个环境名)."""

    config_dir = Path(__file__).parent / "environments"
    target_file = config_dir / f"{env}.yaml"

    def _load(file_path: Path, seen: set[Path]) -> Dict[str, Any]:
        if file_path in seen:
            raise ValueError(f"检测到环境配置的循环引用: {file_path}")
        seen.add(file_path)

        if not file_path.exists():
            raise FileNotFoundError(f"环境配置文件不存在: {file_path}")

        with file_path.open("r", encoding="utf-8") as handle:
            content = yaml.safe_load(handle)

        if content is None:
            return {}

        if isinstance(content, str):
            alias = content.strip()
            if not alias:
                raise ValueError(f"环境配置别名不能为空: {file_path}")

            if alias.endswith((".yaml", ".yml")):
                alias_file = file_path.parent / alias
            else:
                alias_file = file_path.parent / f"{alias}.yaml"

            return _load(alias_file, seen)

        if not isinstance(content, dict):
            raise TypeError(
                f"环境配置 {file_path} 必须是字典或别名字符串, 当前类型: {type(content).__name__}",
            )

        return content

    return _load(target_file, set())


def create_settings(env: Optional[str] = None) -> Settings:
    """创建配置实例.

    Args:
        env: 环境名称, 为None时从环境变量 ENVIRONMENT 获取

    Returns:
        配置实例
    """
    if env is None:
        env = os.getenv("ENVIRONMENT", "development")

    yaml_config = load_environment_config(env)

    # YAML 作为子配置的初始值, 子配置自身仍会读取环境变量
    return Settings(
        environment=env,
        logging=LoggingConfig(**yaml_config.get("logging", {})),
        browser=BrowserConfig(**yaml_config.get("browser", {})),
        retry=RetryConfig(**yaml_config.get("retry", {})),
        workflow=WorkflowConfig(**yaml_config.get("workflow", {})),
        events=EventsConfig(**yaml_config.get("events", {})),
    )


# ========== 全局配置实例 ==========

_env = os.getenv("ENVIRONMENT", "development")
settings = create_settings(_env)
