"""
@PURPOSE: 下载发布图片到本地临时目录, 供文件输入框附加
@OUTLINE:
  - class ImageFetcher: 图片获取器
    - def select_sources(): 去重并截断到上限
    - async def fetch_all(): 逐张下载(本地路径直接使用)
@GOTCHAS:
  - Craigslist 单条最多24张图片
  - 单张失败只记录警告; 全部失败才抛出 ExternalFetchFailure
@DEPENDENCIES:
  - 外部: httpx, loguru
  - 内部: autopost.errors
"""

from __future__ import annotations

import mimetypes
import time
from collections.abc import Iterable
from pathlib import Path
from urllib.parse import urlparse

import httpx
from loguru import logger

from ..errors import ExternalFetchFailure

MAX_IMAGES = 24
DEFAULT_SUFFIX = ".jpg"


class ImageFetcher:
    """图片获取器.

    Examples:
        >>> fetcher = ImageFetcher("data/temp/images")
        >>> paths = await fetcher.fetch_all(["https://example.com/a.jpg"])
    """

    def __init__(
        self,
        download_dir: Path | str,
        max_images: int = MAX_IMAGES,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """初始化图片获取器.

        Args:
            download_dir: 下载目录
            max_images: 最大图片数
            timeout: 单张下载超时(秒)
            transport: 自定义传输层(测试时注入 MockTransport)
        """
        self.download_dir = Path(download_dir)
        self.max_images = max_images
        self.timeout = timeout
        self.transport = transport

    def select_sources(self, images: Iterable[str]) -> list[str]:
        """去重(保持顺序), 丢弃空值, 截断到上限."""
        unique = [source for source in dict.fromkeys(images) if source and source.strip()]
        if len(unique) > self.max_images:
            logger.warning(f"⚠️ 图片数量 {len(unique)} 超过上限, 只使用前 {self.max_images} 张")
        return unique[: self.max_images]

    async def fetch_all(self, images: Iterable[str]) -> list[Path]:
        """获取全部图片.

        Returns:
            本地文件路径列表(按原顺序, 不含失败项)

        Raises:
            ExternalFetchFailure: 所有图片都获取失败
        """
        sources = self.select_sources(images)
        if not sources:
            return []

        self.download_dir.mkdir(parents=True, exist_ok=True)
        paths: list[Path] = []

        async with httpx.AsyncClient(
            timeout=self.timeout, follow_redirects=True, transport=self.transport
        ) as client:
            for index, source in enumerate(sources, 1):
                try:
                    path = await self._fetch_one(client, source, index)
                    paths.append(path)
                    logger.debug(f"图片已就绪 [{index}/{len(sources)}]: {path.name}")
                except (httpx.HTTPError, OSError) as exc:
                    logger.warning(f"⚠️ 图片获取失败 [{index}/{len(sources)}]: {source[:60]} - {exc}")

        if not paths:
            raise ExternalFetchFailure(
                f"Could not fetch any of {len(sources)} images", phase="image_upload"
            )

        logger.info(f"✓ 图片获取完成: {len(paths)}/{len(sources)}")
        return paths

    async def _fetch_one(self, client: httpx.AsyncClient, source: str, index: int) -> Path:
        parsed = urlparse(source)
        if parsed.scheme not in ("http", "https"):
            local = Path(parsed.path if parsed.scheme == "file" else source).expanduser()
            if not local.is_file():
                raise FileNotFoundError(f"本地图片不存在: {local}")
            return local

        response = await client.get(source)
        response.raise_for_status()

        suffix = self._guess_suffix(response.headers.get("content-type", ""), parsed.path)
        target = self.download_dir / f"image_{index}_{int(time.time() * 1000)}{suffix}"
        target.write_bytes(response.content)
        return target

    @staticmethod
    def _guess_suffix(content_type: str, url_path: str) -> str:
        mime = content_type.split(";")[0].strip()
        if mime:
            guessed = mimetypes.guess_extension(mime)
            if guessed:
                return guessed
        return Path(url_path).suffix or DEFAULT_SUFFIX
