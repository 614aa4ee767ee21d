"""
@PURPOSE: 测试图片获取器 - 下载, 本地路径, 部分失败, 全部失败, 去重与截断
@OUTLINE:
  - TestSelectSources: 去重与上限
  - TestFetchAll: 使用 httpx.MockTransport 模拟下载
@DEPENDENCIES:
  - 外部: pytest, pytest-asyncio, httpx
  - 内部: autopost.browser.image_fetcher
"""

import httpx
import pytest

from autopost.browser.image_fetcher import ImageFetcher
from autopost.errors import ExternalFetchFailure

JPEG_BYTES = b"\xff\xd8\xff\xe0fake-jpeg"


def image_transport(missing=()):
    def handler(request: httpx.Request) -> httpx.Response:
        if request.url.path in missing:
            return httpx.Response(404)
        return httpx.Response(200, content=JPEG_BYTES, headers={"content-type": "image/jpeg"})

    return httpx.MockTransport(handler)


class TestSelectSources:
    """测试图片来源选择"""

    def test_dedupes_and_drops_blank(self, tmp_path):
        fetcher = ImageFetcher(tmp_path)
        sources = fetcher.select_sources(["https://a/1.jpg", "", "https://a/1.jpg", "  ", "https://a/2.jpg"])
        assert sources == ["https://a/1.jpg", "https://a/2.jpg"]

    def test_caps_to_max(self, tmp_path):
        fetcher = ImageFetcher(tmp_path, max_images=3)
        sources = fetcher.select_sources([f"https://a/{i}.jpg" for i in range(10)])
        assert sources == ["https://a/0.jpg", "https://a/1.jpg", "https://a/2.jpg"]


class TestFetchAll:
    """测试图片下载"""

    @pytest.mark.asyncio
    async def test_downloads_in_order(self, tmp_path):
        fetcher = ImageFetcher(tmp_path / "images", transport=image_transport())
        paths = await fetcher.fetch_all(["https://cdn.example.com/a", "https://cdn.example.com/b.png"])

        assert len(paths) == 2
        assert all(path.parent == tmp_path / "images" for path in paths)
        assert paths[0].name.startswith("image_1_")
        assert paths[1].name.startswith("image_2_")
        assert paths[0].read_bytes() == JPEG_BYTES

    @pytest.mark.asyncio
    async def test_partial_failure(self, tmp_path):
        fetcher = ImageFetcher(tmp_path, transport=image_transport(missing={"/gone.jpg"}))
        paths = await fetcher.fetch_all(["https://cdn.example.com/gone.jpg", "https://cdn.example.com/ok.jpg"])
        assert len(paths) == 1
        assert paths[0].name.startswith("image_2_")

    @pytest.mark.asyncio
    async def test_all_failed(self, tmp_path):
        fetcher = ImageFetcher(tmp_path, transport=image_transport(missing={"/a.jpg", "/b.jpg"}))
        with pytest.raises(ExternalFetchFailure) as exc_info:
            await fetcher.fetch_all(["https://cdn.example.com/a.jpg", "https://cdn.example.com/b.jpg"])
        assert exc_info.value.message == "Could not fetch any of 2 images"

    @pytest.mark.asyncio
    async def test_local_files_are_used_directly(self, tmp_path):
        local = tmp_path / "photo.jpg"
        local.write_bytes(JPEG_BYTES)
        fetcher = ImageFetcher(tmp_path / "images", transport=image_transport())

        paths = await fetcher.fetch_all([str(local), local.as_uri(), str(tmp_path / "missing.jpg")])

        assert paths == [local, local]

    @pytest.mark.asyncio
    async def test_no_sources(self, tmp_path):
        fetcher = ImageFetcher(tmp_path / "images")
        assert await fetcher.fetch_all([]) == []
        assert not (tmp_path / "images").exists()
