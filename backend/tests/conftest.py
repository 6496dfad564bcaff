"""
测试配置文件

pytest fixtures and helpers shared by the image store and article proxy tests.

关键概念：
- FakeObjectStore：内存对象存储，记录 head/put 调用
- image_transport：httpx.MockTransport，模拟图片源站
"""

import sys
from pathlib import Path
from typing import Callable, Dict, List, Optional, Tuple

import httpx
import pytest

# 添加 backend 目录到 Python 路径
backend_dir = Path(__file__).parent.parent
sys.path.insert(0, str(backend_dir))

from image_store import ImageStoreConfig, ObjectMetadata


BASE_URL = "https://img.example.com"

PNG_URL = "https://mmbiz.qpic.cn/sz_mmbiz_png/abc123/640?wx_fmt=png"
PNG_KEY = "mmbiz_qpic_cn/sz_mmbiz_png/abc123/640.png"


# ============================================
# Fakes
# ============================================

class FakeObjectStore:
    """内存对象存储，记录所有调用。"""

    name = "fake"

    def __init__(self, existing: Optional[Dict[str, bytes]] = None, fail_put_for: Tuple[str, ...] = ()):
        self.objects: Dict[str, bytes] = dict(existing or {})
        self.metadata: Dict[str, ObjectMetadata] = {}
        self.head_calls: List[str] = []
        self.put_calls: List[str] = []
        self.fail_put_for = fail_put_for

    async def head(self, key: str) -> bool:
        self.head_calls.append(key)
        return key in self.objects

    async def put(self, key: str, data: bytes, metadata: ObjectMetadata) -> None:
        self.put_calls.append(key)
        if key in self.fail_put_for:
            raise RuntimeError(f"store unavailable for {key}")
        self.objects[key] = data
        self.metadata[key] = metadata


def make_image_transport(
    status_for: Optional[Callable[[httpx.Request], int]] = None,
    content_type: str = "image/png",
    requests: Optional[List[httpx.Request]] = None,
) -> httpx.MockTransport:
    """Image origin answering every request with fixed bytes."""

    def handler(request: httpx.Request) -> httpx.Response:
        if requests is not None:
            requests.append(request)
        status = status_for(request) if status_for else 200
        if status >= 400:
            return httpx.Response(status)
        return httpx.Response(
            status,
            content=b"image-bytes:" + request.url.path.encode(),
            headers={"content-type": content_type},
        )

    return httpx.MockTransport(handler)


# ============================================
# Fixtures
# ============================================

@pytest.fixture
def config():
    return ImageStoreConfig(public_base_url=BASE_URL)


@pytest.fixture
def unconfigured():
    return ImageStoreConfig(public_base_url=None)


@pytest.fixture
def store():
    return FakeObjectStore()


# ============================================
# Helper Functions
# ============================================

def wechat_image(path: str, fmt: Optional[str] = None, host: str = "mmbiz.qpic.cn") -> str:
    url = f"https://{host}/{path}"
    if fmt:
        url += f"?wx_fmt={fmt}"
    return url
