"""
Article Proxy Configuration
"""

import os
from dataclasses import dataclass


@dataclass(frozen=True)
class ProxyConfig:
    """Settings for fetching and converting articles."""
    wechat_url_prefix: str = "https://mp.weixin.qq.com/"
    fetch_retries: int = 3
    fetch_retry_delay: float = 1.0   # Seconds, grows x1.5 per retry
    fetch_timeout: float = 30.0
    version: str = "1.0.0"

    @classmethod
    def from_env(cls) -> "ProxyConfig":
        return cls(
            wechat_url_prefix=os.getenv("WECHAT_URL_PREFIX", "https://mp.weixin.qq.com/"),
            fetch_retries=int(os.getenv("FETCH_RETRIES", "3")),
            fetch_retry_delay=float(os.getenv("FETCH_RETRY_DELAY", "1.0")),
            fetch_timeout=float(os.getenv("FETCH_TIMEOUT", "30")),
            version=os.getenv("APP_VERSION", "1.0.0"),
        )
