"""
Article proxy helper tests: HTML utilities, templates, fetcher
"""

import json

import httpx
import pytest

from article_proxy.fetcher import fetch_with_retry
from article_proxy.html_utils import escape_html, escape_html_attr, get_article_title, preprocess_html
from article_proxy.templates import render_preview


class TestGetArticleTitle:
    """标题提取测试"""

    def test_prefers_og_title(self):
        html = (
            '<meta property="twitter:title" content="Twitter" />'
            '<meta property="og:title" content="OG Title" />'
            "<title>Tag</title>"
        )
        assert get_article_title(html, "id") == "OG_Title"

    def test_falls_back_to_twitter_then_title_tag(self):
        assert get_article_title('<meta property="twitter:title" content="T">', "id") == "T"
        assert get_article_title("<title>Plain Title</title>", "id") == "Plain_Title"

    def test_fallback_id(self):
        assert get_article_title("<p>no title</p>", "abc") == "wechat-article-abc"

    def test_strips_unsafe_characters(self):
        """测试：移除文件名非法字符，保留中文"""
        html = '<title>公众号: "文章"/标题?*| 2024!</title>'
        assert get_article_title(html, "id") == "公众号_文章标题_2024"

    def test_limits_length(self):
        html = f"<title>{'a' * 300}</title>"
        assert len(get_article_title(html, "id")) == 100


class TestPreprocessHtml:
    """懒加载图片预处理测试"""

    def test_promotes_data_src_when_src_missing(self):
        html = '<img data-src="https://mmbiz.qpic.cn/a/640">'
        assert preprocess_html(html) == (
            '<img src="https://mmbiz.qpic.cn/a/640" data-src="https://mmbiz.qpic.cn/a/640">'
        )

    def test_replaces_data_uri_placeholder(self):
        html = '<img src="data:image/gif;base64,AAAA" data-src="https://x/a.png">'
        result = preprocess_html(html)
        assert 'src="https://x/a.png"' in result
        assert "data:image/gif" not in result

    def test_keeps_real_src(self):
        html = '<img src="https://x/real.png" data-src="https://x/lazy.png">'
        assert preprocess_html(html) == html

    def test_no_lazy_images(self):
        html = "<p>hello</p><img src='a.png'>"
        assert preprocess_html(html) == html


class TestEscaping:
    def test_escape_html(self):
        assert escape_html("<a href=\"x\">&'</a>") == "&lt;a href=&quot;x&quot;&gt;&amp;&#x27;&lt;/a&gt;"

    def test_escape_html_attr(self):
        assert escape_html_attr('a&b"c') == "a&amp;b&quot;c"


class TestRenderPreview:
    """HTML 预览模板测试"""

    def test_title_is_escaped(self):
        page = render_preview("<b>t</b>", "x")
        assert "<title>&lt;b&gt;t&lt;/b&gt;</title>" in page

    def test_script_close_is_escaped(self):
        """测试：Markdown 中的 </script> 不会提前结束脚本"""
        markdown = "before </script><script>alert(1)</script>"
        page = render_preview("t", markdown)

        assert "</script><script>alert(1)" not in page
        assert json.dumps(markdown, ensure_ascii=False).replace("</", "<\\/") in page


class TestFetchWithRetry:
    """重试请求测试"""

    @pytest.mark.asyncio
    async def test_retries_transport_errors(self):
        attempts = []

        def handler(request):
            attempts.append(request)
            if len(attempts) < 3:
                raise httpx.ConnectError("down", request=request)
            return httpx.Response(200, text="ok")

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        response = await fetch_with_retry(client, "https://example.com/a", retries=3, delay=0)

        assert response.text == "ok"
        assert len(attempts) == 3

    @pytest.mark.asyncio
    async def test_raises_after_last_attempt(self):
        def handler(request):
            raise httpx.ConnectError("down", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        with pytest.raises(httpx.ConnectError):
            await fetch_with_retry(client, "https://example.com/a", retries=2, delay=0)

    @pytest.mark.asyncio
    async def test_returns_error_status_and_sets_referer(self):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(404)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        response = await fetch_with_retry(client, "https://example.com/a", referer="https://ref/")

        assert response.status_code == 404
        assert len(seen) == 1
        assert seen[0].headers["Referer"] == "https://ref/"
