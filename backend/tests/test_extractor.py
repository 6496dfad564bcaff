"""
Image reference extractor tests

运行测试：
    cd backend
    pytest tests/test_extractor.py -v
"""

from image_store import extract_image_urls
from image_store.config import DEFAULT_ALLOWED_HOSTS

from conftest import PNG_URL, wechat_image


class TestExtractImageUrls:
    """图片链接提取测试"""

    def test_finds_urls_in_html_and_markdown(self):
        """测试：合并 HTML 与 Markdown 中的链接"""
        a = wechat_image("sz_mmbiz_jpg/a/640", "jpeg")
        b = wechat_image("sz_mmbiz_png/b/640", "png")
        html = f'<img src="{a}">'
        markdown = f"![]({b})"

        assert extract_image_urls(html, markdown, DEFAULT_ALLOWED_HOSTS) == [a, b]

    def test_deduplicates_in_first_seen_order(self):
        """测试：去重并保持首次出现顺序"""
        a = wechat_image("x/a/0")
        b = wechat_image("x/b/0")
        html = f'<img src="{b}"><img src="{a}"><img src="{b}">'
        markdown = f"![]({a}) ![]({b})"

        assert extract_image_urls(html, markdown, DEFAULT_ALLOWED_HOSTS) == [b, a]

    def test_trims_trailing_punctuation(self):
        """测试：移除尾部标点"""
        a = wechat_image("x/a/640")
        markdown = f"see {a}. and {a}, then ({a})"

        assert extract_image_urls("", markdown, DEFAULT_ALLOWED_HOSTS) == [a]

    def test_entity_escaped_query_is_one_reference(self):
        """测试：&amp; 查询串不会拆成两个引用"""
        html = f'<img src="{PNG_URL}&amp;from=appmsg&amp;tp=webp">'
        markdown = f"![]({PNG_URL}&from=appmsg)"

        assert extract_image_urls(html, markdown, DEFAULT_ALLOWED_HOSTS) == [PNG_URL]

    def test_qlogo_host_is_eligible(self):
        """测试：qlogo 域名同样匹配"""
        logo = wechat_image("mmhead/xyz/0", host="mmbiz.qlogo.cn")
        assert extract_image_urls("", f"![]({logo})", DEFAULT_ALLOWED_HOSTS) == [logo]

    def test_ignores_other_hosts(self):
        """测试：忽略非白名单域名"""
        markdown = "![](https://example.com/a.png) ![](https://qpic.cn.evil.com/a.png)"
        assert extract_image_urls("", markdown, DEFAULT_ALLOWED_HOSTS) == []

    def test_empty_inputs(self):
        """测试：空输入返回空列表"""
        assert extract_image_urls("", "", DEFAULT_ALLOWED_HOSTS) == []
        assert extract_image_urls(None, None, DEFAULT_ALLOWED_HOSTS) == []
        assert extract_image_urls("<p>no images</p>", "text", ()) == []

    def test_custom_allowed_hosts(self):
        """测试：自定义白名单"""
        url = "https://cdn.example.org/pics/1"
        assert extract_image_urls("", f"![]({url})", ("cdn.example.org",)) == [url]
