"""
HTML Templates

Index page and markdown preview page.
"""

import json

from .html_utils import escape_html

PREVIEW_TEMPLATE = """<!DOCTYPE html>
<html lang="zh-CN">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{{TITLE}}</title>
  <style>
    body {
      font-family: -apple-system, BlinkMacSystemFont, "Segoe UI", Roboto, "Helvetica Neue", Arial, sans-serif;
      line-height: 1.6;
      color: #333;
      max-width: 800px;
      margin: 0 auto;
      padding: 20px;
    }
    pre {
      background-color: #f5f5f5;
      padding: 15px;
      border-radius: 5px;
      white-space: pre-wrap;
      word-wrap: break-word;
      overflow-x: auto;
      font-family: monospace;
      border: 1px solid #ddd;
    }
    img { max-width: 100%; }
  </style>
</head>
<body>
  <div id="content"><pre id="raw"></pre></div>
  <script>
    const markdown = {{MARKDOWN_JSON}};
    document.getElementById("raw").textContent = markdown;
  </script>
  <script src="https://cdn.jsdelivr.net/npm/marked/marked.min.js"></script>
  <script>
    if (window.marked) {
      document.getElementById("content").innerHTML = marked.parse(markdown);
    }
  </script>
</body>
</html>"""

INDEX_HTML = """<!DOCTYPE html>
<html lang="zh-CN">
<head>
  <meta charset="UTF-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>WeChat Article to Markdown</title>
</head>
<body>
  <h1>WeChat Article to Markdown</h1>
  <ul>
    <li><code>/s/{article_id}</code> &mdash; WeChat article as markdown</li>
    <li><code>/html/s/{article_id}</code> &mdash; WeChat article as HTML preview</li>
    <li><code>/md?url={encoded_url}</code> &mdash; any web page as markdown</li>
    <li><code>/html/md?url={encoded_url}</code> &mdash; any web page as HTML preview</li>
    <li>Add <code>download=true</code> to download the markdown file</li>
  </ul>
</body>
</html>"""


def render_index_page() -> str:
    return INDEX_HTML


def render_preview(title: str, markdown: str) -> str:
    """
    Render the markdown preview page.

    The markdown is embedded as a JSON string literal; "</" is escaped so
    the content cannot close the script tag.
    """
    markdown_json = json.dumps(markdown, ensure_ascii=False).replace("</", "<\\/")
    return (
        PREVIEW_TEMPLATE
        .replace("{{TITLE}}", escape_html(title))
        .replace("{{MARKDOWN_JSON}}", markdown_json, 1)
    )
