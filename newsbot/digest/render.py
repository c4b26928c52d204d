from typing import Iterable, List

from ..domain import Article

# Telegram 旧版 Markdown 模式
PARSE_MODE = "Markdown"


def format_article(article: Article) -> str:
    """
    单篇文章消息：粗体标题、正文摘要、原文链接。
    摘要为空时省略该行。
    """
    lines: List[str] = [f"*{article.title}*"]
    if article.description:
        lines.append(article.description)
    lines.append(f"[Read more]({article.url})")
    return "\n".join(lines)


def format_no_news(category: str) -> str:
    return f"*No new articles yet* for category {category}."


def format_news_reply(articles: Iterable[Article]) -> str:
    """/news 命令的回复，多篇文章合并为一条消息"""
    return "\n\n".join(format_article(a) for a in articles)
