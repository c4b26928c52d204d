"""推送消息渲染"""
from .render import format_article, format_no_news, format_news_reply

__all__ = ["format_article", "format_no_news", "format_news_reply"]
