"""新闻订阅机器人：按分类订阅，定时推送去重后的新闻"""

__version__ = "1.0.0"
