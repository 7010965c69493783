# plugins/sensitive_filter.py
import logging

from hooks.base import BasePlugin
from context import RunContext

logger = logging.getLogger(__name__)


class SensitiveWordFilterPlugin(BasePlugin):
    """
    插件：敏感词过滤
    报告写入前把提交消息中的敏感词替换为 ***，词表来自 WORKLOG_SENSITIVE_WORDS。
    """

    name = "SensitiveWordFilter"

    def on_report_generated(self, context: RunContext, content: str, author: str) -> str:
        if not content:
            return content

        filtered = content
        count = 0
        for word in context.global_config.SENSITIVE_WORDS:
            if word in filtered:
                count += filtered.count(word)
                filtered = filtered.replace(word, "***")

        if count > 0:
            logger.info(f"🛡️ [SensitiveWordFilter] {author} 的报告中已过滤 {count} 处敏感词。")
        return filtered
