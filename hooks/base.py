from abc import ABC
from typing import List
from context import RunContext
from models import CommitRecord


class BasePlugin(ABC):
    """
    插件基类
    定义所有生命周期钩子。用户自定义插件应继承此类。
    """

    # 插件名称 (建议子类覆盖)
    name: str = "BasePlugin"

    def on_start(self, context: RunContext):
        """
        [钩子] 流程开始时调用。
        """
        pass

    def on_commits_extracted(self, context: RunContext, commits: List[CommitRecord]):
        """
        [钩子] 所有仓库的提交提取完成后调用。
        可用于检查数据完整性或统计自定义指标。提交列表应视为只读。
        """
        pass

    def on_report_generated(self, context: RunContext, content: str, author: str) -> str:
        """
        [Filter 钩子] 文本报告生成后、写入文件前调用。
        **必须返回字符串**。可用于敏感词过滤或追加内容。

        :param content: 原始报告文本
        :param author: 报告对应的作者，汇总报告为 TOTAL
        :return: 修改后的报告 (若不修改请直接返回 content)
        """
        return content

    def on_finish(self, context: RunContext):
        """
        [钩子] 流程结束时调用（只要未崩溃）。
        """
        pass
