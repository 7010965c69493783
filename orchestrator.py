"""
[V1.0] 业务逻辑编排器
- extract_commits: 逐个仓库提取提交并解析分支
- ReportOrchestrator: 拉取 -> 提取 -> 过滤 -> 写报告，集成 Hook 系统
"""
import logging
from datetime import datetime
from typing import List, Optional

from config import GlobalConfig
from context import RunContext
from models import CommitRecord, RepoItem
import config_manager
import report_builder

from data_sources.factory import get_data_source
from hooks.manager import PluginManager

logger = logging.getLogger(__name__)

DATE_FORMAT = "%Y-%m-%d"


def validate_date(value: str) -> str:
    """校验 YYYY-MM-DD 格式，非法时抛出 ValueError"""
    datetime.strptime(value, DATE_FORMAT)
    return value


def extract_commits(
    repo_paths: List[str],
    start_date: str,
    end_date: str,
    global_config: Optional[GlobalConfig] = None,
) -> List[CommitRecord]:
    """
    按调用方给定的顺序处理每个仓库，合并为一个提交列表。
    git log 失败的仓库贡献 0 条记录并继续处理下一个仓库；
    git 无法启动时抛出 LaunchError。
    """
    validate_date(start_date)
    validate_date(end_date)
    global_config = global_config or GlobalConfig()

    all_commits: List[CommitRecord] = []
    for repo_path in repo_paths:
        data_source = get_data_source(repo_path, global_config)
        commits = data_source.get_commits(start_date, end_date)
        logger.info(f"📂 {repo_path}: {len(commits)} 个提交")
        all_commits.extend(commits)

    logger.info(f"✅ 共提取 {len(all_commits)} 个提交 ({len(repo_paths)} 个仓库)")
    return all_commits


def filter_commits(
    commits: List[CommitRecord],
    author: Optional[str] = None,
    project: Optional[str] = None,
) -> List[CommitRecord]:
    """作者按不区分大小写的子串匹配，项目按仓库名精确匹配"""
    result = commits
    if author:
        needle = author.lower()
        result = [c for c in result if needle in c.author.lower()]
    if project:
        result = [c for c in result if c.repo_name == project]
    return result


class ReportOrchestrator:
    """
    负责执行报告生成的核心业务流程。
    """

    def __init__(self, context: RunContext):
        self.context = context
        self.global_config = context.global_config

        self.plugin_manager = PluginManager(context)
        self.plugin_manager.load_plugins()

    def _validate_repos(self) -> List[str]:
        valid = []
        for repo_path in self.context.repo_paths:
            if get_data_source(repo_path, self.global_config).validate():
                valid.append(repo_path)
        return valid

    def _filter_report(self, content: str, author: str) -> str:
        return self.plugin_manager.filter("on_report_generated", content, author)

    def run(self) -> Optional[str]:
        """
        执行核心业务流程，返回报告输出目录 (预览模式返回 None)。
        """
        self.plugin_manager.trigger("on_start")

        # --- 1. 验证仓库 ---
        repo_paths = self._validate_repos()
        if not repo_paths:
            logger.error("❌ 没有可用的 Git 仓库，终止运行。")
            return None

        # --- 2. 拉取远程更新 ---
        if self.context.fetch and self.context.fetch_paths:
            logger.info("🔄 正在检查并拉取最新代码...")
            config_manager.fetch_repos(
                [RepoItem(path=p) for p in self.context.fetch_paths if p in repo_paths],
                self.global_config,
            )

        # --- 3. 提取提交 ---
        logger.info("🔍 正在分析提交记录...")
        commits = extract_commits(
            repo_paths,
            self.context.start_date,
            self.context.end_date,
            self.global_config,
        )
        commits = filter_commits(
            commits, self.context.author_filter, self.context.project_filter
        )
        logger.info(f"✅ 分析完成，共找到 {len(commits)} 条提交记录。")

        self.plugin_manager.trigger("on_commits_extracted", commits=commits)

        # --- 4. 预览模式: 仅输出到控制台 ---
        if self.context.preview:
            self._print_preview(commits)
            self.plugin_manager.trigger("on_finish")
            return None

        if not commits:
            logger.warning("⚠️ 未找到提交记录，仍将生成空的汇总报告。")

        # --- 5. 写出文本报告 ---
        output_dir = report_builder.write_reports(
            commits,
            self.context.output_root,
            self.context.start_date,
            self.context.end_date,
            aliases=self.context.aliases,
            global_config=self.global_config,
            content_filter=self._filter_report,
        )

        # --- 6. HTML 数据概览 ---
        if self.context.html:
            stats = report_builder.summarize_commits(commits, self.context.aliases)
            html_content = report_builder.generate_html_overview(
                stats, self.context.start_date, self.context.end_date, self.global_config
            )
            report_builder.save_html_overview(
                html_content,
                output_dir,
                commits,
                self.context.start_date,
                self.context.end_date,
                self.global_config,
            )

        logger.info(f"✅ 导出成功: {output_dir}")
        self.plugin_manager.trigger("on_finish")
        return output_dir

    def _print_preview(self, commits: List[CommitRecord]):
        stats = report_builder.summarize_commits(commits, self.context.aliases)
        text_report = report_builder.generate_text_report(
            commits, self.context.start_date, self.context.end_date
        )
        print(self._filter_report(text_report, report_builder.TOTAL_AUTHOR))
        print("=" * 40)
        print(f"提交数量: {stats['total_commits']}")
        print(f"代码变更: +{stats['insertions']} -{stats['deletions']}")
        print("提交类型: " + ", ".join(f"{name} {count}" for name, count in stats["types"]))
        print("活跃作者: " + ", ".join(f"{name} {count}" for name, count in stats["top_authors"]))
