"""
[V1.0] 报告生成器
- 按 日期 -> 项目 -> 分支 -> 提交消息 聚合提交
- 渲染纯文本工作日志 (每位作者一份 + 汇总一份)
- 使用 Jinja2 模板渲染可选的 HTML 数据概览
"""
import logging
import os
from collections import Counter
from typing import Any, Callable, Dict, Iterable, List, Optional

from jinja2 import Environment, FileSystemLoader, select_autoescape

from config import GlobalConfig
from errors import ReportWriteError
from models import AuthorAlias, CommitRecord

logger = logging.getLogger(__name__)

ReportTree = Dict[str, Dict[str, Dict[str, List[str]]]]

SEPARATOR_LINE = "-" * 40
TOTAL_AUTHOR = "TOTAL"


def build_report_tree(commits: Iterable[CommitRecord]) -> ReportTree:
    """
    构建 日期(升序) -> 项目(字典序) -> 分支(字典序) -> 消息列表 的四级结构。
    同一分支下的消息保持提交追加的顺序。
    """
    aggregated: ReportTree = {}
    for commit in commits:
        (
            aggregated.setdefault(commit.date, {})
            .setdefault(commit.repo_name, {})
            .setdefault(commit.branch, [])
            .append(commit.message)
        )
    return {
        date: {
            repo: {branch: branches[branch] for branch in sorted(branches)}
            for repo, branches in sorted(repos.items())
        }
        for date, repos in sorted(aggregated.items())
    }


def generate_text_report(
    commits: List[CommitRecord],
    start_date: str,
    end_date: str,
    author: Optional[str] = None,
) -> str:
    """
    生成纯文本工作日志。author 为 None 时生成汇总报告 (所有作者)。
    """
    if author is None:
        lines = ["汇总报告 (所有作者)"]
    else:
        lines = [f"作者: {author}"]
    lines.append(f"时间范围: {start_date} 至 {end_date}")
    lines.append(SEPARATOR_LINE)
    lines.append("")

    for date, repos in build_report_tree(commits).items():
        lines.append(f"【{date}】")
        for repo, branches in repos.items():
            lines.append(f"  📂 项目: {repo}")
            for branch, messages in branches.items():
                lines.append(f"    🌿 分支: {branch}")
                for index, message in enumerate(messages, start=1):
                    if not message:
                        continue
                    message_lines = message.split("\n")
                    lines.append(f"      {index}. {message_lines[0]}")
                    for line in message_lines[1:]:
                        lines.append(f"         {line}")
                lines.append("")
            lines.append("")

    return "\n".join(lines) + "\n"


def format_date_range(start: str, end: str) -> str:
    """
    压缩日期范围: 省略与起始日期相同的年份 (以及月份)
    2024-01-05 ~ 2024-01-09 -> 2024-01-05~09
    """
    start_parts = start.split("-")
    end_parts = end.split("-")
    if len(start_parts) == 3 and len(end_parts) == 3 and start_parts[0] == end_parts[0]:
        if start_parts[1] == end_parts[1]:
            return f"{start}~{end_parts[2]}"
        return f"{start}~{end_parts[1]}-{end_parts[2]}"
    return f"{start}~{end}"


def repo_label(commits: Iterable[CommitRecord], global_config: Optional[GlobalConfig] = None) -> str:
    """所有提交来自同一项目时返回项目名，否则返回多项目标签"""
    global_config = global_config or GlobalConfig()
    repos = {commit.repo_name for commit in commits}
    if len(repos) > 1:
        return global_config.MULTI_PROJECT_LABEL
    if not repos:
        return global_config.UNKNOWN_PROJECT_LABEL
    return repos.pop()


def resolve_author_name(author: str, aliases: Optional[List[AuthorAlias]]) -> str:
    """按别名表解析作者显示名称: 先精确匹配 (去除首尾空白)，再忽略大小写匹配"""
    if not aliases:
        return author
    clean = author.strip()
    for alias in aliases:
        if alias.original.strip() == clean:
            return alias.alias
    for alias in aliases:
        if alias.original.strip().lower() == clean.lower():
            return alias.alias
    return author


def group_commits_by_author(
    commits: List[CommitRecord], aliases: Optional[List[AuthorAlias]] = None
) -> Dict[str, List[CommitRecord]]:
    """按作者 (别名解析后) 分组"""
    authors_commits: Dict[str, List[CommitRecord]] = {}
    for commit in commits:
        name = resolve_author_name(commit.author, aliases)
        authors_commits.setdefault(name, []).append(commit)
    return authors_commits


def _safe_filename_part(value: str) -> str:
    return value.replace("/", "_").replace("\\", "_")


def _write_text(path: str, content: str):
    try:
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except OSError as e:
        raise ReportWriteError(path, e) from e
    logger.info(f"✅ 报告已保存: {path}")


def write_reports(
    commits: List[CommitRecord],
    output_root: str,
    start_date: str,
    end_date: str,
    aliases: Optional[List[AuthorAlias]] = None,
    global_config: Optional[GlobalConfig] = None,
    content_filter: Optional[Callable[[str, str], str]] = None,
) -> str:
    """
    写出每位作者的报告和汇总报告，返回输出目录。

    目录为 <output_root>/<start>~<end>，已存在时直接复用；同名文件整体覆盖。
    content_filter(content, author) 在写入前处理报告文本 (插件钩子)。
    """
    global_config = global_config or GlobalConfig()
    output_dir = os.path.join(output_root, f"{start_date}~{end_date}")
    try:
        os.makedirs(output_dir, exist_ok=True)
    except OSError as e:
        raise ReportWriteError(output_dir, e) from e

    condensed = format_date_range(start_date, end_date)

    for author, author_commits in sorted(group_commits_by_author(commits, aliases).items()):
        content = generate_text_report(author_commits, start_date, end_date, author)
        if content_filter:
            content = content_filter(content, author)
        label = repo_label(author_commits, global_config)
        filename = f"{_safe_filename_part(author)}-{condensed}-{label}.txt"
        _write_text(os.path.join(output_dir, filename), content)

    total_content = generate_text_report(commits, start_date, end_date)
    if content_filter:
        total_content = content_filter(total_content, TOTAL_AUTHOR)
    total_filename = (
        f"{global_config.TOTAL_FILENAME_PREFIX}-{condensed}-"
        f"{repo_label(commits, global_config)}.txt"
    )
    _write_text(os.path.join(output_dir, total_filename), total_content)
    return output_dir


# -------------------------------------------------------------------
# 数据概览
# -------------------------------------------------------------------


def commit_type(message: str, known_types: Optional[List[str]] = None) -> str:
    """从 Conventional Commits 前缀推断提交类型，未知类型归为 other"""
    known_types = known_types if known_types is not None else GlobalConfig.KNOWN_COMMIT_TYPES
    prefix = message.split(":")[0].split("(")[0].strip().lower()
    return prefix if prefix in known_types else "other"


def summarize_commits(
    commits: List[CommitRecord],
    aliases: Optional[List[AuthorAlias]] = None,
    top_n: int = 5,
) -> Dict[str, Any]:
    """统计提交数量、代码变更、提交类型、每日趋势和活跃作者"""
    type_counts = Counter(commit_type(c.first_line) for c in commits)
    daily_counts = Counter(c.date for c in commits)
    author_counts = Counter(resolve_author_name(c.author, aliases) for c in commits)
    project_counts = Counter(c.repo_name for c in commits)
    return {
        "total_commits": len(commits),
        "insertions": sum(c.insertions for c in commits),
        "deletions": sum(c.deletions for c in commits),
        "types": type_counts.most_common(),
        "daily": sorted(daily_counts.items()),
        "top_authors": author_counts.most_common(top_n),
        "projects": sorted(project_counts.items()),
    }


def generate_html_overview(
    stats: Dict[str, Any],
    start_date: str,
    end_date: str,
    global_config: Optional[GlobalConfig] = None,
) -> str:
    """使用 Jinja2 模板渲染数据概览 HTML"""
    global_config = global_config or GlobalConfig()
    env = Environment(
        loader=FileSystemLoader(global_config.TEMPLATES_DIR),
        autoescape=select_autoescape(["html", "xml", "html.j2"]),
    )
    template = env.get_template(global_config.OVERVIEW_TEMPLATE)
    logger.info(f"🎨 正在渲染 Jinja2 模板: {global_config.OVERVIEW_TEMPLATE}")
    max_daily = max((count for _, count in stats["daily"]), default=0)
    return template.render(
        title=f"Git 工作日志概览 {start_date} 至 {end_date}",
        start_date=start_date,
        end_date=end_date,
        stats=stats,
        max_daily=max_daily,
    )


def save_html_overview(
    html_content: str,
    output_dir: str,
    commits: List[CommitRecord],
    start_date: str,
    end_date: str,
    global_config: Optional[GlobalConfig] = None,
) -> str:
    """保存 HTML 概览到报告目录"""
    global_config = global_config or GlobalConfig()
    filename = (
        f"{global_config.OVERVIEW_FILENAME_PREFIX}-{format_date_range(start_date, end_date)}-"
        f"{repo_label(commits, global_config)}.html"
    )
    full_path = os.path.join(output_dir, filename)
    _write_text(full_path, html_content)
    return full_path
