"""
[V1.0] 命令行界面 (Interface) 层
- 解析参数，处理分组/别名管理模式
- 组装 RunContext 并移交给 ReportOrchestrator
"""
import argparse
import logging
import os
import sys
from typing import List, Optional

import config_manager
import utils
from config import GlobalConfig
from context import RunContext
from orchestrator import ReportOrchestrator, validate_date

logger = logging.getLogger(__name__)


def setup_parser() -> argparse.ArgumentParser:
    """
    负责所有 argparse 的定义。
    """
    parser = argparse.ArgumentParser(
        description="Git 多仓库工作日志生成器",
        formatter_class=argparse.RawTextHelpFormatter,
    )

    # --- 仓库来源 ---
    parser.add_argument(
        "-r",
        "--repo-path",
        action="append",
        default=[],
        help="要分析的 Git 仓库路径，可重复指定。\n" "   (未指定时使用已选中分组中的仓库)",
    )
    parser.add_argument(
        "-g",
        "--group",
        action="append",
        default=[],
        help="使用指定分组 (名称或 ID) 中的仓库，可重复指定。\n"
        "   (与 --add-repo / --remove-repo 连用时为目标分组)",
    )

    # --- 时间范围 (互斥) ---
    range_group = parser.add_mutually_exclusive_group()
    range_group.add_argument(
        "--range",
        choices=utils.DATE_RANGE_SHORTCUTS,
        default=None,
        help="快捷时间范围 (默认: this-week，周一至周日)",
    )
    range_group.add_argument(
        "--since",
        type=str,
        default=None,
        help="起始日期 YYYY-MM-DD (包含当天)。\n(与 --range 互斥)",
    )
    parser.add_argument(
        "--until",
        type=str,
        default=None,
        help="结束日期 YYYY-MM-DD (包含当天，默认与 --since 相同)",
    )

    # --- 过滤与输出 ---
    parser.add_argument(
        "-a", "--author", type=str, default=None, help="只统计指定作者 (模糊匹配，不区分大小写)"
    )
    parser.add_argument(
        "--project", type=str, default=None, help="只统计指定项目 (仓库目录名)"
    )
    parser.add_argument(
        "-o",
        "--output",
        type=str,
        default=None,
        help="报告输出根目录。\n(默认: WORKLOG_OUTPUT_ROOT 或脚本目录下的 reports/)",
    )

    # --- 标志 ---
    parser.add_argument("--fetch", action="store_true", help="分析前先 git fetch --all")
    parser.add_argument("--html", action="store_true", help="额外生成 HTML 数据概览")
    parser.add_argument(
        "--preview", action="store_true", help="只在控制台预览汇总报告，不写文件"
    )

    # --- 管理模式 ---
    manage = parser.add_argument_group("管理模式")
    manage.add_argument("--add-group", metavar="NAME", help="新建仓库分组")
    manage.add_argument("--remove-group", metavar="NAME", help="删除仓库分组")
    manage.add_argument("--rename-group", nargs=2, metavar=("NAME", "NEW_NAME"), help="重命名仓库分组")
    manage.add_argument(
        "--select-group", action="append", metavar="NAME", help="选中分组 (未指定 -r/-g 时参与分析)"
    )
    manage.add_argument("--deselect-group", action="append", metavar="NAME", help="取消选中分组")
    manage.add_argument(
        "--add-repo", nargs="+", metavar="PATH", help="向分组 (-g，默认为默认分组) 添加仓库"
    )
    manage.add_argument(
        "--remove-repo", nargs="+", metavar="PATH", help="从分组 (-g，默认为默认分组) 移除仓库"
    )
    manage.add_argument(
        "--alias", action="append", metavar="ORIGINAL=ALIAS", help="添加作者别名"
    )
    manage.add_argument("--remove-alias", action="append", metavar="ORIGINAL", help="删除作者别名")
    manage.add_argument(
        "--check-updates", action="store_true", help="检查分组内仓库是否有远程更新"
    )
    manage.add_argument("--update", action="store_true", help="拉取分组内有更新的仓库")
    manage.add_argument("--list", action="store_true", help="列出分组与作者别名")

    return parser


def _target_groups(groups, names: List[str]):
    if not names:
        group = config_manager.find_group(groups, config_manager.DEFAULT_GROUP_ID)
        if not group:
            group = groups[0] if groups else config_manager.add_group(groups, config_manager.DEFAULT_GROUP_NAME)
        return [group]
    targets = []
    for name in names:
        group = config_manager.find_group(groups, name)
        if not group:
            logger.error(f"❌ 分组 '{name}' 不存在。")
            sys.exit(1)
        targets.append(group)
    return targets


def _print_listing(groups, aliases):
    for group in groups:
        mark = "x" if group.selected else " "
        print(f"[{mark}] {group.name} ({group.id})")
        for repo in group.repos:
            status = {True: "有更新", False: "最新", None: "未检查"}[repo.has_updates]
            remote = f"  {repo.remote_url}" if repo.remote_url else ""
            print(f"      - {repo.path} [{status}]{remote}")
    if aliases:
        print("作者别名:")
        for alias in aliases:
            print(f"      {alias.original} -> {alias.alias}")


def run_management(args, global_config: GlobalConfig) -> bool:
    """处理管理模式，返回是否已处理 (已处理时不再生成报告)"""
    data_dir = global_config.DATA_DIR
    groups = config_manager.load_repo_groups(data_dir)
    aliases = config_manager.load_author_aliases(data_dir)
    handled = False

    if args.add_group:
        config_manager.add_group(groups, args.add_group)
        handled = True
    if args.remove_group:
        if not config_manager.remove_group(groups, args.remove_group):
            logger.error(f"❌ 分组 '{args.remove_group}' 不存在。")
        handled = True
    if args.rename_group:
        old_name, new_name = args.rename_group
        if not config_manager.rename_group(groups, old_name, new_name):
            logger.error(f"❌ 分组 '{old_name}' 不存在。")
        handled = True
    for names, selected in ((args.select_group, True), (args.deselect_group, False)):
        for name in names or []:
            if not config_manager.toggle_group(groups, name, selected):
                logger.error(f"❌ 分组 '{name}' 不存在。")
        handled = handled or bool(names)
    if args.add_repo:
        for group in _target_groups(groups, args.group):
            added = config_manager.add_repos_to_group(group, args.add_repo, global_config)
            logger.info(f"✅ 分组 {group.name} 新增 {len(added)} 个仓库")
        handled = True
    if args.remove_repo:
        for group in _target_groups(groups, args.group):
            for path in args.remove_repo:
                config_manager.remove_repo(group, path)
        handled = True
    if args.check_updates or args.update:
        targets = _target_groups(groups, args.group) if args.group else [g for g in groups if g.selected]
        for group in targets:
            if args.check_updates:
                config_manager.check_group_status(group, global_config)
            if args.update:
                config_manager.update_group(group, global_config)
        handled = True

    if args.alias:
        for entry in args.alias:
            original, sep, alias = entry.partition("=")
            if not sep or not original.strip() or not alias.strip():
                logger.error(f"❌ 别名格式应为 ORIGINAL=ALIAS: {entry}")
                sys.exit(1)
            config_manager.add_author_alias(aliases, original, alias)
            logger.info(f"✅ 别名已保存: {original.strip()} -> {alias.strip()}")
        handled = True
    if args.remove_alias:
        for original in args.remove_alias:
            config_manager.remove_author_alias(aliases, original)
        handled = True

    if handled:
        config_manager.save_repo_groups(data_dir, groups)
        config_manager.save_author_aliases(data_dir, aliases)
    if args.list:
        _print_listing(groups, aliases)
        handled = True
    return handled


def resolve_date_range(args) -> tuple:
    """根据 --range / --since / --until 计算 (start, end)"""
    if args.since:
        start = args.since
        end = args.until or args.since
    else:
        if args.until:
            logger.error("❌ --until 需要与 --since 一起使用。")
            sys.exit(1)
        start, end = utils.date_range_shortcut(args.range or "this-week")
    try:
        validate_date(start)
        validate_date(end)
    except ValueError:
        logger.error(f"❌ 日期格式应为 YYYY-MM-DD: {start} / {end}")
        sys.exit(1)
    if start > end:
        logger.error(f"❌ 起始日期晚于结束日期: {start} > {end}")
        sys.exit(1)
    return start, end


def run_cli(argv: Optional[List[str]] = None):
    """
    主入口点。
    """
    # 1. 解析 Args
    parser = setup_parser()
    args = parser.parse_args(argv)

    # 2. 加载 GlobalConfig
    global_config = GlobalConfig()

    # 3. 管理模式
    if run_management(args, global_config):
        return

    # 4. 确定仓库列表
    groups = config_manager.load_repo_groups(global_config.DATA_DIR)
    if args.repo_path:
        repo_paths = [os.path.abspath(p) for p in args.repo_path]
        fetch_paths = list(repo_paths)
    else:
        items = config_manager.selected_repo_items(groups, args.group or None)
        repo_paths = [item.path for item in items]
        fetch_paths = [item.path for item in items if item.has_updates is not False]

    if not repo_paths:
        logger.error("❌ 请至少选择一个仓库 (-r 或 --add-repo 后使用分组)。")
        sys.exit(1)

    start_date, end_date = resolve_date_range(args)

    # 5. 组装 RunContext
    run_context = RunContext(
        repo_paths=repo_paths,
        output_root=os.path.abspath(args.output or global_config.OUTPUT_ROOT),
        start_date=start_date,
        end_date=end_date,
        global_config=global_config,
        author_filter=args.author,
        project_filter=args.project,
        aliases=config_manager.load_author_aliases(global_config.DATA_DIR),
        fetch=args.fetch,
        html=args.html,
        preview=args.preview,
        fetch_paths=fetch_paths,
    )

    logger.info("=" * 50)
    logger.info("🚀 Git 工作日志生成器启动...")
    logger.info(f"   [仓库数量]: {len(repo_paths)}")
    logger.info(f"   [时间范围]: {run_context.time_range_desc}")
    logger.info(f"   [作者过滤]: {args.author or '所有作者'}")
    logger.info(f"   [输出目录]: {run_context.output_root}")
    logger.info("=" * 50)

    # 6. 运行 Orchestrator
    orchestrator = ReportOrchestrator(run_context)
    orchestrator.run()
