"""
[V1.0] 配置管理器
- 负责处理仓库分组 (data/groups.json)
- 负责处理作者别名 (data/aliases.json)
- 负责分组级的远程状态检查与拉取
"""

import os
import json
import logging
import time
import uuid
from dataclasses import asdict
from typing import List, Optional

import git_utils
from errors import WorkLogError
from models import AuthorAlias, RepoGroup, RepoItem
from config import GlobalConfig

logger = logging.getLogger(__name__)

DEFAULT_GROUP_ID = "default"
DEFAULT_GROUP_NAME = "默认分组"


def _load_json(path: str, default):
    if not os.path.exists(path):
        return default
    try:
        with open(path, "r", encoding="utf-8") as f:
            return json.load(f)
    except (OSError, ValueError) as e:
        logger.error(f"❌ 加载配置文件 {path} 失败: {e}")
        return default


def _save_json(path: str, data):
    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump(data, f, indent=4, ensure_ascii=False)


def _now_ms() -> int:
    return int(time.time() * 1000)


# -------------------------------------------------------------------
# 仓库分组
# -------------------------------------------------------------------


def load_repo_groups(data_dir: str) -> List[RepoGroup]:
    """加载仓库分组，文件不存在时返回一个空的默认分组"""
    raw = _load_json(os.path.join(data_dir, GlobalConfig.GROUPS_FILE), None)
    if not raw:
        return [RepoGroup(id=DEFAULT_GROUP_ID, name=DEFAULT_GROUP_NAME)]
    groups = []
    for item in raw:
        repos = [RepoItem(**repo) for repo in item.get("repos", [])]
        groups.append(
            RepoGroup(
                id=item["id"],
                name=item["name"],
                selected=item.get("selected", True),
                repos=repos,
                last_checked=item.get("last_checked"),
            )
        )
    return groups


def save_repo_groups(data_dir: str, groups: List[RepoGroup]):
    _save_json(
        os.path.join(data_dir, GlobalConfig.GROUPS_FILE),
        [asdict(group) for group in groups],
    )


def find_group(groups: List[RepoGroup], name_or_id: str) -> Optional[RepoGroup]:
    return next(
        (g for g in groups if g.id == name_or_id or g.name == name_or_id), None
    )


def add_group(groups: List[RepoGroup], name: str) -> RepoGroup:
    group = RepoGroup(id=uuid.uuid4().hex[:9], name=name)
    groups.append(group)
    logger.info(f"✅ 已添加分组: {name}")
    return group


def remove_group(groups: List[RepoGroup], name_or_id: str) -> bool:
    group = find_group(groups, name_or_id)
    if not group:
        return False
    groups.remove(group)
    logger.info(f"✅ 已删除分组: {group.name}")
    return True


def rename_group(groups: List[RepoGroup], name_or_id: str, new_name: str) -> bool:
    group = find_group(groups, name_or_id)
    if not group:
        return False
    logger.info(f"✅ 分组已重命名: {group.name} -> {new_name}")
    group.name = new_name
    return True


def toggle_group(groups: List[RepoGroup], name_or_id: str, selected: bool) -> bool:
    group = find_group(groups, name_or_id)
    if not group:
        return False
    group.selected = selected
    logger.info(f"✅ 分组 {group.name} 已{'选中' if selected else '取消选中'}")
    return True


def add_repos_to_group(
    group: RepoGroup,
    paths: List[str],
    global_config: Optional[GlobalConfig] = None,
) -> List[str]:
    """
    向分组添加仓库，返回实际添加的路径。
    非 Git 仓库和分组内已存在的路径会被跳过。
    """
    existing = {repo.path for repo in group.repos}
    added = []
    for path in paths:
        path = os.path.abspath(path)
        if not git_utils.is_git_repository(path):
            logger.warning(f"⚠️ {path} 不是一个 Git 仓库，已跳过。")
            continue
        if path in existing:
            continue
        try:
            remote_url = git_utils.get_remote_url(path, global_config)
        except WorkLogError as e:
            logger.warning(f"⚠️ 获取远程地址失败 {path}: {e}")
            remote_url = ""
        group.repos.append(RepoItem(path=path, remote_url=remote_url))
        existing.add(path)
        added.append(path)
    return added


def remove_repo(group: RepoGroup, path: str) -> bool:
    path = os.path.abspath(path)
    before = len(group.repos)
    group.repos = [repo for repo in group.repos if repo.path != path]
    return len(group.repos) != before


def selected_repo_items(
    groups: List[RepoGroup], names: Optional[List[str]] = None
) -> List[RepoItem]:
    """指定分组名时取这些分组的仓库，否则取所有已选中分组的仓库 (按路径去重)"""
    if names:
        chosen = [g for g in groups if g.id in names or g.name in names]
    else:
        chosen = [g for g in groups if g.selected]
    seen = set()
    items = []
    for group in chosen:
        for repo in group.repos:
            if repo.path not in seen:
                seen.add(repo.path)
                items.append(repo)
    return items


def selected_repo_paths(
    groups: List[RepoGroup], names: Optional[List[str]] = None
) -> List[str]:
    return [repo.path for repo in selected_repo_items(groups, names)]


def check_group_status(
    group: RepoGroup, global_config: Optional[GlobalConfig] = None
) -> bool:
    """
    检查分组内每个仓库是否有远程更新，并刷新远程地址。
    单个仓库检查失败只记录日志。返回是否有仓库状态发生变化。
    """
    changed = False
    total = len(group.repos)
    for index, repo in enumerate(group.repos, start=1):
        logger.info(f"🔍 正在检查 ({index}/{total}): {git_utils.repo_name_from_path(repo.path)}")
        try:
            has_updates = git_utils.check_for_updates(repo.path, global_config)
        except WorkLogError as e:
            logger.warning(f"⚠️ 检查更新失败 {repo.path}: {e}")
            continue

        remote_url = repo.remote_url
        try:
            remote_url = git_utils.get_remote_url(repo.path, global_config) or remote_url
        except WorkLogError as e:
            logger.warning(f"⚠️ 获取远程地址失败 {repo.path}: {e}")

        if repo.has_updates != has_updates or repo.remote_url != remote_url:
            repo.has_updates = has_updates
            repo.remote_url = remote_url
            repo.last_checked = _now_ms()
            changed = True
    group.last_checked = _now_ms()
    logger.info(f"✅ 分组 {group.name} 状态检查完成")
    return changed


def fetch_repos(
    items: List[RepoItem], global_config: Optional[GlobalConfig] = None
) -> List[str]:
    """对仓库执行 git fetch --all，返回成功拉取的路径；失败的仓库继续使用本地数据"""
    fetched = []
    for repo in items:
        try:
            git_utils.git_fetch(repo.path, global_config)
        except WorkLogError as e:
            logger.warning(f"⚠️ 无法拉取 {repo.path}，将使用本地数据: {e}")
            continue
        repo.has_updates = False
        repo.last_checked = _now_ms()
        fetched.append(repo.path)
    return fetched


def update_group(
    group: RepoGroup, global_config: Optional[GlobalConfig] = None
) -> List[str]:
    """拉取分组内标记为有更新的仓库"""
    to_update = [repo for repo in group.repos if repo.has_updates]
    if not to_update:
        logger.info(f"ℹ️ 分组 {group.name} 下没有需要更新的仓库。")
        return []
    fetched = fetch_repos(to_update, global_config)
    logger.info(f"✅ 更新完成，成功更新 {len(fetched)}/{len(to_update)} 个仓库。")
    return fetched


# -------------------------------------------------------------------
# 作者别名
# -------------------------------------------------------------------


def load_author_aliases(data_dir: str) -> List[AuthorAlias]:
    raw = _load_json(os.path.join(data_dir, GlobalConfig.ALIASES_FILE), [])
    return [AuthorAlias(original=a["original"], alias=a["alias"]) for a in raw]


def save_author_aliases(data_dir: str, aliases: List[AuthorAlias]):
    _save_json(
        os.path.join(data_dir, GlobalConfig.ALIASES_FILE),
        [asdict(alias) for alias in aliases],
    )


def add_author_alias(aliases: List[AuthorAlias], original: str, alias: str) -> AuthorAlias:
    """添加别名，同一原名已存在时替换"""
    original = original.strip()
    entry = AuthorAlias(original=original, alias=alias.strip())
    aliases[:] = [a for a in aliases if a.original.strip() != original]
    aliases.append(entry)
    return entry


def remove_author_alias(aliases: List[AuthorAlias], original: str) -> bool:
    before = len(aliases)
    aliases[:] = [a for a in aliases if a.original.strip() != original.strip()]
    return len(aliases) != before
