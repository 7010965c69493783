import logging
import os
from typing import List, Optional

from .base import DataSource
from models import CommitRecord
from config import GlobalConfig
import git_utils

logger = logging.getLogger(__name__)


class LocalGitDataSource(DataSource):
    """
    本地 Git 数据源实现。
    通过调用 git 命令行工具分析本地仓库: 先 git log 再批量 name-rev。
    """

    def __init__(self, repo_path: str, global_config: Optional[GlobalConfig] = None):
        self.repo_path = repo_path
        self.repo_name = git_utils.repo_name_from_path(repo_path)
        self.global_config = global_config or GlobalConfig()

    def validate(self) -> bool:
        if not os.path.isdir(self.repo_path):
            logger.error(f"❌ 路径不存在: {self.repo_path}")
            return False
        if not git_utils.is_git_repository(self.repo_path):
            logger.error(f"❌ 指定路径不是 Git 仓库: {self.repo_path}")
            return False
        return True

    def get_commits(self, start_date: str, end_date: str) -> List[CommitRecord]:
        log_output = git_utils.get_git_log(
            self.repo_path, start_date, end_date, self.global_config
        )
        if log_output is None:
            return []

        commits, hashes = git_utils.parse_git_log(log_output, self.repo_name)
        if not commits:
            return commits

        branch_map = git_utils.resolve_branches(
            self.repo_path, hashes, self.global_config
        )
        for commit in commits:
            commit.branch = branch_map.get(commit.hash, commit.branch)
        return commits
