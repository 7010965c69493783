from dataclasses import dataclass, field
from typing import List, Optional


UNKNOWN_BRANCH = "Unknown"


@dataclass
class CommitRecord:
    """单个提交的数据模型，以 (hash, repo_name) 唯一标识"""

    date: str
    hash: str
    author: str
    message: str
    repo_name: str
    branch: str = UNKNOWN_BRANCH
    insertions: int = 0
    deletions: int = 0
    timestamp: int = 0

    @property
    def first_line(self) -> str:
        return self.message.split("\n")[0] if self.message else ""


@dataclass
class CommandResult:
    """外部命令执行结果"""

    stdout: bytes
    stderr: bytes
    success: bool

    @property
    def stdout_text(self) -> str:
        return self.stdout.decode("utf-8", errors="replace")

    @property
    def stderr_text(self) -> str:
        return self.stderr.decode("utf-8", errors="replace")


@dataclass
class RepoItem:
    """仓库分组中的单个仓库"""

    path: str
    remote_url: str = ""
    has_updates: Optional[bool] = None
    last_checked: Optional[int] = None


@dataclass
class RepoGroup:
    """仓库分组"""

    id: str
    name: str
    selected: bool = True
    repos: List[RepoItem] = field(default_factory=list)
    last_checked: Optional[int] = None


@dataclass
class AuthorAlias:
    """作者别名: Git 原名 -> 显示名称"""

    original: str
    alias: str
