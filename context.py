"""
运行时配置的数据模型
"""
from dataclasses import dataclass, field
from typing import List, Optional
from config import GlobalConfig
from models import AuthorAlias


@dataclass
class RunContext:
    """
    封装一次运行所需的所有配置和状态。
    这是从 CLI 传递到 Orchestrator 的唯一对象。
    """

    # --- 核心路径 ---
    repo_paths: List[str]
    output_root: str

    # --- 时间范围 (YYYY-MM-DD, 闭区间) ---
    start_date: str
    end_date: str

    # --- 全局配置 ---
    global_config: GlobalConfig

    # --- 过滤条件 ---
    author_filter: Optional[str] = None
    project_filter: Optional[str] = None

    # --- 作者别名 ---
    aliases: List[AuthorAlias] = field(default_factory=list)

    # --- 标志 ---
    fetch: bool = False
    html: bool = False
    preview: bool = False

    # --- 需要先拉取的仓库 (已知无更新的仓库不在其中) ---
    fetch_paths: List[str] = field(default_factory=list)

    @property
    def time_range_desc(self) -> str:
        return f"{self.start_date} 至 {self.end_date}"
