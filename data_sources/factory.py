import logging
from typing import Optional
from config import GlobalConfig
from .base import DataSource
from .local_git import LocalGitDataSource

logger = logging.getLogger(__name__)


def get_data_source(
    repo_path: str, global_config: Optional[GlobalConfig] = None
) -> DataSource:
    """
    数据源工厂
    目前只支持本地仓库路径。
    """
    logger.debug(f"🔌 [Factory] 初始化数据源: Local Git ({repo_path})")
    return LocalGitDataSource(repo_path, global_config)
