from abc import ABC, abstractmethod
from typing import List
from models import CommitRecord


class DataSource(ABC):
    """
    数据源抽象基类
    定义了从单个仓库获取提交数据的标准接口。
    """

    @abstractmethod
    def validate(self) -> bool:
        """
        验证数据源是否可用。
        例如：本地路径是否存在且为 Git 仓库。
        """
        pass

    @abstractmethod
    def get_commits(self, start_date: str, end_date: str) -> List[CommitRecord]:
        """
        获取日期窗口 (闭区间) 内的提交列表，分支名已解析。
        工具以非零状态退出时返回空列表。
        """
        pass
