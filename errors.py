"""
工作日志生成器的异常类型。
非零退出码、单条记录解析失败属于软失败，只记录日志，不抛异常。
"""
from typing import Optional


class WorkLogError(Exception):
    """所有可向调用方抛出的错误的基类"""


class LaunchError(WorkLogError):
    """外部命令无法启动 (可执行文件不存在、无权限、工作目录无效)"""

    def __init__(self, program: str, repo_name: str, os_error: OSError):
        self.program = program
        self.repo_name = repo_name
        self.os_error = os_error
        super().__init__(
            f"无法在 {repo_name} 中执行 {program}: {os_error.strerror or os_error}"
        )


# 命令执行失败的别名
ExecutionError = LaunchError


class GitFetchError(WorkLogError):
    """git fetch 运行但以非零状态退出"""

    def __init__(self, repo_name: str, stderr: str):
        self.repo_name = repo_name
        self.stderr = stderr
        super().__init__(f"{repo_name} 拉取失败: {stderr.strip()}")


class ReportWriteError(WorkLogError):
    """报告目录或文件写入失败"""

    def __init__(self, path: str, os_error: Optional[OSError] = None):
        self.path = path
        self.os_error = os_error
        detail = f": {os_error}" if os_error else ""
        super().__init__(f"写入报告失败 ({path}){detail}")
