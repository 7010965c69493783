"""
[V1.0] 全局配置
- 从 .env 加载环境变量 (python-dotenv)
- 集中管理 git 命令参数、日志标记和报告命名常量
"""
import os
from dotenv import load_dotenv


# --- 脚本基础路径 ---
SCRIPT_BASE_PATH = os.path.abspath(os.path.dirname(__file__))
env_path = os.path.join(SCRIPT_BASE_PATH, ".env")
if os.path.exists(env_path):
    load_dotenv(env_path)
else:
    load_dotenv()


class GlobalConfig:
    """
    Git 工作日志生成器的全局应用配置。
    """

    # --- 路径配置 ---
    SCRIPT_BASE_PATH: str = SCRIPT_BASE_PATH
    TEMPLATES_DIR: str = os.path.join(SCRIPT_BASE_PATH, "templates")
    PLUGINS_DIR: str = os.path.join(SCRIPT_BASE_PATH, "plugins")
    DATA_DIR: str = os.getenv("WORKLOG_DATA_DIR") or os.path.join(
        SCRIPT_BASE_PATH, "data"
    )
    OUTPUT_ROOT: str = os.getenv("WORKLOG_OUTPUT_ROOT") or os.path.join(
        SCRIPT_BASE_PATH, "reports"
    )

    # --- Git 可执行文件 ---
    GIT_BINARY: str = os.getenv("WORKLOG_GIT_BINARY") or "git"

    # --- 日志流标记 ---
    COMMIT_MARKER: str = "^^^^^COMMIT^^^^^"
    MSG_END_MARKER: str = "^^^^^MSG_END^^^^^"
    HEADER_SEPARATOR: str = "|||"

    # --- Git 命令参数 ---
    GIT_LOG_ARGS = [
        "log",
        "--all",
        "--since={start_date} 00:00:00",
        "--until={end_date} 23:59:59",
        "--no-merges",
        "--date=format:%Y-%m-%d",
        "--numstat",
        "--pretty=format:" + COMMIT_MARKER + "%n%ad|||%H|||%an|||%at%n%B%n" + MSG_END_MARKER,
    ]
    GIT_NAME_REV_ARGS = [
        "name-rev",
        "--stdin",
        "--refs=refs/heads/*",
        "--refs=refs/remotes/*",
    ]
    GIT_FETCH_ARGS = ["fetch", "--all"]
    GIT_FETCH_DRY_RUN_ARGS = ["fetch", "--all", "--dry-run"]

    # --- 报告命名 ---
    UNKNOWN_PROJECT_LABEL: str = "Unknown"
    MULTI_PROJECT_LABEL: str = "AllProjects"
    TOTAL_FILENAME_PREFIX: str = "TOTAL"
    OVERVIEW_FILENAME_PREFIX: str = "OVERVIEW"
    OVERVIEW_TEMPLATE: str = "overview.html.j2"

    # --- 持久化文件 ---
    GROUPS_FILE: str = "groups.json"
    ALIASES_FILE: str = "aliases.json"

    # --- 提交类型 (Conventional Commits) ---
    KNOWN_COMMIT_TYPES: list[str] = [
        "feat",
        "fix",
        "docs",
        "style",
        "refactor",
        "perf",
        "test",
        "chore",
        "build",
        "ci",
        "revert",
    ]

    # --- 敏感词过滤插件 (默认不过滤) ---
    SENSITIVE_WORDS: list[str] = [
        w.strip()
        for w in os.getenv("WORKLOG_SENSITIVE_WORDS", "").split(",")
        if w.strip()
    ]

    def log_args(self, start_date: str, end_date: str) -> list[str]:
        """生成带日期窗口的 git log 参数列表"""
        return [
            arg.format(start_date=start_date, end_date=end_date)
            if arg.startswith(("--since=", "--until="))
            else arg
            for arg in self.GIT_LOG_ARGS
        ]
