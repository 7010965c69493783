# git_utils.py
import logging
import os
import re
import subprocess
from typing import Dict, List, Optional, Sequence, Tuple

from config import GlobalConfig
from errors import GitFetchError, LaunchError
from models import CommandResult, CommitRecord, UNKNOWN_BRANCH

logger = logging.getLogger(__name__)

# name-rev 中无法命名的提交
UNDEFINED_REF = "undefined"


def repo_name_from_path(repo_path: str) -> str:
    """仓库名: 路径的最后一段"""
    return os.path.basename(os.path.normpath(repo_path))


def run_command(
    program: str,
    args: Sequence[str],
    cwd: str,
    stdin_bytes: Optional[bytes] = None,
    repo_name: Optional[str] = None,
) -> CommandResult:
    """
    统一的外部命令执行函数
    - 在 cwd 下同步执行，捕获 stdout / stderr 原始字节
    - 提供 stdin_bytes 时完整写入并关闭输入流后再等待进程结束
    - 非零退出码不抛异常，由调用方检查 success
    - 无法启动进程时抛出 LaunchError
    """
    repo_name = repo_name or repo_name_from_path(cwd)
    logger.debug(f"在 {cwd} 中执行命令: {program} {' '.join(args)}")
    try:
        result = subprocess.run(
            [program, *args],
            cwd=cwd,
            input=stdin_bytes,
            stdin=None if stdin_bytes is not None else subprocess.DEVNULL,
            capture_output=True,
        )
    except OSError as e:
        raise LaunchError(program, repo_name, e) from e
    return CommandResult(
        stdout=result.stdout, stderr=result.stderr, success=result.returncode == 0
    )


def run_git_command(
    args: Sequence[str],
    repo_path: str,
    stdin_bytes: Optional[bytes] = None,
    global_config: Optional[GlobalConfig] = None,
) -> CommandResult:
    """在指定仓库中执行 git 子命令"""
    global_config = global_config or GlobalConfig()
    return run_command(
        global_config.GIT_BINARY,
        args,
        repo_path,
        stdin_bytes=stdin_bytes,
        repo_name=repo_name_from_path(repo_path),
    )


def is_git_repository(repo_path: str) -> bool:
    """检查目录下是否存在 .git 标记"""
    return os.path.exists(os.path.join(repo_path, ".git"))


def get_git_log(
    repo_path: str,
    start_date: str,
    end_date: str,
    global_config: Optional[GlobalConfig] = None,
) -> Optional[str]:
    """
    获取日期窗口内的提交历史 (含 numstat)
    - git 以非零状态退出时返回 None (软失败)
    """
    global_config = global_config or GlobalConfig()
    repo_name = repo_name_from_path(repo_path)
    result = run_git_command(
        global_config.log_args(start_date, end_date),
        repo_path,
        global_config=global_config,
    )
    if not result.success:
        logger.warning(f"⚠️ {repo_name} 获取Git提交历史失败: {result.stderr_text.strip()}")
        return None
    output = result.stdout_text
    logger.info(f"✅ {repo_name} 获取Git提交历史成功，输出 {len(output.splitlines())} 行")
    return output


def _split_lines(text: str) -> List[str]:
    # 只按 \n 切分 (兼容 \r\n)，消息中的 \f、U+2028 等字符原样保留
    return [line[:-1] if line.endswith("\r") else line for line in text.split("\n")]


def _parse_stat_value(token: str) -> int:
    # 二进制文件的 numstat 为 "-"
    return int(token) if token.isascii() and token.isdigit() else 0


def parse_git_log(
    log_output: str, repo_name: str
) -> Tuple[List[CommitRecord], List[str]]:
    """
    解析 git log 输出，返回 (提交列表, 哈希列表)，两者顺序一致。

    状态机按行前进: 提交标记 -> 头部行 -> 消息体 -> numstat 行。
    头部字段不足 4 个的记录被丢弃，不影响后续记录。
    """
    commits: List[CommitRecord] = []
    hashes: List[str] = []
    if not log_output or not log_output.strip():
        logger.info(f"ℹ️ {repo_name} 在该时间范围内没有提交")
        return commits, hashes

    commit_marker = GlobalConfig.COMMIT_MARKER
    msg_end_marker = GlobalConfig.MSG_END_MARKER
    separator = GlobalConfig.HEADER_SEPARATOR

    lines = _split_lines(log_output)
    i = 0
    while i < len(lines):
        if lines[i] != commit_marker:
            i += 1
            continue

        i += 1
        if i >= len(lines):
            break

        header = lines[i].split(separator)
        if len(header) < 4:
            logger.warning(f"⚠️ {repo_name} 提交头部格式异常: {lines[i]}")
            i += 1
            continue
        date, commit_hash, author = (part.strip() for part in header[:3])
        try:
            timestamp = int(header[3].strip())
        except ValueError:
            timestamp = 0
        i += 1

        message_lines = []
        while i < len(lines) and lines[i] != msg_end_marker:
            message_lines.append(lines[i])
            i += 1
        message = "\n".join(message_lines).strip()
        if i < len(lines):
            i += 1

        insertions = 0
        deletions = 0
        while i < len(lines) and lines[i] != commit_marker:
            parts = lines[i].split()
            if len(parts) >= 2:
                insertions += _parse_stat_value(parts[0])
                deletions += _parse_stat_value(parts[1])
            i += 1

        commits.append(
            CommitRecord(
                date=date,
                hash=commit_hash,
                author=author,
                message=message,
                repo_name=repo_name,
                branch=UNKNOWN_BRANCH,
                insertions=insertions,
                deletions=deletions,
                timestamp=timestamp,
            )
        )
        hashes.append(commit_hash)

    logger.info(f"✅ {repo_name} 成功解析 {len(commits)} 个提交")
    return commits, hashes


def normalize_branch_name(ref: str) -> str:
    """
    规范化 name-rev 输出的引用描述
    (remotes/origin/feature-x~3) -> feature-x
    """
    name = ref.strip("()")
    if name.startswith("remotes/origin/"):
        name = name[len("remotes/origin/"):]
    elif name.startswith("remotes/"):
        name = name[len("remotes/"):]
    return re.split(r"[~^]", name, maxsplit=1)[0]


def parse_name_rev_output(output: str) -> Dict[str, str]:
    """解析 `git name-rev --stdin` 输出为 hash -> 分支名 映射"""
    branch_map: Dict[str, str] = {}
    for line in _split_lines(output):
        parts = line.split()
        if len(parts) < 2:
            continue
        branch = normalize_branch_name(parts[1])
        if not branch or branch == UNDEFINED_REF:
            continue
        branch_map[parts[0]] = branch
    return branch_map


def resolve_branches(
    repo_path: str,
    hashes: Sequence[str],
    global_config: Optional[GlobalConfig] = None,
) -> Dict[str, str]:
    """
    批量解析提交所属分支 (一次 stdin 调用)
    - hashes 为空时不调用 git
    - git 以非零状态退出时返回空映射
    - 无法启动 git 时抛出 LaunchError
    """
    if not hashes:
        return {}
    global_config = global_config or GlobalConfig()
    repo_name = repo_name_from_path(repo_path)
    result = run_git_command(
        global_config.GIT_NAME_REV_ARGS,
        repo_path,
        stdin_bytes="\n".join(hashes).encode("utf-8"),
        global_config=global_config,
    )
    if not result.success:
        logger.warning(f"⚠️ {repo_name} 解析分支失败，提交将保持 Unknown: {result.stderr_text.strip()}")
        return {}
    branch_map = parse_name_rev_output(result.stdout_text)
    logger.info(f"✅ {repo_name} 解析分支 {len(branch_map)}/{len(hashes)}")
    return branch_map


def git_fetch(repo_path: str, global_config: Optional[GlobalConfig] = None) -> None:
    """执行 git fetch --all，失败时抛出 GitFetchError"""
    global_config = global_config or GlobalConfig()
    result = run_git_command(
        global_config.GIT_FETCH_ARGS, repo_path, global_config=global_config
    )
    if not result.success:
        raise GitFetchError(repo_name_from_path(repo_path), result.stderr_text)


def check_for_updates(
    repo_path: str, global_config: Optional[GlobalConfig] = None
) -> bool:
    """
    通过 git fetch --dry-run 检查远程是否有更新。

    这是一个启发式判断: dry-run 的输出写在 stderr，只要 stderr 非空就认为
    有更新。不同 git 版本的输出可能不同，结果只作参考。
    """
    global_config = global_config or GlobalConfig()
    result = run_git_command(
        global_config.GIT_FETCH_DRY_RUN_ARGS, repo_path, global_config=global_config
    )
    if not result.success:
        raise GitFetchError(repo_name_from_path(repo_path), result.stderr_text)
    return bool(result.stderr)


def get_remote_url(repo_path: str, global_config: Optional[GlobalConfig] = None) -> str:
    """获取 origin 的远程地址，没有 origin 时退回第一个远程，都没有则返回空串"""
    global_config = global_config or GlobalConfig()
    result = run_git_command(
        ["remote", "get-url", "origin"], repo_path, global_config=global_config
    )
    if result.success:
        return result.stdout_text.strip()

    remotes = run_git_command(["remote"], repo_path, global_config=global_config)
    first_remote = next(iter(remotes.stdout_text.splitlines()), "").strip()
    if not first_remote:
        return ""
    result = run_git_command(
        ["remote", "get-url", first_remote], repo_path, global_config=global_config
    )
    return result.stdout_text.strip() if result.success else ""
