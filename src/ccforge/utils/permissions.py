"""
文件权限工具

提供可执行位检查、脚本可执行化以及权限修复（chmod -R 风格）功能。
所有函数返回 (是否成功, 问题列表) 而不是抛出异常。
"""

import os
import stat
from dataclasses import dataclass
from pathlib import Path
from typing import List, Tuple, Union

OWNER_RW = stat.S_IRUSR | stat.S_IWUSR
OWNER_RWX = stat.S_IRWXU
# 0o755 与 0o644 的读/执行位
DIRECTORY_BITS = stat.S_IRWXU | stat.S_IRGRP | stat.S_IXGRP | stat.S_IROTH | stat.S_IXOTH
FILE_BITS = OWNER_RW | stat.S_IRGRP | stat.S_IROTH


@dataclass
class PermissionIssue:
    """单个路径的权限修复问题"""
    path: Path
    message: str

    def __str__(self) -> str:
        return f"{self.path}: {self.message}"


def is_executable(file_path: Union[str, Path]) -> bool:
    """检查文件是否为当前用户可执行的普通文件"""
    path = Path(file_path)
    return path.is_file() and os.access(path, os.X_OK)


def make_script_executable(script_path: Union[str, Path]) -> Tuple[bool, List[PermissionIssue]]:
    """
    为脚本添加执行权限（owner/group，不包括others）

    Returns:
        (是否成功, 问题列表)
    """
    path = Path(script_path)
    try:
        mode = path.stat().st_mode
        path.chmod(mode | stat.S_IXUSR | stat.S_IXGRP)
    except OSError as e:
        return False, [PermissionIssue(path, str(e))]
    return True, []


def _fix_single(path: Path) -> List[PermissionIssue]:
    try:
        mode = path.stat().st_mode
        if path.is_dir():
            new_mode = mode | DIRECTORY_BITS
        else:
            # 保留已有的执行位
            new_mode = mode | FILE_BITS
        if stat.S_IMODE(new_mode) != stat.S_IMODE(mode):
            path.chmod(stat.S_IMODE(new_mode))
    except OSError as e:
        return [PermissionIssue(path, str(e))]
    return []


def fix_permissions(target: Union[str, Path],
                    recursive: bool = True) -> Tuple[bool, List[PermissionIssue]]:
    """
    修复路径权限，确保当前用户可读写（目录额外可进入）

    目录设置为至少 0o755，文件至少 0o644，从不移除已有权限位。
    符号链接不会被跟随。

    Args:
        target: 目标文件或目录
        recursive: 是否递归处理目录内容

    Returns:
        (是否成功, 问题列表)
    """
    path = Path(target)
    if path.is_symlink():
        return True, []

    issues = _fix_single(path)
    if recursive and path.is_dir() and not issues:
        for root, dirs, files in os.walk(path, onerror=lambda e: issues.append(
                PermissionIssue(Path(e.filename or path), str(e)))):
            root_path = Path(root)
            for name in dirs + files:
                child = root_path / name
                if child.is_symlink():
                    continue
                issues.extend(_fix_single(child))

    return len(issues) == 0, issues


__all__ = [
    "PermissionIssue",
    "is_executable",
    "make_script_executable",
    "fix_permissions",
]
