"""文件操作工具：目录创建、JSON读写和备份。

写入采用“临时文件 + 原子替换”的方式，读取失败统一转换为 FileOperationError。
"""

import json
import shutil
import tempfile
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional, Union


class FileOperationError(Exception):
    """文件操作失败。

    属性:
        message: 错误消息
        file_path: 相关文件路径
        original_error: 原始异常
    """

    def __init__(self, message: str, file_path: Union[str, Path, None] = None,
                 original_error: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.file_path = Path(file_path) if file_path else None
        self.original_error = original_error


def ensure_directory_exists(dir_path: Union[str, Path], mode: int = 0o755) -> Path:
    """
    确保目录存在，如果不存在则创建

    Args:
        dir_path: 目录路径
        mode: 目录权限模式（Unix/Linux系统）

    Returns:
        目录的Path对象

    Raises:
        FileOperationError: 如果路径已被文件占用或无法创建
    """
    path = Path(dir_path).expanduser()
    if path.exists() and not path.is_dir():
        raise FileOperationError(f"路径已存在但不是目录: {path}", file_path=path)
    try:
        path.mkdir(mode=mode, parents=True, exist_ok=True)
    except OSError as e:
        raise FileOperationError(f"无法创建目录 '{path}': {e}", file_path=path, original_error=e)
    return path


def create_backup(file_path: Union[str, Path], backup_suffix: Optional[str] = None) -> Path:
    """
    在同一目录下创建文件备份

    Args:
        file_path: 要备份的文件
        backup_suffix: 备份后缀，默认使用时间戳

    Returns:
        备份文件路径
    """
    path = Path(file_path)
    suffix = backup_suffix or datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    backup_path = path.with_name(f"{path.name}.{suffix}.bak")
    try:
        shutil.copy2(path, backup_path)
    except OSError as e:
        raise FileOperationError(f"无法备份文件 '{path}': {e}", file_path=path, original_error=e)
    return backup_path


def read_json_file(file_path: Union[str, Path], encoding: str = 'utf-8') -> Dict[str, Any]:
    """
    读取JSON文件

    Raises:
        FileOperationError: 如果文件不存在、不可读或不是合法JSON对象
    """
    path = Path(file_path)
    try:
        with path.open('r', encoding=encoding) as f:
            data = json.load(f)
    except FileNotFoundError as e:
        raise FileOperationError(f"文件不存在: {path}", file_path=path, original_error=e)
    except OSError as e:
        raise FileOperationError(f"无法读取文件 '{path}': {e}", file_path=path, original_error=e)
    except json.JSONDecodeError as e:
        raise FileOperationError(
            f"JSON格式错误 '{path}' (第{e.lineno}行): {e.msg}", file_path=path, original_error=e
        )

    if not isinstance(data, dict):
        raise FileOperationError(f"JSON根节点必须是对象: {path}", file_path=path)
    return data


def write_json_file(file_path: Union[str, Path],
                    data: Dict[str, Any],
                    encoding: str = 'utf-8',
                    indent: int = 2,
                    create_backup_first: bool = False) -> Optional[Path]:
    """
    原子地写入JSON文件

    Args:
        file_path: JSON文件路径
        data: 要写入的数据
        encoding: 文件编码
        indent: JSON缩进空格数
        create_backup_first: 是否在覆盖前创建备份

    Returns:
        如果创建了备份，返回备份文件路径，否则返回None

    Raises:
        FileOperationError: 如果写入失败
    """
    path = Path(file_path)
    ensure_directory_exists(path.parent)

    backup_path = None
    if create_backup_first and path.exists():
        backup_path = create_backup(path)

    temp_path: Optional[Path] = None
    try:
        # 临时文件名唯一，并发写入以最后一次替换为准
        with tempfile.NamedTemporaryFile('w', encoding=encoding, dir=path.parent,
                                         prefix=f".{path.name}.", suffix=".tmp",
                                         delete=False) as f:
            temp_path = Path(f.name)
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
        if path.exists():
            shutil.copymode(path, temp_path)
        else:
            temp_path.chmod(0o644)
        temp_path.replace(path)
    except (OSError, TypeError, ValueError) as e:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise FileOperationError(f"无法写入文件 '{path}': {e}", file_path=path, original_error=e)

    return backup_path


__all__ = [
    "FileOperationError",
    "ensure_directory_exists",
    "create_backup",
    "read_json_file",
    "write_json_file",
]
