"""
凭据存储模块。
按字符串标识符保存API密钥，提供内存和本地文件两种实现。
"""
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

import yaml
from loguru import logger

from .config_loader import get_app_home

CREDENTIALS_FILENAME = "credentials.yaml"


class CredentialStore(ABC):
    """凭据存储接口"""

    @abstractmethod
    def save(self, identifier: str, secret: str) -> bool:
        """
        保存凭据，已存在的同名凭据会被替换

        Args:
            identifier: 凭据标识符
            secret: 凭据内容

        Returns:
            bool: 保存是否成功
        """

    @abstractmethod
    def load(self, identifier: str) -> Optional[str]:
        """读取凭据，不存在时返回None"""

    @abstractmethod
    def delete(self, identifier: str) -> bool:
        """删除凭据，凭据不存在也视为成功"""


class MemoryCredentialStore(CredentialStore):
    """内存凭据存储"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def save(self, identifier: str, secret: str) -> bool:
        self.delete(identifier)
        self._items[identifier] = secret
        return True

    def load(self, identifier: str) -> Optional[str]:
        return self._items.get(identifier)

    def delete(self, identifier: str) -> bool:
        self._items.pop(identifier, None)
        return True


class FileCredentialStore(CredentialStore):
    """本地YAML文件凭据存储，文件权限为仅当前用户可读写"""

    def __init__(self, path: Optional[Path] = None):
        self.path = Path(path) if path else get_app_home() / CREDENTIALS_FILENAME

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            raise ValueError(f"Malformed credential file: {self.path}")
        items = {}
        for key, value in data.items():
            # 空条目视为未保存
            if value is None:
                continue
            if not isinstance(value, str):
                raise ValueError(f"Malformed credential entry {key} in {self.path}")
            items[str(key)] = value
        return items

    def _write(self, items: Dict[str, str]):
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            yaml.safe_dump(items, f, allow_unicode=True)
        os.chmod(self.path, 0o600)

    def save(self, identifier: str, secret: str) -> bool:
        try:
            items = self._read()
            items.pop(identifier, None)
            items[identifier] = secret
            self._write(items)
            return True
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to save credential {identifier}: {e}")
            return False

    def load(self, identifier: str) -> Optional[str]:
        try:
            return self._read().get(identifier)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to load credential {identifier}: {e}")
            return None

    def delete(self, identifier: str) -> bool:
        try:
            items = self._read()
            if identifier not in items:
                return True
            del items[identifier]
            self._write(items)
            return True
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.error(f"Failed to delete credential {identifier}: {e}")
            return False
