"""
开发者配置模块。
将内置的开发者API密钥写入凭据存储，并跟踪可用的翻译服务。
"""
from typing import Dict, Optional, Set

from loguru import logger

from .config_loader import TranslationServiceType, get_developer_keys, get_key_identifiers
from .credential_store import CredentialStore, FileCredentialStore


class DeveloperConfigManager:
    """开发者配置管理器"""

    def __init__(self, store: Optional[CredentialStore] = None,
                 developer_keys: Optional[Dict[TranslationServiceType, str]] = None,
                 identifiers: Optional[Dict[TranslationServiceType, str]] = None):
        """
        初始化开发者配置管理器，立即写入内置密钥并检查配置状态

        Args:
            store: 凭据存储，默认使用本地文件存储
            developer_keys: 预置密钥，默认读取内置配置
            identifiers: 各服务的凭据标识符，默认读取内置配置
        """
        self.store = store or FileCredentialStore()
        self.developer_keys = developer_keys if developer_keys is not None else get_developer_keys()
        self.identifiers = identifiers if identifiers is not None else get_key_identifiers("developer")

        self.is_configured = False
        self.available_services: Set[TranslationServiceType] = set()

        self._setup_developer_keys()
        self._check_configuration()

    def _setup_developer_keys(self):
        for service, key in self.developer_keys.items():
            self._store_developer_key(service, key)

    def _store_developer_key(self, service: TranslationServiceType, key: str):
        identifier = self.identifiers.get(service)
        if identifier is None:
            logger.error(f"No credential identifier configured for {service.display_name}")
            return

        if self.store.save(identifier, key):
            logger.info(f"Developer API key stored for {service.display_name}")
        else:
            logger.error(f"Failed to store developer API key for {service.display_name}")

    def _check_configuration(self):
        self.available_services = {
            service for service in TranslationServiceType
            if self.get_api_key(service) is not None
        }
        self.is_configured = bool(self.available_services)

        names = ", ".join(s.display_name for s in TranslationServiceType if s in self.available_services)
        logger.info(f"Developer config status: {'Configured' if self.is_configured else 'Not Configured'}")
        logger.info(f"Available services: {names or 'none'}")

    def get_api_key(self, service: TranslationServiceType) -> Optional[str]:
        identifier = self.identifiers.get(service)
        if identifier is None:
            return None
        return self.store.load(identifier)

    def is_service_available(self, service: TranslationServiceType) -> bool:
        return service in self.available_services

    def refresh_configuration(self):
        self._setup_developer_keys()
        self._check_configuration()

    def debug_info(self) -> str:
        info = "Developer Config Manager Debug Info:\n"
        info += f"- Configuration Status: {self.is_configured}\n"
        info += f"- Available Services: {len(self.available_services)}\n"
        for service in TranslationServiceType:
            has_key = self.get_api_key(service) is not None
            info += f"- {service.display_name}: {'yes' if has_key else 'no'}\n"
        return info


_developer_config_manager: Optional[DeveloperConfigManager] = None


def get_developer_config_manager() -> DeveloperConfigManager:
    """获取共享的开发者配置管理器"""
    global _developer_config_manager
    if _developer_config_manager is None:
        _developer_config_manager = DeveloperConfigManager()
    return _developer_config_manager
