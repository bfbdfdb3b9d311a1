"""
API密钥管理模块。
统一查询开发者预置密钥和旧版用户密钥，开发者密钥优先。
"""
import warnings
from enum import Enum
from typing import Dict, Optional

from loguru import logger

from .config_loader import TranslationServiceType, get_key_identifiers
from .credential_store import CredentialStore
from .developer_config import DeveloperConfigManager, get_developer_config_manager

GOOGLE_KEY_PREFIX = "AIza"
GOOGLE_KEY_MIN_LENGTH = 30


class ConfigurationSource(str, Enum):
    DEVELOPER = "Developer Pre-configured"
    LEGACY = "User Configured (Legacy)"
    NOT_CONFIGURED = "Not Configured"


class APIKeyManager:
    """API密钥管理器"""

    def __init__(self, developer_config: Optional[DeveloperConfigManager] = None,
                 store: Optional[CredentialStore] = None,
                 legacy_identifiers: Optional[Dict[TranslationServiceType, str]] = None):
        """
        初始化API密钥管理器

        Args:
            developer_config: 开发者配置管理器，默认使用共享实例
            store: 旧版密钥所在的凭据存储，默认与开发者配置共用
            legacy_identifiers: 旧版密钥标识符，默认读取内置配置
        """
        self.developer_config = developer_config or get_developer_config_manager()
        self.store = store or self.developer_config.store
        self.legacy_identifiers = (legacy_identifiers if legacy_identifiers is not None
                                   else get_key_identifiers("legacy"))

        self.has_key: Dict[TranslationServiceType, bool] = {}
        self.is_using_developer_config = True
        self._check_existing_keys()

    def _check_existing_keys(self):
        # 开发者配置优先于旧版用户配置
        self.has_key = {
            service: (self._get_developer_api_key(service) is not None
                      or self._get_legacy_api_key(service) is not None)
            for service in TranslationServiceType
        }
        self.is_using_developer_config = self.developer_config.is_configured

    @property
    def has_google_translate_key(self) -> bool:
        return self.has_key.get(TranslationServiceType.GOOGLE, False)

    @property
    def has_qianwen_key(self) -> bool:
        return self.has_key.get(TranslationServiceType.QIANWEN, False)

    # 密钥查询

    def get_api_key(self, service: TranslationServiceType) -> Optional[str]:
        """
        获取服务密钥，先查开发者配置，再查旧版用户配置

        Args:
            service: 翻译服务类型

        Returns:
            Optional[str]: 密钥，未配置时返回None
        """
        developer_key = self._get_developer_api_key(service)
        if developer_key is not None:
            return developer_key
        return self._get_legacy_api_key(service)

    def get_google_translate_api_key(self) -> Optional[str]:
        return self.get_api_key(TranslationServiceType.GOOGLE)

    def get_qianwen_api_key(self) -> Optional[str]:
        return self.get_api_key(TranslationServiceType.QIANWEN)

    def _get_developer_api_key(self, service: TranslationServiceType) -> Optional[str]:
        return self.developer_config.get_api_key(service)

    def _get_legacy_api_key(self, service: TranslationServiceType) -> Optional[str]:
        identifier = self.legacy_identifiers.get(service)
        if identifier is None:
            return None
        return self.store.load(identifier)

    # 旧版用户配置（向后兼容）

    def save_legacy_api_key(self, service: TranslationServiceType, key: str) -> bool:
        warnings.warn("Use developer pre-configured keys instead", DeprecationWarning, stacklevel=2)
        identifier = self.legacy_identifiers.get(service)
        if identifier is None:
            logger.error(f"No legacy identifier configured for {service.display_name}")
            return False

        result = self.store.save(identifier, key)
        if result:
            self.has_key[service] = True
            logger.info(f"Saved legacy API key for {service.display_name}")
        return result

    def delete_legacy_api_key(self, service: TranslationServiceType) -> bool:
        warnings.warn("Use developer pre-configured keys instead", DeprecationWarning, stacklevel=2)
        identifier = self.legacy_identifiers.get(service)
        if identifier is None:
            return True

        result = self.store.delete(identifier)
        if result:
            self._check_existing_keys()
            logger.info(f"Deleted legacy API key for {service.display_name}")
        return result

    # 服务状态

    def is_service_configured(self, service: TranslationServiceType) -> bool:
        return self.has_key.get(service, False)

    def get_configuration_source(self, service: TranslationServiceType) -> ConfigurationSource:
        if self._get_developer_api_key(service) is not None:
            return ConfigurationSource.DEVELOPER
        if self._get_legacy_api_key(service) is not None:
            return ConfigurationSource.LEGACY
        return ConfigurationSource.NOT_CONFIGURED

    def refresh_configuration(self):
        self.developer_config.refresh_configuration()
        self._check_existing_keys()

    # 校验

    @staticmethod
    def validate_api_key(service: TranslationServiceType, key: str) -> bool:
        """
        简单的格式校验

        Args:
            service: 翻译服务类型
            key: 待校验的密钥

        Returns:
            bool: 格式是否有效
        """
        if service == TranslationServiceType.GOOGLE:
            return len(key) >= GOOGLE_KEY_MIN_LENGTH and key.startswith(GOOGLE_KEY_PREFIX)
        return bool(key)

    def migrate_to_developer_config(self):
        # 开发者配置已自动优先，这里只刷新状态
        logger.info("Migration to developer config: developer keys take priority over user keys")
        self._check_existing_keys()

    # 自检

    def test_api_key_access(self) -> Dict[TranslationServiceType, bool]:
        return {
            service: self._get_developer_api_key(service) is not None
            for service in TranslationServiceType
        }

    def get_api_key_info(self) -> Dict[TranslationServiceType, Optional[int]]:
        info = {}
        for service in TranslationServiceType:
            key = self._get_developer_api_key(service)
            info[service] = len(key) if key is not None else None
        return info


_api_key_manager: Optional[APIKeyManager] = None


def get_api_key_manager() -> APIKeyManager:
    """获取共享的API密钥管理器"""
    global _api_key_manager
    if _api_key_manager is None:
        _api_key_manager = APIKeyManager()
    return _api_key_manager
