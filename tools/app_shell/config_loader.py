"""
配置加载器模块。
负责加载内置YAML配置和用户设置，并定义共享的枚举类型。
"""
import copy
import os
from enum import Enum
from pathlib import Path
from typing import Dict, Any, Optional, List

import yaml
from loguru import logger


class TranslationServiceType(str, Enum):
    """翻译服务类型"""
    GOOGLE = "google"
    QIANWEN = "qianwen"

    @property
    def display_name(self) -> str:
        return {
            TranslationServiceType.GOOGLE: "Google Translate",
            TranslationServiceType.QIANWEN: "Qianwen",
        }[self]


class NetworkRegion(str, Enum):
    """网络区域枚举"""
    MAINLAND_CHINA = "mainland_china"
    OVERSEAS = "overseas"
    UNKNOWN = "unknown"

    @property
    def display_name(self) -> str:
        return {
            NetworkRegion.MAINLAND_CHINA: "China Mainland",
            NetworkRegion.OVERSEAS: "Overseas",
            NetworkRegion.UNKNOWN: "Unknown",
        }[self]

    @property
    def recommended_service(self) -> TranslationServiceType:
        """海外推荐Google，其余情况使用千问"""
        if self == NetworkRegion.OVERSEAS:
            return TranslationServiceType.GOOGLE
        return TranslationServiceType.QIANWEN


class LocationAuthorization(str, Enum):
    """位置权限状态"""
    NOT_DETERMINED = "not_determined"
    DENIED = "denied"
    RESTRICTED = "restricted"
    AUTHORIZED_WHEN_IN_USE = "authorized_when_in_use"
    AUTHORIZED_ALWAYS = "authorized_always"

    @property
    def is_authorized(self) -> bool:
        return self in (LocationAuthorization.AUTHORIZED_WHEN_IN_USE,
                        LocationAuthorization.AUTHORIZED_ALWAYS)

    @property
    def display_name(self) -> str:
        return {
            LocationAuthorization.NOT_DETERMINED: "Not Determined",
            LocationAuthorization.DENIED: "Denied",
            LocationAuthorization.RESTRICTED: "Restricted",
            LocationAuthorization.AUTHORIZED_WHEN_IN_USE: "When In Use",
            LocationAuthorization.AUTHORIZED_ALWAYS: "Always",
        }[self]


class NetworkStatus(str, Enum):
    """网络连接状态"""
    SATISFIED = "satisfied"
    UNSATISFIED = "unsatisfied"
    REQUIRES_CONNECTION = "requires_connection"

    @property
    def display_name(self) -> str:
        return {
            NetworkStatus.SATISFIED: "Connected",
            NetworkStatus.UNSATISFIED: "Unsatisfied",
            NetworkStatus.REQUIRES_CONNECTION: "Requires Connection",
        }[self]


DEFAULT_CONFIG: Dict[str, Any] = {
    "app": {
        "name": "Recording Transcription",
        "version": "1.5.0 - Phase 1",
        "languages": ["English", "Chinese"],
    },
    "region": {
        "probe_domains": ["baidu.com", "qq.com", "weibo.com"],
        "http_timeout": 5,
        "min_successes": 1,
        "china_country_names": ["China", "中国"],
        "china_country_codes": ["cn"],
    },
    "connectivity": {
        "test_domains": ["baidu.com", "google.com", "cloudflare.com", "aliyun.com"],
        "timeout": 1,
    },
    "geocoder": {
        "url": "https://nominatim.openstreetmap.org/reverse",
        "user_agent": "transcriber-shell/1.5",
        "timeout": 5,
    },
    "developer_keys": {},
    "developer_keys_are_placeholders": False,
    "identifiers": {
        "developer": {
            "qianwen": "com.jimmy.RecordingTranscriptionApp.developer.qianwenAPIKey",
            "google": "com.jimmy.RecordingTranscriptionApp.developer.googleAPIKey",
        },
        "legacy": {
            "qianwen": "com.jimmy.RecordingTranscriptionApp.qianwenAPIKey",
            "google": "com.jimmy.RecordingTranscriptionApp.googleTranslateAPIKey",
        },
    },
}

SETTINGS_FILENAME = "settings.yaml"


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    递归合并两个字典，override中的值优先

    Args:
        base: 基础字典
        override: 覆盖字典

    Returns:
        Dict: 合并后的新字典
    """
    merged = copy.deepcopy(base)
    for key, value in override.items():
        # 空值不覆盖默认值
        if value is None:
            continue
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = copy.deepcopy(value)
    return merged


class ConfigManager:
    """配置管理器"""

    _instance = None
    _config_cache = None

    def __new__(cls):
        """单例模式"""
        if cls._instance is None:
            cls._instance = super(ConfigManager, cls).__new__(cls)
        return cls._instance

    def __init__(self):
        """初始化配置管理器"""
        if self._config_cache is None:
            self._config_cache = self._load_config()

    def get_config_path(self) -> Optional[Path]:
        """
        获取内置配置文件路径

        Returns:
            Path: 配置文件路径，不存在时返回None
        """
        base_dir = Path(__file__).parent.parent
        config_path = base_dir / "config" / "app_shell.yaml"

        if config_path.exists():
            return config_path

        logger.warning(f"No app_shell.yaml found in {config_path}, using defaults")
        return None

    def _load_config(self) -> Dict[str, Any]:
        """
        加载配置，文件内容覆盖默认值

        Returns:
            Dict: 配置字典
        """
        config_path = self.get_config_path()

        if not config_path:
            return copy.deepcopy(DEFAULT_CONFIG)

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f) or {}
            if not isinstance(config, dict):
                logger.error(f"Config at {config_path} is not a mapping, using defaults")
                return copy.deepcopy(DEFAULT_CONFIG)
            logger.debug(f"Loaded config from {config_path}")
            return _deep_merge(DEFAULT_CONFIG, config)
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config: {e}")
            return copy.deepcopy(DEFAULT_CONFIG)

    def reload_config(self) -> Dict[str, Any]:
        self._config_cache = self._load_config()
        return self._config_cache

    def get_config(self) -> Dict[str, Any]:
        return self._config_cache


# 创建全局配置管理器实例
_config_manager = ConfigManager()


def get_config_path() -> Optional[Path]:
    return _config_manager.get_config_path()


def load_config() -> Dict[str, Any]:
    """
    获取内置配置

    Returns:
        Dict: 配置字典
    """
    return _config_manager.get_config()


def reload_config() -> Dict[str, Any]:
    return _config_manager.reload_config()


def get_app_home() -> Path:
    """
    获取用户数据目录，可通过 APP_SHELL_HOME 环境变量覆盖

    Returns:
        Path: 用户数据目录
    """
    override = os.environ.get("APP_SHELL_HOME")
    if override:
        return Path(override)
    return Path.home() / ".config" / "app_shell"


def get_settings_path() -> Path:
    return get_app_home() / SETTINGS_FILENAME


def load_settings() -> Dict[str, Any]:
    """
    加载用户设置

    Returns:
        Dict: 设置字典，文件不存在或损坏时返回空字典
    """
    settings_path = get_settings_path()
    if not settings_path.exists():
        return {}

    try:
        with open(settings_path, "r", encoding="utf-8") as f:
            settings = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error loading settings: {e}")
        return {}

    if not isinstance(settings, dict):
        logger.error(f"Settings at {settings_path} is not a mapping, ignoring it")
        return {}
    return settings


def get_settings_section(name: str) -> Dict[str, Any]:
    """
    获取用户设置中的一个分节

    Args:
        name: 分节名称，如 'location'、'region'

    Returns:
        Dict: 分节内容，缺失或不是字典时返回空字典
    """
    section = load_settings().get(name)
    if isinstance(section, dict):
        return section
    if section is not None:
        logger.warning(f"Ignoring malformed settings section: {name}")
    return {}


def update_settings(changes: Dict[str, Any]) -> bool:
    """
    合并并保存用户设置

    Args:
        changes: 需要更新的设置项

    Returns:
        bool: 更新是否成功
    """
    settings_path = get_settings_path()
    try:
        settings_path.parent.mkdir(parents=True, exist_ok=True)
        settings = _deep_merge(load_settings(), changes)
        with open(settings_path, "w", encoding="utf-8") as f:
            yaml.safe_dump(settings, f, allow_unicode=True)
        logger.info(f"Updated settings at {settings_path}")
        return True
    except (OSError, yaml.YAMLError) as e:
        logger.error(f"Error updating settings: {e}")
        return False


def get_region_config() -> Dict[str, Any]:
    return load_config().get("region", {})


def get_probe_domains() -> List[str]:
    return list(get_region_config().get("probe_domains", []))


def get_developer_keys() -> Dict[TranslationServiceType, str]:
    """
    获取内置的开发者密钥

    Returns:
        Dict: 服务类型到密钥的映射，忽略未知服务
    """
    keys = {}
    configured = load_config().get("developer_keys") or {}
    if not isinstance(configured, dict):
        logger.error("developer_keys must be a mapping, ignoring it")
        return {}
    for name, value in configured.items():
        try:
            service = TranslationServiceType(name)
        except ValueError:
            logger.warning(f"Ignoring developer key for unknown service: {name}")
            continue
        if value:
            keys[service] = str(value)
    return keys


def get_key_identifiers(kind: str) -> Dict[TranslationServiceType, str]:
    """
    获取凭据标识符

    Args:
        kind: 'developer' 或 'legacy'

    Returns:
        Dict: 服务类型到标识符的映射
    """
    identifiers = load_config().get("identifiers", {}).get(kind, {})
    return {
        service: identifiers[service.value]
        for service in TranslationServiceType
        if service.value in identifiers
    }


def get_location_authorization() -> LocationAuthorization:
    value = get_settings_section("location").get("authorization")
    try:
        return LocationAuthorization(value) if value else LocationAuthorization.NOT_DETERMINED
    except ValueError:
        logger.warning(f"Invalid location authorization in settings: {value}")
        return LocationAuthorization.NOT_DETERMINED
