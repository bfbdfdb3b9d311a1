"""
app_shell 包
提供网络区域检测、开发者密钥配置和API密钥查询功能
"""

# 从config_loader模块导出所有内容
from .config_loader import (
    NetworkRegion,
    TranslationServiceType,
    LocationAuthorization,
    NetworkStatus,
    get_config_path,
    load_config,
    reload_config,
    get_app_home,
    load_settings,
    update_settings,
)

# 从network模块导出所有内容
from .network import (
    can_reach_domain,
    check_china_mainland_connectivity,
    check_internet_connection,
    check_network_status,
)

from .locator import (
    DeviceLocation,
    LocationError,
    Placemark,
    ReverseGeocoder,
    SettingsLocationProvider,
    region_for_placemark,
)

from .region_manager import NetworkRegionManager

from .credential_store import (
    CredentialStore,
    FileCredentialStore,
    MemoryCredentialStore,
)

from .developer_config import (
    DeveloperConfigManager,
    get_developer_config_manager,
)

from .api_key_manager import (
    APIKeyManager,
    ConfigurationSource,
    get_api_key_manager,
)

# 定义包的公开API
__all__ = [
    'NetworkRegion',
    'TranslationServiceType',
    'LocationAuthorization',
    'NetworkStatus',
    'get_config_path',
    'load_config',
    'reload_config',
    'get_app_home',
    'load_settings',
    'update_settings',
    'can_reach_domain',
    'check_china_mainland_connectivity',
    'check_internet_connection',
    'check_network_status',
    'DeviceLocation',
    'LocationError',
    'Placemark',
    'ReverseGeocoder',
    'SettingsLocationProvider',
    'region_for_placemark',
    'NetworkRegionManager',
    'CredentialStore',
    'FileCredentialStore',
    'MemoryCredentialStore',
    'DeveloperConfigManager',
    'get_developer_config_manager',
    'APIKeyManager',
    'ConfigurationSource',
    'get_api_key_manager',
]

PACKAGE_VERSION = '1.5.0'
