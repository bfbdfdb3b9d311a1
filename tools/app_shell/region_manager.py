"""
网络区域管理模块。
先尝试基于位置的检测，失败时回退到基于网络的检测，并维护检测状态和调试日志。
"""
from typing import Callable, List, Optional

from loguru import logger

from .config_loader import (
    LocationAuthorization,
    NetworkRegion,
    NetworkStatus,
    TranslationServiceType,
    get_location_authorization,
    update_settings,
)
from .locator import LocationError, ReverseGeocoder, SettingsLocationProvider, region_for_placemark
from .network import check_china_mainland_connectivity, check_network_status

Listener = Callable[["NetworkRegionManager"], None]
Dispatcher = Callable[[Callable[[], None]], None]


def _dispatch_immediately(callback: Callable[[], None]):
    callback()


class NetworkRegionManager:
    """网络区域管理器"""

    def __init__(self,
                 location_provider=None,
                 geocoder: Optional[ReverseGeocoder] = None,
                 connectivity_check: Optional[Callable[..., bool]] = None,
                 status_check: Optional[Callable[[], NetworkStatus]] = None,
                 authorizer: Optional[Callable[[], LocationAuthorization]] = None,
                 dispatcher: Optional[Dispatcher] = None):
        """
        初始化网络区域管理器

        Args:
            location_provider: 设备坐标来源，需提供 request_location()
            geocoder: 反向地理编码器
            connectivity_check: 中国大陆连通性检测函数
            status_check: 网络状态检测函数
            authorizer: 请求位置权限时调用，返回新的权限状态
            dispatcher: 监听器回调的派发方式，默认立即调用
        """
        self.location_provider = location_provider or SettingsLocationProvider()
        self.geocoder = geocoder or ReverseGeocoder()
        self.connectivity_check = connectivity_check or check_china_mainland_connectivity
        self.status_check = status_check or check_network_status
        self.authorizer = authorizer or get_location_authorization
        self.dispatcher = dispatcher or _dispatch_immediately

        self.current_region = NetworkRegion.UNKNOWN
        self.recommended_service = TranslationServiceType.QIANWEN
        self.is_detection_complete = False
        self.network_status = NetworkStatus.REQUIRES_CONNECTION
        self.location_authorization = get_location_authorization()
        self.debug_messages: List[str] = []
        self._listeners: List[Listener] = []

    def subscribe(self, listener: Listener):
        """注册区域更新监听器"""
        self._listeners.append(listener)

    def unsubscribe(self, listener: Listener):
        if listener in self._listeners:
            self._listeners.remove(listener)

    # 区域检测

    def detect_region(self) -> NetworkRegion:
        """
        检测当前网络区域：先基于位置，无结果时回退到网络检测

        Returns:
            NetworkRegion: 检测到的区域
        """
        region = self._detect_region_by_location()
        if region is None:
            region = self._detect_region_by_network()
        return region

    def _detect_region_by_location(self) -> Optional[NetworkRegion]:
        status = self.location_authorization

        if status == LocationAuthorization.NOT_DETERMINED:
            self._add_debug_message("Location permission not determined, requesting authorization...")
            status = self.authorizer()
            self.location_authorization = status
            if status == LocationAuthorization.NOT_DETERMINED:
                return None

        if status.is_authorized:
            return self._detect_region_by_coordinates()

        self._add_debug_message(
            f"Location permission {status.display_name}, falling back to network detection")
        return None

    def _detect_region_by_coordinates(self) -> Optional[NetworkRegion]:
        try:
            location = self.location_provider.request_location()
            self._add_debug_message(
                f"Device location: {location.latitude:.4f}, {location.longitude:.4f}")
            placemark = self.geocoder.reverse(location)
        except LocationError as e:
            logger.warning(f"Location detection failed: {e}")
            self._add_debug_message(f"Location detection failed: {e}")
            return None

        self._add_debug_message(f"Reverse geocoded country: {placemark.country}")
        region = region_for_placemark(placemark)
        self.update_region(region)
        return region

    def _detect_region_by_network(self) -> NetworkRegion:
        region = self.perform_network_based_detection()
        self.update_region(region)
        return region

    def _detect_region_by_location_or_network(self) -> NetworkRegion:
        region = self._detect_region_by_coordinates()
        if region is None:
            region = self._detect_region_by_network()
        return region

    def perform_network_based_detection(self) -> NetworkRegion:
        """
        通过探测中国大陆域名判断区域

        Returns:
            NetworkRegion: 可达返回MAINLAND_CHINA，否则返回OVERSEAS
        """
        self._add_debug_message("Starting network-based region detection...")
        is_china_mainland = self.connectivity_check(report=self._add_debug_message)
        result = NetworkRegion.MAINLAND_CHINA if is_china_mainland else NetworkRegion.OVERSEAS
        self._add_debug_message(f"Network detection result: {result.display_name}")
        return result

    def update_region(self, region: NetworkRegion):
        self._add_debug_message("Updating region...")
        self._add_debug_message(f"Previous region: {self.current_region.display_name}")
        self._add_debug_message(f"New region: {region.display_name}")

        self.current_region = region
        self.recommended_service = region.recommended_service
        self.is_detection_complete = True

        self._add_debug_message(f"Region updated to: {region.display_name}")
        self._add_debug_message(f"Recommended service: {self.recommended_service.display_name}")
        self._add_debug_message("Detection marked as complete")
        logger.info(f"Network region: {region.display_name}, "
                    f"recommended service: {self.recommended_service.display_name}")

        for listener in list(self._listeners):
            self.dispatcher(lambda listener=listener: listener(self))

    # 状态变化

    def on_network_status_changed(self, status: NetworkStatus):
        """网络状态变化时调用，网络可用则重新进行网络检测"""
        self.network_status = status
        self._add_debug_message(f"Network status changed: {status.display_name}")
        if status == NetworkStatus.SATISFIED:
            self._detect_region_by_network()

    def refresh_network_status(self) -> NetworkStatus:
        status = self.status_check()
        self.on_network_status_changed(status)
        return status

    def on_authorization_changed(self, status: LocationAuthorization) -> Optional[NetworkRegion]:
        """
        位置权限变化时调用

        Args:
            status: 新的权限状态

        Returns:
            Optional[NetworkRegion]: 触发检测时返回检测结果
        """
        self.location_authorization = status
        update_settings({"location": {"authorization": status.value}})
        self._add_debug_message(f"Location permission changed: {status.display_name}")

        if status.is_authorized:
            return self._detect_region_by_location_or_network()
        if status in (LocationAuthorization.DENIED, LocationAuthorization.RESTRICTED):
            return self._detect_region_by_network()
        return None

    # 公共方法

    def get_recommended_service(self) -> TranslationServiceType:
        return self.recommended_service

    def force_refresh_detection(self) -> NetworkRegion:
        self._add_debug_message("Force refresh detection requested")
        self._add_debug_message(f"Current network status: {self.network_status.display_name}")
        self._add_debug_message(
            f"Current location permission: {self.location_authorization.display_name}")
        self.is_detection_complete = False
        self._add_debug_message("Detection marked as incomplete, starting fresh detection...")
        return self.detect_region()

    def request_location_permission(self) -> Optional[NetworkRegion]:
        """
        请求位置权限，已授权时立即请求位置

        Returns:
            Optional[NetworkRegion]: 触发检测时返回检测结果
        """
        self._add_debug_message("Requesting location permission...")
        status = self.location_authorization

        if status == LocationAuthorization.NOT_DETERMINED:
            new_status = self.authorizer()
            if new_status != status:
                return self.on_authorization_changed(new_status)
            self._add_debug_message("Location permission is still not determined")
            return None

        if status in (LocationAuthorization.DENIED, LocationAuthorization.RESTRICTED):
            self._add_debug_message(
                "Location permission previously denied. Grant it with 'region permission --grant'.")
            return None

        self._add_debug_message("Location permission already granted. Requesting current location...")
        return self._detect_region_by_location_or_network()

    def restore_region(self, region: NetworkRegion):
        """恢复上次保存的区域，不记录日志也不通知监听器"""
        self.current_region = region
        self.recommended_service = region.recommended_service
        self.is_detection_complete = True

    def set_manual_region(self, region: NetworkRegion):
        self.update_region(region)

    def clear_debug_messages(self):
        self.debug_messages.clear()

    def _add_debug_message(self, message: str):
        self.debug_messages.append(message)
        logger.debug(message)

    def debug_info(self) -> str:
        info = "Network Region Manager Debug Info:\n"
        info += f"- Current Region: {self.current_region.display_name}\n"
        info += f"- Recommended Service: {self.recommended_service.display_name}\n"
        info += f"- Detection Complete: {self.is_detection_complete}\n"
        info += f"- Network Status: {self.network_status.display_name}\n"
        info += f"- Location Permission: {self.location_authorization.display_name}\n"
        return info
