"""
位置检测模块。
通过设备坐标反向地理编码判断网络区域。
"""
from dataclasses import dataclass
from typing import Any, Dict, Optional

import requests
from requests.exceptions import RequestException
from loguru import logger

from .config_loader import NetworkRegion, load_config, get_settings_section, get_region_config


class LocationError(Exception):
    """位置获取或反向地理编码失败"""


@dataclass(frozen=True)
class DeviceLocation:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class Placemark:
    country: str
    country_code: Optional[str] = None


class SettingsLocationProvider:
    """从用户设置中读取设备坐标"""

    def request_location(self) -> DeviceLocation:
        """
        获取设备坐标

        Returns:
            DeviceLocation: 设备坐标

        Raises:
            LocationError: 未设置坐标或坐标无效
        """
        location = get_settings_section("location")
        latitude = location.get("latitude")
        longitude = location.get("longitude")
        if latitude is None or longitude is None:
            raise LocationError("No device coordinates configured")

        try:
            latitude, longitude = float(latitude), float(longitude)
        except (TypeError, ValueError):
            raise LocationError(f"Invalid device coordinates: {latitude}, {longitude}")

        if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
            raise LocationError(f"Device coordinates out of range: {latitude}, {longitude}")
        return DeviceLocation(latitude, longitude)


class ReverseGeocoder:
    """基于 Nominatim 接口的反向地理编码器"""

    def __init__(self, url: Optional[str] = None, user_agent: Optional[str] = None,
                 timeout: Optional[float] = None):
        geocoder = load_config().get("geocoder", {})
        self.url = url or geocoder.get("url")
        self.user_agent = user_agent or geocoder.get("user_agent", "transcriber-shell")
        self.timeout = timeout if timeout is not None else geocoder.get("timeout", 5)

    def reverse(self, location: DeviceLocation) -> Placemark:
        """
        将坐标转换为所在国家

        Args:
            location: 设备坐标

        Returns:
            Placemark: 国家信息

        Raises:
            LocationError: 请求失败或响应中没有国家信息
        """
        params = {
            "format": "jsonv2",
            "lat": location.latitude,
            "lon": location.longitude,
            "zoom": 3,
            "accept-language": "en",
        }
        try:
            response = requests.get(
                self.url,
                params=params,
                headers={"User-Agent": self.user_agent},
                timeout=self.timeout,
            )
            response.raise_for_status()
            payload = response.json()
        except RequestException as e:
            raise LocationError(f"Reverse geocoding failed: {e}") from e
        except ValueError as e:
            raise LocationError(f"Invalid geocoder response: {e}") from e

        return self._parse_placemark(payload)

    @staticmethod
    def _parse_placemark(payload: Any) -> Placemark:
        if not isinstance(payload, dict):
            raise LocationError("Unexpected geocoder response")
        if "error" in payload:
            raise LocationError(f"Geocoder error: {payload['error']}")

        address: Dict[str, Any] = payload.get("address") or {}
        country = address.get("country")
        if not country:
            raise LocationError("No country in geocoder response")
        return Placemark(country=country, country_code=address.get("country_code"))


def region_for_placemark(placemark: Placemark) -> NetworkRegion:
    """
    根据国家信息判断区域

    Args:
        placemark: 反向地理编码结果

    Returns:
        NetworkRegion: 中国返回MAINLAND_CHINA，否则返回OVERSEAS
    """
    region_config = get_region_config()
    names = set(region_config.get("china_country_names", []))
    codes = {code.lower() for code in region_config.get("china_country_codes", [])}

    if placemark.country in names:
        return NetworkRegion.MAINLAND_CHINA
    if placemark.country_code and placemark.country_code.lower() in codes:
        return NetworkRegion.MAINLAND_CHINA

    logger.debug(f"Placemark country {placemark.country} is not mainland China")
    return NetworkRegion.OVERSEAS
