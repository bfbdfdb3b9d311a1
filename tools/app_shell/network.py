"""
网络工具模块。
提供中国大陆连通性探测和互联网连接检测的功能。
"""
import socket
import concurrent.futures
from typing import Callable, List, Optional

import requests
from requests.exceptions import RequestException
from loguru import logger
from rich.progress import Progress, SpinnerColumn, TextColumn

from .config_loader import NetworkStatus, get_probe_domains, get_region_config, load_config

Reporter = Callable[[str], None]

# 配置常量
HTTP_TIMEOUT = 5  # 单个域名最大等待时间（秒）
MAX_WORKERS = 4  # 连接检测最大并发数


def _report(report: Optional[Reporter], message: str):
    if report is not None:
        report(message)
    else:
        logger.debug(message)


def can_reach_domain(domain: str, timeout: Optional[float] = None,
                     report: Optional[Reporter] = None) -> bool:
    """
    对域名发起HTTPS GET请求，状态码小于400即视为可达。

    Args:
        domain: 要检测的域名
        timeout: 超时时间（秒），为None时读取配置
        report: 调试信息回调

    Returns:
        bool: 是否可达
    """
    if not domain or "/" in domain or " " in domain:
        _report(report, f"Invalid URL for domain: {domain}")
        return False

    if timeout is None:
        timeout = get_region_config().get("http_timeout", HTTP_TIMEOUT)

    _report(report, f"Connecting to {domain}...")
    try:
        response = requests.get(f"https://{domain}", timeout=timeout)
    except RequestException as e:
        _report(report, f"Network error for {domain}: {e}")
        return False

    success = response.status_code < 400
    _report(report, f"{domain} response: {response.status_code} {'OK' if success else 'FAILED'}")
    return success


def check_china_mainland_connectivity(domains: Optional[List[str]] = None,
                                      min_successes: Optional[int] = None,
                                      report: Optional[Reporter] = None) -> bool:
    """
    依次探测中国大陆域名，成功数达到阈值即判定为中国大陆网络。

    Args:
        domains: 探测域名列表，为None时读取配置
        min_successes: 最少成功数，为None时读取配置（默认1）
        report: 调试信息回调

    Returns:
        bool: 是否为中国大陆网络
    """
    if domains is None:
        domains = get_probe_domains()
    if min_successes is None:
        min_successes = get_region_config().get("min_successes", 1)
    # 阈值至少为1，空列表永远不会判定为中国大陆
    min_successes = max(1, int(min_successes))

    _report(report, "Checking China mainland connectivity...")
    success_count = 0
    for domain in domains:
        _report(report, f"Testing domain: {domain}")
        if can_reach_domain(domain, report=report):
            _report(report, f"Successfully reached: {domain}")
            success_count += 1
        else:
            _report(report, f"Failed to reach: {domain}")

    is_china_mainland = success_count >= min_successes
    _report(report, f"China connectivity test: {success_count}/{len(domains)} domains reachable")
    _report(report, f"Result: {'China Mainland' if is_china_mainland else 'Overseas'}")
    return is_china_mainland


def check_internet_connection() -> bool:
    """
    检查是否有活跃的互联网连接。

    Returns:
        bool: 如果有活跃的互联网连接则返回True，否则返回False
    """
    connectivity = load_config().get("connectivity", {})
    test_domains = connectivity.get("test_domains", [])
    timeout = connectivity.get("timeout", 1)

    with Progress(
        SpinnerColumn(),
        TextColumn("[bold blue]检测网络连接中...[/bold blue]"),
        transient=True
    ) as progress:
        progress.add_task("检测", total=None)

        with concurrent.futures.ThreadPoolExecutor(max_workers=MAX_WORKERS) as executor:
            futures = {executor.submit(_check_socket_connection, domain, timeout): domain
                       for domain in test_domains}

            for future in concurrent.futures.as_completed(futures):
                if future.result():
                    return True

    return False


def check_network_status() -> NetworkStatus:
    if check_internet_connection():
        return NetworkStatus.SATISFIED
    return NetworkStatus.UNSATISFIED


def _check_socket_connection(domain: str, timeout: float = 1) -> bool:
    """
    检查与指定域名的套接字连接

    Args:
        domain: 要检测的域名
        timeout: 超时时间（秒）

    Returns:
        bool: 如果连接成功则返回True，否则返回False
    """
    try:
        with socket.create_connection((domain, 80), timeout=timeout):
            return True
    except OSError as e:
        logger.debug(f"Socket connection to {domain} failed: {e}")
        return False
