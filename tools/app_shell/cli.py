"""
命令行界面模块。
提供区域检测、API密钥和应用设置的管理命令。
"""
import warnings
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from .config_loader import (
    LocationAuthorization,
    NetworkRegion,
    TranslationServiceType,
    get_location_authorization,
    get_settings_section,
    load_config,
    load_settings,
    update_settings,
)
from .api_key_manager import ConfigurationSource, get_api_key_manager
from .network import check_internet_connection
from .region_manager import NetworkRegionManager

# 创建Typer应用
region_app = typer.Typer(help="网络区域检测")
keys_app = typer.Typer(help="API密钥管理")
settings_app = typer.Typer(help="应用设置")
console = Console()


def _persist_region(manager: NetworkRegionManager):
    update_settings({"region": {"current": manager.current_region.value}})


def build_region_manager() -> NetworkRegionManager:
    """
    创建区域管理器，恢复上次保存的区域并在区域更新时保存

    Returns:
        NetworkRegionManager: 区域管理器
    """
    manager = NetworkRegionManager()
    saved = get_settings_section("region").get("current")
    if saved:
        try:
            manager.restore_region(NetworkRegion(saved))
        except ValueError:
            console.print(f"[yellow]忽略无效的已保存区域: {saved}[/yellow]")
    manager.subscribe(_persist_region)
    return manager


def mask_key(key: str) -> str:
    if len(key) <= 8:
        return "*" * len(key)
    return f"{key[:4]}...{key[-4:]}"


def _print_region(manager: NetworkRegionManager):
    console.print(f"当前网络区域: [bold green]{manager.current_region.display_name}[/bold green]")
    console.print(f"推荐翻译服务: [bold cyan]{manager.recommended_service.display_name}[/bold cyan]")


def _print_debug_log(manager: NetworkRegionManager):
    for message in manager.debug_messages:
        console.print(f"  [blue]{escape(message)}[/blue]")


@region_app.command("detect")
def detect_region(
    network_only: bool = typer.Option(
        False, "--network-only", help="跳过位置检测，仅通过网络探测"
    ),
    show_log: bool = typer.Option(
        False, "--show-log", help="显示检测过程的调试日志"
    )
):
    """
    检测当前网络区域
    """
    if not check_internet_connection():
        console.print("[bold red]无法连接到互联网，请检查网络连接[/bold red]")
        raise typer.Exit(code=1)

    manager = build_region_manager()
    if network_only:
        manager.update_region(manager.perform_network_based_detection())
    else:
        manager.force_refresh_detection()

    if show_log:
        _print_debug_log(manager)
    _print_region(manager)


@region_app.command("status")
def show_region_status():
    """
    显示上次检测的区域状态
    """
    manager = build_region_manager()
    console.print(manager.debug_info())


@region_app.command("set")
def set_region(region: NetworkRegion = typer.Argument(..., help="网络区域")):
    """
    手动设置网络区域
    """
    manager = build_region_manager()
    manager.set_manual_region(region)
    _print_region(manager)


@region_app.command("permission")
def location_permission(
    grant: Optional[bool] = typer.Option(
        None, "--grant/--deny", help="授予或拒绝位置权限，不指定则请求权限"
    )
):
    """
    管理位置权限
    """
    manager = build_region_manager()
    if grant is None:
        manager.request_location_permission()
    elif grant:
        manager.on_authorization_changed(LocationAuthorization.AUTHORIZED_WHEN_IN_USE)
    else:
        manager.on_authorization_changed(LocationAuthorization.DENIED)

    _print_debug_log(manager)
    console.print(f"位置权限: [bold]{manager.location_authorization.display_name}[/bold]")


@region_app.command("location")
def set_location(
    latitude: float = typer.Argument(..., help="纬度"),
    longitude: float = typer.Argument(..., help="经度")
):
    """
    设置设备坐标，用于基于位置的区域检测
    """
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        console.print(f"[bold red]无效的坐标: {latitude}, {longitude}[/bold red]")
        raise typer.Exit(code=1)

    if not update_settings({"location": {"latitude": latitude, "longitude": longitude}}):
        raise typer.Exit(code=1)
    console.print(f"[green]设备坐标已更新: {latitude}, {longitude}[/green]")


@keys_app.command("status")
def show_keys_status():
    """
    显示各翻译服务的密钥状态
    """
    manager = get_api_key_manager()
    table = Table(title="API Keys")
    table.add_column("Service")
    table.add_column("Configured")
    table.add_column("Source")
    for service in TranslationServiceType:
        configured = manager.is_service_configured(service)
        table.add_row(
            service.display_name,
            "[green]yes[/green]" if configured else "[red]no[/red]",
            manager.get_configuration_source(service).value,
        )
    console.print(table)
    console.print(f"使用开发者配置: {'是' if manager.is_using_developer_config else '否'}")


@keys_app.command("get")
def get_key(
    service: TranslationServiceType = typer.Argument(..., help="翻译服务"),
    reveal: bool = typer.Option(False, "--reveal", help="显示完整密钥")
):
    """
    查询翻译服务的密钥
    """
    key = get_api_key_manager().get_api_key(service)
    if key is None:
        console.print(f"[bold red]{service.display_name} 未配置密钥[/bold red]")
        raise typer.Exit(code=1)
    console.print(key if reveal else mask_key(key))


@keys_app.command("set")
def set_key(
    service: TranslationServiceType = typer.Argument(..., help="翻译服务"),
    key: str = typer.Argument(..., help="API密钥")
):
    """
    保存旧版用户密钥（已弃用，开发者密钥优先）
    """
    manager = get_api_key_manager()
    if not manager.validate_api_key(service, key):
        console.print(f"[bold red]无效的 {service.display_name} 密钥格式[/bold red]")
        raise typer.Exit(code=1)

    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        saved = manager.save_legacy_api_key(service, key)
    if not saved:
        console.print("[bold red]密钥保存失败[/bold red]")
        raise typer.Exit(code=1)

    console.print(f"[green]{service.display_name} 密钥已保存[/green]")
    if manager.get_configuration_source(service) != ConfigurationSource.LEGACY:
        console.print("[yellow]注意: 开发者预置密钥优先于用户密钥[/yellow]")


@keys_app.command("delete")
def delete_key(service: TranslationServiceType = typer.Argument(..., help="翻译服务")):
    """
    删除旧版用户密钥
    """
    with warnings.catch_warnings():
        warnings.simplefilter("ignore", DeprecationWarning)
        deleted = get_api_key_manager().delete_legacy_api_key(service)
    if not deleted:
        console.print("[bold red]密钥删除失败[/bold red]")
        raise typer.Exit(code=1)
    console.print(f"[green]{service.display_name} 用户密钥已删除[/green]")


@keys_app.command("refresh")
def refresh_keys():
    """
    重新写入开发者密钥并刷新状态
    """
    get_api_key_manager().refresh_configuration()
    show_keys_status()


@settings_app.command("show")
def show_settings():
    """
    显示应用设置
    """
    app_config = load_config().get("app", {})
    settings = load_settings()
    location = get_settings_section("location")

    console.print(f"语言: [cyan]{settings.get('language', app_config['languages'][0])}[/cyan]")
    console.print(f"位置权限: [cyan]{get_location_authorization().display_name}[/cyan]")
    if "latitude" in location and "longitude" in location:
        console.print(f"设备坐标: [cyan]{location['latitude']}, {location['longitude']}[/cyan]")
    console.print(f"Version {app_config.get('version')}")


@settings_app.command("language")
def set_language(language: str = typer.Argument(..., help="应用语言")):
    """
    设置应用语言
    """
    languages = load_config().get("app", {}).get("languages", [])
    matched = next((lang for lang in languages if lang.lower() == language.lower()), None)
    if matched is None:
        console.print(f"[bold red]无效的语言: {language}[/bold red]")
        console.print(f"可选语言: {', '.join(languages)}")
        raise typer.Exit(code=1)

    if not update_settings({"language": matched}):
        raise typer.Exit(code=1)
    console.print(f"[green]语言已设置为: {matched}[/green]")
