#!/usr/bin/env python3
"""
开发诊断模块。
汇总网络区域检测、开发者配置和API密钥状态，用于开发阶段的自检。
"""
from typing import Dict, List, Optional

import typer
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from tools.app_shell.api_key_manager import APIKeyManager, get_api_key_manager
from tools.app_shell.cli import build_region_manager
from tools.app_shell.config_loader import (
    NetworkRegion,
    TranslationServiceType,
    get_developer_keys,
    load_config,
)
from tools.app_shell.developer_config import DeveloperConfigManager
from tools.app_shell.region_manager import NetworkRegionManager

# 创建Typer应用
app = typer.Typer(help="开发诊断工具")
console = Console()

REGION_STYLES = {
    NetworkRegion.MAINLAND_CHINA: "red",
    NetworkRegion.OVERSEAS: "blue",
    NetworkRegion.UNKNOWN: "dim",
}


def _badge(value: bool) -> str:
    return "[green]yes[/green]" if value else "[red]no[/red]"


def get_placeholder_keys() -> Dict[TranslationServiceType, str]:
    """内置配置标记为占位符时，返回这些开发者密钥"""
    if not load_config().get("developer_keys_are_placeholders"):
        return {}
    return get_developer_keys()


def is_placeholder_key(service: TranslationServiceType, key: str) -> bool:
    placeholder = get_placeholder_keys().get(service)
    return placeholder is not None and key.startswith(placeholder)


def build_key_report(manager: APIKeyManager) -> List[str]:
    """
    生成密钥就绪报告

    Args:
        manager: API密钥管理器

    Returns:
        List[str]: 报告行
    """
    lines = ["API Key Status:"]
    ready: Optional[TranslationServiceType] = None

    for service in (TranslationServiceType.QIANWEN, TranslationServiceType.GOOGLE):
        key = manager.get_api_key(service)
        if key is None:
            lines.append(f"  {service.display_name} key: not found")
            continue

        lines.append(f"  {service.display_name} key: found ({len(key)} chars)")
        lines.append(f"  Key preview: {key[:20]}...")
        if is_placeholder_key(service, key):
            lines.append("  This is a PLACEHOLDER key (not real)")
        elif ready is None:
            ready = service

    lines.append("")
    if ready is not None:
        lines.append(f"Translation ready with {ready.display_name}")
    elif any(manager.is_service_configured(s) for s in TranslationServiceType):
        lines.append("Translation expected to fail: only placeholder keys are configured")
    else:
        lines.append("Cannot test translation: no API key")
    return lines


def display_region_section(manager: NetworkRegionManager) -> None:
    table = Table(title="Network Region Detection")
    table.add_column("Item", style="cyan")
    table.add_column("Value")

    style = REGION_STYLES[manager.current_region]
    table.add_row("Current Region", f"[{style}]{manager.current_region.display_name}[/{style}]")
    table.add_row("Recommended Service", manager.recommended_service.display_name)
    table.add_row("Detection Complete", _badge(manager.is_detection_complete))
    table.add_row("Location Permission", manager.location_authorization.display_name)
    table.add_row("Network Status", manager.network_status.display_name)
    console.print(table)


def display_debug_log(manager: NetworkRegionManager) -> None:
    if not manager.debug_messages:
        console.print("[dim]No logs yet. Try testing network detection.[/dim]")
        return
    body = "\n".join(escape(m) for m in manager.debug_messages)
    console.print(Panel(body, title=f"Debug Logs ({len(manager.debug_messages)} messages)",
                        border_style="blue"))


def display_developer_section(developer_config: DeveloperConfigManager) -> None:
    table = Table(title="Developer Configuration")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Is Configured", _badge(developer_config.is_configured))
    table.add_row("Available Services", str(len(developer_config.available_services)))
    for service in TranslationServiceType:
        if developer_config.is_service_available(service):
            table.add_row("", service.display_name)
    console.print(table)


def display_key_section(manager: APIKeyManager) -> None:
    table = Table(title="API Key Management")
    table.add_column("Item", style="cyan")
    table.add_column("Value")
    table.add_row("Using Developer Config", _badge(manager.is_using_developer_config))
    table.add_row("Has Google Translate Key", _badge(manager.has_google_translate_key))
    table.add_row("Has Qianwen Key", _badge(manager.has_qianwen_key))

    lengths = manager.get_api_key_info()
    for service, available in manager.test_api_key_access().items():
        detail = f"{lengths[service]} chars" if available else "missing"
        table.add_row(f"Developer {service.display_name} Key", detail)
    console.print(table)


@app.command("run")
def run_diagnostics(
    skip_detection: bool = typer.Option(
        False, "--skip-detection", help="不重新检测网络区域"
    )
):
    """
    刷新所有配置并显示诊断信息
    """
    region_manager = build_region_manager()
    key_manager = get_api_key_manager()

    if not skip_detection:
        with console.status("[bold blue]检测网络区域中...[/bold blue]"):
            region_manager.force_refresh_detection()
    key_manager.refresh_configuration()

    display_region_section(region_manager)
    display_debug_log(region_manager)
    display_developer_section(key_manager.developer_config)
    display_key_section(key_manager)


@app.command("keys")
def check_keys():
    """
    检查当前密钥能否用于翻译
    """
    lines = build_key_report(get_api_key_manager())
    failed = lines[-1].startswith("Cannot")
    console.print(Panel("\n".join(lines), title="Translation Key Check",
                        border_style="red" if failed else "green"))
    if failed:
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
