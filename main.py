#!/usr/bin/env python3
"""
Recording Transcription 应用外壳主程序
"""
import sys

import typer
from loguru import logger
from rich.console import Console

from tools.app_shell.cli import region_app, keys_app, settings_app
from tools.diagnostics import app as diagnostics_app

# 创建主应用
app = typer.Typer(help="Recording Transcription 应用外壳工具集")
console = Console()

# 添加子命令
app.add_typer(region_app, name="region", help="网络区域检测")
app.add_typer(keys_app, name="keys", help="API密钥管理")
app.add_typer(settings_app, name="settings", help="应用设置")
app.add_typer(diagnostics_app, name="diagnostics", help="开发诊断")


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="输出调试日志")
):
    """
    Recording Transcription 应用外壳工具集
    """
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "INFO")


if __name__ == "__main__":
    app()
