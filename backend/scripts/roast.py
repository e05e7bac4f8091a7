#!/usr/bin/env python3
"""
Roast CLI

Streams generated records for one input to the terminal as they arrive.

Usage:
    python scripts/roast.py <TEXT> [--style STYLE] [--background TEXT] [--guess-context]
    python scripts/roast.py <TEXT> --regenerate LABEL CONTENT

Examples:
    python scripts/roast.py "你行你上啊"
    python scripts/roast.py "你行你上啊" --style logic_master --guess-context
    python scripts/roast.py "你行你上啊" --regenerate 逻辑鬼才 "原来的回复"
"""
import sys
import argparse
import threading
from pathlib import Path

# Fix encoding for Windows console
if sys.platform == "win32":
    import io
    sys.stdout = io.TextIOWrapper(sys.stdout.buffer, encoding='utf-8')

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from rich.console import Console
from rich.panel import Panel

from roastgen.enums.roast_style import RoastStyle
from roastgen.services.ai.errors import ConfigurationError, GenerationFailedError
from roastgen.services.roast_service import RoastService
from roastgen.utils.log_utils import configure_logging


console = Console()


def _print_roast(roast) -> None:
    console.print(Panel(
        roast.content,
        title=f"[bold]{roast.style}[/bold]",
        subtitle=f"攻击力 {roast.attack_power}",
        expand=False,
    ))


def main() -> int:
    parser = argparse.ArgumentParser(
        description="流式生成短评回复",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"可选风格: ALL, {', '.join(s.value for s in RoastStyle)}",
    )
    parser.add_argument("text", help="对方说的话")
    parser.add_argument("--style", default="ALL", help="风格（默认 ALL）")
    parser.add_argument("--background", default="", help="对方画像/背景")
    parser.add_argument("--guess-context", action="store_true", help="先用 AI 猜测对方画像")
    parser.add_argument("--regenerate", nargs=2, metavar=("LABEL", "CONTENT"),
                        help="刷新单条回复（保持原风格）")
    parser.add_argument("--log-level", default=None, help="日志级别（默认读取 config.yaml）")
    args = parser.parse_args()

    configure_logging(level=args.log_level, log_file="")

    try:
        service = RoastService()
    except ConfigurationError as e:
        console.print(f"[red]配置错误:[/red] {e}")
        return 2

    background = args.background
    if args.guess_context and not background:
        background = service.analyze_context(args.text)
        console.print(f"[cyan]对方画像:[/cyan] {background or '(未识别)'}")

    try:
        if args.regenerate:
            label, content = args.regenerate
            _print_roast(service.regenerate_roast(args.text, label, content, background))
            return 0

        cancel_event = threading.Event()
        try:
            count = service.generate_roasts(
                args.text,
                style=args.style,
                background=background,
                on_roast=_print_roast,
                cancel_event=cancel_event,
            )
        except KeyboardInterrupt:
            cancel_event.set()
            console.print("[yellow]已取消[/yellow]")
            return 130
        console.print(f"[green]完成，共 {count} 条[/green]")
        return 0
    except GenerationFailedError as e:
        console.print(f"[red]{e.user_message}[/red]")
        return 1


if __name__ == "__main__":
    sys.exit(main())
