"""
统一的控制台输出工具，基于 rich 实现结构化的 CLI 输出与日志。
"""
import logging
from typing import Any, List, Optional

from rich.console import Console as RichConsole
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

# 自定义主题
CUSTOM_THEME = Theme({
    "info": "cyan bold",
    "success": "green bold",
    "warning": "yellow bold",
    "error": "red bold",
    "heading": "bold underline",
    "path": "magenta",
    "status": "blue",
    "passed": "green",
    "failed": "red",
})

# 全局控制台实例（单例）
console = RichConsole(theme=CUSTOM_THEME, soft_wrap=True)


# --- 便捷输出函数 ---

def info(message: str):
    console.print(f"💡 [info]INFO[/info]: {escape(message)}")


def success(message: str):
    console.print(f"✅ [success]SUCCESS[/success]: {escape(message)}")


def warning(message: str):
    console.print(f"⚠️  [warning]WARNING[/warning]: {escape(message)}")


def error(message: str):
    console.print(f"❌ [error]ERROR[/error]: {escape(message)}")


def heading(title: str):
    console.print(f"\n🎯 [heading]{escape(title)}[/heading]\n")


def print_json(data: Any):
    """美化输出 JSON/字典数据"""
    console.print_json(data=data, default=str)


def verdict(passed: bool) -> str:
    """返回带样式的 PASS/FAIL 标记（用于拼接）"""
    return "[passed]PASS[/passed]" if passed else "[failed]FAIL[/failed]"


# --- 表格输出 ---

def print_table(rows: List[list], headers: List[str], title: Optional[str] = None):
    table = Table(title=escape(title) if title else None, show_header=True, header_style="bold magenta")
    for h in headers:
        table.add_column(h)
    for row in rows:
        # 单元格是用户数据，Text 单元格保留自身样式
        table.add_row(*[cell if isinstance(cell, Text) else escape(str(cell)) for cell in row])
    console.print(table)


# --- 日志 ---

def configure_logging(level: str = "WARNING"):
    """把 approvalflow 的日志交给 rich 输出"""
    handler = RichHandler(console=console, show_path=False, markup=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))
    root = logging.getLogger("approvalflow")
    for existing in list(root.handlers):
        if isinstance(existing, RichHandler):
            root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(level.upper())
