import json
import sys
from typing import Any, Dict, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.tree import Tree


class TerminalOutput:
    """终端输出实现

    使用 rich 库输出命令信息和校验结果
    """

    def __init__(self, console: Optional[Console] = None):
        """初始化终端输出

        Args:
            console: Rich Console 实例，None 则使用默认控制台
        """
        self._console = console or Console(file=sys.stdout)

    @property
    def console(self) -> Console:
        return self._console

    def success(self, text: str) -> None:
        self._console.print(f"[bold green]✓[/bold green] {escape(text)}")

    def error(self, text: str) -> None:
        self._console.print(f"[bold red]✗[/bold red] {escape(text)}")

    def info(self, text: str) -> None:
        self._console.print(escape(text))

    def show_json(self, data: Any) -> None:
        self._console.print_json(json.dumps(data, ensure_ascii=False, default=str))

    def show_command(self, data: Dict[str, Any]) -> None:
        """以表格和子命令树的形式显示序列化后的命令

        Args:
            data: Command.serialize() 的结果
        """
        table = Table(title=data["name"], show_header=False)
        table.add_column("字段", style="cyan")
        table.add_column("值")
        for key, value in data.items():
            if key in ("subcommands", "subcommand_aliases"):
                continue
            table.add_row(key, self._format_value(value))
        self._console.print(table)

        if data["subcommands"]:
            tree = Tree(f"[bold]{data['name']}[/bold]")
            self._add_subcommands(tree, data)
            self._console.print(tree)

    def _add_subcommands(self, tree: Tree, data: Dict[str, Any]) -> None:
        aliases_by_target: Dict[str, list] = {}
        for alias, target in data["subcommand_aliases"].items():
            aliases_by_target.setdefault(target, []).append(alias)
        for name, child in data["subcommands"].items():
            label = escape(f"{name} — {child['description']}")
            if name in aliases_by_target:
                label += f" [dim]({', '.join(aliases_by_target[name])})[/dim]"
            branch = tree.add(label)
            self._add_subcommands(branch, child)

    @staticmethod
    def _format_value(value: Any) -> str:
        if value is None:
            return "[dim]-[/dim]"
        if isinstance(value, (list, dict)):
            return escape(json.dumps(value, ensure_ascii=False))
        return escape(str(value))
