"""CLI 包入口点

使 hotcmd.cli 可以作为模块运行：
    python -m hotcmd.cli check commands/ping.py
    python -m hotcmd.cli inspect commands/ping.py --json
    python -m hotcmd.cli run commands/ping.py "!ping"
"""

import argparse
import sys
from typing import List, Optional

from hotcmd.cli.commands import check_command, inspect_command, run_command


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hotcmd",
        description="hotcmd CLI，校验、查看和调用命令定义",
    )
    parser.add_argument(
        "--default-permission",
        type=int,
        default=None,
        help="定义未声明权限时使用的等级，覆盖配置文件中的默认值",
    )

    subparsers = parser.add_subparsers(dest="command", help="可用命令")

    check_parser = subparsers.add_parser("check", help="校验命令定义文件")
    check_parser.add_argument("files", nargs="+", help="定义文件路径")
    check_parser.set_defaults(func=check_command)

    inspect_parser = subparsers.add_parser("inspect", help="显示命令的序列化内容")
    inspect_parser.add_argument("file", help="定义文件路径")
    inspect_parser.add_argument("--json", action="store_true", help="以 JSON 输出")
    inspect_parser.set_defaults(func=inspect_command)

    run_parser = subparsers.add_parser("run", help="调用一次命令")
    run_parser.add_argument("file", help="定义文件路径")
    run_parser.add_argument("message", help="传给命令的消息")
    run_parser.add_argument("args", nargs=argparse.REMAINDER, help="命令参数")
    run_parser.set_defaults(func=run_command)

    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """主入口函数，解析命令行参数并执行相应命令"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        sys.exit(1)

    try:
        code = args.func(args)
    except Exception as e:
        print(f"错误: {e}", file=sys.stderr)
        sys.exit(1)
    sys.exit(code)


if __name__ == "__main__":
    main()
