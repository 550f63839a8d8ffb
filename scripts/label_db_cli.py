#!/usr/bin/env python3
"""
标签知识库 CLI - 快照维护入口

使用方式:
    python scripts/label_db_cli.py check
    python scripts/label_db_cli.py export [--output snapshot.json]
    python scripts/label_db_cli.py history
    python scripts/label_db_cli.py restore 0

存储位置由 LABEL_HUB_DATA_DIR 等环境变量（或 .env）决定。
"""

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT / "backend"))

from dotenv import load_dotenv
load_dotenv(PROJECT_ROOT / ".env")

from domains.core.exceptions import ApplicationError, DatabaseUnavailableError  # noqa: E402
from domains.core.logging import LogConfig, configure_logging  # noqa: E402
from domains.label_hub.core.importer import load_database  # noqa: E402
from domains.label_hub.core.store import SnapshotRepository  # noqa: E402


def cmd_check(repository: SnapshotRepository, args) -> int:
    """加载并报告终止性错误"""
    db = load_database(repository)
    if db.error is not None:
        print(f"加载失败: {db.error}")
        return 1
    print(f"加载成功: {len(db.labels)} 个标签, {len(db.texts)} 条笔记")
    return 0


def cmd_export(repository: SnapshotRepository, args) -> int:
    """导出当前快照"""
    db = load_database(repository)
    if db.error is not None:
        raise DatabaseUnavailableError(db.error)

    content = json.dumps(db.to_raw(), ensure_ascii=False, indent=2)
    if args.output:
        Path(args.output).write_text(content + "\n", encoding="utf-8")
        print(f"已导出到 {args.output}")
    else:
        print(content)
    return 0


def cmd_history(repository: SnapshotRepository, args) -> int:
    """列出撤销历史"""
    history = repository.history()
    if not history:
        print("(空)")
        return 0

    print(f"{'序号':<6}{'标签数':<8}{'笔记数':<8}")
    for index, entry in enumerate(history):
        labels = len(entry.get("labels", [])) if isinstance(entry, dict) else "-"
        texts = len(entry.get("texts", [])) if isinstance(entry, dict) else "-"
        print(f"{index:<6}{labels!s:<8}{texts!s:<8}")
    print(f"\n共 {len(history)} 条, 保存计数 {repository.save_counter()}/{repository.history_every}")
    return 0


def cmd_restore(repository: SnapshotRepository, args) -> int:
    """把历史快照恢复为当前快照"""
    history = repository.history()
    if not 0 <= args.index < len(history):
        print(f"历史序号超出范围: {args.index} (共 {len(history)} 条)")
        return 1

    repository.edit_raw(lambda last_saved, history: history[args.index])
    return cmd_check(repository, args)


def main() -> int:
    parser = argparse.ArgumentParser(description="标签知识库快照维护工具")
    parser.add_argument("--verbose", "-v", action="store_true", help="输出调试日志")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("check", help="加载并校验快照")

    export_parser = subparsers.add_parser("export", help="导出快照 JSON")
    export_parser.add_argument("--output", "-o", help="输出文件，默认打印到标准输出")

    subparsers.add_parser("history", help="列出撤销历史")

    restore_parser = subparsers.add_parser("restore", help="恢复历史快照")
    restore_parser.add_argument("index", type=int, help="历史序号（0 为最近）")

    args = parser.parse_args()

    configure_logging(LogConfig(level="DEBUG" if args.verbose else "WARNING"))

    commands = {
        "check": cmd_check,
        "export": cmd_export,
        "history": cmd_history,
        "restore": cmd_restore,
    }
    repository = SnapshotRepository.from_settings()

    try:
        return commands[args.command](repository, args)
    except ApplicationError as e:
        print(f"错误: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
