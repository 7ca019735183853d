"""
chatbook/cli.py
Command-line interface for chat-book.

USAGE:
  chatbook +15555555555
  chatbook +15555555555 --ios-backup-dir ~/Backups/00008030-XXXX --output-dir book
  chatbook someone@example.com --chat-database ./chat.db --no-link-titles
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from chatbook import __version__
from chatbook.book.assembler import DEFAULT_EMOJI_FONT, TEMPLATE_DIR, ManuscriptAssets
from chatbook.book.config import DEFAULT_CONFIG_PATH, load_config, resolve_timezone
from chatbook.book.export import export_book
from chatbook.chatdb.reader import DEFAULT_MESSAGE_LIMIT, ChatDBReader, resolve_db_path
from chatbook.exceptions import ChatBookError
from chatbook.latex.sanitizer import LatexSanitizer
from chatbook.web.titles import LinkTitleFetcher

logger = logging.getLogger(__name__)


def _limit(value: str) -> int | None:
    n = int(value)
    if n < 0:
        raise argparse.ArgumentTypeError("limit must be >= 0")
    return n or None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="chatbook",
        description="Export a Messages conversation as a chaptered LaTeX book.",
    )
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    p.add_argument(
        "recipient",
        help="Conversation to export, e.g. '+15555555555' or an email handle",
    )

    db_grp = p.add_mutually_exclusive_group()
    db_grp.add_argument(
        "-i", "--ios-backup-dir",
        type=Path,
        help="Root of an unencrypted iOS backup folder",
    )
    db_grp.add_argument(
        "-c", "--chat-database",
        type=Path,
        help="Path to chat.db / sms.db. Default: ~/Library/Messages/chat.db",
    )

    p.add_argument(
        "-o", "--output-dir",
        type=Path,
        default=Path("output"),
        help="Directory to write the .tex files to (default: output)",
    )
    p.add_argument(
        "--config",
        type=Path,
        default=DEFAULT_CONFIG_PATH,
        help="Front matter JSON (default: config.json)",
    )
    p.add_argument(
        "--template-dir",
        type=Path,
        default=TEMPLATE_DIR,
        help="Directory holding main.tex.template and Makefile",
    )
    p.add_argument(
        "--emoji-font",
        type=Path,
        default=DEFAULT_EMOJI_FONT,
        help=f"Emoji font copied next to main.tex (default: {DEFAULT_EMOJI_FONT})",
    )
    p.add_argument(
        "--limit",
        type=_limit,
        default=DEFAULT_MESSAGE_LIMIT,
        help=f"Maximum messages to export, 0 for no limit (default: {DEFAULT_MESSAGE_LIMIT})",
    )
    p.add_argument(
        "--timezone",
        help="IANA time zone for dates and chapters (default: config, then local zone)",
    )
    p.add_argument(
        "--no-link-titles",
        dest="link_titles",
        action="store_false",
        help="Do not fetch page titles for links",
    )
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    return p


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    try:
        config = load_config(args.config)
        tz = resolve_timezone(args.timezone or config.timezone)
        db_path = resolve_db_path(args.ios_backup_dir, args.chat_database)
        logger.info(f"Reading messages from {db_path}")

        sanitizer = LatexSanitizer(LinkTitleFetcher() if args.link_titles else None)
        main_tex = export_book(
            reader=ChatDBReader(db_path),
            recipient=args.recipient,
            output_dir=args.output_dir,
            config=config,
            assets=ManuscriptAssets(template_dir=args.template_dir, emoji_font=args.emoji_font),
            sanitizer=sanitizer,
            tz=tz,
            limit=args.limit,
        )
    except ChatBookError as e:
        logger.error(str(e))
        return 1

    logger.info(f"Finished! Exported to {main_tex.parent}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
