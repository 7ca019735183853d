"""Write chapter files and the root main.tex."""

from __future__ import annotations

import logging
import shutil
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import tzinfo
from pathlib import Path

from chatbook.book.chapters import AlternationCursor, Chapter, iter_chapters
from chatbook.book.config import ManuscriptConfig
from chatbook.book.snapshot import SNAPSHOT_FILENAME, write_snapshot
from chatbook.chatdb.models import MessageRecord
from chatbook.exceptions import AssetMissingError, ChatBookError
from chatbook.latex.render import render_message
from chatbook.latex.sanitizer import LatexSanitizer

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates"
DEFAULT_EMOJI_FONT = Path("tex") / "NotoEmoji-Medium.ttf"

MAIN_TEMPLATE_NAME = "main.tex.template"
MAKEFILE_NAME = "Makefile"
MAIN_TEX_NAME = "main.tex"

# Literals in main.tex.template replaced by the config
TITLE_PLACEHOLDER = "iMessage Book"
COPYRIGHT_PLACEHOLDER = "ALL RIGHTS RESERVED"
DEDICATION_PLACEHOLDER = "\\begin{center}\n  \\textit{Dedicated to you.}\n\\end{center}"
MAINMATTER = "\\mainmatter"
END_DOCUMENT = "\\end{document}\n"


@dataclass(frozen=True)
class ManuscriptAssets:
    """Static files the manuscript is built from."""

    template_dir: Path = TEMPLATE_DIR
    emoji_font: Path = DEFAULT_EMOJI_FONT

    @property
    def main_template(self) -> Path:
        return self.template_dir / MAIN_TEMPLATE_NAME

    @property
    def makefile(self) -> Path:
        return self.template_dir / MAKEFILE_NAME

    def validate(self) -> None:
        """Raise AssetMissingError unless every asset exists."""
        missing = [
            str(path)
            for path in (self.main_template, self.makefile, self.emoji_font)
            if not path.is_file()
        ]
        if missing:
            raise AssetMissingError(f"Missing manuscript assets: {', '.join(missing)}")


def fill_template(template: str, config: ManuscriptConfig) -> str:
    """Substitute the front matter into the main.tex template."""
    text = template.replace(TITLE_PLACEHOLDER, config.title)
    text = text.replace(COPYRIGHT_PLACEHOLDER, config.copyright)
    text = text.replace(
        DEDICATION_PLACEHOLDER,
        f"\\begin{{center}}\n  \\textit{{{config.dedication_title}}}\n\\end{{center}}\n"
        f"\\begin{{center}}\n  \\textit{{{config.dedication_message}}}\n\\end{{center}}",
    )
    if config.preface:
        pos = text.find(MAINMATTER)
        if pos == -1:
            logger.warning(f"Template has no {MAINMATTER}; preface left out")
        else:
            preface = f"\\chapter*{{Preface}}\n{config.preface}\n\n"
            text = text[:pos] + preface + text[pos:]
    return text


class ManuscriptAssembler:
    """Turns filtered, time-ordered messages into a LaTeX book on disk.

    Args:
        config: Front matter.
        output_dir: Directory that receives every generated file.
        assets: Template directory and emoji font.
        sanitizer: Escapes message text; carries the link title lookup.
        tz: Zone used for chapter boundaries and dates.
    """

    def __init__(
        self,
        config: ManuscriptConfig,
        output_dir: Path,
        assets: ManuscriptAssets | None = None,
        sanitizer: LatexSanitizer | None = None,
        tz: tzinfo | None = None,
    ):
        self.config = config
        self.output_dir = output_dir
        self.assets = assets or ManuscriptAssets()
        self.sanitizer = sanitizer or LatexSanitizer()
        self.tz = tz

    def assemble(self, messages: list[MessageRecord]) -> Path:
        """Write the snapshot, chapters, main.tex and build files; returns main.tex."""
        self.assets.validate()
        self.output_dir.mkdir(parents=True, exist_ok=True)

        write_snapshot(messages, self.output_dir / SNAPSHOT_FILENAME)
        chapter_keys = self.write_chapters(messages)
        main_path = self.write_main(chapter_keys)

        shutil.copyfile(self.assets.makefile, self.output_dir / MAKEFILE_NAME)
        logger.info(f"Wrote {len(chapter_keys)} chapters to {self.output_dir}")
        return main_path

    def write_chapters(self, messages: Iterable[MessageRecord]) -> list[str]:
        """Write one file per chapter; returns chapter keys in order."""
        keys = []
        for chapter in iter_chapters(messages, self.tz):
            self.write_chapter(chapter)
            keys.append(chapter.key)
        return keys

    def write_chapter(self, chapter: Chapter) -> Path:
        path = self.output_dir / f"{chapter.key}.tex"
        cursor = AlternationCursor()
        skipped = 0

        with path.open("w", encoding="utf-8") as fh:
            fh.write(f"\\chapter{{{chapter.heading}}}\n\n")
            for message in chapter.messages:
                try:
                    rendered = render_message(
                        message,
                        self.sanitizer,
                        insert_extra_space=cursor.needs_space(message.is_from_me),
                        tz=self.tz,
                    )
                except ChatBookError as e:
                    skipped += 1
                    logger.warning(f"Skipping message {message.guid}: {e}")
                    continue
                fh.write(rendered)
                cursor.advance(message.is_from_me)

        logger.debug(
            f"Wrote {path.name}: {len(chapter.messages) - skipped} messages, {skipped} skipped"
        )
        return path

    def write_main(self, chapter_keys: list[str]) -> Path:
        template = self.assets.main_template.read_text(encoding="utf-8")
        front = fill_template(template, self.config)
        if not front.endswith("\n"):
            front += "\n"
        main_path = self.output_dir / MAIN_TEX_NAME

        with main_path.open("w", encoding="utf-8") as fh:
            fh.write(front)
            for key in chapter_keys:
                fh.write(f"\\include{{{key}}}\n")
            shutil.copyfile(self.assets.emoji_font, self.output_dir / self.assets.emoji_font.name)
            fh.write(END_DOCUMENT)
        return main_path
