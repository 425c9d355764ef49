"""Repair fact tags, renumber footnotes and normalize footnote definitions in MDX files.

Usage:
    python -m docground.tools.fix_markup PATH [PATH ...]          # report only
    python -m docground.tools.fix_markup PATH [PATH ...] --apply  # write changes
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

from docground.config import settings
from docground.markup.fact_refs import repair_fact_tags
from docground.markup.footnotes import normalize_footnote_definitions, renumber_footnotes

logger = logging.getLogger(__name__)


def fix_markup(content: str) -> str:
    return normalize_footnote_definitions(renumber_footnotes(repair_fact_tags(content)))


def iter_mdx_files(paths: Sequence[Path]) -> Iterator[Path]:
    for path in paths:
        if path.is_dir():
            yield from sorted(path.rglob("*.mdx"))
        elif path.exists():
            yield path
        else:
            logger.error("Path not found: %s", path)


def run(paths: Sequence[Path], apply: bool = False) -> List[Path]:
    """Return the files whose content would change (and write them if ``apply``)."""
    changed: List[Path] = []
    for path in iter_mdx_files(paths):
        original = path.read_text(encoding="utf-8")
        fixed = fix_markup(original)
        if fixed == original:
            continue
        changed.append(path)
        if apply:
            path.write_text(fixed, encoding="utf-8")
            logger.info("Fixed %s", path)
        else:
            logger.info("Would fix %s", path)
    return changed


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument("paths", nargs="+", type=Path, help="MDX files or directories")
    parser.add_argument("--apply", action="store_true", help="write changes to disk")
    args = parser.parse_args(argv)

    logging.basicConfig(level=settings.log_level)
    changed = run(args.paths, apply=args.apply)
    logger.info("%s file(s) %s", len(changed), "fixed" if args.apply else "need fixes")


if __name__ == "__main__":
    main()
