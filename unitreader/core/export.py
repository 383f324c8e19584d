"""CSV export of vocabulary items."""

import csv
import io
import logging
import re
from datetime import date
from pathlib import Path
from typing import Optional

from unitreader.core.errors import NothingToExport
from unitreader.core.models import VocabularyItem


logger = logging.getLogger(__name__)

BOM = "\ufeff"
HEADER = ("単語", "意味", "ユニット")


def build_csv(items: list[VocabularyItem]) -> str:
    """Build the BOM-prefixed CSV text (word, meaning, unit name).

    The header is bare, every data field is quoted and there is no
    trailing newline.
    """
    buf = io.StringIO()
    writer = csv.writer(buf, quoting=csv.QUOTE_ALL, lineterminator="\n")
    for item in items:
        writer.writerow([item.word, item.meaning or "", item.unit_title or ""])

    text = BOM + ",".join(HEADER)
    rows = buf.getvalue()
    if rows:
        text += "\n" + rows[:-1]
    return text


def export_filename(scope: str, on: Optional[date] = None) -> str:
    """``vocabulary_{scope}_{YYYY-MM-DD}.csv``; path separators are replaced."""
    on = on or date.today()
    safe_scope = re.sub(r"[\\/:*?\"<>|]", "_", scope).strip() or "unit"
    return f"vocabulary_{safe_scope}_{on.isoformat()}.csv"


def export_vocabulary(
    items: list[VocabularyItem],
    directory: str | Path,
    scope: str = "all",
    on: Optional[date] = None,
) -> Path:
    """
    Write the items to a CSV file in ``directory``.

    Raises:
        NothingToExport: items is empty (no file is written)

    Returns:
        Path of the written file
    """
    if not items:
        raise NothingToExport("No vocabulary to export")

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(scope, on)

    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(build_csv(items))

    logger.info("Exported %d item(s) to %s", len(items), path)
    return path
