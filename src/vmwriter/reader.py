"""Read series records from JSONL files for the ``import`` command."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)


@dataclass
class SeriesRecord:
    """One parsed line of a series file."""

    line_no: int
    name: str
    labels: dict[str, str] = field(default_factory=dict)
    values: list[Any] = field(default_factory=list)
    timestamps: list[Any] = field(default_factory=list)


def parse_series_file(path: str | Path) -> list[SeriesRecord]:
    """Parse a JSONL file where each line holds one series.

    Lines look like ``{"name": "up", "labels": {...}, "values": [...],
    "timestamps": [...]}``. Blank lines and lines that are not JSON
    objects are skipped with a warning; field-level checks are left to
    :meth:`vmwriter.Series.validate`.
    """
    records: list[SeriesRecord] = []
    path = Path(path)
    if not path.exists():
        logger.warning("Series file not found: %s", path)
        return records

    with open(path, encoding="utf-8") as fh:
        for line_no, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                obj = json.loads(line)
            except json.JSONDecodeError:
                logger.warning("%s:%d: not valid JSON, skipped", path, line_no)
                continue
            if not isinstance(obj, dict):
                logger.warning("%s:%d: not a JSON object, skipped", path, line_no)
                continue

            labels = obj.get("labels") or {}
            values = obj.get("values") or []
            timestamps = obj.get("timestamps") or []
            if not isinstance(labels, dict) or not isinstance(values, list) or not isinstance(timestamps, list):
                logger.warning("%s:%d: malformed series fields, skipped", path, line_no)
                continue

            records.append(SeriesRecord(
                line_no=line_no,
                name=obj.get("name", ""),
                labels=labels,
                values=values,
                timestamps=timestamps,
            ))

    logger.info("Parsed %d series from %s", len(records), path)
    return records
