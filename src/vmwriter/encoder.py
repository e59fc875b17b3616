"""Encode series into the JSON line format of the ``/api/v1/import`` endpoint.

Each series becomes one compact JSON object followed by a newline::

    {"metric":{"__name__":"up","job":"node"},"values":[0,1],"timestamps":[1549891472010,1549891487724]}

Label keys are sorted so the same buffer always yields the same bytes.
"""

from __future__ import annotations

import json
from typing import Any, Iterable

from .series import NAME_LABEL, Series

IMPORT_PATH = "/api/v1/import"
CONTENT_TYPE = "application/json"
LINE_SEPARATOR = b"\n"


def series_to_dict(series: Series) -> dict[str, Any]:
    """Build the JSON object for *series* with fields in wire order."""
    metric = {NAME_LABEL: series.name}
    for key in sorted(series.labels):
        metric[key] = series.labels[key]
    return {
        "metric": metric,
        "values": list(series.values),
        "timestamps": list(series.timestamps),
    }


def encode_series(series: Series) -> bytes:
    """Encode a single series as one JSON object, without the newline."""
    return json.dumps(
        series_to_dict(series),
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    ).encode("utf-8")


def encode_series_list(series: Iterable[Series]) -> bytes:
    """Encode *series* in order, one newline-terminated line each."""
    return b"".join(encode_series(s) + LINE_SEPARATOR for s in series)
