"""Series model and the validation rules applied by ``MetricsWriter.add``."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Iterable, Mapping, Union

from .errors import ValidationError

NAME_LABEL = "__name__"

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

Number = Union[int, float]
TimestampLike = Union[int, datetime]


def to_millis(ts: TimestampLike) -> int:
    """Convert a timestamp to epoch milliseconds.

    Naive datetimes are treated as UTC. Anything that is not a datetime
    is returned unchanged; integers are taken as milliseconds already and
    other types are left for :meth:`Series.validate` to reject.
    """
    if isinstance(ts, datetime):
        if ts.tzinfo is None:
            ts = ts.replace(tzinfo=timezone.utc)
        return (ts - _EPOCH) // timedelta(milliseconds=1)
    return ts


def _check_encodable(text: str, rule: str, what: str) -> None:
    # lone surrogates (e.g. from os.fsdecode) have no UTF-8 form
    try:
        text.encode("utf-8")
    except UnicodeEncodeError as exc:
        raise ValidationError(rule, f"{what} {text!r} is not valid UTF-8") from exc


@dataclass
class Series:
    """One named, labeled time series with parallel value/timestamp arrays."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    values: list[Number] = field(default_factory=list)
    timestamps: list[int] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        name: str,
        labels: Mapping[str, str] | None,
        values: Iterable[Number],
        timestamps: Iterable[TimestampLike],
    ) -> Series:
        """Copy caller input into a new validated :class:`Series`."""
        series = cls(
            name=name,
            labels=dict(labels or {}),
            values=list(values),
            timestamps=[to_millis(ts) for ts in timestamps],
        )
        series.validate()
        return series

    @property
    def sample_count(self) -> int:
        return len(self.values)

    def validate(self) -> None:
        """Raise :class:`ValidationError` if the series cannot be imported."""
        if not isinstance(self.name, str) or not self.name:
            raise ValidationError("empty_name", "series name must be a non-empty string")
        _check_encodable(self.name, "invalid_name", "series name")

        if len(self.values) != len(self.timestamps):
            raise ValidationError(
                "length_mismatch",
                f"series {self.name!r} has {len(self.values)} values "
                f"but {len(self.timestamps)} timestamps",
            )

        for key, value in self.labels.items():
            if key == NAME_LABEL:
                raise ValidationError(
                    "reserved_label",
                    f"label {NAME_LABEL!r} is reserved for the series name",
                )
            if not isinstance(key, str) or not key:
                raise ValidationError("invalid_label", f"label key {key!r} must be a non-empty string")
            if not isinstance(value, str):
                raise ValidationError(
                    "invalid_label",
                    f"label {key!r} has non-string value {value!r}",
                )
            _check_encodable(key, "invalid_label", "label key")
            _check_encodable(value, "invalid_label", f"label {key!r} value")

        for value in self.values:
            # bool is an int subclass but has no place in a sample
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ValidationError("invalid_value", f"value {value!r} is not a number")
            if isinstance(value, float) and not math.isfinite(value):
                raise ValidationError("invalid_value", f"value {value!r} is not finite")

        for ts in self.timestamps:
            if isinstance(ts, bool) or not isinstance(ts, int):
                raise ValidationError(
                    "invalid_timestamp",
                    f"timestamp {ts!r} is not an integer millisecond epoch",
                )
            if ts < 0:
                raise ValidationError("invalid_timestamp", f"timestamp {ts} is negative")
