from __future__ import annotations

from collections.abc import Mapping, Sequence
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any

import numpy as np

from stackarea.errors import StackAreaDataError
from stackarea.series import Sample, SeriesData, Snapshot


try:
    import pandas as pd
except Exception:  # pragma: no cover - optional dependency
    pd = None  # type: ignore[assignment]

try:
    import torch
except Exception:  # pragma: no cover - optional dependency
    torch = None  # type: ignore[assignment]


# Calendar tick generation steps one interval past the last tick, so the upper
# bound stays a year inside what datetime can represent.
MIN_TIMESTAMP_MS = datetime(1, 1, 1, tzinfo=timezone.utc).timestamp() * 1000.0
MAX_TIMESTAMP_MS = datetime(9999, 1, 1, tzinfo=timezone.utc).timestamp() * 1000.0


def normalize_timestamp(value: Any) -> float:
    """Return ``value`` as float epoch milliseconds (UTC)."""
    if isinstance(value, bool):
        raise StackAreaDataError(f"unsupported timestamp: {value!r}")
    if isinstance(value, datetime):
        if value.tzinfo is None:
            value = value.replace(tzinfo=timezone.utc)
        out = value.timestamp() * 1000.0
    elif isinstance(value, date):
        out = datetime(value.year, value.month, value.day, tzinfo=timezone.utc).timestamp() * 1000.0
    elif isinstance(value, np.datetime64):
        if np.isnat(value):
            raise StackAreaDataError("timestamp is NaT")
        out = float(value.astype("datetime64[ms]").astype(np.int64))
    elif isinstance(value, (Decimal, int, float, np.integer, np.floating)):
        out = float(value)
        if not np.isfinite(out):
            raise StackAreaDataError(f"timestamp must be finite: {value!r}")
    else:
        raise StackAreaDataError(f"unsupported timestamp type: {type(value)!r}")
    if not MIN_TIMESTAMP_MS <= out < MAX_TIMESTAMP_MS:
        raise StackAreaDataError(f"timestamp out of range: {value!r}")
    return out


def normalize_series(data: Any, *, x: Any = None) -> SeriesData:
    """Coerce caller series input into index-aligned metric arrays.

    ``data`` is either a sequence of per-metric sample sequences, a pandas
    DataFrame (index is time, one numeric column per metric), or a 2-D
    numpy array / torch tensor of values shaped ``(metrics, samples)`` paired
    with an explicit ``x`` time vector.
    """
    if data is None:
        return SeriesData.empty()

    if pd is not None and isinstance(data, pd.DataFrame):
        return _from_dataframe(data)

    if torch is not None and isinstance(data, torch.Tensor):
        data = data.detach().cpu().to(torch.float64).numpy()

    if isinstance(data, np.ndarray):
        return _from_matrix(data, x=x)

    if not isinstance(data, Sequence) or isinstance(data, (str, bytes, bytearray)):
        raise StackAreaDataError(f"unsupported series input type: {type(data)!r}")
    if len(data) == 0:
        return SeriesData.empty()

    rows: list[list[Sample]] = []
    for metric_index, samples in enumerate(data):
        if not isinstance(samples, Sequence) or isinstance(samples, (str, bytes, bytearray)):
            raise StackAreaDataError(f"metric {metric_index} must be a sequence of samples")
        rows.append([_coerce_sample(raw, metric_index, i) for i, raw in enumerate(samples)])

    lengths = {len(row) for row in rows}
    if len(lengths) > 1:
        raise StackAreaDataError(f"metric sample counts differ: {sorted(lengths)}")
    sample_count = lengths.pop()

    xs = np.empty((len(rows), sample_count), dtype=np.float64)
    ys = np.empty((len(rows), sample_count), dtype=np.float64)
    for m, row in enumerate(rows):
        for i, sample in enumerate(row):
            xs[m, i] = sample.x
            ys[m, i] = sample.y
    fy = tuple(tuple(sample.fy for sample in row) for row in rows)
    return SeriesData(x=xs, y=ys, fy=fy)


def normalize_snapshots(snapshots: Any) -> tuple[Snapshot, ...]:
    if snapshots is None:
        return ()
    if not isinstance(snapshots, Sequence) or isinstance(snapshots, (str, bytes, bytearray)):
        raise StackAreaDataError(f"unsupported snapshots input type: {type(snapshots)!r}")
    return tuple(_coerce_snapshot(raw, i) for i, raw in enumerate(snapshots))


def _coerce_sample(raw: Any, metric_index: int, index: int) -> Sample:
    where = f"metric {metric_index} sample {index}"
    if isinstance(raw, Sample):
        x_raw, y_raw, fy_raw = raw.x, raw.y, raw.fy
    elif isinstance(raw, Mapping):
        if "x" not in raw or "y" not in raw:
            raise StackAreaDataError(f"{where} needs 'x' and 'y'")
        x_raw, y_raw, fy_raw = raw["x"], raw["y"], raw.get("fy")
    elif isinstance(raw, Sequence) and not isinstance(raw, (str, bytes, bytearray)) and len(raw) in (2, 3):
        x_raw, y_raw = raw[0], raw[1]
        fy_raw = raw[2] if len(raw) == 3 else None
    else:
        raise StackAreaDataError(f"{where} has unsupported type: {type(raw)!r}")
    try:
        x_val = normalize_timestamp(x_raw)
    except StackAreaDataError as exc:
        raise StackAreaDataError(f"{where}: {exc}") from exc
    return Sample(x=x_val, y=_coerce_value(y_raw, where), fy=_coerce_label(fy_raw))


def _coerce_snapshot(raw: Any, index: int) -> Snapshot:
    if isinstance(raw, Snapshot):
        return raw
    if not isinstance(raw, Mapping):
        raise StackAreaDataError(f"snapshot {index} has unsupported type: {type(raw)!r}")
    if "d" not in raw:
        raise StackAreaDataError(f"snapshot {index} needs 'd'")
    events = raw.get("e") or ()
    if isinstance(events, str):
        events = (events,)
    return Snapshot(
        d=normalize_timestamp(raw["d"]),
        e=tuple(str(event) for event in events),
        fy=_coerce_label(raw.get("fy")),
    )


def _coerce_value(raw: Any, where: str) -> float:
    if raw is None:
        return 0.0
    if torch is not None and isinstance(raw, torch.Tensor):
        raw = raw.item()
    try:
        out = float(raw)
    except (TypeError, ValueError) as exc:
        raise StackAreaDataError(f"{where} has non-numeric value: {raw!r}") from exc
    if not np.isfinite(out):
        raise StackAreaDataError(f"{where} value must be finite: {raw!r}")
    return out


def _coerce_label(raw: Any) -> str | None:
    if raw is None:
        return None
    out = str(raw)
    return out if out else None


def _from_matrix(values: np.ndarray, *, x: Any) -> SeriesData:
    if values.ndim != 2:
        raise StackAreaDataError("value matrix must be 2-D (metrics, samples)")
    if values.shape[0] == 0:
        return SeriesData.empty()
    if x is None:
        raise StackAreaDataError("x time vector is required with a value matrix")
    times = _coerce_time_vector(x)
    if times.size != values.shape[1]:
        raise StackAreaDataError(f"x and value length mismatch: {times.size} != {values.shape[1]}")
    ys = values.astype(np.float64, copy=True)
    if not np.all(np.isfinite(ys)):
        raise StackAreaDataError("value matrix contains non-finite values")
    xs = np.broadcast_to(times, ys.shape).copy()
    return SeriesData(x=xs, y=ys, fy=())


def _from_dataframe(frame: Any) -> SeriesData:
    numeric_cols = [c for c in frame.columns if _is_numeric_dtype(frame[c])]
    if not numeric_cols:
        return SeriesData.empty()
    times = _coerce_time_vector(list(frame.index))
    ys = np.vstack([frame[c].to_numpy(dtype=np.float64, na_value=np.nan) for c in numeric_cols])
    if not np.all(np.isfinite(ys)):
        raise StackAreaDataError("data frame contains missing or non-finite values")
    xs = np.broadcast_to(times, ys.shape).copy()
    return SeriesData(x=xs, y=ys, fy=())


def _coerce_time_vector(x: Any) -> np.ndarray:
    if torch is not None and isinstance(x, torch.Tensor):
        x = x.detach().cpu().tolist()
    if isinstance(x, np.ndarray) and x.dtype.kind == "M":
        if np.any(np.isnat(x)):
            raise StackAreaDataError("time vector contains NaT")
        out = x.astype("datetime64[ms]").astype(np.int64).astype(np.float64)
        if np.any(out < MIN_TIMESTAMP_MS) or np.any(out >= MAX_TIMESTAMP_MS):
            raise StackAreaDataError("time vector has timestamps out of range")
        return out
    return np.asarray([normalize_timestamp(v) for v in x], dtype=np.float64)


def _is_numeric_dtype(series: Any) -> bool:
    if pd is None:
        return False
    try:
        return bool(pd.api.types.is_numeric_dtype(series))
    except (TypeError, ValueError):
        return False
