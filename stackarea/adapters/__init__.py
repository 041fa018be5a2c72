from .normalize import normalize_series, normalize_snapshots, normalize_timestamp

__all__ = ["normalize_series", "normalize_snapshots", "normalize_timestamp"]
