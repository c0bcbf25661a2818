# ABOUTME: Stores answered-question attempts and serves range/category queries as DataFrames.
# ABOUTME: Provides an in-memory store and a parquet-backed store for the CLI.

from __future__ import annotations

import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Iterable, List, Optional, Union

import pandas as pd
import pyarrow as pa

from .categories import Category
from .schemas import AttemptRecord, ensure_utc

ATTEMPT_COLUMNS = ["question_id", "timestamp", "category", "was_correct", "time_taken_seconds"]


class AttemptStoreError(RuntimeError):
    """Raised when attempts cannot be read from or written to the backing store."""


def empty_attempts_frame() -> pd.DataFrame:
    return pd.DataFrame(
        {
            "question_id": pd.Series(dtype="object"),
            "timestamp": pd.Series(dtype="datetime64[ns, UTC]"),
            "category": pd.Series(dtype="object"),
            "was_correct": pd.Series(dtype="bool"),
            "time_taken_seconds": pd.Series(dtype="int64"),
        }
    )


def attempts_to_frame(records: Iterable[AttemptRecord]) -> pd.DataFrame:
    """Convert attempt records into the canonical attempts frame, sorted by timestamp."""

    rows = [record.to_row() for record in records]
    if not rows:
        return empty_attempts_frame()

    df = pd.DataFrame(rows, columns=ATTEMPT_COLUMNS)
    return _normalize_frame(df)


def _normalize_frame(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df["timestamp"] = pd.to_datetime(df["timestamp"], utc=True)
    df["was_correct"] = df["was_correct"].astype(bool)
    df["time_taken_seconds"] = pd.to_numeric(df["time_taken_seconds"], errors="coerce").fillna(0).astype("int64")
    return df.sort_values("timestamp", kind="mergesort").reset_index(drop=True)


def filter_attempts(
    df: pd.DataFrame,
    start: Optional[datetime] = None,
    end: Optional[datetime] = None,
    category: Optional[Union[Category, str]] = None,
) -> pd.DataFrame:
    """Apply the half-open [start, end) window and an optional category filter."""

    mask = pd.Series(True, index=df.index)
    if start is not None:
        mask &= df["timestamp"] >= pd.Timestamp(ensure_utc(start))
    if end is not None:
        mask &= df["timestamp"] < pd.Timestamp(ensure_utc(end))
    if category is not None:
        mask &= df["category"] == Category.parse(category).value
    return df[mask].reset_index(drop=True)


class AttemptStore(ABC):
    """Append-only attempt log queried by time range and category."""

    @abstractmethod
    def append(self, record: AttemptRecord) -> None:
        ...

    @abstractmethod
    def query(
        self,
        start: Optional[datetime] = None,
        end: Optional[datetime] = None,
        category: Optional[Union[Category, str]] = None,
    ) -> pd.DataFrame:
        """
        Return attempts with start <= timestamp < end, ascending by timestamp.

        Columns: question_id, timestamp (UTC), category (display value), was_correct,
        time_taken_seconds. Implementations raise AttemptStoreError on I/O failures.
        """


class MemoryAttemptStore(AttemptStore):
    def __init__(self, records: Optional[Iterable[AttemptRecord]] = None):
        self._records: List[AttemptRecord] = list(records or [])

    def append(self, record: AttemptRecord) -> None:
        self._records.append(record)

    def query(self, start=None, end=None, category=None) -> pd.DataFrame:
        return filter_attempts(attempts_to_frame(self._records), start, end, category)

    def __len__(self) -> int:
        return len(self._records)


class ParquetAttemptStore(AttemptStore):
    """Keeps every attempt in a single parquet file, rewritten on append."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> pd.DataFrame:
        if not self.path.exists():
            return empty_attempts_frame()
        try:
            df = pd.read_parquet(self.path)
        except (OSError, pa.ArrowException) as exc:
            raise AttemptStoreError(f"Could not read attempts from {self.path}: {exc}") from exc

        missing = set(ATTEMPT_COLUMNS) - set(df.columns)
        if missing:
            raise AttemptStoreError(f"Attempts file {self.path} is missing columns: {sorted(missing)}")
        if df.empty:
            return empty_attempts_frame()
        return _normalize_frame(df[ATTEMPT_COLUMNS])

    def append(self, record: AttemptRecord) -> None:
        existing = self._load()
        new_row = attempts_to_frame([record])
        combined = new_row if existing.empty else pd.concat([existing, new_row], ignore_index=True)
        combined = _normalize_frame(combined)

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, suffix=".parquet.tmp")
        os.close(fd)
        try:
            combined.to_parquet(tmp_name, index=False)
            os.replace(tmp_name, self.path)
        except (OSError, pa.ArrowException) as exc:
            Path(tmp_name).unlink(missing_ok=True)
            raise AttemptStoreError(f"Could not write attempts to {self.path}: {exc}") from exc

    def query(self, start=None, end=None, category=None) -> pd.DataFrame:
        return filter_attempts(self._load(), start, end, category)
