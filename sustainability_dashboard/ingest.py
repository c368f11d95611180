from __future__ import annotations
import logging
from pathlib import Path
from typing import IO, Any, Mapping, Sequence, Union

import pandas as pd

from sustainability_dashboard.config import (
    BENCHMARK_COLUMNS,
    BENCHMARK_NUMERIC,
    BENCHMARK_REQUIRED,
    METRIC_COLUMNS,
    METRIC_NUMERIC,
    METRIC_REQUIRED,
    OBSERVATION_COLUMNS,
    OBSERVATION_NUMERIC,
    OBSERVATION_REQUIRED,
)

logger = logging.getLogger(__name__)

Source = Union[str, Path, IO[str], IO[bytes]]


class DatasetError(ValueError):
    """A CSV could not be read or lacks the columns its dataset needs."""


# =============================================================================
# Dataset kinds
# =============================================================================
# kind -> (canonical columns, required columns, numeric columns)
# =============================================================================

DATASETS: dict[str, tuple[list[str], list[str], list[str]]] = {
    "observations": (OBSERVATION_COLUMNS, OBSERVATION_REQUIRED, OBSERVATION_NUMERIC),
    "metrics": (METRIC_COLUMNS, METRIC_REQUIRED, METRIC_NUMERIC),
    "benchmarks": (BENCHMARK_COLUMNS, BENCHMARK_REQUIRED, BENCHMARK_NUMERIC),
}


def read_csv(source: Source) -> pd.DataFrame:
    """
    Header row, blank lines skipped, headers stripped. Cells stay text and
    only empty cells are missing, so codes like ``NA`` survive and a label
    such as ``1942`` is never re-typed; ``normalize`` types the measures.
    """
    if isinstance(source, (str, Path)):
        path = Path(source)
        if not path.exists():
            raise DatasetError(f"CSV not found: {path}")
    try:
        df = pd.read_csv(
            source,
            dtype=str,
            keep_default_na=False,
            na_values=[""],
            skip_blank_lines=True,
            skipinitialspace=True,
            encoding_errors="replace",
        )
    except pd.errors.EmptyDataError as e:
        raise DatasetError("CSV is empty.") from e
    except (pd.errors.ParserError, UnicodeDecodeError) as e:
        raise DatasetError(f"CSV could not be parsed: {e}") from e
    df.columns = [str(c).strip() for c in df.columns]
    # rows where every cell is blank survive skip_blank_lines when they hold delimiters
    return df.dropna(how="all").reset_index(drop=True)


def _text(s: pd.Series) -> pd.Series:
    # keep missing as NaN, everything else as stripped str so equality filters are exact
    s = s.astype("object")
    return s.where(s.isna(), s.astype(str).str.strip())


def normalize(df: pd.DataFrame, kind: str) -> pd.DataFrame:
    """
    Bring a parsed frame into the canonical shape of ``kind``:
      - headers matched case-insensitively to canonical names
      - required columns present, else DatasetError
      - optional columns added as missing
      - numeric columns coerced (unparseable -> NaN), text columns as str
    Extra columns are kept after the canonical ones.
    """
    if kind not in DATASETS:
        raise DatasetError(f"Unknown dataset kind: {kind!r}. Expected one of {sorted(DATASETS)}")
    canonical, required, numeric = DATASETS[kind]

    lookup = {c.lower(): c for c in df.columns}
    rename = {lookup[c.lower()]: c for c in canonical if c.lower() in lookup}
    missing = [c for c in required if c.lower() not in lookup]
    if missing:
        raise DatasetError(
            f"{kind} CSV is missing required columns: {missing}. Found: {list(df.columns)}"
        )

    out = df.rename(columns=rename).copy()
    for c in canonical:
        if c not in out.columns:
            out[c] = pd.NA if c not in numeric else float("nan")

    for c in canonical:
        if c in numeric:
            before = out[c].notna().sum()
            values = out[c]
            if not pd.api.types.is_numeric_dtype(values):
                values = _text(values)
            out[c] = pd.to_numeric(values, errors="coerce")
            lost = int(before - out[c].notna().sum())
            if lost:
                logger.warning("%s: %d non-numeric value(s) in %s treated as missing", kind, lost, c)
        else:
            out[c] = _text(out[c])

    cols = canonical + [c for c in out.columns if c not in canonical]
    return out[cols]


def load(source: Source, kind: str) -> pd.DataFrame:
    df = normalize(read_csv(source), kind)
    logger.info("Loaded %s: %d rows from %s", kind, len(df), getattr(source, "name", source))
    return df


def load_observations(source: Source) -> pd.DataFrame:
    return load(source, "observations")


def load_metrics(source: Source) -> pd.DataFrame:
    return load(source, "metrics")


def load_benchmarks(source: Source) -> pd.DataFrame:
    return load(source, "benchmarks")


def load_uploaded(file_infos: Sequence[Mapping[str, Any]] | None, kind: str) -> pd.DataFrame | None:
    """
    Load the first file of a Shiny ``input_file`` payload.
    Returns None when nothing was uploaded.
    """
    if not file_infos:
        return None
    info = file_infos[0]
    datapath = info.get("datapath")
    if not datapath:
        raise DatasetError(f"Upload {info.get('name', '')!r} has no data path.")
    df = normalize(read_csv(datapath), kind)
    logger.info("Uploaded %s: %d rows from %s", kind, len(df), info.get("name", datapath))
    return df
