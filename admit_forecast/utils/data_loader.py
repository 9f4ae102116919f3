"""
data_loader.py — Loads config and per-entity weekly search-interest exports.

Each entity is one CSV (Google Trends "multiTimeline" layout: a short
preamble, then a `Week,<topic>` header and one row per week). The entity key
is taken from the file name via `data.entity_regex`.
"""
from __future__ import annotations
import logging
import re
from pathlib import Path
import pandas as pd
import yaml

logger = logging.getLogger(__name__)

ROOT = Path(__file__).resolve().parent.parent.parent


def load_config(path: str = "configs/default.yaml") -> dict:
    p = Path(path)
    if not p.is_absolute() and not p.exists():
        p = ROOT / path
    with open(p) as f:
        return yaml.safe_load(f)


def resolve_path(path: str) -> Path:
    p = Path(path)
    return p if p.is_absolute() else ROOT / p


def entity_key(path: Path, pattern: str) -> str | None:
    """Entity key from the file stem, or None if the name doesn't match."""
    m = re.fullmatch(pattern, path.stem)
    if not m:
        return None
    return (m.group(1) if m.groups() else m.group(0)).lower()


def read_trends_csv(path: Path, skip_rows: int = 2,
                    date_col: str | None = None, value_col: str | None = None) -> pd.DataFrame:
    """
    Read one export into a two-column (date, value) frame sorted by date.

    Google Trends writes "<1" for interest below one; it is read as 0.
    Without explicit column names the first two columns are used.
    """
    raw = pd.read_csv(path, skiprows=skip_rows)
    date_col = date_col or raw.columns[0]
    value_col = value_col or raw.columns[1]
    values = raw[value_col].astype(str).str.strip().replace({"<1": "0"})
    df = pd.DataFrame({
        "date": pd.to_datetime(raw[date_col]),
        "value": pd.to_numeric(values, errors="raise").astype(float),
    })
    return df.sort_values("date").reset_index(drop=True)


def load_trends_data(config: dict) -> dict[str, pd.DataFrame]:
    """Load every matching export in `data.raw_dir` keyed by entity."""
    data_cfg = config["data"]
    raw = resolve_path(data_cfg["raw_dir"])
    pattern = data_cfg.get("entity_regex", r"(.+)")

    frames: dict[str, pd.DataFrame] = {}
    for path in sorted(raw.glob(data_cfg.get("file_pattern", "*.csv"))):
        key = entity_key(path, pattern)
        if key is None:
            logger.warning(f"Skipping {path.name}: does not match {pattern!r}")
            continue
        if key in frames:
            raise ValueError(f"Duplicate entity '{key}' from {path.name}")
        logger.info(f"Loading {path.name} → {key}")
        frames[key] = read_trends_csv(
            path,
            skip_rows=data_cfg.get("skip_rows", 2),
            date_col=data_cfg.get("date_col"),
            value_col=data_cfg.get("value_col"),
        )

    if not frames:
        logger.warning(f"No input files matched {data_cfg.get('file_pattern', '*.csv')} in {raw}")
    logger.info(f"Loaded {len(frames)} entities from {raw}")
    return frames
