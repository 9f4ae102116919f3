"""
generate_demo_data.py — Generates synthetic weekly search-interest exports (no Trends download needed).
Usage: python -m admit_forecast.utils.generate_demo_data
"""
import logging
import numpy as np
import pandas as pd
from admit_forecast.utils.data_loader import load_config, resolve_path

logger = logging.getLogger(__name__)


def generate_trends_series(n_weeks=260, seed=42, start="2017-07-02", level=None, slope=None):
    """
    One entity's weekly interest: level + trend + annual cycle + autumn
    application-season bump + noise, clipped to [0, 100] and rounded like
    Trends exports. A few weeks are forced to 0.
    """
    rng = np.random.default_rng(seed)
    dates = pd.date_range(start, periods=n_weeks, freq="W-SUN")
    t = np.arange(n_weeks)
    level = rng.uniform(25, 55) if level is None else level
    slope = rng.uniform(-0.03, 0.06) if slope is None else slope
    week = dates.isocalendar().week.to_numpy().astype(float)
    season = rng.uniform(6, 14) * np.sin(2 * np.pi * t / 52 + rng.uniform(0, 2 * np.pi))
    # application season peaks around early November
    bump = rng.uniform(8, 20) * np.exp(-0.5 * ((week - 44) / 4.0) ** 2)
    values = level + slope * t + season + bump + rng.normal(0, 2.0, n_weeks)
    values = np.clip(np.round(values), 0, 100)
    values[rng.random(n_weeks) < 0.01] = 0
    return pd.DataFrame({"Week": dates.strftime("%Y-%m-%d"), "interest": values.astype(int)})


def write_trends_csv(df, path, topic):
    """Write in the Trends export layout: category preamble, blank line, table."""
    with open(path, "w") as f:
        f.write("Category: All categories\n\n")
        df.rename(columns={"interest": f"{topic}: (United States)"}).to_csv(f, index=False)


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")
    cfg = load_config()
    data_cfg = cfg["data"]
    out_dir = resolve_path(data_cfg["raw_dir"])
    out_dir.mkdir(parents=True, exist_ok=True)
    for i, entity in enumerate(data_cfg["demo_entities"]):
        df = generate_trends_series(n_weeks=data_cfg["n_demo_weeks"], seed=42 + i)
        path = out_dir / f"trends_{entity}.csv"
        write_trends_csv(df, path, topic=f"{entity} admissions")
        logger.info(f"✅ {entity}: {len(df)} weeks → {path}")


if __name__ == "__main__":
    main()
