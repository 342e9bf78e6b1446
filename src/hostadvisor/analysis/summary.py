"""
Session summaries computed with Polars.
"""

import json
import logging
from typing import Dict, Iterable, List

import polars as pl

from ..models.session import DataPoint, MetricSummary

logger = logging.getLogger(__name__)

DATA_POINT_SCHEMA = {
    "timestamp": pl.Float64,
    "metric_name": pl.Utf8,
    "value": pl.Float64,
    "unit": pl.Utf8,
    "metadata": pl.Utf8,
}


def data_points_frame(points: Iterable[DataPoint]) -> pl.DataFrame:
    """
    Build a DataFrame with one row per data point.

    Metadata maps are stored as JSON strings so the frame stays flat.
    """
    rows = [
        {
            "timestamp": p.timestamp,
            "metric_name": p.metric_name,
            "value": p.value,
            "unit": p.unit,
            "metadata": json.dumps(dict(p.metadata), sort_keys=True),
        }
        for p in points
    ]
    return pl.DataFrame(rows, schema=DATA_POINT_SCHEMA)


def data_points_from_frame(df: pl.DataFrame) -> List[DataPoint]:
    """Inverse of ``data_points_frame``."""
    points = []
    for row in df.iter_rows(named=True):
        metadata = row.get("metadata")
        points.append(DataPoint(
            timestamp=row["timestamp"],
            metric_name=row["metric_name"],
            value=row["value"],
            unit=row.get("unit") or "",
            metadata=json.loads(metadata) if metadata else {},
        ))
    return points


def summarize_data_points(points: Iterable[DataPoint]) -> Dict[str, MetricSummary]:
    """
    Compute count/average/min/max/population stddev for every metric.

    Metrics appear in the result in order of first appearance.
    """
    df = data_points_frame(points)
    if df.is_empty():
        return {}

    stats = df.group_by("metric_name", maintain_order=True).agg(
        pl.col("value").count().alias("count"),
        pl.col("value").mean().alias("average"),
        pl.col("value").min().alias("min"),
        pl.col("value").max().alias("max"),
        pl.col("value").std(ddof=0).alias("stddev"),
    )

    summary: Dict[str, MetricSummary] = {}
    for row in stats.iter_rows(named=True):
        summary[row["metric_name"]] = MetricSummary(
            count=int(row["count"]),
            average=float(row["average"]),
            min=float(row["min"]),
            max=float(row["max"]),
            stddev=float(row["stddev"] or 0.0),
        )
    logger.debug(f"Summarized {len(df)} data points across {len(summary)} metrics")
    return summary
