"""Application read queries."""

from .cpu_analytics import (
    CPU_AVG_DAILY_VIEW,
    BucketAverage,
    BucketFirstLast,
    CompressionStats,
    count_cpu_rows,
    cpu_compression_stats,
    create_daily_average_aggregate,
    daily_first_last,
    oldest_cpu_sample,
    top_aggregate_averages,
    top_daily_averages,
)

__all__ = [
    # Result models
    "BucketAverage",
    "BucketFirstLast",
    "CompressionStats",
    # Hypertable queries
    "top_daily_averages",
    "daily_first_last",
    "count_cpu_rows",
    "oldest_cpu_sample",
    # Continuous aggregate and compression
    "create_daily_average_aggregate",
    "top_aggregate_averages",
    "cpu_compression_stats",
    "CPU_AVG_DAILY_VIEW",
]
