REQUESTS_DDL = """
CREATE TABLE IF NOT EXISTS requests (
    route_id UInt64,
    occurred_at DateTime64(3, 'UTC'),
    duration Float64,
    is_error UInt8
) ENGINE = MergeTree()
ORDER BY (occurred_at, route_id)
"""

OPERATIONS_DDL = """
CREATE TABLE IF NOT EXISTS operations (
    query_id UInt64,
    occurred_at DateTime64(3, 'UTC'),
    duration Float64,
    is_error UInt8 DEFAULT 0
) ENGINE = MergeTree()
ORDER BY (occurred_at, query_id)
"""

ROUTES_DDL = """
CREATE TABLE IF NOT EXISTS routes (
    id UInt64,
    method String,
    path String
) ENGINE = ReplacingMergeTree()
ORDER BY id
"""

QUERIES_DDL = """
CREATE TABLE IF NOT EXISTS queries (
    id UInt64,
    normalized_sql String
) ENGINE = ReplacingMergeTree()
ORDER BY id
"""

# One row per natural key survives merges (highest version wins); readers
# use FINAL so a re-run is visible immediately.
SUMMARIES_DDL = """
CREATE TABLE IF NOT EXISTS summaries (
    summarizable_type LowCardinality(String),
    summarizable_id UInt64,
    period_type LowCardinality(String),
    period_start DateTime64(3, 'UTC'),
    period_end DateTime64(3, 'UTC'),
    avg_duration Float64,
    max_duration Float64,
    min_duration Float64,
    total_duration Float64,
    p50_duration Float64,
    p95_duration Float64,
    p99_duration Float64,
    stddev_duration Nullable(Float64),
    count UInt64,
    error_count UInt64,
    version UInt64
) ENGINE = ReplacingMergeTree(version)
ORDER BY (summarizable_type, summarizable_id, period_type, period_start)
"""

EVENT_TABLES = {
    "requests": ("requests", "route_id"),
    "operations": ("operations", "query_id"),
}

ENTITY_TABLES = {
    "route": "routes",
    "query": "queries",
}

# Column shown as an entity's display label
ENTITY_LABEL_COLUMNS = {
    "route": "path",
    "query": "normalized_sql",
}

ALL_DDLS = [
    REQUESTS_DDL,
    OPERATIONS_DDL,
    ROUTES_DDL,
    QUERIES_DDL,
    SUMMARIES_DDL,
]
