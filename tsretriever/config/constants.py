"""
Static constants configuration.

Operational constants (timeouts, pool sizes, chunking) that don't change
based on environment.
"""

# Default Timeouts (seconds)
DEFAULT_QUERY_TIMEOUT = 300  # 5 minutes, covers the whole chunked read
DEFAULT_CONNECT_TIMEOUT = 10

# Connection Pool Configuration
DEFAULT_MAX_CONNECTIONS = 20
DEFAULT_MAX_KEEPALIVE_CONNECTIONS = 10
DEFAULT_KEEPALIVE_EXPIRY = 5.0

# Chunked Query Configuration
# 0 leaves chunk sizing to the server (10000 points per chunk on InfluxDB 1.x)
DEFAULT_CHUNK_SIZE = 0

# Logging
SLOW_QUERY_THRESHOLD_MS = 1000
