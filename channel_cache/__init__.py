"""
channel_cache

Read-path acceleration for the channel discovery API: a two-tier cache
(in-process TTL store plus an optional remote key-value tier), a query
filter builder, a paginator and per-operation performance tracking.
"""

__version__ = "1.0.0"
