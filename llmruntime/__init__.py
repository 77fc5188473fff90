"""SQLite-backed stores for LLM backends, models, pools, remote hooks, jobs and key-value data."""

__version__ = "0.1.0"