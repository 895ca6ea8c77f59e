"""HypeMeter fan-out plumbing: bounded fetcher and worker pool."""

from .fetcher import BoundedFetcher, RetryPolicy
from .worker_pool import run_pool

__all__ = ["BoundedFetcher", "RetryPolicy", "run_pool"]
