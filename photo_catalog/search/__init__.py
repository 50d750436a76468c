"""Catalog query planner and executor."""

from .executor import build_statement, execute_query, query_images
from .planner import plan_query

__all__ = ["build_statement", "execute_query", "plan_query", "query_images"]
