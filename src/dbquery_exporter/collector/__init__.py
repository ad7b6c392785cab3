"""Prometheus collectors backed by SQL queries."""

from .descriptors import DescriptorRegistry, MetricDescriptor
from .query import QueryCollector

__all__ = ["DescriptorRegistry", "MetricDescriptor", "QueryCollector"]
