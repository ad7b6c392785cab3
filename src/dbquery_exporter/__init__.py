"""dbquery_exporter – export SQL query results as Prometheus metrics."""

__version__ = "0.1.0"
