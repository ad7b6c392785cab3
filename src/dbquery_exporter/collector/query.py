"""Query collector – runs the configured SQL on every scrape."""

from __future__ import annotations

import logging
from typing import Iterable

from prometheus_client.core import Metric
from prometheus_client.registry import Collector
from sqlalchemy.engine import Connection
from sqlalchemy.exc import SQLAlchemyError

from .. import database
from ..config import ExporterConfig, MetricSpec
from .descriptors import DescriptorRegistry, MetricDescriptor
from .rows import extract_sample, row_mapping

logger = logging.getLogger(__name__)


class QueryCollector(Collector):
    """Exposes configured SQL queries as Prometheus metrics.

    Register it with a :class:`prometheus_client.CollectorRegistry`; the
    registry calls :meth:`describe` once at registration and :meth:`collect`
    on every scrape. Each scrape opens its own connection, so concurrent
    scrapes share nothing but the read-only descriptor registry.
    """

    def __init__(self, config: ExporterConfig) -> None:
        self._config = config
        self._descriptors = DescriptorRegistry(config)

    @property
    def descriptors(self) -> DescriptorRegistry:
        return self._descriptors

    def describe(self) -> list[Metric]:
        """Return one empty family per exported metric."""
        return [descriptor.new_family() for descriptor in self._descriptors]

    def collect(self) -> Iterable[Metric]:
        """Run every query and return the families that produced samples."""
        families: list[Metric] = []
        try:
            with database.get_conn(self._config.dsn) as conn:
                for name, spec in self._config.metrics.items():
                    family = self._collect_metric(conn, name, spec)
                    if family is not None:
                        families.append(family)
        except (SQLAlchemyError, ImportError) as exc:
            logger.error("Connect to database failed: %s", exc)
            return []
        return families

    def _collect_metric(self, conn: Connection, name: str, spec: MetricSpec) -> Metric | None:
        descriptor = self._descriptors.get(name)
        if descriptor is None:
            logger.error("Fail to add metric for %s: %s is not valid type", name, spec.type_name)
            return None

        try:
            result = database.execute(conn, spec.query)
        except SQLAlchemyError as exc:
            logger.error("Failed to execute query for %s (%s): %s", name, spec.query, exc)
            return None

        try:
            columns = list(result.keys())
            rows = result.fetchall()
        except SQLAlchemyError as exc:
            conn.rollback()
            logger.error("Failed to get column meta for %s (%s): %s", name, spec.query, exc)
            return None
        finally:
            result.close()

        return self._build_family(descriptor, spec, columns, rows)

    @staticmethod
    def _build_family(
        descriptor: MetricDescriptor,
        spec: MetricSpec,
        columns: list[str],
        rows: list,
    ) -> Metric | None:
        if not rows:
            return None
        family = descriptor.new_family()
        for row in rows:
            sample = extract_sample(row_mapping(columns, row), spec.labels, spec.value)
            family.add_metric(sample.labels, sample.value)
        return family
