"""Metrics collection for the booking engine."""

from .prometheus_metrics import REGISTRY, PrometheusMetrics, prometheus_metrics

__all__ = ["REGISTRY", "PrometheusMetrics", "prometheus_metrics"]
