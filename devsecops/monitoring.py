"""Config for the off-the-shelf monitoring containers.

Prometheus scrapes the app's ``/metrics`` endpoint on a fixed interval and
Grafana is published on a fixed host port next to it. Nothing here runs the
tools; it only renders their YAML.
"""

import yaml

from .config import Settings

PROMETHEUS_IMAGE = "prom/prometheus:latest"
GRAFANA_IMAGE = "grafana/grafana:latest"


def render_prometheus_config(settings: Settings) -> dict:
    return {
        "global": {"scrape_interval": settings.scrape_interval},
        "scrape_configs": [
            {
                "job_name": settings.image_tag,
                "metrics_path": settings.metrics_path,
                "static_configs": [{"targets": [f"{settings.service_name}:{settings.port}"]}],
            }
        ],
    }


def render_compose(settings: Settings) -> dict:
    port = settings.port
    return {
        "services": {
            settings.service_name: {
                "image": settings.image_tag,
                "build": ".",
                "environment": {"PORT": str(port)},
                "ports": [f"{port}:{port}"],
            },
            "prometheus": {
                "image": PROMETHEUS_IMAGE,
                "volumes": ["./monitoring/prometheus.yml:/etc/prometheus/prometheus.yml:ro"],
                "ports": [f"{settings.prometheus_port}:9090"],
                "depends_on": [settings.service_name],
            },
            "grafana": {
                "image": GRAFANA_IMAGE,
                "ports": [f"{settings.grafana_port}:3000"],
                "depends_on": ["prometheus"],
            },
        }
    }


def dump_yaml(data: dict) -> str:
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False)
