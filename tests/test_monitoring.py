from pathlib import Path

import yaml

from devsecops.monitoring import dump_yaml, render_compose, render_prometheus_config

ROOT = Path(__file__).resolve().parent.parent


def test_prometheus_has_interval_and_single_target(make_settings):
    cfg = render_prometheus_config(make_settings())

    assert cfg["global"]["scrape_interval"] == "15s"
    assert len(cfg["scrape_configs"]) == 1
    job = cfg["scrape_configs"][0]
    assert job["metrics_path"] == "/metrics"
    assert job["static_configs"] == [{"targets": ["app:3000"]}]


def test_compose_port_mappings(make_settings):
    services = render_compose(make_settings())["services"]

    assert services["app"]["ports"] == ["3000:3000"]
    assert services["app"]["environment"] == {"PORT": "3000"}
    assert services["prometheus"]["ports"] == ["9090:9090"]
    assert services["grafana"]["ports"] == ["3001:3000"]


def test_checked_in_files_match_defaults(make_settings):
    settings = make_settings()
    prom = yaml.safe_load((ROOT / "monitoring" / "prometheus.yml").read_text(encoding="utf-8"))
    compose = yaml.safe_load((ROOT / "docker-compose.yml").read_text(encoding="utf-8"))

    assert prom == render_prometheus_config(settings)
    assert compose == render_compose(settings)


def test_dump_yaml_keeps_key_order(make_settings):
    text = dump_yaml(render_prometheus_config(make_settings()))
    assert text.index("global") < text.index("scrape_configs")
