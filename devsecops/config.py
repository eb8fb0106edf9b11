from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")

    app_env: str = "dev"
    app_host: str = "0.0.0.0"
    port: int = 3000
    log_level: str = "INFO"

    trigger_branch: str = "main"
    repo_url: str = ""
    workspace_dir: str = "."

    python_version: str = "3.12"
    image_tag: str = "devsecops-project"

    warmup_seconds: float = 15
    readiness_probe: bool = False
    readiness_timeout: float = 30.0

    # Failing tests only flag the run unless this is set.
    strict_tests: bool = False

    zap_image: str = "ghcr.io/zaproxy/zaproxy:stable"
    zap_action: str = "zaproxy/action-baseline@v0.13.0"
    scan_target: str = ""
    scan_report_name: str = "zap_report.json"
    scan_fail_on_alerts: bool = False

    service_name: str = "app"
    scrape_interval: str = "15s"
    metrics_path: str = "/metrics"
    prometheus_port: int = 9090
    grafana_port: int = 3001

    @property
    def target_url(self) -> str:
        return self.scan_target or f"http://localhost:{self.port}"


settings = Settings()
