import json
from pathlib import Path

from ..config import Settings

RISK_LEVELS = {"3": "High", "2": "Medium", "1": "Low", "0": "Informational"}


def build_scan_command(settings: Settings, workspace: Path) -> list[str]:
    return [
        "docker",
        "run",
        "--rm",
        "--network",
        "host",
        "-v",
        f"{workspace.resolve()}:/zap/wrk/:rw",
        settings.zap_image,
        "zap-baseline.py",
        "-t",
        settings.target_url,
        "-J",
        settings.scan_report_name,
    ]


def interpret_exit_code(code: int, fail_on_alerts: bool = False) -> dict:
    # zap-baseline.py: 0 clean, 1 FAIL alerts, 2 WARN alerts, 3 other error
    if code == 0:
        return {"ok": True, "message": "Baseline scan passed"}
    if code in (1, 2):
        kind = "failures" if code == 1 else "warnings"
        return {"ok": not fail_on_alerts, "message": f"Baseline scan reported {kind}"}
    return {"ok": False, "message": f"Baseline scan error (exit {code})"}


def summarize_report(path: Path) -> dict[str, int]:
    summary = {level: 0 for level in RISK_LEVELS.values()}
    if not path.exists():
        return summary
    data = json.loads(path.read_text(encoding="utf-8"))
    for site in data.get("site", []):
        for alert in site.get("alerts", []):
            level = RISK_LEVELS.get(str(alert.get("riskcode", "0")), "Informational")
            summary[level] += 1
    return summary
