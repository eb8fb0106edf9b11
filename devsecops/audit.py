import json
import logging

logger = logging.getLogger("devsecops.audit")


def write_audit(actor: str, action: str, details: dict) -> None:
    logger.info(
        "%s %s %s",
        actor,
        action,
        json.dumps(details, ensure_ascii=False, sort_keys=True, default=str),
    )
