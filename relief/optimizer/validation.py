import logging

from pydantic import ValidationError

from relief.optimizer.schemas import Incident

logger = logging.getLogger(__name__)


def _describe(raw) -> str:
    if isinstance(raw, dict):
        return str(raw.get("id") or raw.get("title") or "<unidentified>")
    return repr(raw)[:40]


def normalize_incidents(raw_incidents) -> tuple[list[Incident], list[dict]]:
    """Parse raw incident records and split them into valid and rejected.

    Unknown types/severities are normalized by the Incident model. Records
    that fail to parse, or lack an identifier, coordinates, type or severity,
    are rejected. Duplicate identifiers keep the first occurrence.

    Returns:
        (valid incidents in input order, rejected entries as
        {"record": ..., "reason": ...})
    """
    valid: list[Incident] = []
    rejected: list[dict] = []
    seen: set[str] = set()

    for raw in raw_incidents:
        if isinstance(raw, Incident):
            incident = raw
        else:
            try:
                incident = Incident.model_validate(raw)
            except ValidationError as e:
                reason = "; ".join(
                    f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
                )
                rejected.append({"record": raw, "reason": reason})
                logger.warning("Rejected incident %s: %s", _describe(raw), reason)
                continue

        if not incident.is_valid:
            missing = [
                f for f in ("id", "lat", "lng", "type", "severity")
                if getattr(incident, f) is None
            ]
            reason = f"missing {', '.join(missing)}"
            rejected.append({"record": raw, "reason": reason})
            logger.warning("Rejected incident %s: %s", _describe(raw), reason)
            continue

        if incident.id in seen:
            reason = f"duplicate id {incident.id}"
            rejected.append({"record": raw, "reason": reason})
            logger.warning("Rejected incident %s: %s", incident.id, reason)
            continue

        seen.add(incident.id)
        valid.append(incident)

    if rejected:
        logger.info("Incident validation: %d valid, %d rejected", len(valid), len(rejected))
    return valid, rejected
