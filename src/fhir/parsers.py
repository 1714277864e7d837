"""
Field parsers for FHIR datatypes used by the demographics view.

Each parser picks the "primary" element out of a repeating FHIR element
(HumanName, Address, ContactPoint) and renders it as a display string.
"""

import logging
from datetime import datetime, timezone
from typing import Any

logger = logging.getLogger(__name__)

NOT_RECORDED = "Not Recorded"


def _parse_datetime(value: Any) -> datetime | None:
    """Parse a FHIR dateTime; None when the value is not ISO 8601."""
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        logger.warning("Ignoring unparseable period bound %r", value)
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def is_active(period: dict[str, Any] | None, now: datetime | None = None) -> bool:
    """
    Check whether a FHIR Period covers the current time.

    Missing or unparseable bounds are treated as open.
    """
    if not period:
        return True

    current = now or datetime.now(timezone.utc)

    start = _parse_datetime(period["start"]) if period.get("start") else None
    if start and start > current:
        return False

    end = _parse_datetime(period["end"]) if period.get("end") else None
    if end and end < current:
        return False

    return True


def _join(parts: Any) -> str | None:
    if isinstance(parts, list):
        return " ".join(str(p) for p in parts) or None
    return parts


def parse_name(names: list[dict[str, Any]] | None) -> str | None:
    """
    Render the primary HumanName.

    Prefers an active ``official`` name, then any active name that is not
    ``old`` or ``temp``. ``text`` wins over given + family.
    """
    if not names:
        return None

    primary = next(
        (n for n in names if n.get("use") == "official" and is_active(n.get("period"))),
        None,
    )
    if primary is None:
        primary = next(
            (
                n
                for n in names
                if n.get("use") not in ("old", "temp") and is_active(n.get("period"))
            ),
            None,
        )
    if primary is None:
        return None

    if primary.get("text"):
        return primary["text"]

    given = _join(primary.get("given"))
    family = _join(primary.get("family"))
    return " ".join(p for p in (given, family) if p) or None


def parse_address(addresses: list[dict[str, Any]] | None, use: str) -> str | None:
    """Render the active address with the given ``use``, else the first address."""
    if not addresses:
        return None

    address = next(
        (a for a in addresses if a.get("use") == use and is_active(a.get("period"))),
        addresses[0],
    )

    if address.get("text"):
        return address["text"]

    components = [str(line).strip() for line in address.get("line") or []]
    for field in ("city", "district", "state", "country", "postalCode"):
        if address.get(field):
            components.append(str(address[field]).strip())

    return ", ".join(components) or None


def _usable(contact: dict[str, Any]) -> bool:
    value = contact.get("value")
    return bool(value) and value != NOT_RECORDED


def parse_telecom(telecoms: list[dict[str, Any]] | None) -> str | None:
    """Render the primary phone number: home, then mobile, then unspecified use."""
    if not telecoms or not isinstance(telecoms, list):
        return None

    phones = [
        t
        for t in telecoms
        if t.get("system") == "phone" and t.get("use") != "old" and is_active(t.get("period"))
    ]

    for use in ("home", "mobile", None):
        phone = next((t for t in phones if t.get("use") == use and _usable(t)), None)
        if phone:
            return phone["value"]

    return None


def parse_email(telecoms: list[dict[str, Any]] | None) -> str | None:
    """Render the first active, non-old email address."""
    if not telecoms or not isinstance(telecoms, list):
        return None

    email = next(
        (
            t
            for t in telecoms
            if t.get("system") == "email"
            and t.get("use") != "old"
            and is_active(t.get("period"))
            and _usable(t)
        ),
        None,
    )
    return email["value"] if email else None
