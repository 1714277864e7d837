"""Telephone number formatting for demographics responses."""

from typing import Any


def reformat_telephone_number(response: dict[str, Any]) -> dict[str, Any]:
    """Reintroduce the leading 0 of a phone number that was stored as a number."""
    demographics = response["demographics"]
    phone = demographics.get("phone")

    if isinstance(phone, int) and not isinstance(phone, bool):
        formatted = str(phone)
        demographics["phone"] = f"0{formatted}" if len(formatted) == 10 else formatted

    return response
