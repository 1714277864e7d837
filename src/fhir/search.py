"""
Declarative search-parameter mapping.

Each resource type maps structured query parameters to FHIR search-query
fragments. Fragments are emitted in table order and joined with ``&``, so the
resulting string is stable and can be used as a cache key.
"""

from typing import Any, Mapping

from src.exceptions import ValidationError

NHS_NUMBER_SYSTEM = "https://fhir.nhs.uk/Id/nhs-number"

SEARCH_CONFIG: dict[str, dict[str, str]] = {
    "Patient": {
        "nhsNumber": f"identifier={NHS_NUMBER_SYSTEM}|{{nhsNumber}}",
    },
    "PractitionerRole": {
        "practitioner": "practitioner={practitioner}",
    },
    "Consent": {
        "consentor": "consentor={consentor}",
    },
    "Policy": {
        "name": "name={name}",
    },
}


def map_query(
    resource_type: str,
    query_params: Mapping[str, Any],
    search_config: Mapping[str, Mapping[str, str]] | None = None,
) -> str:
    """
    Map structured query parameters to a FHIR search query string.

    Args:
        resource_type: FHIR resource type being searched
        query_params: e.g. ``{"nhsNumber": "9999999000"}``
        search_config: Mapping table, defaults to SEARCH_CONFIG

    Returns:
        Query string without the leading ``?``

    Raises:
        ValidationError: If no fragment could be produced
    """
    config = SEARCH_CONFIG if search_config is None else search_config
    templates = config.get(resource_type, {})

    fragments = [
        template.format(**{field: query_params[field]})
        for field, template in templates.items()
        if query_params.get(field) not in (None, "")
    ]

    query = "&".join(fragments)
    if not query:
        raise ValidationError(
            f"Error mapping query {dict(query_params)} for resourceType {resource_type}"
        )
    return query
