"""Bulk-map request documents.

A request can come from a JSON or YAML file, or from NAMASTE_ID[:PATIENT_ID]
pairs typed on the command line.
"""

from pathlib import Path

import yaml
from pydantic import ValidationError

from namaste_explorer.errors import GenericError
from namaste_explorer.models import BulkMapRequest, BulkMapTerm


def parse_bulk_request(text: str) -> BulkMapRequest:
    """Parse a bulk-map body. Malformed input raises GenericError."""
    # YAML is a superset of JSON, so one loader covers both formats
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise GenericError(f"Invalid JSON in request body: {e}") from e

    if isinstance(data, list):
        data = {"terms": data}
    if not isinstance(data, dict):
        raise GenericError("Invalid JSON in request body: expected an object with a 'terms' list")

    try:
        return BulkMapRequest.model_validate(data)
    except ValidationError as e:
        raise GenericError(f"Invalid JSON in request body: {e}") from e


def load_bulk_request(file_path: Path) -> BulkMapRequest:
    return parse_bulk_request(file_path.read_text(encoding="utf-8"))


def terms_from_pairs(pairs: tuple[str, ...]) -> BulkMapRequest:
    """Build a request from 'NAM001' or 'NAM001:P001' strings."""
    terms = []
    for pair in pairs:
        namaste_id, _, patient_id = pair.partition(":")
        if not namaste_id.strip():
            raise GenericError(f"Invalid term '{pair}': missing NAMASTE ID")
        terms.append(BulkMapTerm(namaste_id=namaste_id.strip(), patient_id=patient_id.strip() or None))
    return BulkMapRequest(terms=terms)
