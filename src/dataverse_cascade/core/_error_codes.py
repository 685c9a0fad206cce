# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""Subcode constants attached to :class:`~dataverse_cascade.core.errors.DataverseError` instances."""

# HTTP subcodes are "http_<status>"; only 404 is matched on by name
HTTP_404 = "http_404"

TRANSIENT_STATUS = {429, 502, 503, 504}

# Validation subcodes
VALIDATION_IDS_NOT_LIST = "validation_ids_not_list"
VALIDATION_INVALID_GUID = "validation_invalid_guid"
VALIDATION_ENTITY_NAME_EMPTY = "validation_entity_name_empty"
VALIDATION_BATCH_SIZE = "validation_batch_size"
VALIDATION_LOOKUP_CHUNK_SIZE = "validation_lookup_chunk_size"

# Metadata subcodes
METADATA_TABLE_NOT_FOUND = "metadata_table_not_found"
METADATA_UNREACHABLE = "metadata_unreachable"
METADATA_ENTITYSET_NAME_MISSING = "metadata_entityset_name_missing"

# Query subcodes
QUERY_UNREACHABLE = "query_unreachable"

# Batch execution subcodes
BATCH_UNREACHABLE = "batch_unreachable"
BATCH_MALFORMED_RESPONSE = "batch_malformed_response"

# Cascade subcodes
CASCADE_CYCLE_DETECTED = "cascade_cycle_detected"


def _http_subcode(status: int) -> str:
    """Map an HTTP status code to its subcode string (``http_<status>``)."""
    return f"http_{status}"


def _is_transient_status(status: int) -> bool:
    return status in TRANSIENT_STATUS
