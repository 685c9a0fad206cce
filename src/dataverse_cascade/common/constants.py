# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Constants for the Dataverse Web API surface used by cascade deletion.
"""

WEB_API_PATH = "/api/data/v9.2"

# Cascade behavior values for relationship operations
# See: https://learn.microsoft.com/en-us/power-apps/developer/data-platform/configure-entity-relationship-cascading-behavior

CASCADE_BEHAVIOR_CASCADE = "Cascade"
"""Perform the action on all referencing table records associated with the referenced table record."""

CASCADE_BEHAVIOR_NO_CASCADE = "NoCascade"
"""Do not apply the action to any referencing table records associated with the referenced table record."""

CASCADE_BEHAVIOR_REMOVE_LINK = "RemoveLink"
"""Remove the value of the referencing column for all referencing table records when the referenced record is deleted."""

CASCADE_BEHAVIOR_RESTRICT = "Restrict"
"""Prevent the referenced table record from being deleted when referencing table records exist."""

# Preference headers
PREFER_CONTINUE_ON_ERROR = "odata.continue-on-error"
PREFER_MAX_PAGE_SIZE = "odata.maxpagesize={size}"
DEFAULT_PAGE_SIZE = 5000

# OpenTelemetry span attribute names
OTEL_ATTR_DB_SYSTEM = "db.system"
OTEL_ATTR_DB_OPERATION = "db.operation"
OTEL_ATTR_DATAVERSE_TABLE = "dataverse.table"
OTEL_ATTR_CASCADE_DEPTH = "dataverse.cascade.depth"
OTEL_ATTR_CASCADE_RECORD_COUNT = "dataverse.cascade.record_count"
