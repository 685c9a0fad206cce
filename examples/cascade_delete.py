# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Interactive cascade delete walkthrough.

1. Lists the relationships that restrict deletion of the chosen table
2. Runs the cascade in read-only mode (nothing is deleted) and prints what would be removed
3. Optionally runs the real cascade and prints a per-record report
"""

import logging
import sys
from pathlib import Path

# Add src to PYTHONPATH for local runs
sys.path.append(str(Path(__file__).resolve().parents[1] / "src"))

from azure.identity import InteractiveBrowserCredential

from dataverse_cascade import DataverseClient
from dataverse_cascade.core.config import DataverseConfig
from dataverse_cascade.core.errors import DataverseError
from dataverse_cascade.core.telemetry import TelemetryConfig

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")

entered = input("Enter Dataverse org URL (e.g. https://yourorg.crm.dynamics.com): ").strip()
if not entered:
    print("No URL entered; exiting.")
    sys.exit(1)

table = input("Table logical name (e.g. account): ").strip()
raw_ids = input("Comma separated record GUIDs: ").strip()
ids = [i.strip() for i in raw_ids.split(",") if i.strip()]
if not table or not ids:
    print("A table and at least one id are required; exiting.")
    sys.exit(1)

credential = InteractiveBrowserCredential()
telemetry = TelemetryConfig(enable_logging=True, log_level="INFO")


def print_report(results) -> None:
    for r in results:
        status = "deleted" if r.succeeded else f"FAILED: {r.message}"
        print(f"  {r.entity_name:<30} {r.record_id}  {status}")
    failed = sum(1 for r in results if not r.succeeded)
    print(f"{len(results)} record(s), {failed} failure(s)")


with DataverseClient(entered, credential, DataverseConfig(read_only=True, telemetry=telemetry)) as client:
    print(f"\nRestrict dependencies of {table}:")
    for dep in client.cascade.restrict_dependencies(table):
        print(f"  {dep.dependent_entity}.{dep.dependent_lookup_field}")

    print("\nRead-only run:")
    try:
        print_report(client.cascade.delete(table, ids))
    except DataverseError as ex:
        print(f"Cascade stopped: {ex.message} {ex.details}")
        sys.exit(1)

confirm = input("\nDelete these records for real? (y/N): ").strip() or "n"
if confirm.lower() not in ("y", "yes"):
    sys.exit(0)

with DataverseClient(entered, credential, DataverseConfig(telemetry=telemetry)) as client:
    try:
        report = client.cascade.delete_dataframe(table, ids)
    except DataverseError as ex:
        print(f"Cascade stopped: {ex.message} {ex.details}")
        sys.exit(1)
    print(report.to_string(index=False))
