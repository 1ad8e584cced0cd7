#!/usr/bin/env python3
"""
Import a vault.json export and manage primary managers.

Settings come from vault_config (bundled defaults, optional --settings file,
VAULT_DATABASE_URL); --db-url and --primary-manager-logic override them.

Usage:
    python3 scripts/run_vault_import.py --file <vault.json> [options]

Examples:
    # Full import, primary managers from the department tree
    python3 scripts/run_vault_import.py --file vault.json

    # Keep the managers carried by the document
    python3 scripts/run_vault_import.py --file vault.json --primary-manager-logic from_import

    # Organization only: source systems, lookups and departments
    python3 scripts/run_vault_import.py --file vault.json --company-only

    # Count persons, contracts and departments without importing
    python3 scripts/run_vault_import.py --file vault.json --summary-only

    # Recompute every primary manager and print statistics
    python3 scripts/run_vault_import.py --refresh-managers --stats
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

# Project root on sys.path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

LOGIC_CHOICES = ("contract_based", "department_based", "from_import")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Import a vault.json export and compute primary managers.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument(
        "--file",
        type=Path,
        default=None,
        help="Path to the vault.json export.",
    )
    parser.add_argument(
        "--settings",
        type=Path,
        default=None,
        help="Settings YAML overlaid on the bundled defaults.",
    )
    parser.add_argument(
        "--db-url",
        default=None,
        help="SQLite database URL (default: from settings).",
    )
    parser.add_argument(
        "--primary-manager-logic",
        choices=LOGIC_CHOICES,
        default=None,
        help="How primary managers are determined (default: from settings).",
    )
    parser.add_argument(
        "--company-only",
        action="store_true",
        help="Import source systems, lookup tables and departments only.",
    )
    parser.add_argument(
        "--summary-only",
        action="store_true",
        help="Count persons, contracts and departments in --file and exit. No DB writes.",
    )
    parser.add_argument(
        "--refresh-managers",
        action="store_true",
        help="Recompute every person's primary manager after any import.",
    )
    parser.add_argument(
        "--stats",
        action="store_true",
        help="Print primary manager statistics.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Emit DEBUG structured logs to stderr.",
    )
    args = parser.parse_args(argv)
    if args.file is None and not (args.refresh_managers or args.stats):
        parser.error("nothing to do: give --file, --refresh-managers or --stats")
    if args.summary_only and args.file is None:
        parser.error("--summary-only needs --file")
    return args


def _print_progress(progress) -> None:
    if progress.total_items:
        print(
            f"  {progress.current_operation} "
            f"{progress.processed_items}/{progress.total_items}"
        )
    else:
        print(f"  {progress.current_operation}")


def _print_result(result) -> None:
    if not result.success:
        print(f"ERROR: Import failed during {result.failed_phase.value}: {result.error_message}",
              file=sys.stderr)
        return
    print(f"Import completed in {result.duration_seconds:.2f}s")
    print(f"  Source systems:  {result.source_systems_imported}")
    print(f"  Persons:         {result.persons_imported}")
    print(f"  Contacts:        {result.contacts_imported}")
    print(f"  Contracts:       {result.contracts_imported}")
    print(
        f"  Departments:     {result.departments_imported} "
        f"(+{result.departments_auto_created} auto-created)"
    )
    for category, count in result.lookups_imported.items():
        print(f"  {category + ':':<16} {count}")
    print(
        f"  Custom fields:   {result.custom_field_persons_imported} persons, "
        f"{result.custom_field_contracts_imported} contracts"
    )
    if result.empty_manager_guids_replaced:
        print(f"  Empty manager GUIDs replaced: {result.empty_manager_guids_replaced}")
    if result.duplicate_persons_skipped or result.duplicate_contracts_skipped:
        print(
            f"  Duplicates skipped: {result.duplicate_persons_skipped} persons, "
            f"{result.duplicate_contracts_skipped} contracts"
        )
    orphaned = {k: v for k, v in result.orphaned_references.items() if v}
    if orphaned:
        print(f"  Orphaned contract references: {orphaned}")
    if result.detected_primary_manager_logic is not None:
        print(f"  Detected primary manager logic: {result.detected_primary_manager_logic.value}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    # Lazy imports so we fail fast on args first
    import yaml

    from vault_config import load_settings
    from vault_kernel.exceptions import InvalidDocumentError, SettingsFileError
    from vault_kernel.logging_config import configure_logging

    try:
        settings = load_settings(args.settings)
    except (FileNotFoundError, SettingsFileError, yaml.YAMLError) as e:
        print(f"ERROR: Failed to load settings: {e}", file=sys.stderr)
        return 1

    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    if args.summary_only:
        from vault_ingestion.adapters import VaultJsonAdapter

        try:
            summary = VaultJsonAdapter().summarize(args.file)
        except InvalidDocumentError as e:
            print(f"ERROR: {e}", file=sys.stderr)
            return 1
        print(f"Persons: {summary.person_count}")
        print(f"Contracts: {summary.contract_count}")
        print(f"Departments: {summary.department_count}")
        print(f"Source systems: {list(summary.source_systems)}")
        return 0

    from sqlalchemy.exc import SQLAlchemyError

    from vault_ingestion.services import VaultImportService
    from vault_kernel.db.engine import init_engine_from_url, reset_engine, session_scope
    from vault_kernel.db.schema import SchemaInitializer
    from vault_kernel.domain.clock import SystemClock
    from vault_kernel.domain.values import PrimaryManagerLogic
    from vault_kernel.exceptions import VaultError
    from vault_kernel.services import PrimaryManagerService

    logic = (
        PrimaryManagerLogic(args.primary_manager_logic)
        if args.primary_manager_logic
        else settings.primary_manager_logic
    )
    if args.refresh_managers and logic == PrimaryManagerLogic.FROM_IMPORT:
        print("ERROR: --refresh-managers needs contract_based or department_based", file=sys.stderr)
        return 1

    try:
        engine = init_engine_from_url(args.db_url or settings.database_url)
        initializer = SchemaInitializer(engine, settings.primary_contract_defaults)
        initializer.initialize()
    except (SQLAlchemyError, VaultError) as e:
        print(f"ERROR: Database init failed: {e}", file=sys.stderr)
        return 1

    clock = SystemClock()
    try:
        if args.file is not None:
            service = VaultImportService(
                engine,
                clock,
                schema_initializer=initializer,
                progress_batch_size=settings.progress_batch_size,
                detection_sample_size=settings.detection_sample_size,
            )
            print(f"Importing {args.file}...")
            if args.company_only:
                result = service.import_company_only(args.file, progress=_print_progress)
            else:
                result = service.import_file(args.file, logic, progress=_print_progress)
            _print_result(result)
            if not result.success:
                return 1

        if args.refresh_managers:
            with session_scope() as session:
                updated = PrimaryManagerService(session, clock).refresh_all(logic)
            print(f"Primary managers recalculated for {updated} persons ({logic.value}).")

        if args.stats:
            with session_scope() as session:
                stats = PrimaryManagerService(session, clock).get_statistics()
            print("Primary manager statistics:")
            print(f"  Persons:            {stats.total_persons}")
            print(f"  With manager:       {stats.persons_with_manager}")
            print(f"  Without manager:    {stats.persons_without_manager}")
            print(f"  Contract based:     {stats.contract_based}")
            print(f"  Department based:   {stats.department_based}")
            print(f"  From import:        {stats.from_import}")
    except (SQLAlchemyError, VaultError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1
    finally:
        reset_engine()

    return 0


if __name__ == "__main__":
    sys.exit(main())
