"""
Typed exception hierarchy for the vault import pipeline.

Every error is a typed class carrying a machine-readable ``code`` and the
structured data needed to act on it, so callers catch by type and read
attributes instead of parsing messages:

    try:
        ordered = sort_departments(departments)
    except DepartmentCycleError as e:
        log.error("cycle at %s", e.external_id)
        report(code=e.code, chain=e.chain)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    VaultError (base)
    |
    +-- DocumentError
    |   +-- InvalidDocumentError
    |
    +-- HierarchyError
    |   +-- DepartmentCycleError
    |
    +-- SchemaError
    |   +-- SchemaInitializationError
    |
    +-- ConfigurationError
    |   +-- NoActivePrimaryContractFieldError
    |   +-- InvalidSortOrderError
    |   +-- SettingsFileError
    |
    +-- PrimaryManagerError
        +-- UnsupportedPrimaryManagerPolicyError
        +-- PersonNotFoundError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category        | Code                              | When Raised
----------------|-----------------------------------|-----------------------------------
Document        | INVALID_DOCUMENT                  | Unparseable JSON, no persons
----------------|-----------------------------------|-----------------------------------
Hierarchy       | DEPARTMENT_CYCLE                  | Department parents form a loop
----------------|-----------------------------------|-----------------------------------
Schema          | SCHEMA_INITIALIZATION_FAILED      | Tables could not be (re)created
----------------|-----------------------------------|-----------------------------------
Configuration   | NO_ACTIVE_PRIMARY_CONTRACT_FIELD  | Update would deactivate every row
                | INVALID_SORT_ORDER                | sort_order not ASC / DESC
                | SETTINGS_FILE_INVALID             | Settings YAML has the wrong shape
----------------|-----------------------------------|-----------------------------------
PrimaryManager  | UNSUPPORTED_PRIMARY_MANAGER_POLICY| "import" policy asked to compute
                | PERSON_NOT_FOUND                  | Unknown person_id
"""


class VaultError(Exception):
    """
    Base exception for all vault errors.

    All subclasses must have a `code` class attribute.
    """

    code: str = "VAULT_ERROR"


# Document-related exceptions


class DocumentError(VaultError):
    """Base exception for problems with the input document."""

    code: str = "DOCUMENT_ERROR"


class InvalidDocumentError(DocumentError):
    """The vault document could not be parsed or contains no persons."""

    code: str = "INVALID_DOCUMENT"

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Invalid vault document {source}: {reason}")


# Hierarchy exceptions


class HierarchyError(VaultError):
    """Base exception for organizational hierarchy errors."""

    code: str = "HIERARCHY_ERROR"


class DepartmentCycleError(HierarchyError):
    """
    Department parent references form a cycle.

    Fatal for the import: no department order can satisfy parent-before-child.
    ``chain`` lists the external ids from the first revisited department back
    to itself.
    """

    code: str = "DEPARTMENT_CYCLE"

    def __init__(self, external_id: str, display_name: str | None, chain: list[str]):
        self.external_id = external_id
        self.display_name = display_name
        self.chain = chain
        chain_str = " -> ".join(chain)
        super().__init__(
            f"Circular dependency detected in department hierarchy at: "
            f"{external_id} ({display_name}) [{chain_str}]"
        )


# Schema exceptions


class SchemaError(VaultError):
    """Base exception for database schema errors."""

    code: str = "SCHEMA_ERROR"


class SchemaInitializationError(SchemaError):
    """The schema could not be created or verified."""

    code: str = "SCHEMA_INITIALIZATION_FAILED"

    def __init__(self, missing_tables: list[str]):
        self.missing_tables = missing_tables
        super().__init__(
            f"Schema initialization left tables missing: {', '.join(missing_tables)}"
        )


# Configuration exceptions


class ConfigurationError(VaultError):
    """Base exception for configuration errors."""

    code: str = "CONFIGURATION_ERROR"


class NoActivePrimaryContractFieldError(ConfigurationError):
    """A primary contract configuration change would leave no active field."""

    code: str = "NO_ACTIVE_PRIMARY_CONTRACT_FIELD"

    def __init__(self):
        super().__init__("At least one primary contract field must remain active")


class InvalidSortOrderError(ConfigurationError):
    """sort_order must be ASC or DESC."""

    code: str = "INVALID_SORT_ORDER"

    def __init__(self, field_name: str, sort_order: str):
        self.field_name = field_name
        self.sort_order = sort_order
        super().__init__(
            f"Invalid sort order {sort_order!r} for field {field_name!r} (expected ASC or DESC)"
        )


class SettingsFileError(ConfigurationError):
    """The settings YAML file does not have the expected shape."""

    code: str = "SETTINGS_FILE_INVALID"

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid settings file {path}: {reason}")


# Primary manager exceptions


class PrimaryManagerError(VaultError):
    """Base exception for primary manager computation errors."""

    code: str = "PRIMARY_MANAGER_ERROR"


class UnsupportedPrimaryManagerPolicyError(PrimaryManagerError):
    """The requested policy cannot be computed from contracts."""

    code: str = "UNSUPPORTED_PRIMARY_MANAGER_POLICY"

    def __init__(self, policy: str):
        self.policy = policy
        super().__init__(
            f"Primary manager policy {policy!r} is applied during import, not computed"
        )


class PersonNotFoundError(PrimaryManagerError):
    """Person with given id was not found."""

    code: str = "PERSON_NOT_FOUND"

    def __init__(self, person_id: str):
        self.person_id = person_id
        super().__init__(f"Person not found: {person_id}")
