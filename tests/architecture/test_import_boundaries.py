"""
Import-boundary enforcement.

1. Kernel independence  -- vault_kernel/** may not import vault_ingestion or
                           vault_config.
2. Pure layers          -- document types, adapters, mappers and reference
                           resolution may not touch the database layer.
3. Explicit clock       -- no wall-clock calls outside the clock module;
                           the environment is read only by the settings loader.

All scanning is done via AST; these tests are read-only.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(*packages: str) -> list[Path]:
    files: list[Path] = []
    for package in packages:
        files.extend(sorted((ROOT / package).rglob("*.py")))
    return files


def _parse(filepath: Path) -> ast.AST:
    return ast.parse(filepath.read_text(), filename=str(filepath))


def _extract_imports(filepath: Path) -> list[tuple[int, str]]:
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(filepath)):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _extract_attribute_calls(filepath: Path) -> list[tuple[int, str]]:
    """(line, 'receiver.attr') for two-level attribute references."""
    results: list[tuple[int, str]] = []
    for node in ast.walk(_parse(filepath)):
        if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
            results.append((node.lineno, f"{node.value.id}.{node.attr}"))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _rel(filepath: Path) -> str:
    return filepath.relative_to(ROOT).as_posix()


class TestKernelIndependence:
    FORBIDDEN_PREFIXES = ("vault_ingestion", "vault_config", "scripts")

    def test_kernel_does_not_import_upward(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files("vault_kernel")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, self.FORBIDDEN_PREFIXES)
        ]
        assert not violations, "vault_kernel must stay standalone:\n" + "\n".join(violations)

    def test_ingestion_does_not_read_settings(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files("vault_ingestion")
            for lineno, module in _extract_imports(path)
            if _matches_any(module, ("vault_config",))
        ]
        assert not violations, (
            "Settings are passed in by the caller:\n" + "\n".join(violations)
        )


class TestPureLayers:
    PURE_PACKAGES = (
        "vault_kernel/domain",
        "vault_ingestion/domain",
        "vault_ingestion/adapters",
        "vault_ingestion/mappers",
        "vault_ingestion/resolution",
    )
    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "sqlite3",
        "vault_kernel.db",
        "vault_kernel.models",
        "vault_kernel.selectors",
        "vault_kernel.services",
        "vault_ingestion.services",
    )

    def test_pure_layers_have_no_database_imports(self):
        violations = [
            f"  {_rel(path)}:{lineno} imports '{module}'"
            for path in _python_files(*self.PURE_PACKAGES)
            for lineno, module in _extract_imports(path)
            if _matches_any(module, self.FORBIDDEN_PREFIXES)
        ]
        assert not violations, "Database access outside services:\n" + "\n".join(violations)


class TestExplicitClock:
    WALL_CLOCK = frozenset({"datetime.now", "datetime.utcnow", "date.today", "time.time"})
    ENVIRONMENT = frozenset({"os.environ", "os.getenv"})

    CLOCK_MODULE = "vault_kernel/domain/clock.py"
    SETTINGS_LOADER = "vault_config/loader.py"

    def _violations(self, names: frozenset, allowed: str) -> list[str]:
        return [
            f"  {_rel(path)}:{lineno} uses '{qualname}'"
            for path in _python_files("vault_kernel", "vault_ingestion", "vault_config")
            if _rel(path) != allowed
            for lineno, qualname in _extract_attribute_calls(path)
            if qualname in names
        ]

    def test_no_wall_clock_outside_clock_module(self):
        violations = self._violations(self.WALL_CLOCK, self.CLOCK_MODULE)
        assert not violations, "Use an injected Clock instead:\n" + "\n".join(violations)

    def test_environment_read_only_by_settings_loader(self):
        violations = self._violations(self.ENVIRONMENT, self.SETTINGS_LOADER)
        assert not violations, "Read settings through vault_config:\n" + "\n".join(violations)
