"""
Import-boundary enforcement.

1. Kernel independence -- inventory_kernel/** may not import engines,
                          services, config or scripts.
2. Engine purity       -- inventory_engines/** may not import DB drivers,
                          the ORM, kernel models/db/selectors, services or
                          config, and may not read the wall clock or the
                          environment.
3. Service boundary    -- inventory_services/** may not import scripts.
4. Config boundary     -- inventory_config/** may not import engines or
                          services.

All scanning is done via AST -- these tests are read-only.
"""

import ast
from pathlib import Path

ROOT = Path(__file__).resolve().parents[2]


def _python_files(package: str) -> list[Path]:
    return sorted((ROOT / package).rglob("*.py"))


def _extract_imports(path: Path) -> list[tuple[int, str]]:
    tree = ast.parse(path.read_text(), filename=str(path))
    results: list[tuple[int, str]] = []
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                results.append((node.lineno, alias.name))
        elif isinstance(node, ast.ImportFrom) and node.module:
            results.append((node.lineno, node.module))
    return results


def _matches_any(module: str, prefixes: tuple[str, ...]) -> bool:
    return any(module == p or module.startswith(f"{p}.") for p in prefixes)


def _violations(package: str, forbidden: tuple[str, ...]) -> list[str]:
    found: list[str] = []
    for path in _python_files(package):
        for lineno, module in _extract_imports(path):
            if _matches_any(module, forbidden):
                found.append(f"{path.relative_to(ROOT)}:{lineno} imports {module}")
    return found


class TestKernelIndependence:
    def test_kernel_does_not_import_outer_layers(self):
        assert _violations(
            "inventory_kernel",
            ("inventory_engines", "inventory_services", "inventory_config", "scripts"),
        ) == []


class TestEnginePurity:
    FORBIDDEN_PREFIXES = (
        "sqlalchemy",
        "psycopg2",
        "sqlite3",
        "yaml",
        "inventory_kernel.models",
        "inventory_kernel.db",
        "inventory_kernel.selectors",
        "inventory_services",
        "inventory_config",
    )

    IMPURE_CALLS = frozenset({
        "datetime.now",
        "datetime.utcnow",
        "date.today",
        "os.environ",
        "os.getenv",
    })

    def test_engine_files_have_no_forbidden_imports(self):
        assert _violations("inventory_engines", self.FORBIDDEN_PREFIXES) == []

    def test_engines_do_not_read_clock_or_environment(self):
        found: list[str] = []
        for path in _python_files("inventory_engines"):
            tree = ast.parse(path.read_text(), filename=str(path))
            for node in ast.walk(tree):
                if isinstance(node, ast.Attribute) and isinstance(node.value, ast.Name):
                    name = f"{node.value.id}.{node.attr}"
                    if name in self.IMPURE_CALLS:
                        found.append(f"{path.relative_to(ROOT)}:{node.lineno} uses {name}")
        assert found == []


class TestServiceBoundary:
    def test_services_do_not_import_scripts(self):
        assert _violations("inventory_services", ("scripts",)) == []


class TestConfigBoundary:
    def test_config_does_not_import_engines_or_services(self):
        assert _violations("inventory_config", ("inventory_engines", "inventory_services")) == []
