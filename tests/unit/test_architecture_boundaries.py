import ast
from pathlib import Path

PACKAGE = Path(__file__).resolve().parents[2] / "vsite"


def imported_modules(path: Path):
    tree = ast.parse(path.read_text(encoding="utf-8"))
    for node in ast.walk(tree):
        if isinstance(node, ast.Import):
            for alias in node.names:
                yield alias.name
        elif isinstance(node, ast.ImportFrom) and node.module:
            yield node.module


def layer_violations(layer: str, forbidden):
    violations = []
    for path in sorted((PACKAGE / layer).rglob("*.py")):
        for module in imported_modules(path):
            if any(module == f or module.startswith(f + ".") for f in forbidden):
                violations.append(f"{path.relative_to(PACKAGE)} imports {module}")
    return violations


def test_domain_has_no_outward_imports():
    assert layer_violations("domain", ["vsite.infrastructure", "vsite.pipeline", "vsite.render", "vsite.ui", "vsite.main"]) == []


def test_pipeline_does_not_print():
    # Output goes through the EventBus; only the ui layer and the CLI talk to the terminal
    assert layer_violations("pipeline", ["vsite.ui", "rich", "typer"]) == []
    assert layer_violations("infrastructure", ["vsite.ui", "rich", "typer"]) == []


def test_render_is_independent_of_pipeline():
    assert layer_violations("render", ["vsite.pipeline", "vsite.ui"]) == []
