"""Diagnostic tool for verifying the getmd installation and local model."""

import sys
from importlib import import_module
from pathlib import Path
from typing import Optional

from rich.console import Console
from rich.table import Table

from .config_loader import find_config_path, load_config_from_file
from .llm.manager import format_bytes, model_file_size
from .models.config import default_model_path

CORE_DEPENDENCIES = [
    ("bs4", "beautifulsoup4"),
    ("html2text", "html2text"),
    ("readability", "readability-lxml"),
    ("extruct", "extruct"),
    ("aiohttp", "aiohttp"),
    ("charset_normalizer", "charset-normalizer"),
    ("pydantic", "pydantic"),
    ("yaml", "pyyaml"),
    ("rich", "rich"),
]

OPTIONAL_DEPENDENCIES = [
    ("llama_cpp", "llama-cpp-python"),
]


def check_dependency(
    module_name: str, package_name: Optional[str] = None, optional: bool = False
) -> tuple[bool, str]:
    """Import a module and report whether it is installed."""
    name = package_name or module_name
    try:
        import_module(module_name)
    except ImportError:
        if optional:
            return False, f"[WARN] {name} (optional - not installed)"
        return False, f"[MISSING] {name}"
    return True, f"[OK] {name}"


def check_model_file(model_path: Optional[Path] = None) -> tuple[bool, str]:
    """
    Check whether the local model file is present.

    A missing model is a warning only; deterministic conversion works without it.
    """
    path = model_path or default_model_path()
    size = model_file_size(path)
    if size is None:
        return False, f"[WARN] Model not downloaded (optional - {path})"
    return True, f"[OK] Model {path} ({format_bytes(size)})"


def check_config_file(home_dir: Optional[Path] = None, cwd: Optional[Path] = None) -> tuple[bool, str]:
    """Report which config file the CLI would load, and whether it is valid."""
    path = find_config_path(home_dir, cwd)
    if path is None:
        return True, "[OK] No config file (defaults apply)"
    try:
        load_config_from_file(path)
    except ValueError as e:
        return False, f"[FAIL] {e}"
    return True, f"[OK] Config {path}"


def run_doctor(model_path: Optional[Path] = None) -> int:
    """
    Run diagnostic checks and display results.

    Args:
        model_path: Model file to check (default location if None)

    Returns:
        Exit code (0 if all core dependencies OK, 1 if any core dependency missing)
    """
    console = Console()
    console.print("Running getmd diagnostics...\n")

    core_results = [check_dependency(mod, pkg) for mod, pkg in CORE_DEPENDENCIES]
    optional_results = [check_dependency(mod, pkg, optional=True) for mod, pkg in OPTIONAL_DEPENDENCIES]
    config_result = check_config_file()

    all_checks = {
        "Core Dependencies": core_results,
        "Optional Dependencies": optional_results,
        "Local Model": [check_model_file(model_path)],
        "Configuration": [config_result],
    }

    for category, results in all_checks.items():
        table = Table(title=category, show_header=False, box=None)
        table.add_column("Status", style="bold")

        for success, message in results:
            style = "green" if success else ("yellow" if "optional" in message else "red")
            table.add_row(message, style=style)

        console.print(table)
        console.print()

    if not config_result[0]:
        console.print("[red]The config file is invalid; conversions will fail until it is fixed.[/red]")
        return 1

    if any(not success for success, _ in core_results):
        console.print("\n[red]WARNING: Some core dependencies are missing![/red]")
        console.print("\nRecommended fixes:")
        console.print("  1. For pip users: pip install --upgrade --force-reinstall getmd")
        console.print("  2. For development: pip install -e .[dev]")
        return 1

    console.print("\nAll core dependencies installed correctly!")

    optional_missing = [msg for success, msg in optional_results if not success]
    if optional_missing:
        console.print("\nOptional features available:")
        console.print("  - Local model conversion: pip install getmd[llm]")
        console.print("    then download the model: getmd --download-model")

    return 0


if __name__ == "__main__":
    sys.exit(run_doctor())
