import shutil
import subprocess
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class GoModule:
    path: str
    version: str


def find_go_mod(start_dir: Path) -> Path | None:
    """Walk up from ``start_dir`` to the nearest go.mod."""
    current = start_dir.resolve()
    for directory in (current, *current.parents):
        candidate = directory / "go.mod"
        if candidate.is_file():
            return candidate
    return None


def parse_go_mod_requires(text: str) -> list[GoModule]:
    """``require`` entries of a go.mod, single-line and block form."""
    modules: list[GoModule] = []
    in_block = False
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if in_block:
            if line == ")":
                in_block = False
                continue
            parts = line.split()
        elif line.startswith("require ("):
            in_block = True
            continue
        elif line.startswith("require "):
            parts = line.split()[1:]
        else:
            continue
        if len(parts) >= 2:
            modules.append(GoModule(path=parts[0], version=parts[1]))
    return modules


def parse_go_modules(output: str) -> list[GoModule]:
    """Parse ``go list -m all`` output; the main module (no version) is skipped."""
    modules: list[GoModule] = []
    for line in output.splitlines():
        parts = line.split()
        if len(parts) < 2:
            continue
        modules.append(GoModule(path=parts[0], version=parts[1]))
    return modules


def list_modules(workspace_root: Path) -> list[GoModule]:
    """Dependencies of the workspace module, via the go tool when it is installed."""
    go_mod = find_go_mod(workspace_root)
    if go_mod is None:
        return []
    if shutil.which("go") is None:
        return parse_go_mod_requires(go_mod.read_text(encoding="utf-8"))
    result = subprocess.run(
        ["go", "list", "-m", "all"],
        cwd=str(go_mod.parent),
        check=False,
        capture_output=True,
        text=True,
    )
    if result.returncode != 0:
        return parse_go_mod_requires(go_mod.read_text(encoding="utf-8"))
    return parse_go_modules(result.stdout)


def escape_module_path(path: str) -> str:
    """Case-encode a module path the way the module cache stores it (``A`` -> ``!a``)."""
    return "".join(f"!{ch.lower()}" if ch.isupper() else ch for ch in path)


def module_cache_dir(module: GoModule, cache_root: Path) -> Path:
    return cache_root / f"{escape_module_path(module.path)}@{escape_module_path(module.version)}"
