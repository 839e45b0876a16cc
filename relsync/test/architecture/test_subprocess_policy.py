from __future__ import annotations

import ast

from ._gate import require_arch_checks_enabled
from ._utils import iter_python_files, package_root, read_tree


def _direct_subprocess_calls(tree: ast.AST) -> list[int]:
    lines: list[int] = []
    for node in ast.walk(tree):
        if not isinstance(node, ast.Call):
            continue
        func = node.func
        if not isinstance(func, ast.Attribute) or func.attr not in {"run", "check_output", "Popen"}:
            continue
        if isinstance(func.value, ast.Name) and func.value.id == "subprocess":
            lines.append(node.lineno)
    return lines


def test_subprocess_is_only_used_by_platform_process() -> None:
    require_arch_checks_enabled()

    root = package_root()
    offenders: list[str] = []
    for file_path in iter_python_files(root):
        rel = file_path.relative_to(root)
        if rel.parts[0] == "test" or str(rel) == "platform/process.py":
            continue
        for line in _direct_subprocess_calls(read_tree(file_path)):
            offenders.append(f"{rel}:{line}: direct subprocess call")

    assert not offenders, "Subprocess policy violations:\n" + "\n".join(offenders)
