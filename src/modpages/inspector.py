from __future__ import annotations

import ast
import importlib
import importlib.machinery
import importlib.util
import inspect
import logging
import pkgutil
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

from .errors import PackageImportError
from .models import Func, Package, Type, Value

LOGGER = logging.getLogger(__name__)


def _find_spec(name: str) -> importlib.machinery.ModuleSpec:
    """Locate ``name`` without executing any of the modules along its path."""
    parts = name.split(".")
    if not all(part.isidentifier() for part in parts):
        raise PackageImportError(f"not an importable name: {name!r}")
    try:
        spec = importlib.util.find_spec(parts[0])
    except (ImportError, ValueError) as exc:
        raise PackageImportError(f"cannot resolve {parts[0]!r}: {exc}") from exc
    for depth in range(1, len(parts)):
        locations = spec.submodule_search_locations if spec else None
        if not locations:
            raise PackageImportError(f"{'.'.join(parts[:depth])!r} is not a package")
        spec = importlib.machinery.PathFinder.find_spec(".".join(parts[: depth + 1]), list(locations))
    if spec is None:
        raise PackageImportError(f"no module named {name!r}")
    return spec


def _source_path(spec: importlib.machinery.ModuleSpec) -> Optional[Path]:
    if spec.origin in (None, "namespace"):
        if spec.submodule_search_locations:
            return None
        raise PackageImportError(f"{spec.name!r} has no location")
    if not spec.has_location or not spec.origin.endswith(".py"):
        raise PackageImportError(f"{spec.name!r} has no Python source")
    return Path(spec.origin)


def _subpackages(spec: importlib.machinery.ModuleSpec) -> List[str]:
    locations = spec.submodule_search_locations
    if not locations:
        return []
    names = {info.name for info in pkgutil.iter_modules(list(locations)) if not info.name.startswith("_")}
    return sorted(names)


def _doc(node: ast.AST) -> str:
    return ast.get_docstring(node) or ""


def _literal_all(tree: ast.Module) -> Optional[set[str]]:
    for node in tree.body:
        if isinstance(node, ast.Assign) and any(isinstance(t, ast.Name) and t.id == "__all__" for t in node.targets):
            try:
                return set(ast.literal_eval(node.value))
            except (TypeError, ValueError):
                return None
    return None


def _target_names(node: ast.AST) -> List[str]:
    if isinstance(node, ast.Assign):
        targets: Iterable[ast.AST] = node.targets
    elif isinstance(node, ast.AnnAssign):
        targets = [node.target]
    else:
        return []
    names: List[str] = []
    for target in targets:
        if isinstance(target, ast.Name):
            names.append(target.id)
        elif isinstance(target, ast.Tuple):
            names.extend(elt.id for elt in target.elts if isinstance(elt, ast.Name))
    return names


def _trailing_doc(body: Sequence[ast.stmt], index: int) -> str:
    # attribute docstrings: a bare string literal right after the assignment
    if index + 1 < len(body):
        nxt = body[index + 1]
        if isinstance(nxt, ast.Expr) and isinstance(nxt.value, ast.Constant) and isinstance(nxt.value.value, str):
            return inspect.cleandoc(nxt.value.value)
    return ""


def _func_decl(node: ast.FunctionDef | ast.AsyncFunctionDef) -> str:
    prefix = "async def" if isinstance(node, ast.AsyncFunctionDef) else "def"
    decl = f"{prefix} {node.name}({ast.unparse(node.args)})"
    if node.returns is not None:
        decl += f" -> {ast.unparse(node.returns)}"
    return decl


def _class_decl(node: ast.ClassDef) -> str:
    bases = [ast.unparse(b) for b in node.bases] + [ast.unparse(k) for k in node.keywords]
    return f"class {node.name}({', '.join(bases)})" if bases else f"class {node.name}"


def _decorator_names(node: ast.FunctionDef | ast.AsyncFunctionDef) -> set[str]:
    return {ast.unparse(d) for d in node.decorator_list}


class _Visible:
    def __init__(self, exported: Optional[set[str]]) -> None:
        self.exported = exported

    def __call__(self, name: str) -> bool:
        if self.exported is not None:
            return name in self.exported
        return not name.startswith("_")


def _split_values(body: Sequence[ast.stmt], visible) -> tuple[List[Value], List[Value]]:
    constants: List[Value] = []
    variables: List[Value] = []
    for index, node in enumerate(body):
        names = [n for n in _target_names(node) if visible(n)]
        if not names:
            continue
        value = Value(names=names, decl=ast.unparse(node), doc=_trailing_doc(body, index))
        if all(n.isupper() for n in names):
            constants.append(value)
        else:
            variables.append(value)
    return constants, variables


def _build_type(node: ast.ClassDef) -> Type:
    public = _Visible(None)
    constants, variables = _split_values(node.body, public)
    kind = Type(name=node.name, decl=_class_decl(node), doc=_doc(node), constants=constants, variables=variables)
    for item in node.body:
        if not isinstance(item, (ast.FunctionDef, ast.AsyncFunctionDef)):
            continue
        if item.name.startswith("_") and item.name != "__init__":
            continue
        func = Func(name=item.name, decl=_func_decl(item), doc=_doc(item), recv=node.name)
        if _decorator_names(item) & {"classmethod", "staticmethod"}:
            kind.functions.append(func)
        else:
            kind.methods.append(func)
    return kind


def parse_source(source: str, import_path: str, filename: Optional[str] = None) -> Package:
    tree = ast.parse(source, filename=filename or "<unknown>")
    visible = _Visible(_literal_all(tree))
    constants, variables = _split_values(tree.body, visible)
    pkg = Package(
        name=import_path.rpartition(".")[2],
        import_path=import_path,
        doc=_doc(tree),
        filename=filename,
        constants=constants,
        variables=variables,
    )
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)) and visible(node.name):
            pkg.functions.append(Func(name=node.name, decl=_func_decl(node), doc=_doc(node)))
        elif isinstance(node, ast.ClassDef) and visible(node.name):
            pkg.types.append(_build_type(node))
    pkg.functions.sort(key=lambda f: f.name)
    pkg.types.sort(key=lambda t: t.name)
    return pkg


def inspect_package(name: str) -> Package:
    """Extract documentation for the module or package importable as ``name``.

    The source is parsed, never executed, so calling this repeatedly for the
    same name is idempotent and picks up edits made on disk in between.
    """
    if not name:
        raise PackageImportError("empty name")
    importlib.invalidate_caches()
    spec = _find_spec(name)
    path = _source_path(spec)
    if path is None:
        pkg = Package(name=name.rpartition(".")[2], import_path=name)
    else:
        source = path.read_text(encoding="utf-8")
        pkg = parse_source(source, name, filename=str(path))
    pkg.subpackages = _subpackages(spec)
    LOGGER.debug("Inspected %s (%d functions, %d types)", name, len(pkg.functions), len(pkg.types))
    return pkg
