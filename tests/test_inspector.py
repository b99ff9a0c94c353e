import pytest

from modpages.errors import PackageImportError
from modpages.inspector import inspect_package, parse_source

from conftest import PKG, write_sample_package


def test_inspect_package_collects_members(sample_pkg):
    doc = inspect_package(PKG)
    assert doc.name == PKG
    assert doc.import_path == PKG
    assert doc.synopsis == "Sample package for documentation tests."
    assert [c.names for c in doc.constants] == [["MAX_SIZE"]]
    assert doc.constants[0].doc == "Largest widget size."
    assert [v.names for v in doc.variables] == [["registry"]]
    assert [f.name for f in doc.functions] == ["greet"]
    assert doc.functions[0].decl == "def greet(name: str, punctuation: str='!') -> str"
    assert doc.subpackages == ["sub", "tools"]


def test_inspect_package_splits_class_members(sample_pkg):
    widget = inspect_package(PKG).types[0]
    assert widget.decl == "class Widget(object)"
    assert widget.doc == "A small widget."
    assert [c.names for c in widget.constants] == [["KIND"]]
    assert [f.name for f in widget.functions] == ["build"]
    assert [m.name for m in widget.methods] == ["__init__", "spin"]
    assert widget.methods[1].decl == "async def spin(self, times: int) -> None"
    assert all(m.recv == "Widget" for m in widget.methods)


def test_inspect_nested_module(sample_pkg):
    doc = inspect_package(f"{PKG}.sub")
    assert doc.name == "sub"
    assert doc.import_path == f"{PKG}.sub"
    assert doc.functions[0].decl == "def helper(*args, **kwargs)"
    assert doc.subpackages == []


def test_inspect_picks_up_source_changes(sample_pkg):
    assert [f.name for f in inspect_package(PKG).functions] == ["greet"]
    (sample_pkg / "__init__.py").write_text('"""Changed."""\n\ndef wave():\n    pass\n', encoding="utf-8")
    doc = inspect_package(PKG)
    assert doc.doc == "Changed."
    assert [f.name for f in doc.functions] == ["wave"]


@pytest.mark.parametrize("name", ["", "mp_does_not_exist", f"{PKG}.missing", f"{PKG}.tools.deeper", "not a name", "sys"])
def test_unresolvable_names_raise_import_error(sample_pkg, name):
    with pytest.raises(PackageImportError):
        inspect_package(name)


def test_syntax_errors_are_not_import_errors(tmp_path, monkeypatch):
    write_sample_package(tmp_path, init_source="def broken(:\n")
    monkeypatch.syspath_prepend(str(tmp_path))
    with pytest.raises(SyntaxError):
        inspect_package(PKG)


def test_parse_source_without_all_skips_private_names():
    doc = parse_source("_x = 1\ny = 2\ndef _f(): pass\ndef g(): pass\n", "mod")
    assert [v.names for v in doc.variables] == [["y"]]
    assert [f.name for f in doc.functions] == ["g"]
