"""
Tests for psproj.json loading.
"""

import json

import pytest

from psbuild.errors import NotFoundError, ParseError
from psbuild.project import load_project, resolve_root_module


def test_load_project_missing_descriptor(tmp_path):
    """A root without psproj.json fails with NotFoundError."""
    with pytest.raises(NotFoundError, match="psproj.json"):
        load_project(tmp_path)


def test_load_project_malformed_json(tmp_path):
    (tmp_path / "psproj.json").write_text("{ not json", encoding="utf-8")
    with pytest.raises(ParseError, match="Malformed JSON"):
        load_project(tmp_path)


def test_load_project_non_object(tmp_path):
    (tmp_path / "psproj.json").write_text("[1, 2]", encoding="utf-8")
    with pytest.raises(ParseError, match="JSON object"):
        load_project(tmp_path)


def test_load_project_authors_must_be_list(make_project):
    root = make_project(descriptor={"authors": "Ada"})
    with pytest.raises(ParseError, match="authors"):
        load_project(root)


def test_load_project_resolves_paths(make_project):
    root = make_project(descriptor={"src": "source", "dist": "out/dist"})
    project = load_project(root)

    assert project.project_root == root.resolve()
    assert project.src_path == (root / "source").resolve()
    assert project.dist_path == (root / "out" / "dist").resolve()
    assert project.tests_path == (root / "tests").resolve()
    assert project.src_path.is_absolute()
    assert project.dist_path.is_absolute()


def test_load_project_fields(sample_project):
    project = load_project(sample_project)

    assert project.project_name == "MyModule"
    assert project.version == "1.2.3"
    assert project.root_module == "MyModule"
    assert project.authors == "Ada, Grace"
    assert project.company_name == "Contoso"
    assert project.module_names == frozenset({"MyModule", "Helper"})
    assert project.dependencies == ()


def test_load_project_empty_version_is_kept(make_project):
    """Version defaults are applied at manifest time, not at load time."""
    project = load_project(make_project())
    assert project.version == ""
    assert project.root_module is None


def test_load_project_discovers_nested_modules(make_project):
    root = make_project(
        modules={"Main.psm1": "", "Private/Util.psm1": "", "notes.txt": ""},
        extra_files={"build/Tool.psm1": ""},
    )
    project = load_project(root)
    assert project.module_names == frozenset({"Main", "Util", "Tool"})


def test_load_project_ignores_staging_and_dist(make_project):
    root = make_project(
        modules={"Main.psm1": ""},
        extra_files={
            ".psbuild-staging/Main/Leftover.psm1": "",
            "dist/Old.psm1": "",
        },
    )
    project = load_project(root)
    assert project.module_names == frozenset({"Main"})


def test_load_project_rescans_every_time(make_project):
    root = make_project(modules={"Main.psm1": ""})
    assert load_project(root).module_names == frozenset({"Main"})

    (root / "src" / "Extra.psm1").write_text("", encoding="utf-8")
    assert load_project(root).module_names == frozenset({"Main", "Extra"})


def test_load_project_is_idempotent(sample_project):
    assert load_project(sample_project) == load_project(sample_project)


def test_load_project_dependencies(make_project):
    root = make_project(descriptor={"dependencies": ["Pester", "PSReadLine"]})
    assert load_project(root).dependencies == ("Pester", "PSReadLine")


def test_load_project_accepts_bom(tmp_path):
    data = json.dumps({"projectName": "Bom"})
    (tmp_path / "psproj.json").write_bytes(b"\xef\xbb\xbf" + data.encode("utf-8"))
    assert load_project(tmp_path).project_name == "Bom"


def test_resolve_root_module_precedence(make_project):
    root = make_project(
        descriptor={"rootModule": "Main.psm1"},
        modules={"Main.psm1": "", "Other.psm1": ""},
    )
    project = load_project(root)

    assert resolve_root_module(project, "Other.psm1") == "Other"
    assert resolve_root_module(project) == "Main"


def test_resolve_root_module_single_module(make_project):
    project = load_project(make_project(modules={"Only.psm1": ""}))
    assert resolve_root_module(project) == "Only"


def test_resolve_root_module_falls_back_to_project_name(make_project):
    project = load_project(make_project(modules={"A.psm1": "", "B.psm1": ""}))
    assert resolve_root_module(project) == "MyModule"
