#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import os

import pytest

from dscpublish.modules import ModuleLocator


def make_module(root, name, version=None, ext=".psd1", resources=()):
    path = root / name
    if version:
        path = path / version
    path.mkdir(parents=True)
    (path / (name + ext)).write_text("@{}")
    for resource in resources:
        (path / "DSCResources" / resource).mkdir(parents=True)
        (path / "DSCResources" / resource / (resource + ".psm1")).write_text("")
    return path


@pytest.fixture
def module_roots(tmp_path):
    first = tmp_path / "first"
    second = tmp_path / "second"
    make_module(first, "ModuleA", resources=["MSFT_A"])
    make_module(first, "Scripted", ext=".psm1")
    make_module(second, "ModuleA")
    make_module(second, "ModuleB", resources=["MSFT_B"])
    make_module(second, "Versioned", version="1.9.0")
    make_module(second, "Versioned", version="1.10.0")
    (second / "Versioned" / "notes").mkdir()
    (second / "Empty").mkdir()
    return first, second


def test_locate_first_match_wins(module_roots):
    first, second = module_roots
    locator = ModuleLocator([first, second])
    assert locator.locate("ModuleA").path == first / "ModuleA"
    assert locator.locate("ModuleB").path == second / "ModuleB"


def test_locate_is_case_insensitive(module_roots):
    first, _ = module_roots
    module = ModuleLocator([first]).locate("modulea")
    assert module.name == "ModuleA"
    assert module.path == first / "ModuleA"


def test_locate_script_module(module_roots):
    first, _ = module_roots
    assert ModuleLocator([first]).locate("Scripted").path == first / "Scripted"


def test_locate_highest_version(module_roots):
    _, second = module_roots
    module = ModuleLocator([second]).locate("Versioned")
    assert module.name == "Versioned"
    assert module.version == "1.10.0"
    assert module.path == second / "Versioned" / "1.10.0"


@pytest.mark.parametrize("name", ["Missing", "Empty"])
def test_locate_not_found(module_roots, name):
    assert ModuleLocator(module_roots).locate(name) is None


def test_locate_skips_missing_search_paths(module_roots, tmp_path):
    _, second = module_roots
    locator = ModuleLocator([tmp_path / "nope", "", second])
    assert locator.search_paths == [tmp_path / "nope", second]
    assert locator.locate("ModuleB").path == second / "ModuleB"


def test_from_environment(module_roots, monkeypatch):
    first, second = module_roots
    monkeypatch.setenv("PSModulePath", f"{second}{os.pathsep}")
    locator = ModuleLocator.from_environment([first])
    assert locator.search_paths == [first, second]
    assert locator.locate("ModuleA").path == first / "ModuleA"


def test_from_environment_unset(monkeypatch, tmp_path):
    monkeypatch.delenv("PSModulePath", raising=False)
    assert ModuleLocator.from_environment().search_paths == []
    assert ModuleLocator.from_environment([tmp_path]).search_paths == [tmp_path]


def test_module_for_resource(module_roots):
    first, second = module_roots
    locator = ModuleLocator([first, second])
    assert locator.module_for_resource("MSFT_B").path == second / "ModuleB"
    assert locator.module_for_resource("msft_a").path == first / "ModuleA"
    assert locator.module_for_resource("MSFT_Missing") is None


def test_module_for_resource_friendly_name(tmp_path):
    path = make_module(tmp_path, "xWebAdministration", resources=["MSFT_xWebsite"])
    (path / "DSCResources" / "MSFT_xWebsite" / "MSFT_xWebsite.schema.mof").write_text(
        '[ClassVersion("1.0.0"), FriendlyName("xWebsite")]\n'
        "class MSFT_xWebsite : OMI_BaseResource\n{\n};\n"
    )
    locator = ModuleLocator([tmp_path])
    assert locator.module_for_resource("xWebsite").path == path
    assert locator.module_for_resource("XWEBSITE").path == path
    assert locator.module_for_resource("MSFT_xWebsite").path == path


def test_module_for_resource_exported_classes(tmp_path):
    path = make_module(tmp_path, "ComputerManagementDsc", version="8.5.0")
    (path / "ComputerManagementDsc.psd1").write_text(
        "@{\n"
        "    ModuleVersion = '8.5.0'\n"
        "    DscResourcesToExport = @(\n"
        "        'Computer'\n"
        "        'TimeZone'\n"
        "    )\n"
        "}\n"
    )
    make_module(tmp_path, "Single")
    (tmp_path / "Single" / "Single.psd1").write_text("@{ DscResourcesToExport = 'Only' }")
    make_module(tmp_path, "Everything")
    (tmp_path / "Everything" / "Everything.psd1").write_text(
        "@{ DscResourcesToExport = '*' }"
    )

    locator = ModuleLocator([tmp_path])
    assert locator.module_for_resource("TimeZone").name == "ComputerManagementDsc"
    assert locator.module_for_resource("Only").name == "Single"
    assert locator.module_for_resource("*") is None


def test_resource_names(tmp_path):
    path = make_module(tmp_path, "ModuleA", resources=["MSFT_A", "MSFT_B"])
    (path / "DSCResources" / "MSFT_B" / "MSFT_B.schema.mof").write_text(
        '[ClassVersion("1.0.0"), friendlyname ( "B" )]\nclass MSFT_B {};'
    )
    (path / "ModuleA.psd1").write_text('@{ DscResourcesToExport = @("C") }')
    module = ModuleLocator([tmp_path]).locate("ModuleA")
    assert module.resource_names() == ["MSFT_A", "MSFT_B", "B", "C"]


def test_modules(module_roots):
    first, second = module_roots
    found = [(m.name, m.path) for m in ModuleLocator([first, second]).modules()]
    assert found == [
        ("ModuleA", first / "ModuleA"),
        ("Scripted", first / "Scripted"),
        ("ModuleA", second / "ModuleA"),
        ("ModuleB", second / "ModuleB"),
        ("Versioned", second / "Versioned" / "1.10.0"),
    ]
