#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import io
from functools import partial

import pytest

from dscpublish.cmdmgr import CommandManager, CommandNotFoundError
from dscpublish.config import Config
from dscpublish.publish import PublishResult, Stage

SUB = "00000000-1111-2222-3333-444444444444"


@pytest.fixture
def command_mgr():
    return CommandManager.from_modules("dscpublish.commands")


def build(command_mgr, name, argv, cfg=None):
    config = Config(cfg or {})
    return command_mgr.instantiate_command(
        name, argv, partial(config.get, "Commands", name)
    )


def test_commands_lists_builtins(command_mgr):
    commands = command_mgr.commands()
    assert sorted(commands) == ["publish", "resource_id"]
    assert commands["publish"].__doc__.startswith("Publish a DSC configuration")


def test_unknown_command(command_mgr):
    with pytest.raises(CommandNotFoundError, match="'bogus' command not found") as e:
        command_mgr.instantiate_command("bogus", [], None)
    assert "dscpublish.commands" in e.value.path_errors


def test_first_loader_wins(mocker):
    first = mocker.Mock()
    second = mocker.Mock()
    cm = CommandManager(first, second)
    assert cm.load("publish") is first.load.return_value
    second.load.assert_not_called()


def test_publish_options_from_config(command_mgr, monkeypatch, tmp_path):
    monkeypatch.delenv("PSModulePath", raising=False)
    cfg = {
        "Commands": {
            "publish": {
                "storage_account": "contosodsc",
                "container": "configs",
                "module_path": [str(tmp_path)],
                "force": True,
            }
        }
    }
    cmd = build(command_mgr, "publish", ["site.ps1"], cfg)
    assert cmd.configuration == "site.ps1"
    assert cmd.archive_path is None
    assert cmd.storage_account == "contosodsc"
    assert cmd.container == "configs"
    assert cmd.module_path == [str(tmp_path)]
    assert cmd.force
    assert cmd.confirmation.force
    assert not cmd.confirmation.what_if


def test_publish_cli_overrides_config(command_mgr, tmp_path):
    cfg = {"Commands": {"publish": {"container": "configs", "module_path": [str(tmp_path)]}}}
    cmd = build(
        command_mgr,
        "publish",
        ["site.ps1", "--container", "other", "--module-path", "./mods", "--what-if", "--confirm"],
        cfg,
    )
    assert cmd.container == "other"
    assert cmd.module_path == ["./mods"]
    assert cmd.confirmation.what_if
    assert cmd.confirmation.prompt


def test_publish_module_path_must_exist(command_mgr, tmp_path):
    cfg = {"Commands": {"publish": {"module_path": [str(tmp_path / "missing")]}}}
    with pytest.raises(TypeError, match=r"module_path: not a list of existing directory"):
        build(command_mgr, "publish", ["site.ps1"], cfg)


def test_publish_invalid_config_type(command_mgr):
    cfg = {"Commands": {"publish": {"container": "Not_Valid"}}}
    with pytest.raises(TypeError, match="blob container name"):
        build(command_mgr, "publish", ["site.ps1"], cfg)


def test_publish_empty_archive_path(command_mgr):
    with pytest.raises(SystemExit):
        build(command_mgr, "publish", ["site.ps1", "--archive-path", ""])


def test_publish_requires_configuration(command_mgr):
    with pytest.raises(SystemExit):
        build(command_mgr, "publish", [])


def test_publish_archive_mode(command_mgr, mocker):
    cmd = build(command_mgr, "publish", ["site.ps1", "--archive-path", "out.zip"])
    publisher = mocker.patch.object(cmd, "publisher")
    publisher.return_value.create_archive.return_value = PublishResult(
        "/abs/out.zip", Stage.DONE, False
    )
    session_provider = mocker.Mock()
    out = io.StringIO()

    cmd.execute(session_provider, out=out)

    publisher.return_value.create_archive.assert_called_once_with("site.ps1", "out.zip")
    session_provider.assert_not_called()
    assert out.getvalue() == "/abs/out.zip\n"


def test_publish_upload_mode(command_mgr, mocker):
    cmd = build(
        command_mgr,
        "publish",
        ["site.ps1", "--storage-account", "contosodsc", "--container", "configs"],
    )
    publisher = mocker.patch.object(cmd, "publisher")
    publisher.return_value.upload.return_value = PublishResult(
        "https://blob/x", Stage.UPLOADED, False
    )
    blob_publisher = mocker.patch("dscpublish.commands.publish.BlobPublisher")
    session_provider = mocker.Mock()
    out = io.StringIO()

    cmd.execute(session_provider, out=out)

    session_provider.return_value.session.assert_called_once_with("contosodsc")
    blob_publisher.assert_called_once_with(
        session_provider.return_value.session.return_value,
        container_name="configs",
        force=False,
        confirmation=cmd.confirmation,
    )
    publisher.assert_called_once_with(blob_publisher.return_value)
    publisher.return_value.upload.assert_called_once_with("site.ps1")
    assert out.getvalue() == "https://blob/x\n"


def test_publish_skipped_prints_nothing(command_mgr, mocker):
    cmd = build(command_mgr, "publish", ["site.ps1", "--archive-path", "out.zip", "--what-if"])
    publisher = mocker.patch.object(cmd, "publisher")
    publisher.return_value.create_archive.return_value = PublishResult(
        None, Stage.STAGED, True
    )
    out = io.StringIO()
    assert cmd.execute(mocker.Mock(), out=out).skipped
    assert out.getvalue() == ""


def test_publisher_search_paths(command_mgr, monkeypatch, tmp_path):
    monkeypatch.setenv("PSModulePath", str(tmp_path / "env"))
    cmd = build(command_mgr, "publish", ["site.ps1", "--module-path", str(tmp_path / "cli")])
    publisher = cmd.publisher()
    assert publisher.locator.search_paths == [tmp_path / "cli", tmp_path / "env"]
    assert publisher.blob_publisher is None


def test_resource_id(command_mgr, monkeypatch):
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    cmd = build(
        command_mgr,
        "resource_id",
        [
            "--subscription",
            SUB,
            "--resource-group",
            "rg1",
            "--resource-type",
            "Microsoft.Compute/virtualMachines",
            "--name",
            "vm1",
        ],
    )
    out = io.StringIO()
    expected = (
        f"/subscriptions/{SUB}/resourceGroups/rg1/providers/"
        "Microsoft.Compute/virtualMachines/vm1"
    )
    assert cmd.execute(None, out=out) == expected
    assert out.getvalue() == expected + "\n"


def test_resource_id_subscription_from_env(command_mgr, monkeypatch):
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", SUB)
    cmd = build(
        command_mgr,
        "resource_id",
        ["--resource-group", "rg1", "--resource-type", "a/b", "--name", "n"],
    )
    assert cmd.subscription == SUB


def test_resource_id_subscription_from_config(command_mgr, monkeypatch):
    monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "from-env")
    cfg = {"Commands": {"resource_id": {"subscription": SUB}}}
    cmd = build(
        command_mgr,
        "resource_id",
        ["--resource-group", "rg1", "--resource-type", "a/b", "--name", "n"],
        cfg,
    )
    assert cmd.subscription == SUB


def test_resource_id_missing_subscription(command_mgr, monkeypatch):
    monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
    with pytest.raises(SystemExit):
        build(
            command_mgr,
            "resource_id",
            ["--resource-group", "rg1", "--resource-type", "a/b", "--name", "n"],
        )
