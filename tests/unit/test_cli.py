#
# Copyright 2019 FMR LLC <opensource@fidelity.com>
#
# SPDX-License-Identifier: MIT
#

# pylint: disable=redefined-outer-name,missing-docstring

import zipfile

import pytest
import yaml

from dscpublish import __version__, cli
from dscpublish.plugins.creds import azure as creds

SITE = """
Configuration Site {
    Import-DscResource -ModuleName ModuleA
    Node localhost { }
}
"""


@pytest.fixture
def user_config(tmp_path, monkeypatch, mocker):
    mocker.patch("dscpublish.cli.logging.basicConfig")
    path = tmp_path / "dscpublish.yaml"
    monkeypatch.setenv("DSCPUBLISH_CONFIG", str(path))
    monkeypatch.delenv("DSCPUBLISH_TRACE", raising=False)
    monkeypatch.delenv("PSModulePath", raising=False)
    return path


@pytest.fixture
def workdir(tmp_path, monkeypatch):
    work = tmp_path / "work"
    module = tmp_path / "modules" / "ModuleA"
    module.mkdir(parents=True)
    (module / "ModuleA.psd1").write_text("@{}")
    work.mkdir()
    (work / "site.ps1").write_text(SITE)
    monkeypatch.chdir(work)
    return work


@pytest.fixture
def blob_service(mocker):
    provider = mocker.patch.object(creds, "CredsViaAzureDefault")
    service = provider.return_value.session.return_value
    blob = service.get_container_client.return_value.get_blob_client.return_value
    blob.exists.return_value = False
    blob.url = "https://contosodsc.blob.core.windows.net/configs/site.ps1.zip"
    return provider, service, blob


def test_config_filename(monkeypatch, tmp_path):
    monkeypatch.setenv("DSCPUBLISH_CONFIG", str(tmp_path / "x.yaml"))
    assert cli.config_filename() == str(tmp_path / "x.yaml")


def test_version(user_config, capsys):
    with pytest.raises(SystemExit) as e:
        cli.main(["--version"])
    assert e.value.code == 0
    assert __version__ in capsys.readouterr().out


def test_no_command_lists_commands(user_config, capsys):
    with pytest.raises(SystemExit) as e:
        cli.main([])
    assert e.value.code == 1
    out = capsys.readouterr().out
    assert "publish" in out
    assert "resource_id" in out


def test_unknown_command(user_config, capsys):
    with pytest.raises(SystemExit) as e:
        cli.main(["bogus"])
    assert e.value.code == 1
    err = capsys.readouterr().err
    assert "available commands" in err
    assert "'bogus' command not found" in err


def test_publish_archive(user_config, workdir, capsys):
    modules = workdir.parent / "modules"
    cli.main(
        ["publish", "site.ps1", "--archive-path", "out/site.zip", "--module-path", str(modules)]
    )

    archive = workdir / "out" / "site.zip"
    assert capsys.readouterr().out.strip() == str(archive.resolve())
    with zipfile.ZipFile(archive) as zf:
        assert sorted(zf.namelist()) == ["ModuleA/", "ModuleA/ModuleA.psd1", "site.ps1"]


def test_publish_module_path_from_config(user_config, workdir, capsys):
    modules = workdir.parent / "modules"
    user_config.write_text(
        yaml.dump({"Commands": {"publish": {"module_path": [str(modules)]}}})
    )
    cli.main(["publish", "site.ps1", "--archive-path", "site.zip"])
    assert capsys.readouterr().out.strip() == str((workdir / "site.zip").resolve())


def test_publish_missing_module(user_config, workdir, capsys):
    with pytest.raises(SystemExit) as e:
        cli.main(["publish", "site.ps1", "--archive-path", "site.zip"])
    assert e.value.code == 1
    captured = capsys.readouterr()
    assert "Required module 'ModuleA' not found" in captured.err
    assert captured.out == ""
    assert not (workdir / "site.zip").exists()


def test_publish_error_trace(user_config, workdir, capsys, monkeypatch):
    monkeypatch.setenv("DSCPUBLISH_TRACE", "1")
    with pytest.raises(SystemExit):
        cli.main(["publish", "missing.ps1", "--archive-path", "site.zip"])
    err = capsys.readouterr().err
    assert "Traceback" in err
    assert "not found" in err


def test_publish_upload(user_config, workdir, blob_service, capsys):
    provider, service, blob = blob_service
    modules = workdir.parent / "modules"
    cli.main(
        [
            "publish",
            "site.ps1",
            "--storage-account",
            "contosodsc",
            "--container",
            "configs",
            "--module-path",
            str(modules),
        ]
    )

    provider.assert_called_once_with(
        authority="login.microsoftonline.com", endpoint_suffix="core.windows.net"
    )
    provider.return_value.session.assert_called_once_with("contosodsc")
    service.get_container_client.assert_called_once_with("configs")
    service.get_container_client.return_value.get_blob_client.assert_called_once_with(
        "site.ps1.zip"
    )
    blob.upload_blob.assert_called_once()
    assert capsys.readouterr().out.strip() == blob.url


def test_publish_upload_what_if(user_config, workdir, blob_service, capsys):
    _, _, blob = blob_service
    modules = workdir.parent / "modules"
    cli.main(
        [
            "publish",
            "site.ps1",
            "--storage-account",
            "contosodsc",
            "--module-path",
            str(modules),
            "--what-if",
        ]
    )
    blob.upload_blob.assert_not_called()
    assert capsys.readouterr().out == ""


def test_plugin_flags_before_command(user_config, workdir, blob_service, capsys):
    provider, _, _ = blob_service
    modules = workdir.parent / "modules"
    cli.main(
        [
            "--ad-authority",
            "login.microsoftonline.us",
            "publish",
            "site.ps1",
            "--storage-account",
            "contosodsc",
            "--module-path",
            str(modules),
        ]
    )
    provider.assert_called_once_with(
        authority="login.microsoftonline.us", endpoint_suffix="core.windows.net"
    )
    assert capsys.readouterr().out.startswith("https://")


def test_resource_id_does_not_build_credentials(user_config, mocker, capsys):
    provider = mocker.patch.object(creds, "CredsViaAzureDefault")
    cli.main(
        [
            "resource_id",
            "--subscription",
            "sub1",
            "--resource-group",
            "rg1",
            "--resource-type",
            "Microsoft.Web/sites",
            "--name",
            "web",
        ]
    )
    provider.assert_not_called()
    assert (
        capsys.readouterr().out.strip()
        == "/subscriptions/sub1/resourceGroups/rg1/providers/Microsoft.Web/sites/web"
    )


def test_credentials_plugin_from_config(user_config, workdir, mocker, monkeypatch, capsys):
    user_config.write_text(
        yaml.dump(
            {
                "Credentials": {
                    "plugin": "dscpublish.plugins.creds.azure.AccountKey",
                    "options": {"account_key_env": "DSC_KEY"},
                }
            }
        )
    )
    monkeypatch.setenv("DSC_KEY", "c2VjcmV0")
    provider = mocker.patch.object(creds, "CredsViaAccountKey")
    blob = (
        provider.return_value.session.return_value.get_container_client.return_value.get_blob_client.return_value
    )
    blob.exists.return_value = False
    blob.url = "https://contosodsc.blob.core.windows.net/windows-powershell-dsc/site.ps1.zip"

    modules = workdir.parent / "modules"
    cli.main(
        ["publish", "site.ps1", "--storage-account", "contosodsc", "--module-path", str(modules)]
    )
    provider.assert_called_once_with("c2VjcmV0", endpoint_suffix="core.windows.net")
    assert capsys.readouterr().out.strip() == blob.url


def test_invalid_log_level_in_config(user_config, capsys):
    user_config.write_text(yaml.dump({"CLI": {"log_level": "LOUD"}}))
    with pytest.raises(SystemExit) as e:
        cli.main([])
    assert e.value.code == 1
    assert "CLI->log_level" in capsys.readouterr().err


def test_log_level_flag(user_config, capsys):
    cli.main(
        [
            "--log-level",
            "INFO",
            "resource_id",
            "--subscription",
            "sub1",
            "--resource-group",
            "rg1",
            "--resource-type",
            "a/b",
            "--name",
            "n",
        ]
    )
    assert cli.logging.basicConfig.call_args.kwargs["level"] == "INFO"
    assert capsys.readouterr().out.startswith("/subscriptions/sub1/")


def test_publish_upload_without_storage_account(user_config, workdir, mocker, capsys):
    mocker.patch("dscpublish.session.azure.DefaultAzureCredential")
    client_class = mocker.patch("dscpublish.session.azure.BlobServiceClient")
    modules = workdir.parent / "modules"
    with pytest.raises(SystemExit) as e:
        cli.main(["publish", "site.ps1", "--module-path", str(modules)])
    assert e.value.code == 1
    assert "--storage-account" in capsys.readouterr().err
    client_class.assert_not_called()
