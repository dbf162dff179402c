import logging
from pathlib import Path
import stat

import pytest
import tomlkit

from cifsmount import cifsmount_cli
from cifsmount.answers import MountAnswers
from cifsmount.errors import NotRootError

from conftest import fake_escape


@pytest.fixture
def host(monkeypatch, tmp_path):
    """
    A pretend host: root, package installs and systemctl are recorded, units
    and credentials land under tmp_path
    """
    calls = []
    monkeypatch.setattr(cifsmount_cli, "require_root", lambda: calls.append(("require_root",)))
    monkeypatch.setattr(cifsmount_cli, "install_packages", lambda: calls.append(("install_packages",)))
    monkeypatch.setattr(
        cifsmount_cli,
        "enable_and_start",
        lambda unit, wrapper, systemctl: calls.append(("enable_and_start", unit, wrapper)),
    )
    monkeypatch.setattr(
        cifsmount_cli,
        "verify",
        lambda label, mount_point, unit, wrapper, systemctl: calls.append(("verify", label)),
    )
    monkeypatch.setattr("cifsmount.units.systemd_escape", fake_escape)

    config = tmp_path / "defaults.toml"
    config.write_text(
        "[main]\n"
        f'unit_file_path = "{tmp_path / "systemd"}"\n'
        f'credentials_dir = "{tmp_path / "etc"}"\n'
        f'mount_root = "{tmp_path / "mnt"}"\n'
    )
    return calls, config


def write_answers(path: Path, *mounts):
    doc = tomlkit.document()
    tables = tomlkit.aot()
    for mount in mounts:
        table = tomlkit.table()
        table.update(mount)
        tables.append(table)
    doc.add("mount", tables)
    path.write_text(tomlkit.dumps(doc))
    return path


def mount(name, **kw):
    ret = {"name": name, "remote": f"//nas/{name}", "username": "alice", "password": "pw"}
    ret.update(kw)
    return ret


def test_add_from_answer_file(host, tmp_path, capsys):
    calls, config = host
    answer_file = write_answers(tmp_path / "answers.toml", mount("media"), mount("photos"))

    rc = cifsmount_cli.main(["--config", str(config), "add", "--answer-file", str(answer_file)])

    assert rc == 0
    media_unit = fake_escape(str(tmp_path / "mnt" / "media"), suffix="mount")
    photos_unit = fake_escape(str(tmp_path / "mnt" / "photos"), suffix="mount")
    assert calls == [
        ("require_root",),
        ("install_packages",),
        ("enable_and_start", media_unit, "cifs-media.service"),
        ("verify", "media"),
        ("enable_and_start", photos_unit, "cifs-photos.service"),
        ("verify", "photos"),
    ]
    assert (tmp_path / "systemd" / media_unit).exists()
    assert (tmp_path / "systemd" / "cifs-photos.service").exists()
    assert (tmp_path / "etc" / "cifs-credentials-media").read_text() == "username=alice\npassword=pw\n"
    assert (tmp_path / "mnt" / "photos").is_dir()

    out = capsys.readouterr().out
    assert "systemctl status cifs-<name>.service" in out
    assert out.rstrip().endswith("systemctl status cifs-<name>.service")


def test_add_once_uses_first_mount(host, tmp_path):
    calls, config = host
    answer_file = write_answers(tmp_path / "answers.toml", mount("media"), mount("photos"))

    cifsmount_cli.main(
        ["--config", str(config), "add", "--once", "--skip-install", "--answer-file", str(answer_file)]
    )

    assert ("install_packages",) not in calls
    assert [c[1] for c in calls if c[0] == "verify"] == ["media"]


def test_add_interactive_loop(host, tmp_path, monkeypatch):
    calls, config = host
    asked = iter(
        [
            MountAnswers("//nas/a", str(tmp_path / "mnt" / "a"), "u", "p", name="a"),
            MountAnswers("//nas/b", str(tmp_path / "mnt" / "b"), "u", "p", name="b"),
        ]
    )
    again = iter([True, False])
    monkeypatch.setattr(cifsmount_cli, "ask_mount", lambda settings, named: next(asked))
    monkeypatch.setattr(cifsmount_cli, "ask_again", lambda: next(again))

    cifsmount_cli.main(["--config", str(config), "add", "--skip-install"])

    assert [c[1] for c in calls if c[0] == "verify"] == ["a", "b"]


def test_add_simple(host, tmp_path, monkeypatch, capsys):
    calls, config = host
    mount_point = str(tmp_path / "share")
    monkeypatch.setattr(
        cifsmount_cli,
        "ask_mount",
        lambda settings, named: MountAnswers("//nas/share", mount_point, "u", "p", domain="CORP"),
    )
    monkeypatch.setattr(cifsmount_cli, "ask_again", pytest.fail)

    cifsmount_cli.main(["--config", str(config), "add-simple"])

    unit = fake_escape(mount_point, suffix="mount")
    label = unit[: -len(".mount")]
    assert ("enable_and_start", unit, None) in calls
    assert not list((tmp_path / "systemd").glob("cifs-*.service"))
    creds = tmp_path / "etc" / f"cifs-credentials-{label}"
    assert creds.read_text().endswith("domain=CORP\n")
    assert f"systemctl status {unit}" in capsys.readouterr().out


def test_not_root(host, monkeypatch, capsys):
    _, config = host

    def not_root():
        raise NotRootError()

    monkeypatch.setattr(cifsmount_cli, "require_root", not_root)
    with pytest.raises(SystemExit) as exc_info:
        cifsmount_cli.main(["--config", str(config), "add"])
    assert exc_info.value.code == 2
    assert "Please run as root (sudo)." in capsys.readouterr().err


def test_missing_answer_file(host, tmp_path, capsys):
    _, config = host
    with pytest.raises(SystemExit):
        cifsmount_cli.main(
            ["--config", str(config), "add", "--answer-file", str(tmp_path / "nope.toml")]
        )
    assert "no such answer file" in capsys.readouterr().err


def test_missing_answer_file_ignored(host, tmp_path, monkeypatch, capsys):
    calls, config = host
    monkeypatch.setattr(
        cifsmount_cli,
        "ask_mount",
        lambda settings, named: MountAnswers("//nas/a", str(tmp_path / "mnt" / "a"), "u", "p", name="a"),
    )

    cifsmount_cli.main(
        [
            "--config", str(config),
            "add", "--once",
            "--answer-file", str(tmp_path / "nope.toml"),
            "--answer-file-ignore-missing",
        ]
    )
    assert "** Warning:" in capsys.readouterr().out
    assert ("verify", "a") in calls


def test_interrupted(host, monkeypatch):
    _, config = host

    def interrupted(settings, named):
        raise KeyboardInterrupt

    monkeypatch.setattr(cifsmount_cli, "ask_mount", interrupted)
    assert cifsmount_cli.main(["--config", str(config), "add"]) == 130


def test_generate(host, tmp_path):
    calls, config = host
    answer_file = write_answers(tmp_path / "answers.toml", mount("media", domain="CORP"))
    out_dir = tmp_path / "out"

    cifsmount_cli.main(
        ["--config", str(config), "generate", "--answer-file", str(answer_file), "--output-dir", str(out_dir)]
    )

    assert calls == []
    unit = fake_escape(str(tmp_path / "mnt" / "media"), suffix="mount")
    names = sorted(p.name for p in out_dir.iterdir())
    assert names == sorted(["answers.toml", "cifs-credentials-media", "cifs-media.service", unit])

    creds = out_dir / "cifs-credentials-media"
    assert stat.S_IMODE(creds.stat().st_mode) == 0o600
    assert f"credentials={tmp_path / 'etc' / 'cifs-credentials-media'}" in (out_dir / unit).read_text()

    saved = tomlkit.parse((out_dir / "answers.toml").read_text())
    assert "password" not in saved["mount"][0]
    assert saved["mount"][0]["domain"] == "CORP"


def test_generate_simple(host, tmp_path):
    _, config = host
    answer_file = write_answers(
        tmp_path / "answers.toml",
        {"remote": "//nas/x", "mount_point": "/srv/x", "username": "u", "password": "p"},
    )
    out_dir = tmp_path / "out"

    cifsmount_cli.main(
        [
            "--config", str(config),
            "generate", "--simple",
            "--answer-file", str(answer_file),
            "--output-dir", str(out_dir),
        ]
    )

    assert (out_dir / "srv-x.mount").exists()
    assert (out_dir / "cifs-credentials-srv-x").exists()
    assert not list(out_dir.glob("*.service"))


def test_dumpconfig(host, capsys):
    _, config = host
    assert cifsmount_cli.main(["--config", str(config), "dumpconfig"]) == 0
    out = capsys.readouterr().out
    assert f"# config file: {config}" in out
    assert 'smb_version = "3.0"' in out


def test_bad_config(tmp_path, capsys):
    config = tmp_path / "defaults.toml"
    config.write_text('[main]\nnope = "x"\n')
    with pytest.raises(SystemExit):
        cifsmount_cli.main(["--config", str(config), "dumpconfig"])
    assert "unknown setting(s): nope" in capsys.readouterr().err


def test_config_is_a_directory(tmp_path, capsys):
    with pytest.raises(SystemExit) as exc_info:
        cifsmount_cli.main(["--config", str(tmp_path), "dumpconfig"])
    assert exc_info.value.code == 2
    assert "Is a directory" in capsys.readouterr().err


def test_answer_file_is_a_directory(host, tmp_path, capsys):
    _, config = host
    answer_dir = tmp_path / "answers.d"
    answer_dir.mkdir()
    with pytest.raises(SystemExit) as exc_info:
        cifsmount_cli.main(["--config", str(config), "generate", "--answer-file", str(answer_dir)])
    assert exc_info.value.code == 2
    assert "Is a directory" in capsys.readouterr().err


def test_verbose_selects_debug(host):
    _, config = host
    logger = logging.getLogger("cifsmount")

    cifsmount_cli.main(["--config", str(config), "-v", "dumpconfig"])
    assert logger.level == logging.DEBUG
    handler = logger.handlers[0]
    assert handler.formatter._fmt == cifsmount_cli.LOG_FORMAT

    cifsmount_cli.main(["--config", str(config), "dumpconfig"])
    assert logger.level == logging.WARNING
