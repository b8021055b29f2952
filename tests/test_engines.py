"""Tests for the native and Docker tool runners."""

import subprocess

import pytest

from dwicomatic.engines import DockerRunner, NativeRunner
from dwicomatic.engines import docker as docker_mod
from dwicomatic.engines import native as native_mod
from dwicomatic.utils.errors import ExternalToolError


class _Stdin:
    def __init__(self, tty):
        self.tty = tty

    def isatty(self):
        return self.tty


class _Proc:
    def __init__(self, returncode=0, stdout=None, stderr=None):
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr


def test_native_run_streams(monkeypatch, tmp_path):
    """Verify NativeRunner runs in the given directory without capturing."""
    called = {}

    def fake_run(cmd, **kwargs):
        called["cmd"] = cmd
        called["kwargs"] = kwargs
        return _Proc(0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    res = NativeRunner().run("mrconvert", ["in", "out.mif", "-force"], cwd=tmp_path)
    assert res.returncode == 0
    assert called["cmd"] == ["mrconvert", "in", "out.mif", "-force"]
    assert called["kwargs"] == {"cwd": tmp_path, "env": None}


def test_native_run_capture(monkeypatch):
    """Verify captured runs return stdout."""

    def fake_run(cmd, **kwargs):
        assert kwargs["capture_output"] is True
        assert kwargs["text"] is True
        return _Proc(0, "0 1000 \n", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    res = NativeRunner().run("mrinfo", ["dwi.mif", "-shell_bvalues"], capture=True)
    assert res.stdout == "0 1000 \n"


def test_native_run_reports_status(monkeypatch):
    """Verify a non-zero status is returned, not raised."""
    monkeypatch.setattr(subprocess, "run", lambda cmd, **kw: _Proc(3))
    assert NativeRunner().run("dwidenoise", []).returncode == 3


def test_native_missing_executable(monkeypatch):
    """Verify a missing executable maps to status 127."""

    def fake_run(cmd, **kwargs):
        raise FileNotFoundError(cmd[0])

    monkeypatch.setattr(subprocess, "run", fake_run)
    res = NativeRunner().run("dwifslpreproc", [])
    assert res.returncode == 127
    assert "not found" in res.stderr


def test_native_launch_detached(monkeypatch, tmp_path):
    """Verify viewers start in a new session with stdio detached."""
    called = {}

    def fake_popen(cmd, **kwargs):
        called["cmd"] = cmd
        called["kwargs"] = kwargs

    monkeypatch.setattr(subprocess, "Popen", fake_popen)
    NativeRunner().launch("mrview", ["fa.mif"], cwd=tmp_path)
    assert called["cmd"] == ["mrview", "fa.mif"]
    assert called["kwargs"]["start_new_session"] is True
    assert called["kwargs"]["stdin"] is subprocess.DEVNULL
    assert called["kwargs"]["cwd"] == tmp_path


def test_native_require(monkeypatch):
    """Verify the pre-flight check names the first missing tool."""
    monkeypatch.setattr(
        native_mod.shutil, "which", lambda name: None if name == "bet2" else f"/usr/bin/{name}"
    )
    NativeRunner().require(["mrconvert", "dwi2fod"])
    with pytest.raises(ExternalToolError) as exc:
        NativeRunner().require(["mrconvert", "bet2"])
    assert exc.value.tool == "bet2"
    assert exc.value.returncode == 127


def test_docker_build_cmd(tmp_path):
    """Verify Docker runner builds command behavior."""
    eng = DockerRunner("mrtrix3/mrtrix3:3.0.4", mounts=[tmp_path], platform="linux/amd64")
    cmd = eng.build_cmd("dwi2tensor", ["a.mif", "b.mif"], cwd=tmp_path)
    assert cmd[:4] == ["docker", "run", "--rm", "-i"]
    assert "-t" not in cmd
    assert cmd[cmd.index("--platform") + 1] == "linux/amd64"
    assert f"{tmp_path}:{tmp_path}" in cmd
    assert cmd[cmd.index("-w") + 1] == str(tmp_path)
    assert cmd[-4:] == ["mrtrix3/mrtrix3:3.0.4", "dwi2tensor", "a.mif", "b.mif"]


def test_docker_run(monkeypatch, tmp_path):
    """Verify Docker runner passes the container command to subprocess."""
    called = {}
    monkeypatch.setattr(docker_mod.sys, "stdin", _Stdin(tty=True))

    def fake_run(cmd, **kwargs):
        called["cmd"] = cmd
        called["kwargs"] = kwargs
        return _Proc(0, "j-\n", "")

    monkeypatch.setattr(subprocess, "run", fake_run)
    eng = DockerRunner("img", mounts=[tmp_path])
    res = eng.run("mrinfo", ["dwi.mif"], cwd=tmp_path, capture=True)
    assert res.stdout == "j-\n"
    assert "-t" not in called["cmd"]
    assert called["kwargs"]["capture_output"] is True

    eng.run("dwidenoise", ["a", "b"], cwd=tmp_path)
    assert "-t" in called["cmd"]


def test_docker_skips_viewers(monkeypatch):
    """Verify viewers are never started inside a container."""

    def fail(*args, **kwargs):
        raise AssertionError("no process expected")

    monkeypatch.setattr(subprocess, "Popen", fail)
    monkeypatch.setattr(subprocess, "run", fail)
    DockerRunner("img").launch("mrview", ["fa.mif"])


def test_docker_require_missing_client(monkeypatch):
    """Verify a missing docker client is reported with status 127."""

    def fake_run(cmd, **kwargs):
        raise FileNotFoundError("docker")

    monkeypatch.setattr(subprocess, "run", fake_run)
    with pytest.raises(ExternalToolError) as exc:
        DockerRunner("img").require(["mrconvert"])
    assert exc.value.returncode == 127


def test_docker_run_without_terminal(monkeypatch, tmp_path):
    """Verify no pseudo-terminal is requested when stdin is not a terminal."""
    called = {}

    def fake_run(cmd, **kwargs):
        called["cmd"] = cmd
        return _Proc(0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    monkeypatch.setattr(docker_mod.sys, "stdin", _Stdin(tty=False))
    DockerRunner("img", mounts=(tmp_path,)).run("dwidenoise", ["a", "b"], cwd=tmp_path)
    assert "-i" in called["cmd"]
    assert "-t" not in called["cmd"]


def test_docker_run_forwards_env(monkeypatch, tmp_path):
    """Verify extra variables become -e options of docker run."""
    called = {}

    def fake_run(cmd, **kwargs):
        called["cmd"] = cmd
        return _Proc(0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    DockerRunner("img").run("bet2", ["in", "out"], env={"FSLOUTPUTTYPE": "NIFTI_GZ"})
    cmd = called["cmd"]
    assert cmd[cmd.index("-e") + 1] == "FSLOUTPUTTYPE=NIFTI_GZ"
    assert cmd.index("-e") < cmd.index("img")


def test_native_run_merges_env(monkeypatch):
    """Verify extra variables are layered over the inherited environment."""
    called = {}

    def fake_run(cmd, **kwargs):
        called["env"] = kwargs["env"]
        return _Proc(0)

    monkeypatch.setattr(subprocess, "run", fake_run)
    monkeypatch.setenv("FSLDIR", "/opt/fsl")
    monkeypatch.setenv("FSLOUTPUTTYPE", "NIFTI")
    NativeRunner().run("bet2", ["in", "out"], env={"FSLOUTPUTTYPE": "NIFTI_GZ"})
    assert called["env"]["FSLOUTPUTTYPE"] == "NIFTI_GZ"
    assert called["env"]["FSLDIR"] == "/opt/fsl"
