import json
import logging
from pathlib import Path

import pytest
from kubernetes.config import ConfigException
from typer.testing import CliRunner

from globalcidr.cli import app as cli
from globalcidr.registry.features import GLOBALNET
from globalcidr.store.backend import InMemoryBackend
from globalcidr.store.registry_store import RegistryStore

runner = CliRunner()


@pytest.fixture
def backend(monkeypatch, tmp_path):
    backend = InMemoryBackend()
    monkeypatch.setattr(cli, "_backend", lambda cfg: backend)

    def fake_init_logging(*, verbose=False, **_):
        return logging.getLogger("cli-test"), "run-1", tmp_path / "run.log"

    monkeypatch.setattr(cli, "init_logging", fake_init_logging)
    monkeypatch.delenv("GLOBALCIDR_OVERRIDES_FILE", raising=False)
    return backend


def _run(*args, **kw):
    return runner.invoke(cli.app, list(args), **kw)


def _last_line(result):
    return result.output.strip().splitlines()[-1]


def test_init_then_join(backend):
    res = _run("init", "-n", "broker")
    assert res.exit_code == 0, res.output
    assert "Created globalnet registry in broker" in res.output

    res = _run("join", "east", "-n", "broker")
    assert res.exit_code == 0, res.output
    assert _last_line(res) == "242.0.0.0/16"

    res = _run("join", "west", "-n", "broker")
    assert _last_line(res) == "242.1.0.0/16"

    # rejoining returns the same block
    res = _run("join", "east", "-n", "broker", "--size", "256")
    assert _last_line(res) == "242.0.0.0/16"


def test_init_is_idempotent(backend):
    _run("init", "-n", "broker", "--cidr", "10.0.0.0/8")
    res = _run("init", "-n", "broker", "--cidr", "11.0.0.0/8")
    assert res.exit_code == 0
    assert "already exists" in res.output

    reg, _ = RegistryStore(backend, GLOBALNET).get("broker")
    assert reg.pool.cidr == "10.0.0.0/8"


def test_init_rejects_reserved_pool(backend):
    res = _run("init", "-n", "broker", "--cidr", "127.0.0.0/8")
    assert res.exit_code == 1
    assert "loopback" in res.output


def test_clustersetip_feature(backend):
    _run("init", "-n", "broker", "-f", "clustersetip")
    res = _run("join", "east", "-n", "broker", "-f", "clustersetip")
    assert _last_line(res) == "243.0.0.0/20"


def test_join_specific_cidr_and_overlap(backend):
    _run("init", "-n", "broker", "--cidr", "10.0.0.0/8")
    res = _run("join", "west", "-n", "broker", "--cidr", "10.10.0.0/16")
    assert _last_line(res) == "10.10.0.0/16"

    res = _run("join", "east", "-n", "broker", "--cidr", "10.10.10.0/24")
    assert res.exit_code == 1
    assert "overlaps with cluster 'west'" in res.output


def test_join_disabled_feature(backend):
    _run("init", "-n", "broker", "--disabled")
    res = _run("join", "east", "-n", "broker")
    assert res.exit_code == 0
    assert "globalnet is not enabled on the broker" in res.output


def test_join_without_registry(backend):
    res = _run("join", "east", "-n", "broker")
    assert res.exit_code == 1
    assert "not found" in res.output


def test_show(backend):
    _run("init", "-n", "broker")
    _run("join", "east", "-n", "broker")

    res = _run("show", "-n", "broker")
    assert res.exit_code == 0
    assert "pool: 242.0.0.0/8" in res.output
    assert "east: 242.0.0.0/16" in res.output

    res = _run("show", "-n", "broker", "--json")
    data = json.loads(res.output)
    assert data["enabled"] is True
    assert data["clusters"]["east"]["global_cidr"] == ["242.0.0.0/16"]


def test_validate(backend):
    res = _run("validate", "-n", "broker")
    assert "No globalnet registry in broker" in res.output

    _run("init", "-n", "broker")
    res = _run("validate", "-n", "broker")
    assert res.exit_code == 0
    assert "is valid" in res.output


def test_delete(backend):
    _run("init", "-n", "broker")

    res = _run("delete", "-n", "broker", input="n\n")
    assert res.exit_code == 1
    RegistryStore(backend, GLOBALNET).get("broker")

    res = _run("delete", "-n", "broker", "--yes")
    assert res.exit_code == 0
    assert "Deleted globalnet registry in broker" in res.output

    res = _run("delete", "-n", "broker", "--yes")
    assert "No globalnet registry" in res.output


def test_unknown_feature(backend):
    res = _run("show", "-f", "vxlan")
    assert res.exit_code == 2
    assert "unknown feature" in res.output


def test_namespace_from_config(backend, tmp_path: Path):
    cfg = tmp_path / "globalcidr.yaml"
    cfg.write_text("namespace: from-config\nfeatures:\n  globalnet:\n    allocation_size: 4096\n")

    _run("init", "-c", str(cfg))
    res = _run("join", "east", "-c", str(cfg))
    assert _last_line(res) == "242.0.0.0/20"
    RegistryStore(backend, GLOBALNET).get("from-config")


def test_events_carry_the_logging_run_id(backend, monkeypatch):
    seen = []

    class Recorder:
        def notify(self, ev):
            seen.append(ev)

    monkeypatch.setattr(cli, "ConsoleObserver", Recorder)

    _run("init", "-n", "broker")
    res = _run("join", "east", "-n", "broker")
    assert res.exit_code == 0, res.output

    assert seen
    assert {e.run_id for e in seen} == {"run-1"}


def test_missing_config_file(backend, tmp_path: Path):
    res = _run("show", "-c", str(tmp_path / "nope.yaml"))
    assert res.exit_code == 2
    assert "Invalid configuration" in res.output


def test_malformed_config_file(backend, tmp_path: Path):
    cfg = tmp_path / "globalcidr.yaml"
    cfg.write_text("namespace: [unclosed\n")
    res = _run("show", "-c", str(cfg))
    assert res.exit_code == 2
    assert "Invalid configuration" in res.output


def test_missing_kubeconfig(backend, monkeypatch):
    def no_cluster(cfg):
        raise ConfigException("Invalid kube-config file. No configuration found.")

    monkeypatch.setattr(cli, "_backend", no_cluster)
    res = _run("show", "-n", "broker")
    assert res.exit_code == 2
    assert "No configuration found" in res.output
