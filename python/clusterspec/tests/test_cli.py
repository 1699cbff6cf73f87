"""Tests for the create_cluster and get command lines."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from clusterspec.cli import create_cluster as create_cli
from clusterspec.cli import get as get_cli

HOSTED_ZONES = "hostedZones:\n- name: example.com.\n  id: /hostedzone/Z1AFAKE1ZON3YO\n"


@pytest.fixture
def hosted_zones(tmp_path: Path) -> str:
    path = tmp_path / "zones.yaml"
    path.write_text(HOSTED_ZONES)
    return str(path)


@pytest.fixture
def state(tmp_path: Path) -> str:
    return f"file://{tmp_path / 'state'}"


def test_create_then_get(
    hosted_zones: str, state: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = create_cli.main(
        ["--name", "minimal.example.com", "--zones", "us-test-1a",
         "--state", state, "--hosted-zones", hosted_zones]
    )
    out = capsys.readouterr().out
    assert code == 0
    assert out.strip() == (
        "Created cluster minimal.example.com with instance groups: master-us-test-1a, nodes"
    )

    assert get_cli.main(["--state", state, "clusters"]) == 0
    table = capsys.readouterr().out.splitlines()
    assert table[0].split() == ["NAME", "REGION", "ZONES", "NETWORK"]
    assert table[1].split() == ["minimal.example.com", "us-test-1", "us-test-1a", "172.20.0.0/16"]

    assert get_cli.main(
        ["--state", state, "-o", "yaml", "instancegroups", "--name", "minimal.example.com"]
    ) == 0
    documents = list(yaml.safe_load_all(capsys.readouterr().out))
    assert [d["metadata"]["name"] for d in documents] == ["master-us-test-1a", "nodes"]


def test_create_is_idempotent_and_detects_conflicts(
    hosted_zones: str, state: str, capsys: pytest.CaptureFixture[str]
) -> None:
    args = ["--name", "minimal.example.com", "--zones", "us-test-1a",
            "--state", state, "--hosted-zones", hosted_zones]
    assert create_cli.main(args) == 0
    assert create_cli.main(args) == 0
    capsys.readouterr()

    assert create_cli.main(args + ["--kubernetes-version", "v1.6.0"]) == 1
    err = capsys.readouterr().err
    assert "Cluster 'minimal.example.com' already exists" in err


def test_dry_run_prints_yaml_without_state(
    hosted_zones: str,
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
    capsys: pytest.CaptureFixture[str],
) -> None:
    monkeypatch.delenv(create_cli.STATE_STORE_ENV, raising=False)
    options = tmp_path / "options.yaml"
    options.write_text("clusterName: ha.example.com\nzones: [us-test-1a, us-test-1b]\n")
    code = create_cli.main(
        ["--options", str(options), "--hosted-zones", hosted_zones, "--dry-run", "-o", "yaml"]
    )
    captured = capsys.readouterr()
    assert code == 0
    documents = list(yaml.safe_load_all(captured.out))
    assert [d["kind"] for d in documents] == ["Cluster", "InstanceGroup", "InstanceGroup"]
    assert documents[0]["spec"]["configBase"] == "memfs://dry-run/ha.example.com"
    assert "creationTimestamp" not in documents[0]["metadata"]
    assert "warning:" in captured.err


def test_flags_override_options_file(
    hosted_zones: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    options = tmp_path / "options.yaml"
    options.write_text("clusterName: ha.example.com\nzones: [us-test-1a, us-test-1b]\n")
    code = create_cli.main(
        ["--options", str(options), "--hosted-zones", hosted_zones, "--dry-run",
         "--master-placement", "drop-first", "--node-count", "4"]
    )
    assert code == 0
    assert capsys.readouterr().out.strip() == (
        "Completed cluster ha.example.com with instance groups: master-us-test-1b, nodes"
    )


def test_missing_state_store(
    hosted_zones: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.delenv(create_cli.STATE_STORE_ENV, raising=False)
    code = create_cli.main(
        ["--name", "a.example.com", "--zones", "us-test-1a", "--hosted-zones", hosted_zones]
    )
    assert code == 1
    assert "no state store" in capsys.readouterr().err


def test_state_store_from_environment(
    hosted_zones: str, state: str, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    monkeypatch.setenv(create_cli.STATE_STORE_ENV, state)
    assert create_cli.main(
        ["--name", "a.example.com", "--zones", "us-test-1a", "--hosted-zones", hosted_zones]
    ) == 0
    capsys.readouterr()
    assert get_cli.main(["clusters"]) == 0
    assert "a.example.com" in capsys.readouterr().out


def test_unmatched_domain_writes_nothing(
    hosted_zones: str, tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    state_dir = tmp_path / "state"
    code = create_cli.main(
        ["--name", "c.other.org", "--zones", "us-test-1a",
         "--state", str(state_dir), "--hosted-zones", hosted_zones]
    )
    assert code == 1
    assert "No hosted zone found for DNS name 'c.other.org'" in capsys.readouterr().err
    assert not state_dir.exists()


def test_validation_errors_are_listed(
    hosted_zones: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = create_cli.main(
        ["--name", "a.example.com", "--zones", "us-test-1a,us-test-1b",
         "--master-zones", "us-test-1a,us-test-1z", "--hosted-zones", hosted_zones, "--dry-run"]
    )
    err = capsys.readouterr().err
    assert code == 1
    assert "cluster specification is invalid" in err
    assert "  - instance group master-us-test-1z uses zone(s) us-test-1z not in the cluster" in err


def test_invalid_options_reported(
    hosted_zones: str, capsys: pytest.CaptureFixture[str]
) -> None:
    code = create_cli.main(
        ["--name", "Not_A_Name", "--zones", "us-test-1a", "--hosted-zones", hosted_zones, "--dry-run"]
    )
    assert code == 1
    assert capsys.readouterr().err.startswith("ERROR: Invalid command line")


def test_get_empty_registry(tmp_path: Path, capsys: pytest.CaptureFixture[str]) -> None:
    assert get_cli.main(["--state", str(tmp_path), "clusters"]) == 0
    assert capsys.readouterr().out.strip() == "No clusters found."


def test_clusterctl_dispatch(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    from clusterspec.cli import clusterctl

    monkeypatch.setattr("sys.argv", ["clusterctl", "get", "--state", str(tmp_path), "clusters"])
    with pytest.raises(SystemExit) as exc_info:
        clusterctl.main()
    assert exc_info.value.code == 0
    assert "No clusters found." in capsys.readouterr().out

    monkeypatch.setattr("sys.argv", ["clusterctl", "delete"])
    with pytest.raises(SystemExit) as exc_info:
        clusterctl.main()
    assert exc_info.value.code == 1


def test_get_rejects_escaping_cluster_name(
    tmp_path: Path, capsys: pytest.CaptureFixture[str]
) -> None:
    code = get_cli.main(["--state", str(tmp_path), "instancegroups", "--name", ".."])
    assert code == 1
    assert "Invalid registry key" in capsys.readouterr().err
