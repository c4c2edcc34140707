"""Tests for the clusterops CLI."""

import json
from pathlib import Path

import pytest

from clusterops.cli import main as cli_main
from clusterops.cli.main import build_parser, main
from clusterops.cli.reconcile import reconcile_command
from clusterops.config import Settings
from clusterops.core.errors import ExitCode, ValidationError
from clusterops.domain.identity import Kind

MANIFEST = """
resources:
  - kind: cluster
    name: prod-eu
    node_count: 3
    cluster_type: standard-aks
  - kind: aks_cluster_type
    name: standard-aks
    version: "1.29"
    credentials: azure-prod
    region: westeurope
    resource_group: rg-clusters
    subnet_id: subnet-1
    vm_size: Standard_D4s_v3
    vm_set_type: VirtualMachineScaleSets
    workspace_id: ws-1
    https_application_routing: false
    monitoring: true
    disk_size: 64
"""


@pytest.fixture
def manifest(tmp_path: Path) -> Path:
    path = tmp_path / "clusters.yaml"
    path.write_text(MANIFEST)
    return path


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        _env_file=None,
        state_file=str(tmp_path / "state.json"),
        poll_interval=0.01,
        create_timeout=1.0,
    )


def read_state(settings):
    return json.loads(Path(settings.state_file).read_text())["resources"]


def test_apply_creates_cluster_type_before_cluster(control_plane, manifest, settings):
    control_plane.add("cluster", Kind.CLOUD_CREDENTIALS, "azure-prod")

    code = reconcile_command("apply", manifest, settings=settings, client=control_plane)

    assert code == ExitCode.SUCCESS
    posted = [kind for _, kind, _ in control_plane.calls_to("post_from_json")]
    assert posted == [Kind.TXN, Kind.CLUSTER]
    state = read_state(settings)
    assert set(state) == {"cluster/prod-eu", "aks_cluster_type/standard-aks"}
    assert state["cluster/prod-eu"]["attributes"]["node_count"] == 3


def test_second_apply_is_a_no_op(control_plane, manifest, settings):
    control_plane.add("cluster", Kind.CLOUD_CREDENTIALS, "azure-prod")
    reconcile_command("apply", manifest, settings=settings, client=control_plane)
    writes = len(control_plane.calls_to("post_from_json"))

    code = reconcile_command("apply", manifest, settings=settings, client=control_plane)

    assert code == ExitCode.SUCCESS
    assert len(control_plane.calls_to("post_from_json")) == writes
    assert control_plane.calls_to("put") == []


def test_destroy_removes_everything(control_plane, manifest, settings):
    control_plane.add("cluster", Kind.CLOUD_CREDENTIALS, "azure-prod")
    reconcile_command("apply", manifest, settings=settings, client=control_plane)

    code = reconcile_command("destroy", manifest, settings=settings, client=control_plane)

    assert code == ExitCode.SUCCESS
    assert read_state(settings) == {}
    deleted = [identity.kind for identity, _ in control_plane.calls_to("delete")]
    assert deleted[0] == Kind.CLUSTER


def test_refresh_of_missing_resources(control_plane, manifest, settings):
    code = reconcile_command("refresh", manifest, settings=settings, client=control_plane)

    assert code == ExitCode.SUCCESS
    assert read_state(settings) == {}


def test_failed_resource_sets_exit_code(control_plane, manifest, settings):
    # No credentials: the cluster type fails, so the cluster cannot find its type.
    code = reconcile_command("apply", manifest, settings=settings, client=control_plane)

    assert code == ExitCode.REMOTE_ERROR


def test_provisioning_timeout_is_a_warning(control_plane, manifest, settings):
    control_plane.add("cluster", Kind.CLOUD_CREDENTIALS, "azure-prod")
    control_plane.cluster_states = ["Pending"]

    code = reconcile_command(
        "apply", manifest, settings=settings, client=control_plane, timeout=0.05
    )

    assert code == ExitCode.WARNING
    assert "cluster/prod-eu" in read_state(settings)


def test_invalid_manifest_touches_nothing(control_plane, tmp_path, settings):
    path = tmp_path / "bad.yaml"
    path.write_text(
        "resources:\n  - kind: cluster\n    name: prod\n    node_count: 1000\n    cluster_type: std\n"
    )

    with pytest.raises(ValidationError):
        reconcile_command("apply", path, settings=settings, client=control_plane)

    assert control_plane.calls == []


def test_parser_requires_command():
    with pytest.raises(SystemExit):
        build_parser().parse_args([])


def test_main_lists_resources():
    assert main(["resources"]) == ExitCode.SUCCESS


def test_main_missing_manifest_is_config_error(monkeypatch, tmp_path):
    monkeypatch.setattr(cli_main, "configure_logging", lambda level: None)

    code = main(["apply", str(tmp_path / "missing.yaml"), "--state", str(tmp_path / "s.json")])

    assert code == ExitCode.CONFIG_ERROR


def test_failed_resources_report_error_details(control_plane, manifest, settings, capsys):
    reconcile_command("apply", manifest, settings=settings, client=control_plane)

    out = capsys.readouterr().out
    assert "kind=CloudCredentials" in out
