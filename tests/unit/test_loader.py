"""Unit tests for the YAML config loader and env var resolution."""

from __future__ import annotations

from pathlib import Path

import pytest
from conftest import AGW_POOL_ID, NIC_ID

from nic_associations.config.loader import (
    load_provider_config,
    load_stack_config,
    load_yaml,
    resolve_env_vars,
)
from nic_associations.config.models import AssociationKind, LogFormat

DEMO_STACK = Path(__file__).resolve().parents[2] / "examples" / "associations.yaml"


class TestResolveEnvVars:
    def test_plain_string_unchanged(self):
        assert resolve_env_vars("hello") == "hello"

    def test_substitutes_env_var(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NIC_RG", "rg-prod")
        assert resolve_env_vars("${NIC_RG}") == "rg-prod"

    def test_default_when_var_missing(self):
        assert resolve_env_vars("${MISSING_VAR:-fallback}") == "fallback"

    def test_empty_default(self):
        assert resolve_env_vars("${MISSING_VAR:-}") == ""

    def test_missing_var_no_default_raises(self):
        with pytest.raises(ValueError, match="UNDEFINED_VAR"):
            resolve_env_vars("${UNDEFINED_VAR}")

    def test_embedded_in_resource_id(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("SUB", "1234")
        result = resolve_env_vars("/subscriptions/${SUB}/resourceGroups/rg1")
        assert result == "/subscriptions/1234/resourceGroups/rg1"

    def test_recursive(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("POOL", "pool1")
        data = {"a": ["${POOL}", {"b": "${POOL:-x}"}], "n": 3, "flag": None}
        assert resolve_env_vars(data) == {"a": ["pool1", {"b": "pool1"}], "n": 3, "flag": None}


class TestLoadYaml:
    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(FileNotFoundError):
            load_yaml(tmp_path / "nope.yaml")

    def test_invalid_yaml_reports_position(self, tmp_path: Path):
        path = tmp_path / "bad.yaml"
        path.write_text("a: [1, 2\n")
        with pytest.raises(ValueError, match="Failed to parse YAML"):
            load_yaml(path)

    def test_top_level_must_be_mapping(self, tmp_path: Path):
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")
        with pytest.raises(TypeError, match="Expected a YAML mapping"):
            load_yaml(path)


class TestLoadProviderConfig:
    def test_defaults_when_no_path(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.delenv("AZURE_SUBSCRIPTION_ID", raising=False)
        cfg = load_provider_config()
        assert cfg.subscription_id is None
        assert cfg.polling_interval_seconds == 30
        assert cfg.state_file == ".nicassoc-state.json"

    def test_subscription_from_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("AZURE_SUBSCRIPTION_ID", "sub-123")
        assert load_provider_config().subscription_id == "sub-123"

    def test_overrides_merge_with_defaults(self, tmp_path: Path):
        path = tmp_path / "provider.yaml"
        path.write_text(
            "subscription_id: sub-1\nlogging:\n  format: json\n"
            "polling_interval_seconds: 5\n"
        )
        cfg = load_provider_config(path)
        assert cfg.subscription_id == "sub-1"
        assert cfg.logging.format == LogFormat.JSON
        assert cfg.logging.level == "info"
        assert cfg.polling_interval_seconds == 5

    def test_defaults_resolve_env(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NICASSOC_LOG_LEVEL", "DEBUG")
        monkeypatch.setenv("AZURE_TENANT_ID", "tenant-1")
        cfg = load_provider_config()
        assert cfg.logging.level == "debug"
        assert cfg.auth.tenant_id == "tenant-1"

    def test_nested_override_keeps_sibling_defaults(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ):
        monkeypatch.setenv("AZURE_TENANT_ID", "tenant-1")
        path = tmp_path / "provider.yaml"
        path.write_text("auth:\n  client_id: app-1\n")
        cfg = load_provider_config(path)
        assert cfg.auth.client_id == "app-1"
        assert cfg.auth.tenant_id == "tenant-1"
        assert cfg.state_file == ".nicassoc-state.json"

    def test_invalid_override(self, tmp_path: Path):
        path = tmp_path / "provider.yaml"
        path.write_text("polling_interval_seconds: -1\n")
        with pytest.raises(ValueError, match="Invalid provider config"):
            load_provider_config(path)


class TestLoadStackConfig:
    def test_loads_associations(self, tmp_path: Path):
        path = tmp_path / "stack.yaml"
        path.write_text(
            "associations:\n"
            f"  - network_interface_id: {NIC_ID}\n"
            "    ip_configuration_name: ipconfig1\n"
            f"    backend_address_pool_id: {AGW_POOL_ID}\n"
        )
        stack = load_stack_config(path)
        assert len(stack.associations) == 1
        assert stack.associations[0].network_interface_id == NIC_ID

    def test_invalid_stack(self, tmp_path: Path):
        path = tmp_path / "stack.yaml"
        path.write_text("associations:\n  - ip_configuration_name: ipconfig1\n")
        with pytest.raises(ValueError, match="Invalid stack config"):
            load_stack_config(path)

    def test_unknown_top_level_key(self, tmp_path: Path):
        path = tmp_path / "stack.yaml"
        path.write_text("associations: []\nnetworks: []\n")
        with pytest.raises(ValueError, match="Invalid stack config"):
            load_stack_config(path)

    def test_demo_stack_loads_with_defaults(self):
        stack = load_stack_config(DEMO_STACK)
        kinds = {a.kind for a in stack.associations}
        assert kinds == {AssociationKind.APPLICATION_GATEWAY, AssociationKind.LOAD_BALANCER}

    def test_demo_stack_env_override(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("NIC_RESOURCE_GROUP", "rg-prod")
        stack = load_stack_config(DEMO_STACK)
        assert all("/resourceGroups/rg-prod/" in a.network_interface_id for a in stack.associations)
