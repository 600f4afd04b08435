"""Tests for the stack/service lookup built from Rancher snapshots."""

import pytest

from conftest import make_service
from core.errors import DeployError, ErrorKind
from core.models import Environment
from lib.service_index import build_service_index, resolve_service


class TestBuildServiceIndex:
    def test_one_entry_per_stack_and_service(self, environments):
        services = [
            make_service(id="a", name="web", environment_id="1e1"),
            make_service(id="b", name="worker", environment_id="1e1"),
            make_service(id="c", name="web", environment_id="1e2"),
        ]

        index = build_service_index(environments, services)

        assert set(index) == {"prod", "staging"}
        assert set(index["prod"]) == {"web", "worker"}
        assert index["prod"]["web"].id == "a"
        assert index["staging"]["web"].id == "c"

    def test_dangling_environment_reference_is_fatal(self, environments):
        services = [
            make_service(id="a", environment_id="1e1"),
            make_service(id="b", environment_id="1e404"),
        ]

        with pytest.raises(DeployError) as exc:
            build_service_index(environments, services)

        assert exc.value.kind == ErrorKind.CONSISTENCY
        assert "1e404" in exc.value.message

    def test_services_without_environment_are_skipped(self, environments):
        index = build_service_index(environments, [make_service(environment_id="")])
        assert index == {}

    def test_duplicate_names_keep_last(self):
        envs = [Environment(id="1e1", name="prod")]
        services = [make_service(id="first"), make_service(id="second")]

        index = build_service_index(envs, services)

        assert index["prod"]["web"].id == "second"

    def test_empty_snapshots(self):
        assert build_service_index([], []) == {}


class TestResolveService:
    def test_resolves_by_names(self, environments, service):
        index = build_service_index(environments, [service])
        assert resolve_service(index, "prod", "web") is service

    def test_unknown_stack(self, environments, service):
        index = build_service_index(environments, [service])

        with pytest.raises(DeployError, match="No stack exists") as exc:
            resolve_service(index, "qa", "web")

        assert exc.value.kind == ErrorKind.PRECONDITION
        assert exc.value.notify_blocked is False

    def test_unknown_service(self, environments, service):
        index = build_service_index(environments, [service])

        with pytest.raises(DeployError, match="No service exists"):
            resolve_service(index, "prod", "api")
