"""Adversarial tests — malformed host payloads and hostile patterns.

These tests verify that:
1. Unknown operations and wrong field types are rejected as protocol errors
2. Oversized tag sets and absolute globs never reach the engine
3. Requests missing the parts an operation needs produce error diagnostics
4. Glob patterns cannot leak absolute paths into persisted state
"""

from __future__ import annotations

from pathlib import Path

import pytest

from s3extra.core.errors import HostProtocolError
from s3extra.core.reconciler import LifecycleReconciler, request_from_host
from s3extra.models.lifecycle import LifecycleOperation, ResourceRequest


class NeverUploader:
    def publish(self, files, config, *, context=None):
        raise AssertionError("publish must not be reached")


@pytest.fixture
def guarded(fileset_root: Path) -> LifecycleReconciler:
    return LifecycleReconciler(NeverUploader(), root=fileset_root)


class TestMalformedPayloads:
    @pytest.mark.parametrize(
        "payload",
        [
            {},
            {"operation": "explode"},
            {"operation": "create", "config": {"glob": "*.txt"}},
            {"operation": "create", "config": {"bucket": "b", "glob": ""}},
            {"operation": "create", "config": {"bucket": "b", "glob": "/etc/*"}},
            {"operation": "create", "config": {"bucket": "b", "glob": "*", "tags": {"a": 1}}},
            {
                "operation": "create",
                "config": {"bucket": "b", "glob": "*", "tags": {f"k{i}": "v" for i in range(11)}},
            },
            {"operation": "read", "prior": {"file_hashes": {}}},
        ],
    )
    def test_rejected(self, payload):
        with pytest.raises(HostProtocolError):
            request_from_host(payload)


class TestIncompleteRequests:
    @pytest.mark.parametrize(
        "operation",
        [LifecycleOperation.CREATE, LifecycleOperation.UPDATE, LifecycleOperation.READ],
    )
    def test_missing_config(self, guarded: LifecycleReconciler, operation):
        response = guarded.reconcile(ResourceRequest(operation=operation))
        assert response.has_error
        assert response.state is None
        assert response.diagnostics[0].summary == "Invalid request"

    def test_delete_without_prior(self, guarded: LifecycleReconciler):
        response = guarded.reconcile(ResourceRequest(operation=LifecycleOperation.DELETE))
        assert response.has_error
        assert response.removed is False
        assert response.diagnostics[0].summary == "Invalid request"

    def test_import_without_id(self, guarded: LifecycleReconciler):
        response = guarded.reconcile(ResourceRequest(operation=LifecycleOperation.IMPORT))
        assert response.has_error


class TestPathContainment:
    def test_state_keys_are_relative(self, guarded: LifecycleReconciler, make_config):
        response = guarded.reconcile(
            ResourceRequest(
                operation=LifecycleOperation.READ,
                config=make_config(glob="**/*"),
                prior={"id": "x"},
            )
        )
        assert not response.has_error
        for path in response.state.file_hashes:
            assert not Path(path).is_absolute()
            assert not path.startswith("./")
