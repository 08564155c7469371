# tests/core/graph/test_locks.py
"""
Testes do registro de locks exclusivos por Stack.
"""

import pytest

from stackgraph.core.exceptions import StackLocked
from stackgraph.core.graph.deployment import Deployment
from stackgraph.core.graph.locks import DEFAULT_STACK_LOCKS, StackLockRegistry


def test_second_owner_is_refused_with_holders():
    locks = StackLockRegistry()
    locks.acquire(["web", "certificates"], owner="run-1")

    with pytest.raises(StackLocked) as exc:
        locks.acquire(["web"], owner="run-2")

    assert exc.value.details["holders"] == {"web": "run-1"}
    assert locks.held() == ["certificates", "web"]


def test_acquire_is_all_or_nothing():
    locks = StackLockRegistry()
    locks.acquire(["web"], owner="run-1")

    with pytest.raises(StackLocked):
        locks.acquire(["certificates", "web"], owner="run-2")

    assert locks.holder("certificates") is None


def test_release_only_by_owner():
    locks = StackLockRegistry()
    locks.acquire(["web"], owner="run-1")

    locks.release(["web"], owner="run-2")
    assert locks.holder("web") == "run-1"

    locks.release(["web"], owner="run-1")
    assert locks.held() == []


def test_hold_releases_on_error():
    locks = StackLockRegistry()
    with pytest.raises(RuntimeError):
        with locks.hold(["web"], owner="run-1"):
            assert locks.holder("web") == "run-1"
            raise RuntimeError("boom")
    assert locks.held() == []


def test_deployment_uses_process_registry_unless_injected():
    private = StackLockRegistry()

    assert Deployment(run_id="a").locks is DEFAULT_STACK_LOCKS
    assert Deployment(run_id="b").locks is DEFAULT_STACK_LOCKS
    assert Deployment(run_id="c", locks=private).locks is private
