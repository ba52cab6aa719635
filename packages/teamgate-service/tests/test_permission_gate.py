"""Permission gate policy table."""

from __future__ import annotations

import pytest

from teamgate_service.auth.models import TeamRole
from teamgate_service.auth.policies import Operation, PermissionGate
from teamgate_service.errors import ErrorCode, PermissionDenied


@pytest.fixture
def gate() -> PermissionGate:
    return PermissionGate()


@pytest.mark.parametrize(
    "operation",
    [Operation.READ, Operation.CREATE, Operation.UPDATE],
)
def test_members_may_use_business_operations(gate, operation):
    assert gate.allows(operation, TeamRole.MEMBER)
    assert gate.allows(operation, TeamRole.ADMIN)


@pytest.mark.parametrize(
    "operation",
    [
        Operation.CREATE_STRUCTURAL,
        Operation.UPDATE_STRUCTURAL,
        Operation.DELETE,
        Operation.ADD_MEMBER,
        Operation.REMOVE_MEMBER,
    ],
)
def test_structural_operations_need_admin(gate, operation):
    assert not gate.allows(operation, TeamRole.MEMBER)
    assert gate.allows(operation, TeamRole.ADMIN)


def test_member_may_remove_self(gate):
    assert gate.allows(Operation.REMOVE_MEMBER, TeamRole.MEMBER, is_self=True)


def test_self_flag_does_not_widen_other_operations(gate):
    assert not gate.allows(Operation.DELETE, TeamRole.MEMBER, is_self=True)


def test_check_names_required_permission(gate):
    with pytest.raises(PermissionDenied) as exc_info:
        gate.check(Operation.CREATE_STRUCTURAL, TeamRole.MEMBER)
    err = exc_info.value
    assert err.code == ErrorCode.PERMISSION_DENIED
    assert err.status_code == 403
    assert err.details == {"required_permission": Operation.CREATE_STRUCTURAL.value}


def test_update_operation_classifies_by_fields(gate):
    assert gate.update_operation(["data"]) == Operation.UPDATE
    assert gate.update_operation(["data", "title"]) == Operation.UPDATE_STRUCTURAL
    assert gate.update_operation({"is_active": False}) == Operation.UPDATE_STRUCTURAL
