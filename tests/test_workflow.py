"""Status transition tables"""
import pytest

import workflow
from workflow import WorkflowError, next_status


@pytest.mark.parametrize('doc_type, status, role, expected', [
    (workflow.DEMAND_FORM, 'Pending', 'STOREKEEPER', 'Verified'),
    (workflow.DEMAND_FORM, 'Verified', 'APPROVAL', 'Approved'),
    (workflow.PURCHASE_ORDER, 'Pending', 'STOREKEEPER', 'Pending Account'),
    (workflow.PURCHASE_ORDER, 'Pending Account', 'ACCOUNT', 'Account Verified'),
    (workflow.PURCHASE_ORDER, 'Account Verified', 'ADMIN', 'Generated'),
    (workflow.PURCHASE_ORDER, 'Generated', 'STOREKEEPER', 'Stock Entry Requested'),
    (workflow.ISSUE_REPORT, 'Pending', 'STOREKEEPER', 'Pending Approval'),
    (workflow.ISSUE_REPORT, 'Pending Approval', 'SUPER_ADMIN', 'Issued'),
    (workflow.RETURN, 'Pending', 'STOREKEEPER', 'Verified'),
    (workflow.RETURN, 'Pending', 'APPROVAL', 'Approved'),
    (workflow.RETURN, 'Verified', 'ADMIN', 'Approved'),
    (workflow.MAINTENANCE, 'Approved', 'STOREKEEPER', 'Completed'),
    (workflow.DISPOSAL, 'Pending', 'ADMIN', 'Approved'),
    (workflow.STOCK_ENTRY, 'Pending', 'APPROVAL', 'Approved'),
])
def test_allowed_moves(doc_type, status, role, expected):
    assert next_status(doc_type, status, role) == expected


@pytest.mark.parametrize('doc_type, status, role', [
    (workflow.DEMAND_FORM, 'Pending', 'APPROVAL'),        # cannot skip verification
    (workflow.DEMAND_FORM, 'Approved', 'ADMIN'),
    (workflow.PURCHASE_ORDER, 'Pending', 'ACCOUNT'),
    (workflow.PURCHASE_ORDER, 'Pending Account', 'APPROVAL'),
    (workflow.ISSUE_REPORT, 'Pending', 'APPROVAL'),
    (workflow.ISSUE_REPORT, 'Issued', 'STOREKEEPER'),
    (workflow.STOCK_ENTRY, 'Pending', 'STOREKEEPER'),
    (workflow.STOCK_ENTRY, 'Approved', 'ADMIN'),
    (workflow.DISPOSAL, 'Pending', 'STAFF'),
])
def test_illegal_moves_raise(doc_type, status, role):
    with pytest.raises(WorkflowError):
        next_status(doc_type, status, role)
    assert not workflow.can_act(doc_type, status, role)


def test_unknown_document_type():
    with pytest.raises(WorkflowError):
        next_status('quotation', 'Pending', 'ADMIN')


def test_rejection_needs_a_reason():
    with pytest.raises(WorkflowError):
        workflow.check_rejection(workflow.ISSUE_REPORT, 'Pending Approval', 'APPROVAL', '   ')
    assert workflow.check_rejection(workflow.ISSUE_REPORT, 'Pending Approval', 'APPROVAL', 'Out of budget') == 'Rejected'


def test_rejection_rights():
    assert workflow.can_reject(workflow.DEMAND_FORM, 'Pending', 'STOREKEEPER')
    assert not workflow.can_reject(workflow.DEMAND_FORM, 'Pending', 'STAFF')
    assert not workflow.can_reject(workflow.PURCHASE_ORDER, 'Pending', 'ADMIN')
    assert workflow.can_reject(workflow.RETURN, 'Pending', 'ADMIN')
    # approvers only see a demand form once the store has verified it
    assert not workflow.can_reject(workflow.DEMAND_FORM, 'Pending', 'ADMIN')
    assert not workflow.can_reject(workflow.DEMAND_FORM, 'Pending', 'SUPER_ADMIN')
    assert workflow.can_reject(workflow.DEMAND_FORM, 'Verified', 'ADMIN')


@pytest.mark.parametrize('doc_type', sorted(workflow.REJECTIONS))
@pytest.mark.parametrize('role', workflow.ROLES)
def test_reject_rights_follow_move_rights(doc_type, role):
    statuses = {status for status, _ in workflow.TRANSITIONS[doc_type]}
    for status in statuses:
        if workflow.can_reject(doc_type, status, role):
            assert workflow.can_act(doc_type, status, role), (doc_type, status, role)


def test_actionable_and_tracked_split_the_records():
    records = [{'id': 1, 'status': 'Pending'}, {'id': 2, 'status': 'Verified'}, {'id': 3, 'status': 'Approved'}]
    waiting = workflow.actionable(workflow.DEMAND_FORM, records, 'APPROVAL')
    assert [r['id'] for r in waiting] == [2]
    assert [r['id'] for r in workflow.tracked(workflow.DEMAND_FORM, records, 'APPROVAL')] == [1, 3]


def test_editable_only_before_the_first_move():
    assert workflow.is_editable(workflow.DEMAND_FORM, 'Pending', 'STOREKEEPER')
    assert workflow.is_editable(workflow.DEMAND_FORM, 'Pending', 'ADMIN')
    assert not workflow.is_editable(workflow.DEMAND_FORM, 'Pending', 'STAFF')
    assert not workflow.is_editable(workflow.DEMAND_FORM, 'Verified', 'ADMIN')
