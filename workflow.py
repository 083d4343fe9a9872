# workflow.py
"""
Approval workflows for every document type.

Each document carries a plain `status` string. The legal moves live in one
table keyed by (current status, role group); screens ask this module what the
current user may do instead of re-deciding it per template.
"""

SUPER_ADMIN = 'SUPER_ADMIN'
ADMIN = 'ADMIN'
STAFF = 'STAFF'
STOREKEEPER = 'STOREKEEPER'
ACCOUNT = 'ACCOUNT'
APPROVAL = 'APPROVAL'

ROLES = [SUPER_ADMIN, ADMIN, STAFF, STOREKEEPER, ACCOUNT, APPROVAL]

# Role groups used by the transition tables
APPROVER = 'APPROVER'
APPROVER_ROLES = (ADMIN, SUPER_ADMIN, APPROVAL)

PENDING = 'Pending'
VERIFIED = 'Verified'
APPROVED = 'Approved'
REJECTED = 'Rejected'
COMPLETED = 'Completed'
PENDING_ACCOUNT = 'Pending Account'
ACCOUNT_VERIFIED = 'Account Verified'
GENERATED = 'Generated'
STOCK_ENTRY_REQUESTED = 'Stock Entry Requested'
PENDING_APPROVAL = 'Pending Approval'
ISSUED = 'Issued'

DEMAND_FORM = 'demand_form'
PURCHASE_ORDER = 'purchase_order'
ISSUE_REPORT = 'issue_report'
RETURN = 'return'
MAINTENANCE = 'maintenance'
DISPOSAL = 'disposal'
STOCK_ENTRY = 'stock_entry'
DAKHILA = 'dakhila'

TRANSITIONS = {
    DEMAND_FORM: {
        (PENDING, STOREKEEPER): VERIFIED,
        (VERIFIED, APPROVER): APPROVED,
    },
    PURCHASE_ORDER: {
        (PENDING, STOREKEEPER): PENDING_ACCOUNT,
        (PENDING_ACCOUNT, ACCOUNT): ACCOUNT_VERIFIED,
        (ACCOUNT_VERIFIED, APPROVER): GENERATED,
        (GENERATED, STOREKEEPER): STOCK_ENTRY_REQUESTED,
    },
    ISSUE_REPORT: {
        (PENDING, STOREKEEPER): PENDING_APPROVAL,
        (PENDING_APPROVAL, APPROVER): ISSUED,
    },
    RETURN: {
        (PENDING, STOREKEEPER): VERIFIED,
        (PENDING, APPROVER): APPROVED,
        (VERIFIED, APPROVER): APPROVED,
    },
    MAINTENANCE: {
        (PENDING, APPROVER): APPROVED,
        (APPROVED, STOREKEEPER): COMPLETED,
        (APPROVED, APPROVER): COMPLETED,
    },
    DISPOSAL: {
        (PENDING, APPROVER): APPROVED,
    },
    STOCK_ENTRY: {
        (PENDING, APPROVER): APPROVED,
    },
    # Entry reports are generated final by stock entry approval; drafts are finalised by the store
    DAKHILA: {
        ('Draft', STOREKEEPER): 'Final',
        ('Draft', APPROVER): 'Final',
    },
}

# (current status, role group) pairs allowed to reject
REJECTIONS = {
    DEMAND_FORM: {(PENDING, STOREKEEPER), (VERIFIED, APPROVER)},
    ISSUE_REPORT: {(PENDING_APPROVAL, APPROVER)},
    RETURN: {(PENDING, STOREKEEPER), (PENDING, APPROVER), (VERIFIED, APPROVER)},
    STOCK_ENTRY: {(PENDING, APPROVER)},
}

# Status a freshly created document starts in
INITIAL_STATUS = {
    DEMAND_FORM: PENDING,
    PURCHASE_ORDER: PENDING,
    ISSUE_REPORT: PENDING,
    RETURN: PENDING,
    MAINTENANCE: PENDING,
    DISPOSAL: PENDING,
    STOCK_ENTRY: PENDING,
    DAKHILA: 'Draft',
}

# Statuses in which the line items may still be edited
EDITABLE_STATUSES = {
    DEMAND_FORM: {PENDING},
    PURCHASE_ORDER: {PENDING},
    ISSUE_REPORT: {PENDING},
    RETURN: {PENDING},
    MAINTENANCE: {PENDING},
    DISPOSAL: {PENDING},
    DAKHILA: {'Draft'},
}


class WorkflowError(Exception):
    """Raised when a role tries a status move the table does not allow."""


def role_group(role):
    if role in APPROVER_ROLES:
        return APPROVER
    return role


def _groups(document_type, role):
    # SUPER_ADMIN and ADMIN also act for the store, in the return workflow only
    groups = [role_group(role)]
    if document_type == RETURN and role in (ADMIN, SUPER_ADMIN):
        groups.append(STOREKEEPER)
    return groups


def next_status(document_type, current_status, role):
    """The status the document moves to when `role` acts on it, or WorkflowError."""
    table = TRANSITIONS.get(document_type)
    if table is None:
        raise WorkflowError(f'Unknown document type "{document_type}".')
    for group in _groups(document_type, role):
        if (current_status, group) in table:
            return table[(current_status, group)]
    raise WorkflowError(f'{role} cannot act on a {document_type.replace("_", " ")} that is "{current_status}".')


def can_act(document_type, current_status, role):
    try:
        next_status(document_type, current_status, role)
    except WorkflowError:
        return False
    return True


def can_reject(document_type, current_status, role):
    allowed = REJECTIONS.get(document_type, set())
    return any((current_status, group) in allowed for group in _groups(document_type, role))


def check_rejection(document_type, current_status, role, reason):
    if not can_reject(document_type, current_status, role):
        raise WorkflowError(f'{role} cannot reject a {document_type.replace("_", " ")} that is "{current_status}".')
    if not (reason or '').strip():
        raise WorkflowError('अस्वीकृतिको कारण लेख्नुहोस् (Rejection reason is required).')
    return REJECTED


def is_editable(document_type, current_status, role):
    if current_status not in EDITABLE_STATUSES.get(document_type, set()):
        return False
    return can_act(document_type, current_status, role) or is_admin(role)


def actionable(document_type, records, role):
    """Records waiting on this role."""
    return [r for r in records if can_act(document_type, r.get('status'), role)]


def tracked(document_type, records, role):
    """Everything not waiting on this role."""
    waiting = {id(r) for r in actionable(document_type, records, role)}
    return [r for r in records if id(r) not in waiting]


def is_approver(role):
    return role in APPROVER_ROLES


def is_admin(role):
    return role in (ADMIN, SUPER_ADMIN)
