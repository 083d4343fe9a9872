# audit_logger.py
# --------------------------------------------------------------
# Immutable audit trail for everything that changes a record:
# document creation, line edits, status moves, stock approvals,
# user and settings changes. Entries go to the audit_log
# collection of the main database.
# --------------------------------------------------------------

import uuid
from datetime import datetime, timezone
from functools import wraps
from pymongo.errors import ServerSelectionTimeoutError
from flask import request, session, current_app

import records

COLLECTION = 'audit_log'      # <-- audit records go here


def current_user_name():
    user = session.get('user') or {}
    return user.get('name') or user.get('username') or 'anonymous'


def write_audit(action, target_type, target_id, changes, user):
    """Persist a single audit entry."""
    client = records.get_mongo_client()
    try:
        db = records.get_database(client)
        doc = {
            'audit_id'     : str(uuid.uuid4()),
            'timestamp'    : datetime.now(timezone.utc),
            'action'       : action,          # CREATE / UPDATE / DELETE / TRANSITION / REJECT
            'target_type'  : target_type,     # demand_form / stock_entry / user ...
            'target_id'    : target_id,
            'changes'      : changes,
            'user'         : user,
            'ip'           : request.remote_addr,
            'user_agent'   : request.headers.get('User-Agent'),
        }
        db[COLLECTION].insert_one(doc)
    except ServerSelectionTimeoutError:
        current_app.logger.error("Audit log failed - DB unavailable")
    finally:
        client.close()


def audit_store(store, target_type=None):
    """
    Subscribe to a RecordStore so every write it makes during this request is
    audited. Returns the unsubscribe callable.
    """
    actions = {'save': 'CREATE', 'update': 'UPDATE', 'transition': 'TRANSITION', 'delete': 'DELETE'}

    def listener(event, collection, record_id):
        record = store.get(collection, record_id) if record_id else None
        changes = {'collection': collection}
        if record and 'status' in record:
            changes['status'] = record.get('status')
        write_audit(
            action=actions.get(event, event.upper()),
            target_type=target_type or collection,
            target_id=record_id,
            changes=changes,
            user=current_user_name(),
        )

    return store.subscribe(listener)


def audited(action, target_type):
    """Wraps a mutating POST view; the entry is written only when the view did not fail."""
    def decorator(original_func):
        @wraps(original_func)
        def wrapper(*args, **kwargs):
            response = original_func(*args, **kwargs)
            status_code = getattr(response, 'status_code', None)
            if isinstance(response, tuple) and len(response) > 1:
                status_code = response[1]
            if request.method == 'POST' and (status_code is None or status_code < 400):
                target_id = kwargs.get('record_id') or kwargs.get('request_id') or request.form.get('id')
                changes = {k: v for k, v in request.form.items() if 'password' not in k}
                write_audit(action, target_type, target_id, changes, current_user_name())
            return response
        return wrapper
    return decorator
