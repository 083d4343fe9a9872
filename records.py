# records.py
"""
MongoDB access for every collection the office keeps.

Routes open a client per request (get_mongo_client, closed in `finally`), wrap
the database in a RecordStore and either read a snapshot of the collections
they need or write single records by id. Records carry their own string `id`;
Mongo's `_id` never leaves this module.
"""

import os
from uuid import uuid4
from pymongo import MongoClient, ReturnDocument

DEFAULT_DB_NAME = 'smart_health_db'

USERS = 'users'
SETTINGS = 'settings'
INVENTORY = 'inventory'
STORES = 'stores'
FIRMS = 'firms'
MAG_FORMS = 'mag_forms'
PURCHASE_ORDERS = 'purchase_orders'
ISSUE_REPORTS = 'issue_reports'
STOCK_REQUESTS = 'stock_requests'
DAKHILA_REPORTS = 'dakhila_reports'
RETURN_ENTRIES = 'return_entries'
MARMAT_ENTRIES = 'marmat_entries'
DISPOSAL_ENTRIES = 'disposal_entries'
RABIES_PATIENTS = 'rabies_patients'
RABIES_STOCK = 'rabies_vaccine_stock'

NO_MONGO_ID = {'_id': 0}


# MongoDB connection function (lazy initialization for fork-safety)
def get_mongo_client():
    monguri = os.getenv('MONGODB_URI', 'mongodb://localhost:27017/')
    return MongoClient(monguri, serverSelectionTimeoutMS=120000)


def get_database(client):
    return client[os.getenv('DB_NAME', DEFAULT_DB_NAME)]


def new_id():
    return uuid4().hex


class RecordStore:
    """
    Thin state container over one database.

    Listeners registered with subscribe() are called as
    listener(event, collection, record_id) after every successful write, so
    callers can react to changes without polling.
    """

    def __init__(self, db):
        self.db = db
        self._listeners = []

    def subscribe(self, listener):
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def _notify(self, event, collection, record_id):
        for listener in list(self._listeners):
            listener(event, collection, record_id)

    # -- reads --------------------------------------------------------------
    def all(self, collection, query=None, sort=None):
        cursor = self.db[collection].find(query or {}, NO_MONGO_ID)
        if sort:
            cursor = cursor.sort(sort)
        return list(cursor)

    def get(self, collection, record_id):
        if not record_id:
            return None
        return self.db[collection].find_one({'id': record_id}, NO_MONGO_ID)

    def find_one(self, collection, query):
        return self.db[collection].find_one(query, NO_MONGO_ID)

    def snapshot(self, *collections):
        """Plain lists of every record in the given collections, keyed by collection name."""
        return {name: self.all(name) for name in collections}

    # -- writes -------------------------------------------------------------
    def save(self, collection, record):
        """Replace (or insert) the record by id. Returns the stored record."""
        record = dict(record)
        record.pop('_id', None)
        if not record.get('id'):
            record['id'] = new_id()
        self.db[collection].replace_one({'id': record['id']}, record, upsert=True)
        self._notify('save', collection, record['id'])
        return record

    def update(self, collection, record_id, fields):
        result = self.db[collection].update_one({'id': record_id}, {'$set': fields})
        if result.matched_count:
            self._notify('update', collection, record_id)
        return result.matched_count > 0

    def transition(self, collection, record_id, expected_status, fields):
        """
        Conditional write: apply `fields` only if the record still has
        `expected_status`. Returns the updated record, or None when someone
        else moved it first.
        """
        updated = self.db[collection].find_one_and_update(
            {'id': record_id, 'status': expected_status},
            {'$set': fields},
            return_document=ReturnDocument.AFTER,
        )
        if updated is None:
            return None
        updated.pop('_id', None)
        self._notify('transition', collection, record_id)
        return updated

    def increment(self, collection, record_id, field, amount):
        result = self.db[collection].update_one({'id': record_id}, {'$inc': {field: amount}})
        if result.matched_count:
            self._notify('update', collection, record_id)
        return result.matched_count > 0

    def delete(self, collection, record_id):
        result = self.db[collection].delete_one({'id': record_id})
        if result.deleted_count:
            self._notify('delete', collection, record_id)
        return result.deleted_count > 0


# Built-in organisation settings; the settings document overrides any of these
DEFAULT_SETTINGS = {
    'id': 'organization',
    'org_name_nepali': 'चौदण्डीगढी नगरपालिका',
    'org_name_english': 'Chaudandigadhi Municipality',
    'sub_title_nepali': 'नगरकार्यपालिकाको कार्यालय',
    'sub_title_nepali_2': 'स्वास्थ्य शाखा',
    'sub_title_nepali_3': 'आधारभूत नगर अस्पताल बेल्टार',
    'address': 'बेल्टार, उदयपुर',
    'phone': '०३५-४४०२४५',
    'email': 'info@chaudandigadhimun.gov.np',
    'website': 'www.chaudandigadhimun.gov.np',
    'pan_no': '२०१२३४५६७',
    'default_vat_rate': '13',
    'active_fiscal_year': '2081/082',
}


def load_settings(store):
    settings = dict(DEFAULT_SETTINGS)
    saved = store.get(SETTINGS, 'organization')
    if saved:
        settings.update({k: v for k, v in saved.items() if v not in (None, '')})
    return settings
