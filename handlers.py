"""
Resource handlers for donors, inventory units and transfusion requests.

Each handler receives the document store in its constructor and maps one
operation onto one store call. Handlers raise errors.* exceptions; turning
them into HTTP responses is the API layer's job.
"""
from errors import NotFoundError
from log_config import get_logger
from schemas import (
    DonorCreate,
    InventoryCreate,
    RequestCreate,
    UnitStatus,
    expiry_for,
    to_iso,
    utcnow,
    validate,
)
from store import ID_FIELD

logger = get_logger(__name__)


def _newest_first(documents, field):
    # Stored timestamps share one ISO format, so string order is time order
    return sorted(documents, key=lambda d: d.get(field) or '', reverse=True)


class DonorHandler:
    collection = 'donors'

    def __init__(self, store):
        self.store = store

    def list(self):
        return _newest_first(self.store.find_all(self.collection), 'createdAt')

    def create(self, fields):
        donor = validate(DonorCreate, fields, 'Donor').to_document()
        donor['createdAt'] = to_iso(utcnow())
        return self.store.insert(self.collection, donor)

    def delete(self, donor_id):
        # Inventory units keep their donorId; there is no cascade
        if self.store.delete_by_id(self.collection, donor_id) is None:
            raise NotFoundError('Donor not found')


class InventoryHandler:
    collection = 'inventory'
    donor_collection = DonorHandler.collection

    def __init__(self, store):
        self.store = store

    def list(self):
        return _newest_first(self.store.find_all(self.collection), 'createdAt')

    def create(self, fields):
        data = validate(InventoryCreate, fields, 'Inventory')
        unit = data.to_document()
        unit['expiryDate'] = to_iso(expiry_for(data.collectionDate))
        unit['status'] = UnitStatus.AVAILABLE.value
        unit['createdAt'] = to_iso(utcnow())
        unit = self.store.insert(self.collection, unit)

        self.record_donation(unit['donorId'], unit['collectionDate'])
        return unit

    def record_donation(self, donor_id, collection_date):
        """
        Set the donor's lastDonation to collection_date.

        Runs after the unit is already stored and never raises: a missing
        donor or a store failure is logged and the unit stays created.
        """
        try:
            donor = self.store.find_by_id(self.donor_collection, donor_id)
            if donor is None:
                logger.warning('donor_not_found_for_last_donation', donor_id=donor_id)
                return
            donor['lastDonation'] = collection_date
            self.store.save(self.donor_collection, donor)
        except Exception:
            logger.exception('last_donation_update_failed', donor_id=donor_id)

    def delete(self, unit_id):
        if self.store.delete_by_id(self.collection, unit_id) is None:
            raise NotFoundError('Blood unit not found')


class RequestHandler:
    collection = 'requests'
    # Set once at creation; updates cannot touch these
    immutable_fields = (ID_FIELD, 'requestDate')

    def __init__(self, store):
        self.store = store

    def list(self):
        return _newest_first(self.store.find_all(self.collection), 'requestDate')

    def create(self, fields):
        request = validate(RequestCreate, fields, 'Request').to_document()
        request['requestDate'] = to_iso(utcnow())
        return self.store.insert(self.collection, request)

    def update(self, request_id, fields):
        """Apply a partial update; the merged record is validated as a whole."""
        existing = self.store.find_by_id(self.collection, request_id)
        if existing is None:
            raise NotFoundError('Request not found')
        merged = dict(existing)
        if isinstance(fields, dict):
            merged.update({k: v for k, v in fields.items() if k not in self.immutable_fields})
        else:
            merged = fields

        updated = validate(RequestCreate, merged, 'Request').to_document()
        for key in self.immutable_fields:
            if key in existing:
                updated[key] = existing[key]
        return self.store.save(self.collection, updated)

    def delete(self, request_id):
        if self.store.delete_by_id(self.collection, request_id) is None:
            raise NotFoundError('Request not found')
