"""
Document store backends for BloodSync.

DynamoStore talks to DynamoDB tables through boto3. MemoryStore keeps
documents in dictionaries, optionally snapshotting each collection to a JSON
file so local data survives restarts. Both hand out plain dicts and key every
document on '_id'.
"""
import copy
import json
import os
import threading
import uuid
from decimal import Decimal

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from errors import StoreError
from log_config import get_logger

logger = get_logger(__name__)

ID_FIELD = '_id'


def generate_id():
    return uuid.uuid4().hex


def _convert_floats_to_decimal(obj):
    # DynamoDB does not accept Python floats
    if isinstance(obj, dict):
        return {k: _convert_floats_to_decimal(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_floats_to_decimal(v) for v in obj]
    if isinstance(obj, float):
        return Decimal(str(obj))
    return obj


def _convert_decimals(obj):
    if isinstance(obj, dict):
        return {k: _convert_decimals(v) for k, v in obj.items()}
    if isinstance(obj, list):
        return [_convert_decimals(v) for v in obj]
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    return obj


class DocumentStore:
    """Interface shared by the store backends."""

    def insert(self, collection, document):
        """Assign an identifier, persist and return the stored document."""
        document = dict(document)
        document[ID_FIELD] = generate_id()
        return self.save(collection, document)

    def find_all(self, collection):
        raise NotImplementedError

    def find_by_id(self, collection, doc_id):
        raise NotImplementedError

    def save(self, collection, document):
        """Write the whole document, replacing any stored version with the same '_id'."""
        raise NotImplementedError

    def delete_by_id(self, collection, doc_id):
        """Remove a document and return it, or None when nothing had that '_id'."""
        raise NotImplementedError


class DynamoStore(DocumentStore):

    def __init__(self, tables):
        # tables maps a collection name to a boto3 Table resource
        self.tables = tables

    @classmethod
    def connect(cls, table_names, region, endpoint_url=None):
        dynamodb = boto3.resource('dynamodb', region_name=region, endpoint_url=endpoint_url)
        logger.info(
            'dynamodb_connected',
            region=region,
            endpoint='****** (override loaded)' if endpoint_url else 'default',
            tables=sorted(table_names.values()),
        )
        return cls({key: dynamodb.Table(name) for key, name in table_names.items()})

    def _table(self, collection):
        try:
            return self.tables[collection]
        except KeyError:
            raise StoreError(f'Unknown collection: {collection}')

    def find_all(self, collection):
        table = self._table(collection)
        items = []
        kwargs = {}
        try:
            while True:
                resp = table.scan(**kwargs)
                items.extend(resp.get('Items', []))
                if 'LastEvaluatedKey' not in resp:
                    break
                kwargs['ExclusiveStartKey'] = resp['LastEvaluatedKey']
        except (ClientError, BotoCoreError) as e:
            raise StoreError(str(e)) from e
        return [_convert_decimals(item) for item in items]

    def find_by_id(self, collection, doc_id):
        try:
            resp = self._table(collection).get_item(Key={ID_FIELD: doc_id})
        except (ClientError, BotoCoreError) as e:
            raise StoreError(str(e)) from e
        item = resp.get('Item')
        return _convert_decimals(item) if item is not None else None

    def save(self, collection, document):
        try:
            self._table(collection).put_item(Item=_convert_floats_to_decimal(document))
        except (ClientError, BotoCoreError) as e:
            raise StoreError(str(e)) from e
        return document

    def delete_by_id(self, collection, doc_id):
        try:
            resp = self._table(collection).delete_item(Key={ID_FIELD: doc_id}, ReturnValues='ALL_OLD')
        except (ClientError, BotoCoreError) as e:
            raise StoreError(str(e)) from e
        item = resp.get('Attributes')
        return _convert_decimals(item) if item else None


class MemoryStore(DocumentStore):
    """In-process store, optionally persisted as <collection>.json files under data_dir."""

    def __init__(self, collections=('donors', 'inventory', 'requests'), data_dir=None):
        self.data_dir = data_dir
        self._lock = threading.Lock()
        self._data = {name: {} for name in collections}
        if data_dir:
            os.makedirs(data_dir, exist_ok=True)
            for name in collections:
                for doc in self._load_json_file(name):
                    self._data[name][doc[ID_FIELD]] = doc

    def _path(self, collection):
        return os.path.join(self.data_dir, f'{collection}.json')

    def _load_json_file(self, collection):
        path = self._path(collection)
        if not os.path.exists(path):
            return []
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            raise StoreError(f'Error loading {path}: {e}') from e
        return data if isinstance(data, list) else []

    def _save_json_file(self, collection):
        if not self.data_dir:
            return
        path = self._path(collection)
        try:
            with open(path, 'w', encoding='utf-8') as f:
                json.dump(list(self._data[collection].values()), f, ensure_ascii=False, indent=2)
        except OSError as e:
            raise StoreError(f'Error saving {path}: {e}') from e

    def _collection(self, collection):
        try:
            return self._data[collection]
        except KeyError:
            raise StoreError(f'Unknown collection: {collection}')

    def find_all(self, collection):
        with self._lock:
            return copy.deepcopy(list(self._collection(collection).values()))

    def find_by_id(self, collection, doc_id):
        with self._lock:
            return copy.deepcopy(self._collection(collection).get(doc_id))

    def save(self, collection, document):
        with self._lock:
            self._collection(collection)[document[ID_FIELD]] = copy.deepcopy(document)
            self._save_json_file(collection)
        return document

    def delete_by_id(self, collection, doc_id):
        with self._lock:
            removed = self._collection(collection).pop(doc_id, None)
            if removed is not None:
                self._save_json_file(collection)
        return removed


def build_store(config):
    """Create the store selected by config['STORE_BACKEND']."""
    backend = config.get('STORE_BACKEND', 'dynamodb')
    if backend == 'memory':
        logger.info('memory_store_selected', data_dir=config.get('DATA_DIR'))
        return MemoryStore(collections=tuple(config['TABLE_NAMES']), data_dir=config.get('DATA_DIR'))
    if backend == 'dynamodb':
        return DynamoStore.connect(
            config['TABLE_NAMES'],
            region=config['AWS_REGION'],
            endpoint_url=config.get('DYNAMODB_ENDPOINT_URL'),
        )
    raise ValueError(f'Unknown STORE_BACKEND: {backend}')
