"""MongoDB index management utilities.

Shared index creation with conflict resolution, used by each MongoXxxRepository.
"""

from logging import getLogger

from pymongo.errors import PyMongoError

logger = getLogger(__name__)


def create_index_safe(collection, keys: list, name: str, **kwargs) -> bool:
    """Create index, replacing any existing index that conflicts with it.

    A conflict is either the same name with a different key spec, or the
    same key spec under a different name (or with different options such as
    ``unique``). The conflicting index is dropped and recreated.
    """
    try:
        collection.create_index(keys, name=name, **kwargs)
        return True
    except PyMongoError as e:
        if "already exists" not in str(e) and "Conflict" not in str(e):
            raise
        return _resolve_conflict(collection, keys, name, **kwargs)


def _resolve_conflict(collection, keys: list, name: str, **kwargs) -> bool:
    keys_dict = dict(keys)

    for idx_name, idx_info in collection.index_information().items():
        if idx_name == '_id_':
            continue

        idx_keys = dict(idx_info.get('key', []))
        if idx_name == name or idx_keys == keys_dict:
            logger.warning(f"Dropping conflicting index: {idx_name}")
            collection.drop_index(idx_name)
            try:
                collection.create_index(keys, name=name, **kwargs)
            except PyMongoError as e:
                # e.g. duplicate keys in existing data block a unique index
                logger.error(f"Failed to recreate index {name}, restoring {idx_name}", extra={"error": str(e)})
                _restore_index(collection, idx_name, idx_info)
                return False
            logger.info(f"Recreated index: {name}")
            return True

    logger.error(f"Failed to resolve index conflict for {name}")
    return False


def _restore_index(collection, idx_name: str, idx_info: dict):
    options = {'unique': True} if idx_info.get('unique') else {}
    collection.create_index(list(idx_info['key']), name=idx_name, **options)


def ensure_all_indexes(db) -> bool:
    """Ensure indexes for all collections. Called at app startup."""
    from adapter.mongodb.user_repository import MongoUserRepository

    return MongoUserRepository(db).ensure_indexes()
