import logging

from django.db import transaction, DatabaseError

from .exceptions import ServiceError

logger = logging.getLogger(__name__)


def run_bulk(ids, operation, label='operation'):
    """
    Apply operation(id) to each id in its own savepoint.

    A failure on one id rolls back only that id's changes and is reported
    in its result entry; the remaining ids are still attempted.

    Returns:
        dict: results (per-id), succeeded, failed
    """
    results = []
    seen = set()
    for item_id in ids:
        if item_id in seen:
            continue
        seen.add(item_id)
        try:
            with transaction.atomic():
                obj = operation(item_id)
            results.append({'id': item_id, 'success': True, 'status': getattr(obj, 'status', None)})
        except ServiceError as e:
            logger.info(f"Bulk {label} failed for {item_id}: {e.code} {e.message}")
            results.append({'id': item_id, 'success': False, 'error': e.as_dict()})
        except DatabaseError as e:
            logger.error(f"Bulk {label} database error for {item_id}: {e}", exc_info=True)
            results.append({'id': item_id, 'success': False,
                            'error': {'code': 'DATABASE_ERROR', 'message': str(e)}})

    succeeded = sum(1 for r in results if r['success'])
    logger.info(f"Bulk {label}: {succeeded} succeeded, {len(results) - succeeded} failed")
    return {
        'results': results,
        'succeeded': succeeded,
        'failed': len(results) - succeeded,
    }
