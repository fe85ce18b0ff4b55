"""
Result Reconciler
=================

Folds per-batch results into one DispatchOutcome.

A batch that reached the gateway counts as sent even if some of its tokens
were rejected (stale devices are normal). Only when every batch failed at
the transport level is the whole dispatch reported as failed.
"""

from .models import BatchError, BatchSuccess, DispatchOutcome


def collect_errors(results):
    """Per-token error entries across all batches"""
    errors = []
    for result in results:
        if isinstance(result, BatchError):
            for token in result.batch.tokens:
                errors.append({
                    'token': token,
                    'status': 'error',
                    'message': result.message,
                    'batch': result.batch.index,
                })
        elif isinstance(result, BatchSuccess):
            for receipt in result.receipts:
                if not receipt.ok:
                    entry = receipt.to_error_entry()
                    entry['batch'] = result.batch.index
                    errors.append(entry)
    return errors


def reconcile(results):
    """
    Build the DispatchOutcome for a list of BatchSuccess / BatchError.

    tokens_count covers every token in every attempted batch.
    """
    results = list(results)
    tokens_count = sum(len(result.batch) for result in results)
    errors = collect_errors(results)
    sent = [result for result in results if isinstance(result, BatchSuccess)]

    if results and not sent:
        messages = sorted({result.message for result in results})
        return DispatchOutcome(
            success=False,
            tokens_count=tokens_count,
            error=f"All {len(results)} batches failed: {'; '.join(messages)}",
            details={'errors': errors},
            error_kind='transport',
        )

    return DispatchOutcome(
        success=True,
        tokens_count=tokens_count,
        message=f"Notifications sent to {tokens_count} devices",
        details={'errors': errors} if errors else {'success': True},
    )
