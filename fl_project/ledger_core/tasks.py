import logging

from celery import shared_task

logger = logging.getLogger(__name__)


@shared_task  # register this function as a Celery task
def process_recurring_transactions_task(process_date=None):
    """Daily beat entry: materialize every due recurring template as the system actor."""
    # import lazily to avoid circular imports at module import time
    from .services.recurring import run_recurring_templates

    summary = run_recurring_templates(process_date)
    # results carry only ids / names / messages, so the return value is JSON-safe
    logger.info("Recurring run finished: %s", summary["message"])
    return {
        "processed": summary["processed"],
        "failed": summary["failed"],
        "skipped": summary["skipped"],
        "results": summary["results"],
    }
