"""AWS Lambda handler for API Gateway requests and scheduled events.

API Gateway requests are served by the FastAPI app through Mangum. A
scheduled EventBridge rule seeds any missing default site documents.
"""

import asyncio
import logging
import os
from typing import Any

from mangum import Mangum

from lambda_dependencies import get_fastapi_app, get_site_service, initialize_lambda_environment

SCHEDULED_EVENT_SOURCE = "aws.events"
SCHEDULED_EVENT_TYPE = "Scheduled Event"

if os.getenv("ENVIRONMENT") != "test":
    initialize_lambda_environment()

logger = logging.getLogger(__name__)

# Live streams are not served from Lambda, so the lifespan hook stays off
if os.getenv("ENVIRONMENT") != "test":
    app = get_fastapi_app()
    mangum_handler = Mangum(app, lifespan="off")
else:
    app = None  # type: ignore
    mangum_handler = None  # type: ignore


def is_eventbridge_event(event: dict[str, Any]) -> bool:
    """Determine if the event is from EventBridge.

    Args:
        event: The Lambda event payload

    Returns:
        True if this is an EventBridge event, False otherwise
    """
    return "source" in event and "detail-type" in event and "detail" in event


def lambda_handler(event: dict[str, Any], context: Any) -> dict[str, Any]:
    """Route an invocation to Mangum or the scheduled seeding job.

    Args:
        event: The Lambda event payload (EventBridge or API Gateway)
        context: The Lambda context object

    Returns:
        Response dict with statusCode and body
    """
    logger.info(f"Received Lambda invocation, request_id: {context.request_id}")

    try:
        if is_eventbridge_event(event):
            return handle_scheduled_event(event)

        result: dict[str, Any] = mangum_handler(event, context)
        return result

    except Exception as e:
        logger.exception(f"Unhandled error in Lambda handler: {e}")
        return {"statusCode": 500, "body": "Internal server error"}


def handle_scheduled_event(event: dict[str, Any]) -> dict[str, Any]:
    """Seed missing default documents.

    Args:
        event: The EventBridge event payload

    Returns:
        Response dict with statusCode and body
    """
    source = event.get("source", "")
    detail_type = event.get("detail-type", "")

    if source != SCHEDULED_EVENT_SOURCE or detail_type != SCHEDULED_EVENT_TYPE:
        logger.warning(f"Unsupported event type: {source}/{detail_type}")
        return {"statusCode": 400, "body": f"Unsupported event type: {source}/{detail_type}"}

    created = asyncio.run(get_site_service().initialize_defaults())

    logger.info(f"Seeded {len(created)} default documents")
    return {"statusCode": 200, "body": f"Seeded documents: {', '.join(created) or 'none'}"}
