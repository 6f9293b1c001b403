"""
Webhook endpoints for billing events.

Public endpoints (no auth required) for Stripe webhooks.
"""

from fastapi import APIRouter, HTTPException, Request, status

from usageflow.common.core.exceptions import WebhookError
from usageflow.common.core.telemetry import get_logger
from usageflow.billing.webhooks.stripe_webhook import StripeWebhookProcessor

logger = get_logger(__name__)


def create_webhook_router(processor: StripeWebhookProcessor) -> APIRouter:
    """Router exposing POST /webhooks/stripe backed by the given processor."""
    router = APIRouter()

    @router.post("/webhooks/stripe")
    async def stripe_webhook(request: Request) -> dict[str, str]:
        """
        Receive webhook events from Stripe payment platform.

        No authentication required - webhook signature validated by the processor.
        """
        payload_bytes = await request.body()
        signature = request.headers.get("stripe-signature")

        try:
            return await processor.process(payload_bytes, signature)
        except WebhookError as e:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail=e.message
            )
        except Exception as e:
            logger.error(
                f"Failed to process Stripe webhook: {str(e)}", extra={"error": str(e)}
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Webhook processing failed",
            )

    return router
