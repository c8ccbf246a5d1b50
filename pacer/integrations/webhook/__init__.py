"""Webhook integration: forwards the live run notification to a device relay."""

from .client import WebhookNotificationSink

__all__ = ["WebhookNotificationSink"]
