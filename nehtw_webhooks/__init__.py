"""Inbound webhook processing for the nehtw fulfillment and AI-generation vendor."""

__version__ = "0.1.0"
