"""
Leadbridge - post-call lead ingestion for an inbound voice agent
Receives conversation-end webhooks, extracts lead data with an LLM and stores it
"""

__version__ = "1.0.0"
