"""
Voice platform webhooks
Payload parsing and the post-call ingestion pipeline

To avoid circular imports, import directly:
    from leadbridge.webhooks.payloads import parse_call_event, CallEvent
    from leadbridge.webhooks.ingestion import IngestionPipeline
"""
