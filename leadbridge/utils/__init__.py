"""
Utility modules for leadbridge
Retry, JSON helpers and monitoring

To avoid circular imports, import directly:
    from leadbridge.utils.helpers import retry_async, safe_json_loads
    from leadbridge.utils.monitoring import MonitoringManager
"""
