"""Manage Kibana saved objects and OpenDistro monitors, ISM policies, role mappings and tenants."""

__version__ = "0.1.0"
__all__ = [
    "transport",
    "resource",
    "monitor",
    "tenant",
    "ism_policy",
    "roles_mapping",
    "kibana_object",
]