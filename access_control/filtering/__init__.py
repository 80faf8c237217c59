"""
Attribute filtering package.

Projects resource objects down to the fields allowed by a granted
policy's attribute rules (``*``, ``name``, ``!name``).
"""

from .attributes import filter_attributes, is_attribute_allowed

__all__ = ["filter_attributes", "is_attribute_allowed"]
