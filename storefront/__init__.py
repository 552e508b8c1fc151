"""Storefront catalog service.

Read-only browsing layer over a Collections > Categories > Subcollections >
Subcategories > Products hierarchy.
"""

__version__ = "0.1.0"
