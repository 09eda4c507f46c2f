"""EduStore entitlement engine.

Order ledger, entitlement resolver, content visibility filter and
progress tracking for the e-learning storefront.
"""

__version__ = "0.1.0"
