"""
Relay Pricing Package

Tiered volume pricing and proration for Relay asset subscriptions.
Quotes an asset count against the tier table and prorates mid-cycle changes.
"""

__version__ = "1.0.0"
