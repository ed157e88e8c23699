"""
Insurance policy layer: pricing, cart normalization and reconciliation.
"""
