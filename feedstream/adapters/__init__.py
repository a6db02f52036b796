"""
Source adapters: one per upstream wire format.
"""
