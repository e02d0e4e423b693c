"""
HTTP surface for the dashboard facets core.
"""
