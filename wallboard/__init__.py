"""
wallboard — live dispatch wallboard engine for Taxiportalen booking tables.
"""

__version__ = '1.4.0'
