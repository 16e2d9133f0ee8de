"""
sfgen - generate Go constants from struct fields.

Reads Go source, resolves a named struct and writes one constant per
field, optionally wrapped in a strong type with an All() helper.
"""

__version__ = "0.1.0"
