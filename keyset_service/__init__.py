"""Keyset (seek) pagination over arbitrary, user-selected orderings.

Builds SQLAlchemy predicates and query shapes for paginating large,
multi-column ordered result sets without OFFSET scans.
"""

__version__ = "0.1.0"
