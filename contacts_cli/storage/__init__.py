"""
Local persistence of contact data as JSON files.
"""

from contacts_cli.storage.store import JsonStore

__all__ = ["JsonStore"]
