"""
contacts_cli - Google Contacts export, import and cleanup from the command line.
"""

__version__ = "0.1.0"
