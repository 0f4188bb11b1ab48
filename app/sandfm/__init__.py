"""sandfm - sandboxed file manager.

Listing, search, upload, rename, delete, move, copy and zip download
confined to a single root directory tree.
"""

__version__ = "0.1.0"
