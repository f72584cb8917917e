"""
tfm-client: a client for TelegramFileManager music catalogs with a verified local
track cache.
"""

__version__ = "0.1.0"
