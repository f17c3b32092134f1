"""
Application constants.

This module contains constants used throughout the application.
"""

DOCUMENT_TYPES = ("epub", "pdf")

MIME_TYPES = {
    "epub": "application/epub+zip",
    "pdf": "application/pdf",
}

# Sessions shown per document in stats and in exported snapshots
SESSION_DISPLAY_LIMIT = 30

# Completed days kept by the live (local mirror) streak path
LIVE_STREAK_RETENTION = 90

# Raw bytes per base64 chunk when streaming file payloads; must be a multiple of 3
ARCHIVE_CHUNK_SIZE = 3 * 256 * 1024
