"""
keyshelf client services.

This module provides the secret key management workflow and the services
it relies on: setup message backup/import and date formatting.
"""

from .date_format_service import (
    DateFormat,
    DateFormatService,
    get_date_format_service,
)
from .key_workflow import (
    KeyWorkflow,
    confirmation_token,
    rank_summaries,
    summarize_key,
)
from .setup_message import (
    DEFAULT_BACKUP_FILENAME,
    SetupMessageCodec,
    SetupMessageImporter,
    generate_setup_code,
    read_import_file,
    write_backup_file,
)

__all__ = [
    # Key workflow
    "KeyWorkflow",
    "confirmation_token",
    "rank_summaries",
    "summarize_key",
    # Setup message
    "DEFAULT_BACKUP_FILENAME",
    "SetupMessageCodec",
    "SetupMessageImporter",
    "generate_setup_code",
    "read_import_file",
    "write_backup_file",
    # Date format service
    "DateFormat",
    "DateFormatService",
    "get_date_format_service",
]
