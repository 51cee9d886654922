"""Core components of the Zabbix CSV Host Importer.

This package contains the CSV parser, the row transformer, name to id
resolution and upload staging.
"""

from .parser import CSVParser
from .resolver import ReferenceResolver
from .transformer import RowTransformer
from .upload import StagedUpload, UploadErrorCode, check_upload, stage_upload

__all__ = [
    "CSVParser",
    "ReferenceResolver",
    "RowTransformer",
    "StagedUpload",
    "UploadErrorCode",
    "check_upload",
    "stage_upload",
]
