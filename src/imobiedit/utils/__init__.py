"""
ImobiEdit Utilities Package
"""
from .bulk_export import BulkExportManager, ExportArchive, ExportResult, ZipArchiveSink

__all__ = ['BulkExportManager', 'ExportArchive', 'ExportResult', 'ZipArchiveSink']
