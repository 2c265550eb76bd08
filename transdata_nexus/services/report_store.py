"""
Report Store

Generated documents live in a local directory next to a JSON sidecar:
    {report_id}.json   metadata (search term, format, file name, report body,
                       createdAt, expiresAt)
    {report_id}.pdf    or {report_id}.pptx
"""

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Dict, Optional

from ..exceptions import InvalidReportIdError, ReportNotFoundError, ReportExpiredError
from ..utils.logging_utils import LogAction, log_event

logger = logging.getLogger(__name__)


CONTENT_TYPES = {
    'pdf': 'application/pdf',
    'pptx': 'application/vnd.openxmlformats-officedocument.presentationml.presentation',
}


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix"""
    return moment.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%S.%f')[:-3] + 'Z'


def from_iso(value: str) -> datetime:
    moment = datetime.fromisoformat(value.replace('Z', '+00:00'))
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment


def file_extension(format_name: str) -> str:
    """Stored extension for a report format (ppt and pptx both give pptx)"""
    return 'pdf' if format_name == 'pdf' else 'pptx'


@dataclass
class StoredFile:
    """A generated document ready to be streamed back"""
    path: Path
    file_name: str
    content_type: str
    size: int


class ReportStore:
    """
    File-system storage for generated reports

    Args:
        directory: Reports directory (created on first save)
        expiry_hours: Default lifetime of a report
    """

    def __init__(self, directory: Path, expiry_hours: int = 24):
        self.directory = Path(directory)
        self.expiry_hours = expiry_hours

    # =========================================================================
    # PATHS
    # =========================================================================

    @staticmethod
    def validate_report_id(report_id: str) -> str:
        if not report_id or '..' in report_id or '/' in report_id or '\\' in report_id:
            raise InvalidReportIdError('Invalid file ID')
        return report_id

    def metadata_path(self, report_id: str) -> Path:
        return self.directory / f"{self.validate_report_id(report_id)}.json"

    def file_path(self, report_id: str, extension: str) -> Path:
        """Location of the document for a report, creating the directory"""
        self.directory.mkdir(parents=True, exist_ok=True)
        return self.directory / f"{self.validate_report_id(report_id)}.{extension}"

    # =========================================================================
    # WRITE
    # =========================================================================

    def save(self, report_id: str, metadata: Dict, lifetime: Optional[timedelta] = None) -> Dict:
        """
        Write the metadata sidecar

        createdAt and expiresAt are filled in when absent.

        Returns:
            The stored metadata
        """
        now = utc_now()
        record = dict(metadata)
        record.setdefault('reportId', report_id)
        record.setdefault('createdAt', to_iso(now))
        record.setdefault('expiresAt', to_iso(now + (lifetime or timedelta(hours=self.expiry_hours))))

        self.directory.mkdir(parents=True, exist_ok=True)
        path = self.metadata_path(report_id)
        with open(path, 'w', encoding='utf-8') as f:
            json.dump(record, f, indent=2, default=str)

        log_event(logger, logging.INFO, LogAction.REPORT_SAVE, f"Saved report metadata {path.name}",
                  details={'reportId': report_id, 'expiresAt': record['expiresAt']})
        return record

    # =========================================================================
    # READ
    # =========================================================================

    def load_metadata(self, report_id: str) -> Dict:
        path = self.metadata_path(report_id)
        if not path.exists():
            raise ReportNotFoundError('Report not found')
        with open(path, 'r', encoding='utf-8') as f:
            return json.load(f)

    @staticmethod
    def is_expired(metadata: Dict, now: Optional[datetime] = None) -> bool:
        expires_at = metadata.get('expiresAt')
        if not expires_at:
            return False
        return from_iso(expires_at) < (now or utc_now())

    def view(self, report_id: str) -> Dict:
        """
        Report body and summary metadata for display

        Raises:
            ReportNotFoundError: No metadata for the id
            ReportExpiredError: Metadata expired (the sidecar is removed)
        """
        path = self.metadata_path(report_id)
        if not path.exists():
            raise ReportNotFoundError('Report not found or expired')

        with open(path, 'r', encoding='utf-8') as f:
            metadata = json.load(f)

        if self.is_expired(metadata):
            path.unlink()
            log_event(logger, logging.INFO, LogAction.REPORT_EXPIRED, f"Report {report_id} expired, metadata removed",
                      details={'reportId': report_id, 'expiresAt': metadata['expiresAt']})
            raise ReportExpiredError('Report has expired')

        return {
            'success': True,
            'report': metadata.get('report'),
            'metadata': {
                'searchTerm': metadata.get('searchTerm'),
                'format': metadata.get('format'),
                'fileName': metadata.get('fileName'),
                'createdAt': metadata.get('createdAt'),
                'expiresAt': metadata.get('expiresAt'),
            },
        }

    def locate_file(self, report_id: str) -> StoredFile:
        """
        Find the generated document for a report

        Raises:
            ReportNotFoundError: Metadata or document missing
        """
        metadata = self.load_metadata(report_id)
        extension = file_extension(metadata.get('format') or 'pdf')
        path = self.directory / f"{report_id}.{extension}"
        if not path.exists():
            raise ReportNotFoundError('Generated file not found')

        return StoredFile(
            path=path,
            file_name=metadata.get('fileName') or f"transdata-report-{report_id}.{extension}",
            content_type=CONTENT_TYPES[extension],
            size=path.stat().st_size,
        )

    # =========================================================================
    # CLEANUP
    # =========================================================================

    def purge_expired(self) -> int:
        """
        Remove expired sidecars and their documents

        Returns:
            Number of reports removed
        """
        if not self.directory.exists():
            return 0

        removed = 0
        now = utc_now()
        for path in sorted(self.directory.glob('*.json')):
            try:
                with open(path, 'r', encoding='utf-8') as f:
                    metadata = json.load(f)
            except (OSError, ValueError) as e:
                logger.warning(f"Skipping unreadable report metadata {path.name}: {e}")
                continue

            if not self.is_expired(metadata, now):
                continue

            for extension in CONTENT_TYPES:
                document = path.with_suffix(f".{extension}")
                if document.exists():
                    document.unlink()
            path.unlink()
            removed += 1

        logger.info(f"Purged {removed} expired reports from {self.directory}")
        return removed
