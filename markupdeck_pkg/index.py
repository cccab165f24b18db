"""
Metadata for the project index page.

Scans the HTML document directory, reads each document's ``<title>``
(``"Title : Category : status"``), attaches modification times and the last
commit that touched each file, and hands the result to the index template
as plain data.
"""

import os
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Union

from zoneinfo import ZoneInfo

from bs4 import BeautifulSoup

from .git_info import GitHistoryProvider, HistoryResult

TITLE_SEPARATOR = ' : '


def format_localized_datetime(dt: datetime, tz) -> str:
    """Render a datetime the way the ko-KR locale does, e.g. ``2024. 3. 5. 오후 2:03:04``."""
    local = dt.astimezone(tz)
    meridiem = '오전' if local.hour < 12 else '오후'
    hour = local.hour % 12 or 12
    return f"{local.year}. {local.month}. {local.day}. {meridiem} {hour}:{local.minute:02d}:{local.second:02d}"


def format_localized_date(dt: datetime, tz) -> str:
    """Render only the date part in the ko-KR style, e.g. ``2024. 3. 5.``."""
    local = dt.astimezone(tz)
    return f"{local.year}. {local.month}. {local.day}."


@dataclass
class IndexConfig:
    document_dir: str
    repo_dir: str = '.'
    history_count: int = 20
    extension: str = '.html'
    timezone: str = 'Asia/Seoul'
    timezone_label: str = ' (GMT+9)'
    unpublished_status: str = 'yet'


@dataclass
class DocumentRecord:
    name: str
    title: Optional[str]
    category: str
    category_text: Optional[str] = None
    status: str = ''
    modified_at: Union[datetime, str] = ''
    modified_at_localized: str = ''
    last_commit_date: Optional[str] = None
    last_commit_short_hash: Optional[str] = None

    def to_plain_data(self) -> Dict[str, Any]:
        if isinstance(self.modified_at, datetime):
            modified_at = self.modified_at.isoformat()
        else:
            modified_at = self.modified_at
        return {
            'name': self.name,
            'title': self.title,
            'category': self.category,
            'category_text': self.category_text,
            'status': self.status,
            'modified_at': modified_at,
            'modified_at_localized': self.modified_at_localized,
            'last_commit_date': self.last_commit_date,
            'last_commit_short_hash': self.last_commit_short_hash,
        }

    @classmethod
    def from_plain_data(cls, data: Dict[str, Any]) -> 'DocumentRecord':
        modified_at = data.get('modified_at') or ''
        if modified_at:
            modified_at = datetime.fromisoformat(modified_at)
        return cls(
            name=data['name'],
            title=data.get('title'),
            category=data['category'],
            category_text=data.get('category_text'),
            status=data.get('status') or '',
            modified_at=modified_at,
            modified_at_localized=data.get('modified_at_localized') or '',
            last_commit_date=data.get('last_commit_date'),
            last_commit_short_hash=data.get('last_commit_short_hash'),
        )


@dataclass
class BuildSummary:
    documents: List[DocumentRecord] = field(default_factory=list)
    branch: Optional[str] = None
    history_available: bool = False

    def to_plain_data(self) -> Dict[str, Any]:
        """Convert to JSON-compatible dicts and lists sharing nothing with this object."""
        return {
            'documents': [doc.to_plain_data() for doc in self.documents],
            'branch': self.branch,
            'history_available': self.history_available,
        }

    @classmethod
    def from_plain_data(cls, data: Dict[str, Any]) -> 'BuildSummary':
        return cls(
            documents=[DocumentRecord.from_plain_data(doc) for doc in data.get('documents', [])],
            branch=data.get('branch'),
            history_available=bool(data.get('history_available')),
        )


def split_title(whole_title: str) -> List[Optional[str]]:
    """Split a title on ' : ' and pad to exactly three positional parts."""
    parts = whole_title.split(TITLE_SEPARATOR)
    return (parts + [None, None, None])[:3]


class IndexMetadataBuilder:
    def __init__(self, config: IndexConfig, history_provider=None, logger=None):
        self.config = config
        self.history_provider = history_provider or GitHistoryProvider()
        self.logger = logger or logging.getLogger('IndexMetadataBuilder')
        self.tz = ZoneInfo(config.timezone)

    def list_documents(self) -> List[str]:
        """Return paths of document files in directory-listing order."""
        document_dir = self.config.document_dir
        if not os.path.isdir(document_dir):
            raise FileNotFoundError(f"Document directory not found: {document_dir}")

        documents = []
        for name in os.listdir(document_dir):
            path = os.path.join(document_dir, name)
            if not os.path.isfile(path):
                continue
            if os.path.splitext(name)[1] == self.config.extension:
                documents.append(path)
        return documents

    def read_title(self, file_path: str) -> str:
        with open(file_path, 'r', encoding='utf-8') as f:
            content = f.read()
        soup = BeautifulSoup(content, 'html.parser')
        return ''.join(title.get_text() for title in soup.find_all('title'))

    def build_record(self, file_path: str) -> DocumentRecord:
        name = os.path.basename(file_path)
        title, category_text, status = split_title(self.read_title(file_path))

        mtime = datetime.fromtimestamp(os.stat(file_path).st_mtime, tz=timezone.utc)
        record = DocumentRecord(
            name=name,
            title=title,
            category=name[:2],
            category_text=category_text,
            status=status or '',
            modified_at=mtime,
            modified_at_localized=format_localized_datetime(mtime, self.tz) + self.config.timezone_label,
        )

        # Unpublished documents don't show an edit date
        if record.status == self.config.unpublished_status:
            record.modified_at = ''
            record.modified_at_localized = ''
        return record

    def collect_records(self) -> List[DocumentRecord]:
        records = []
        for file_path in self.list_documents():
            try:
                records.append(self.build_record(file_path))
            except (IOError, OSError, UnicodeDecodeError) as e:
                self.logger.error(f"Failed to read document {file_path}: {e}")
        return records

    def apply_history(self, records: List[DocumentRecord], history: HistoryResult) -> None:
        """Attach the last matching commit to each record; later commits overwrite earlier ones."""
        commits = list(reversed(history.commits))
        for record in records:
            for commit in commits:
                touched = [
                    os.path.basename(path) for path in commit.files
                    if os.path.splitext(path)[1] == self.config.extension
                ]
                if record.name in touched:
                    record.last_commit_date = format_localized_date(commit.committer_date, self.tz)
                    record.last_commit_short_hash = commit.short_hash

    def build_summary(self) -> BuildSummary:
        records = self.collect_records()

        history = self.history_provider.get_commits(self.config.repo_dir, self.config.history_count)
        if history.available:
            self.apply_history(records, history)
        else:
            self.logger.warning(f"Commit history unavailable, index will have no commit data: {history.error}")

        branch = self.history_provider.get_branch(self.config.repo_dir)
        self.logger.debug(f"Indexed {len(records)} documents on branch {branch}")

        return BuildSummary(documents=records, branch=branch, history_available=history.available)
