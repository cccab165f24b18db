"""
Version-control lookups for the index page: recent commit history and the
currently checked-out branch.
"""

import os
import subprocess
import logging
from datetime import datetime
from typing import List, Optional

# Record and field separators used in the git log format string
RECORD_SEP = '\x1e'
FIELD_SEP = '\x1f'
LOG_FORMAT = f'{RECORD_SEP}%H{FIELD_SEP}%h{FIELD_SEP}%s{FIELD_SEP}%an{FIELD_SEP}%cI'


class CommitRecord:
    """A single commit with the files it touched."""

    def __init__(self, hash, short_hash, subject, author_name, committer_date, files=None):
        self.hash = hash
        self.short_hash = short_hash
        self.subject = subject
        self.author_name = author_name
        self.committer_date = committer_date
        self.files = files or []

    def __repr__(self):
        return f"CommitRecord({self.short_hash!r}, files={len(self.files)})"


class HistoryResult:
    """
    Outcome of a history lookup.

    Either available (``commits`` holds the entries, newest first as git
    returns them) or unavailable (``error`` describes why).
    """

    def __init__(self, available: bool, commits: Optional[List[CommitRecord]] = None, error: Optional[str] = None):
        self.available = available
        self.commits = commits or []
        self.error = error

    @classmethod
    def ok(cls, commits: List[CommitRecord]) -> 'HistoryResult':
        return cls(True, commits=commits)

    @classmethod
    def unavailable(cls, error: str) -> 'HistoryResult':
        return cls(False, error=error)


def parse_git_log(output: str) -> List[CommitRecord]:
    """Parse ``git log --name-only`` output produced with LOG_FORMAT."""
    commits = []
    for chunk in output.split(RECORD_SEP):
        if not chunk.strip():
            continue
        lines = chunk.split('\n')
        fields = lines[0].split(FIELD_SEP)
        if len(fields) < 5:
            continue
        files = [line.strip() for line in lines[1:] if line.strip()]
        commits.append(CommitRecord(
            hash=fields[0],
            short_hash=fields[1],
            subject=fields[2],
            author_name=fields[3],
            committer_date=datetime.fromisoformat(fields[4]),
            files=files,
        ))
    return commits


def find_git_dir(start_dir: str) -> Optional[str]:
    """Walk up from start_dir looking for a .git directory or gitdir file."""
    current = os.path.abspath(start_dir)
    while True:
        candidate = os.path.join(current, '.git')
        if os.path.isdir(candidate):
            return candidate
        if os.path.isfile(candidate):
            # Worktrees and submodules point at the real git dir
            try:
                with open(candidate, 'r', encoding='utf-8') as f:
                    content = f.read().strip()
            except (IOError, OSError):
                return None
            if content.startswith('gitdir:'):
                git_dir = content[len('gitdir:'):].strip()
                return os.path.normpath(os.path.join(current, git_dir))
            return None
        parent = os.path.dirname(current)
        if parent == current:
            return None
        current = parent


class GitHistoryProvider:
    """Reads commit history by shelling out to git, and the branch from .git/HEAD."""

    def __init__(self, git_executable: str = 'git', max_buffer: int = 1000 * 1024):
        self.git_executable = git_executable
        self.max_buffer = max_buffer
        self.logger = logging.getLogger('GitHistoryProvider')

    def get_commits(self, repo_dir: str, number: int) -> HistoryResult:
        """Return the most recent ``number`` commits, newest first."""
        cmd = [
            self.git_executable,
            '-c', 'core.quotePath=false',
            'log',
            '-n', str(number),
            '--name-only',
            f'--pretty=format:{LOG_FORMAT}',
        ]
        try:
            result = subprocess.run(
                cmd,
                cwd=repo_dir,
                capture_output=True,
                text=True,
                encoding='utf-8',
            )
        except (OSError, ValueError) as e:
            return HistoryResult.unavailable(f"Could not run git: {e}")

        if result.returncode != 0:
            return HistoryResult.unavailable(result.stderr.strip() or f"git log exited with {result.returncode}")
        if len(result.stdout.encode('utf-8')) > self.max_buffer:
            return HistoryResult.unavailable(f"git log output exceeded {self.max_buffer} bytes")

        try:
            commits = parse_git_log(result.stdout)
        except ValueError as e:
            return HistoryResult.unavailable(f"Unparseable git log output: {e}")

        self.logger.debug(f"Read {len(commits)} commits from {repo_dir}")
        return HistoryResult.ok(commits)

    def get_branch(self, repo_dir: str) -> Optional[str]:
        """Return the checked-out branch name, or None if detached or not a repository."""
        git_dir = find_git_dir(repo_dir)
        if not git_dir:
            return None
        try:
            with open(os.path.join(git_dir, 'HEAD'), 'r', encoding='utf-8') as f:
                head = f.read().strip()
        except (IOError, OSError):
            return None
        if head.startswith('ref:'):
            ref = head[len('ref:'):].strip()
            if ref.startswith('refs/heads/'):
                return ref[len('refs/heads/'):]
            return ref
        return None
