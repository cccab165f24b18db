"""Test configuration and fixtures for markupdeck tests."""

import pytest
import tempfile
import shutil
import os
from pathlib import Path
from datetime import datetime, timezone
from PIL import Image

from markupdeck_pkg.git_info import CommitRecord, HistoryResult

# 2023-11-14T22:13:20Z, i.e. 2023-11-15 07:13:20 in Seoul
FIXED_MTIME = 1700000000


class FakeHistoryProvider:
    """Stands in for GitHistoryProvider with canned commits or a canned failure."""

    def __init__(self, commits=None, error=None, branch='main'):
        self.commits = commits or []
        self.error = error
        self.branch = branch
        self.requested = None

    def get_commits(self, repo_dir, number):
        self.requested = (repo_dir, number)
        if self.error:
            return HistoryResult.unavailable(self.error)
        return HistoryResult.ok(list(self.commits))

    def get_branch(self, repo_dir):
        return self.branch


def make_commit(short_hash, files, when=None, subject='Update markup'):
    return CommitRecord(
        hash=short_hash * 5,
        short_hash=short_hash,
        subject=subject,
        author_name='Kim',
        committer_date=when or datetime(2024, 3, 5, 1, 0, 0, tzinfo=timezone.utc),
        files=files,
    )


def write_page(directory, name, title, mtime=FIXED_MTIME):
    path = Path(directory) / name
    path.write_text(f"""<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>{title}</title></head>
<body><p>{name}</p></body>
</html>""", encoding='utf-8')
    os.utime(path, (mtime, mtime))
    return str(path)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def html_dir(temp_dir):
    """Document directory with two pages following the title convention."""
    html_dir = Path(temp_dir) / 'src' / 'html'
    html_dir.mkdir(parents=True)
    write_page(html_dir, '01-intro.html', 'Intro : Setup : yet')
    write_page(html_dir, '02-detail.html', 'Detail : Usage')
    return str(html_dir)


@pytest.fixture
def fake_history():
    return FakeHistoryProvider


@pytest.fixture
def mock_project(temp_dir):
    """A complete source tree: pages, styles, scripts, images and sprites."""
    root = Path(temp_dir)
    src = root / 'src'

    html = src / 'html'
    (html / 'includes').mkdir(parents=True)
    write_page(html, '01-main.html', 'Main : Common')
    (html / 'includes' / 'header.html').write_text('<header>{{ site_name }}</header>', encoding='utf-8')
    (html / '02-sub.html').write_text(
        '<html><head><title>Sub : Common : done</title></head>'
        '<body>{% include "includes/header.html" %}<p>sub</p></body></html>',
        encoding='utf-8',
    )
    (html / '@partial.html').write_text('<p>partial</p>', encoding='utf-8')

    css = src / 'css'
    css.mkdir(parents=True)
    (css / 'style.css').write_text('body {\n    margin: 0;\n    color: #ffffff;\n}\n', encoding='utf-8')
    (css / 'reset.min.css').write_text('*{box-sizing:border-box}', encoding='utf-8')

    js = src / 'js'
    (js / 'libs').mkdir(parents=True)
    (js / 'a.js').write_text('var first = 1;  // first file\n', encoding='utf-8')
    (js / 'b.js').write_text('function second() {\n    return first + 1;\n}\n', encoding='utf-8')
    (js / 'libs' / 'vendor.js').write_text('/* vendor */ var v = 1;', encoding='utf-8')

    img = src / 'img'
    (img / 'sprites' / 'icons').mkdir(parents=True)
    (img / 'bg').mkdir(parents=True)
    Image.new('RGB', (20, 10), color='red').save(img / 'bg' / 'banner.png', 'PNG')
    Image.new('RGB', (16, 16), color='blue').save(img / 'photo.jpg', 'JPEG')
    (img / 'logo.svg').write_text('<svg xmlns="http://www.w3.org/2000/svg"></svg>', encoding='utf-8')
    Image.new('RGBA', (10, 10), color=(255, 0, 0, 255)).save(img / 'sprites' / 'icons' / 'arrow.png', 'PNG')
    Image.new('RGBA', (20, 8), color=(0, 255, 0, 255)).save(img / 'sprites' / 'icons' / 'close.png', 'PNG')

    (root / 'index.html').write_text(
        '<h1>{{ project_name }}</h1><p>{{ branch }}</p>'
        '{% for doc in documents %}<li>{{ doc.category }}|{{ doc.title }}|{{ doc.status }}'
        '|{{ doc.last_commit_short_hash or "" }}</li>{% endfor %}',
        encoding='utf-8',
    )
    return str(root)
