"""Tests for the index metadata builder."""

import json
import os
import logging
import pytest
from datetime import datetime, timezone
from pathlib import Path
from zoneinfo import ZoneInfo

from markupdeck_pkg.index import (
    BuildSummary,
    DocumentRecord,
    IndexConfig,
    IndexMetadataBuilder,
    format_localized_date,
    format_localized_datetime,
    split_title,
)

from conftest import FIXED_MTIME, make_commit, write_page

SEOUL = ZoneInfo('Asia/Seoul')


def by_name(summary):
    return {doc.name: doc for doc in summary.documents}


class TestLocalizedFormatting:
    def test_afternoon(self):
        dt = datetime(2024, 3, 5, 5, 3, 4, tzinfo=timezone.utc)
        assert format_localized_datetime(dt, SEOUL) == '2024. 3. 5. 오후 2:03:04'

    def test_midnight_is_twelve_am(self):
        dt = datetime(2024, 3, 4, 15, 5, 0, tzinfo=timezone.utc)
        assert format_localized_datetime(dt, SEOUL) == '2024. 3. 5. 오전 12:05:00'

    def test_noon_is_twelve_pm(self):
        dt = datetime(2024, 3, 5, 3, 0, 0, tzinfo=timezone.utc)
        assert format_localized_datetime(dt, SEOUL) == '2024. 3. 5. 오후 12:00:00'

    def test_date_uses_target_timezone(self):
        dt = datetime(2024, 12, 31, 20, 0, 0, tzinfo=timezone.utc)
        assert format_localized_date(dt, SEOUL) == '2025. 1. 1.'


class TestSplitTitle:
    def test_three_parts(self):
        assert split_title('Intro : Setup : yet') == ['Intro', 'Setup', 'yet']

    def test_missing_parts_are_none(self):
        assert split_title('Detail : Usage') == ['Detail', 'Usage', None]
        assert split_title('Plain') == ['Plain', None, None]

    def test_extra_parts_ignored(self):
        assert split_title('A : B : C : D') == ['A', 'B', 'C']

    def test_separator_needs_spaces(self):
        assert split_title('A:B') == ['A:B', None, None]


class TestIndexMetadataBuilder:
    def make_builder(self, html_dir, provider, **kwargs):
        config = IndexConfig(document_dir=html_dir, repo_dir=os.path.dirname(html_dir), **kwargs)
        return IndexMetadataBuilder(config, history_provider=provider)

    def test_concrete_scenario(self, html_dir, fake_history):
        summary = self.make_builder(html_dir, fake_history()).build_summary()
        docs = by_name(summary)

        intro = docs['01-intro.html']
        assert intro.category == '01'
        assert intro.title == 'Intro'
        assert intro.category_text == 'Setup'
        assert intro.status == 'yet'
        assert intro.modified_at == ''
        assert intro.modified_at_localized == ''

        detail = docs['02-detail.html']
        assert detail.category == '02'
        assert detail.title == 'Detail'
        assert detail.category_text == 'Usage'
        assert detail.status == ''
        assert detail.modified_at == datetime.fromtimestamp(FIXED_MTIME, tz=timezone.utc)
        assert detail.modified_at_localized == '2023. 11. 15. 오전 7:13:20 (GMT+9)'

    def test_extension_filtering(self, html_dir, fake_history):
        Path(html_dir, 'notes.txt').write_text('not a page')
        Path(html_dir, 'style.css').write_text('body {}')
        Path(html_dir, 'sub.html').mkdir()
        write_page(Path(html_dir, 'sub.html'), '03-nested.html', 'Nested')

        summary = self.make_builder(html_dir, fake_history()).build_summary()

        assert sorted(doc.name for doc in summary.documents) == ['01-intro.html', '02-detail.html']

    def test_order_follows_directory_listing(self, html_dir, fake_history):
        for name in ['30-c.html', '10-a.html', '20-b.html']:
            write_page(html_dir, name, name)
        expected = [name for name in os.listdir(html_dir) if name.endswith('.html')]

        summary = self.make_builder(html_dir, fake_history()).build_summary()

        assert [doc.name for doc in summary.documents] == expected

    def test_category_is_first_two_characters(self, html_dir, fake_history):
        write_page(html_dir, 'ab.html', 'Short')
        write_page(html_dir, 'x.html', 'Tiny')

        summary = self.make_builder(html_dir, fake_history()).build_summary()

        for doc in summary.documents:
            assert doc.category == doc.name[0:2]
        assert by_name(summary)['x.html'].category == 'x.'

    def test_custom_status_keeps_dates(self, html_dir, fake_history):
        write_page(html_dir, '03-done.html', 'Done : Misc : complete')

        doc = by_name(self.make_builder(html_dir, fake_history()).build_summary())['03-done.html']

        assert doc.status == 'complete'
        assert doc.modified_at_localized.endswith(' (GMT+9)')
        assert isinstance(doc.modified_at, datetime)

    def test_empty_status_normalized(self, html_dir, fake_history):
        write_page(html_dir, '04-empty.html', 'Empty : Misc : ')

        doc = by_name(self.make_builder(html_dir, fake_history()).build_summary())['04-empty.html']

        assert doc.status == ''
        assert doc.modified_at_localized != ''

    def test_missing_title_element(self, html_dir, fake_history):
        Path(html_dir, '05-bare.html').write_text('<html><body>no title</body></html>')

        doc = by_name(self.make_builder(html_dir, fake_history()).build_summary())['05-bare.html']

        assert doc.title == ''
        assert doc.category_text is None
        assert doc.status == ''

    def test_history_attached_to_matching_documents(self, html_dir, fake_history):
        provider = fake_history(commits=[make_commit('abc1234', ['src/html/02-detail.html', 'src/css/style.css'])])

        summary = self.make_builder(html_dir, provider).build_summary()
        docs = by_name(summary)

        assert summary.history_available is True
        assert docs['02-detail.html'].last_commit_short_hash == 'abc1234'
        assert docs['02-detail.html'].last_commit_date == '2024. 3. 5.'
        assert docs['01-intro.html'].last_commit_short_hash is None
        assert docs['01-intro.html'].last_commit_date is None

    def test_history_count_passed_to_provider(self, html_dir, fake_history):
        provider = fake_history()
        self.make_builder(html_dir, provider, history_count=7).build_summary()
        assert provider.requested == (os.path.dirname(html_dir), 7)

    def test_history_matches_only_document_extension(self, html_dir, fake_history):
        provider = fake_history(commits=[make_commit('ffff000', ['docs/02-detail.html.bak'])])

        doc = by_name(self.make_builder(html_dir, provider).build_summary())['02-detail.html']

        assert doc.last_commit_short_hash is None

    def test_last_match_wins(self, html_dir, fake_history):
        # Provider order is newest first; after reversal the newest commit comes last
        newer = make_commit('newer00', ['src/html/02-detail.html'],
                            when=datetime(2024, 5, 1, 0, 0, tzinfo=timezone.utc))
        older = make_commit('older00', ['other/path/02-detail.html'],
                            when=datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc))
        provider = fake_history(commits=[newer, older])

        doc = by_name(self.make_builder(html_dir, provider).build_summary())['02-detail.html']

        assert doc.last_commit_short_hash == 'newer00'
        assert doc.last_commit_date == '2024. 5. 1.'

    def test_history_unavailable_degrades(self, html_dir, fake_history, caplog):
        provider = fake_history(error='fatal: not a git repository', branch=None)

        with caplog.at_level(logging.WARNING):
            summary = self.make_builder(html_dir, provider).build_summary()

        assert summary.history_available is False
        assert len(summary.documents) == 2
        for doc in summary.documents:
            assert doc.last_commit_date is None
            assert doc.last_commit_short_hash is None
        assert 'not a git repository' in caplog.text

    def test_branch_reported(self, html_dir, fake_history):
        summary = self.make_builder(html_dir, fake_history(branch='feature/index')).build_summary()
        assert summary.branch == 'feature/index'

    def test_missing_directory_is_fatal(self, temp_dir, fake_history):
        builder = self.make_builder(os.path.join(temp_dir, 'missing'), fake_history())
        with pytest.raises(FileNotFoundError, match="Document directory not found"):
            builder.build_summary()

    def test_unreadable_document_skipped(self, html_dir, fake_history, caplog):
        Path(html_dir, '09-broken.html').write_bytes(b'<title>\xff\xfe bad</title>')

        with caplog.at_level(logging.ERROR):
            summary = self.make_builder(html_dir, fake_history()).build_summary()

        assert '09-broken.html' not in by_name(summary)
        assert len(summary.documents) == 2
        assert 'Failed to read document' in caplog.text

    def test_custom_extension_and_sentinel(self, temp_dir, fake_history):
        doc_dir = Path(temp_dir) / 'pages'
        doc_dir.mkdir()
        write_page(doc_dir, '01-a.htm', 'A : B : draft')
        write_page(doc_dir, '02-b.html', 'B')

        summary = self.make_builder(str(doc_dir), fake_history(), extension='.htm',
                                    unpublished_status='draft').build_summary()

        assert [doc.name for doc in summary.documents] == ['01-a.htm']
        assert summary.documents[0].modified_at == ''


class TestPlainData:
    def make_summary(self):
        return BuildSummary(
            documents=[
                DocumentRecord(name='01-intro.html', title='Intro', category='01', category_text='Setup', status='yet'),
                DocumentRecord(
                    name='02-detail.html',
                    title='Detail',
                    category='02',
                    category_text='Usage',
                    modified_at=datetime.fromtimestamp(FIXED_MTIME, tz=timezone.utc),
                    modified_at_localized='2023. 11. 15. 오전 7:13:20 (GMT+9)',
                    last_commit_date='2024. 3. 5.',
                    last_commit_short_hash='abc1234',
                ),
            ],
            branch='main',
            history_available=True,
        )

    def test_plain_data_is_json_compatible(self):
        data = self.make_summary().to_plain_data()
        assert json.loads(json.dumps(data)) == data
        assert data['documents'][1]['modified_at'] == '2023-11-14T22:13:20+00:00'
        assert data['documents'][0]['modified_at'] == ''

    def test_round_trip_is_stable(self):
        summary = self.make_summary()
        restored = BuildSummary.from_plain_data(json.loads(json.dumps(summary.to_plain_data())))
        assert restored == summary

    def test_plain_data_shares_no_objects(self):
        summary = self.make_summary()
        data = summary.to_plain_data()
        data['documents'][1]['title'] = 'Changed'
        data['documents'].append({})
        assert summary.documents[1].title == 'Detail'
        assert len(summary.documents) == 2

    def test_schema_keys(self):
        data = self.make_summary().to_plain_data()
        assert set(data) == {'documents', 'branch', 'history_available'}
        assert set(data['documents'][0]) == {
            'name', 'title', 'category', 'category_text', 'status', 'modified_at',
            'modified_at_localized', 'last_commit_date', 'last_commit_short_hash',
        }
