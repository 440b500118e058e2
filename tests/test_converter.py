"""Tests for markup conversion."""

import pytest
import os
from unittest.mock import patch

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from simple_ssg.converter import DjotConverter, MarkdownConverter, PageConverter, pandoc_error
from simple_ssg.errors import ConversionError
from simple_ssg.models import MarkupKind, Page
from conftest import StubDjotConverter, write_file


class FailingConverter:
    def convert(self, text):
        raise ValueError('renderer exploded')


class TestMarkdownConverter:
    """Test cases for Markdown rendering."""

    def setup_method(self):
        self.converter = MarkdownConverter()

    def test_heading(self):
        assert '<h1>Hello</h1>' in self.converter.convert('# Hello')

    def test_code_block_with_language(self):
        html = self.converter.convert('```python\nx = 1 < 2\n```\n')
        assert 'class="language-python"' in html
        assert 'white-space: pre-wrap;' in html
        assert 'x = 1 &lt; 2' in html

    def test_code_block_without_language(self):
        html = self.converter.convert('```\nplain\n```\n')
        assert '<pre style="white-space: pre-wrap;"><code>plain' in html

    def test_table_plugin(self):
        html = self.converter.convert('| a | b |\n|---|---|\n| 1 | 2 |\n')
        assert '<table>' in html

    def test_strikethrough_plugin(self):
        assert '<del>gone</del>' in self.converter.convert('~~gone~~')

    def test_inline_html_kept(self):
        assert '<span class="x">raw</span>' in self.converter.convert('<span class="x">raw</span>')


class TestDjotConverter:
    """Test cases for the pandoc-backed Djot converter."""

    def test_convert_calls_pandoc(self):
        with patch('simple_ssg.converter.pypandoc.convert_text', return_value='<h1>Hi</h1>\n') as convert_text:
            html = DjotConverter().convert('# Hi\n')
        assert html == '<h1>Hi</h1>\n'
        convert_text.assert_called_once_with('# Hi\n', 'html', format='djot')

    def test_parse_error_carries_location(self):
        message = 'Pandoc died with exitcode "64" during conversion: Error at "source" (line 3, column 7):\nunexpected end'
        with patch('simple_ssg.converter.pypandoc.convert_text', side_effect=RuntimeError(message)):
            with pytest.raises(ConversionError) as exc_info:
                DjotConverter().convert('{=html\n')
        assert exc_info.value.line == 3
        assert exc_info.value.column == 7
        assert str(exc_info.value).startswith('line 3, column 7:')

    def test_missing_pandoc(self):
        with patch('simple_ssg.converter.pypandoc.convert_text', side_effect=OSError('No pandoc was found')):
            with pytest.raises(ConversionError, match='pandoc is not available'):
                DjotConverter().convert('# Hi\n')

    def test_bundled_pandoc_reads_djot(self):
        """The installed pandoc has a Djot reader."""
        html = DjotConverter().convert('# Hi\n\nSome _emphasis_ and [a link](other.dj).\n')
        assert '<h1' in html
        assert '>Hi</h1>' in html
        assert '<em>emphasis</em>' in html
        assert 'href="other.dj"' in html

    def test_bundled_pandoc_output_links_rewritten(self, temp_dir):
        write_file(temp_dir, 'other.dj', '# Other\n')
        converter = PageConverter(temp_dir, './', {MarkupKind.DJOT: DjotConverter()})
        page, failure = converter.process(
            Page(source_path='index.dj', kind=MarkupKind.DJOT, text='[next](other.dj)\n', title='Index')
        )
        assert failure is None
        assert 'href="./other.html"' in page.fragment

    def test_pandoc_error_without_location(self):
        error = pandoc_error('something\n   went wrong')
        assert error.line is None
        assert str(error) == 'something went wrong'


class TestPageConverter:
    """Test cases for page conversion and link rewriting."""

    def make_page(self, source_path, text):
        return Page(source_path=source_path, kind=MarkupKind.from_filename(source_path), text=text, title='T')

    def test_converts_and_rewrites_links(self, temp_dir):
        write_file(temp_dir, 'guide/setup.dj', '# Setup\n')
        converter = PageConverter(temp_dir, './', {MarkupKind.MARKDOWN: MarkdownConverter()})
        page, failure = converter.process(self.make_page('guide/deep/notes.md', '[back](../setup.dj)'))
        assert failure is None
        assert page.is_converted
        assert 'href="./../setup.html"' in page.fragment

    def test_absolute_prefix_links(self, temp_dir):
        converter = PageConverter(temp_dir, '/docs', {MarkupKind.DJOT: StubDjotConverter()})
        page, _ = converter.process(self.make_page('guide/setup.dj', '[home](../index.md)'))
        assert 'href="/docs/index.html"' in page.fragment

    def test_conversion_error_becomes_failure(self, temp_dir):
        converter = PageConverter(temp_dir, './', {MarkupKind.DJOT: StubDjotConverter()})
        page, failure = converter.process(self.make_page('bad.dj', 'fine\n{=broken\n'))
        assert page is None
        assert failure.path == 'bad.dj'
        assert failure.stage == 'convert'
        assert 'line 2, column 1' in failure.reason

    def test_unexpected_error_becomes_failure(self, temp_dir):
        converter = PageConverter(temp_dir, './', {MarkupKind.MARKDOWN: FailingConverter()})
        page, failure = converter.process(self.make_page('a.md', '# A'))
        assert page is None
        assert 'unexpected error: renderer exploded' in failure.reason

    def test_missing_converter(self, temp_dir):
        converter = PageConverter(temp_dir, './', {MarkupKind.MARKDOWN: MarkdownConverter()})
        page, failure = converter.process(self.make_page('a.dj', '# A'))
        assert page is None
        assert 'no converter registered for djot' in failure.reason
