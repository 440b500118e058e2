"""Test configuration and fixtures for simple-ssg tests."""

import pytest
import tempfile
import shutil
import os
import re
from pathlib import Path

import sys
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from simple_ssg.converter import MarkdownConverter
from simple_ssg.errors import ConversionError
from simple_ssg.models import MarkupKind, SiteConfig

PNG_DATA = b'\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR\x00\x00\x00\x01\x00\x00\x00\x01\x08\x02\x00\x00\x00\x90wS\xde\x00\x00\x00\tpHYs\x00\x00\x0b\x13\x00\x00\x0b\x13\x01\x00\x9a\x9c\x18\x00\x00\x00\nIDATx\x9cc\xf8\x00\x00\x00\x01\x00\x01\x00\x00\x00\x00IEND\xaeB`\x82'

ROOT_TEMPLATE = """<html>
<nav><!-- {TABLE_OF_CONTENTS} --></nav>
<main class="root"><!-- {CONTENT} --></main>
</html>
"""

GUIDE_TEMPLATE = """<html>
<div class="guide"><!-- {CONTENT} --></div>
<aside><!-- {TABLE_OF_CONTENTS} --></aside>
</html>
"""


class StubDjotConverter:
    """Small Djot stand-in so tests do not need a pandoc executable.

    Headings become <h1>, links ``[text](target)`` become anchors, other lines
    become paragraphs. Any line containing ``{=broken`` raises ConversionError.
    That trigger only exists in this test double: real pandoc accepts such text
    (and most malformed Djot) and renders it as a paragraph.
    """

    kind = MarkupKind.DJOT

    def convert(self, text):
        html = []
        for number, line in enumerate(text.splitlines(), start=1):
            if '{=broken' in line:
                raise ConversionError('unclosed raw attribute', number, line.index('{=broken') + 1)
            if not line.strip():
                continue
            line = re.sub(r'\[([^\]]+)\]\(([^)]+)\)', r'<a href="\2">\1</a>', line)
            if line.startswith('# '):
                html.append(f'<h1>{line[2:].strip()}</h1>')
            else:
                html.append(f'<p>{line}</p>')
        return '\n'.join(html) + '\n'


def write_file(root, relative_path, content):
    """Create a file (and its parent directories) below root."""
    path = Path(root, *relative_path.split('/'))
    path.parent.mkdir(parents=True, exist_ok=True)
    if isinstance(content, bytes):
        path.write_bytes(content)
    else:
        path.write_text(content, encoding='utf-8')
    return str(path)


def read_tree(root):
    """Return {relative path: bytes} for every file below root."""
    tree = {}
    for dirpath, _dirnames, filenames in os.walk(root):
        for filename in filenames:
            path = os.path.join(dirpath, filename)
            relative = os.path.relpath(path, root).replace(os.sep, '/')
            with open(path, 'rb') as f:
                tree[relative] = f.read()
    return tree


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_dir = tempfile.mkdtemp()
    yield temp_dir
    shutil.rmtree(temp_dir, ignore_errors=True)


@pytest.fixture
def site_dir(temp_dir):
    """Create a sample site with nested templates, pages and assets."""
    root = os.path.join(temp_dir, 'site')
    write_file(root, 'index.md', '# Welcome\n\nRead the [setup guide](guide/setup.dj).\n')
    write_file(root, 'about-us.md', 'No heading in this one.\n')
    write_file(root, 'template.html', ROOT_TEMPLATE)
    write_file(root, 'guide/template.html', GUIDE_TEMPLATE)
    write_file(root, 'guide/setup.dj', '# Setup\n\nInstall it first.\n')
    write_file(root, 'guide/deep/notes.md', '# Notes\n\nGo [back](../setup.dj).\n')
    write_file(root, 'images/logo.png', PNG_DATA)
    write_file(root, 'downloads/readme.txt', 'plain text asset\n')
    return root


@pytest.fixture
def output_dir(temp_dir):
    """Path for generated output (not created)."""
    return os.path.join(temp_dir, 'output')


@pytest.fixture
def converters():
    """Converters for every markup kind without an external pandoc."""
    return {
        MarkupKind.MARKDOWN: MarkdownConverter(),
        MarkupKind.DJOT: StubDjotConverter(),
    }


@pytest.fixture
def make_config(output_dir):
    """Build a SiteConfig for a target with test defaults."""
    def _make_config(target, **overrides):
        options = {'output': output_dir}
        options.update(overrides)
        return SiteConfig(target=target, **options)
    return _make_config
