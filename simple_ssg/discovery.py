"""
Source tree traversal.

Walks the site root, turning markup documents into :class:`Page` records,
recording every directory that carries a ``template.html`` and collecting the
remaining files as assets to copy.
"""

import logging
import os
import re

from .errors import INDEX_PAGE_NOT_FOUND
from .models import MARKUP_EXTENSIONS, Asset, MarkupKind, Page, PageFailure, SiteInventory, Template
from .paths import is_within
from .templating import TEMPLATE_FILENAME

HEADING_PATTERN = re.compile(r'^ {0,3}#[ \t]+(.+?)(?:[ \t]+#+)?[ \t]*$')
ATX_PATTERN = re.compile(r'^ {0,3}#{1,6}(?:[ \t]|$)')
SETEXT_PATTERN = re.compile(r'^ {0,3}=+[ \t]*$')
FENCE_PATTERN = re.compile(r'^\s{0,3}(`{3,}|~{3,})')
INDEX_STEMS = ('index',)

logger = logging.getLogger('SimpleSsg.Discovery')


def extract_title(text, filename):
    """
    Return the first top-level heading of a document.

    ATX headings (``# Title``) count for every markup kind; Markdown files
    also accept setext headings (a paragraph underlined with ``=``).
    Headings inside fenced code blocks are ignored. Without a heading the file
    name is used: extension dropped, dashes and underscores become spaces,
    title-cased.
    """
    setext = MarkupKind.from_filename(filename) is MarkupKind.MARKDOWN
    fence = None
    paragraph = []
    for line in text.splitlines():
        fence_match = FENCE_PATTERN.match(line)
        if fence_match:
            marker = fence_match.group(1)
            if fence is None:
                fence = marker
            elif marker[0] == fence[0] and len(marker) >= len(fence):
                fence = None
            paragraph = []
            continue
        if fence is not None:
            continue
        match = HEADING_PATTERN.match(line)
        if match:
            return match.group(1).strip()
        if setext and paragraph and SETEXT_PATTERN.match(line):
            return ' '.join(paragraph)
        if ATX_PATTERN.match(line):
            paragraph = []
        elif line.strip():
            paragraph.append(line.strip())
        else:
            paragraph = []

    stem = os.path.splitext(os.path.basename(filename))[0]
    return stem.replace('-', ' ').replace('_', ' ').title()


def read_page(absolute_path, source_path, kind):
    """Read a markup file into a Page, or return a PageFailure."""
    try:
        with open(absolute_path, 'r', encoding='utf-8') as f:
            text = f.read()
    except (IOError, OSError, PermissionError) as e:
        logger.error(f"Failed to read {absolute_path}: {e}")
        return PageFailure(source_path, 'read', str(e))
    except UnicodeDecodeError as e:
        logger.error(f"Failed to decode {absolute_path} as UTF-8: {e}")
        return PageFailure(source_path, 'read', f"not valid UTF-8: {e}")

    return Page(
        source_path=source_path,
        kind=kind,
        text=text,
        title=extract_title(text, source_path),
    )


def read_template(absolute_path, directory):
    try:
        with open(absolute_path, 'r', encoding='utf-8') as f:
            return Template(directory=directory, content=f.read())
    except (IOError, OSError, UnicodeDecodeError) as e:
        logger.warning(f"Ignoring unreadable template {absolute_path}: {e}")
        return None


def _relative(path, root):
    relative = os.path.relpath(path, root)
    if relative == '.':
        return ''
    return relative.replace(os.sep, '/')


def discover_site(target, output_root=None):
    """
    Discover pages, templates and assets under ``target``.

    Args:
        target: Site root directory, or a single markup file
        output_root: Output directory; pruned from the walk when it lies inside
            the source tree

    Returns:
        SiteInventory for the run
    """
    if os.path.isfile(target):
        return _discover_single_file(target)

    source_root = os.path.abspath(target)
    inventory = SiteInventory(source_root=source_root)

    for dirpath, dirnames, filenames in os.walk(source_root, onerror=_log_walk_error):
        if output_root is not None:
            dirnames[:] = [
                d for d in dirnames
                if not is_within(os.path.join(dirpath, d), output_root)
            ]
        dirnames.sort()
        directory = _relative(dirpath, source_root)

        for filename in sorted(filenames):
            absolute_path = os.path.join(dirpath, filename)
            source_path = f'{directory}/{filename}' if directory else filename

            if filename == TEMPLATE_FILENAME:
                template = read_template(absolute_path, directory)
                if template is not None:
                    inventory.templates[directory] = template
                continue

            kind = MarkupKind.from_filename(filename)
            if kind is None:
                inventory.assets.append(Asset(source_path=source_path, absolute_path=absolute_path))
                continue

            result = read_page(absolute_path, source_path, kind)
            if isinstance(result, PageFailure):
                inventory.failures.append(result)
            else:
                inventory.pages.append(result)

    if not has_index_page(source_root):
        logger.warning(INDEX_PAGE_NOT_FOUND)

    logger.debug(
        f"Discovered {len(inventory.pages)} pages, {len(inventory.templates)} templates "
        f"and {len(inventory.assets)} assets under {source_root}"
    )
    return inventory


def _discover_single_file(target):
    absolute_path = os.path.abspath(target)
    source_root = os.path.dirname(absolute_path)
    inventory = SiteInventory(source_root=source_root)
    filename = os.path.basename(absolute_path)

    template_path = os.path.join(source_root, TEMPLATE_FILENAME)
    if os.path.isfile(template_path):
        template = read_template(template_path, '')
        if template is not None:
            inventory.templates[''] = template

    kind = MarkupKind.from_filename(filename)
    if kind is None:
        logger.warning(f"{target} is not a markup file ({', '.join(sorted(MARKUP_EXTENSIONS))}), nothing to convert")
        return inventory

    result = read_page(absolute_path, filename, kind)
    if isinstance(result, PageFailure):
        inventory.failures.append(result)
    else:
        inventory.pages.append(result)
    return inventory


def has_index_page(source_root):
    """Whether the site root holds an index document."""
    for stem in INDEX_STEMS:
        for ext in MARKUP_EXTENSIONS:
            if os.path.isfile(os.path.join(source_root, stem + ext)):
                return True
    return False


def _log_walk_error(error):
    logger.warning(f"An entry returned error {error}")
