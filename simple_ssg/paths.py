"""Web-prefix aware link and path rewriting."""

import logging
import os
import posixpath
import re
from urllib.parse import urlsplit

from .models import DEFAULT_WEB_PREFIX, MARKUP_EXTENSIONS

HREF_PATTERN = re.compile(r'(<a\s+[^>]*?href=")([^"]*)(")', re.IGNORECASE)
EXTERNAL_PREFIXES = ('http://', 'https://', 'mailto:', 'tel:', 'data:', 'javascript:')
RELATIVE_PREFIXES = ('', './')

logger = logging.getLogger('SimpleSsg.Paths')


def normalize_prefix(prefix):
    """Return ``prefix`` with exactly one trailing separator ('' stays '')."""
    if prefix is None:
        return DEFAULT_WEB_PREFIX
    prefix = prefix.replace('\\', '/')
    if not prefix:
        return ''
    stripped = prefix.rstrip('/')
    if not stripped:
        return '/'
    return stripped + '/'


def is_relative_prefix(prefix):
    return normalize_prefix(prefix) in RELATIVE_PREFIXES


class WebPath(str):
    """A link already composed with the web prefix."""


def rewrite_path(path, prefix=DEFAULT_WEB_PREFIX):
    """
    Compose an output-relative path with the web prefix.

    Exactly one separator joins prefix and path. The result is a
    :class:`WebPath`, which is returned unchanged when passed in again, so
    rewriting twice changes nothing. Plain strings are always treated as
    output-relative, even when they happen to start with the prefix text.

    Args:
        path: Output path relative to the output root
        prefix: Web prefix ('./' by default)

    Returns:
        WebPath suitable for an href attribute
    """
    if isinstance(path, WebPath):
        return path
    prefix = normalize_prefix(prefix)
    path = path.replace('\\', '/')
    while path.startswith('./'):
        path = path[2:]
    path = path.lstrip('/')
    return WebPath(prefix + path)


def output_path_for(source_path):
    """Map a source path to its output path (markup extension becomes .html)."""
    source_path = source_path.replace('\\', '/')
    root, ext = posixpath.splitext(source_path)
    if ext.lower() in MARKUP_EXTENSIONS:
        return root + '.html'
    return source_path


def is_internal_markup_link(target):
    """Whether ``target`` is a relative link to a markup document."""
    if not target or target.startswith(('#', '//', '/')) or '://' in target:
        return False
    if target.lower().startswith(EXTERNAL_PREFIXES):
        return False
    parsed = urlsplit(target)
    if parsed.scheme or parsed.netloc or not parsed.path:
        return False
    return posixpath.splitext(parsed.path)[1].lower() in MARKUP_EXTENSIONS


def rewrite_link(target, page_directory, prefix=DEFAULT_WEB_PREFIX, source_root=None):
    """
    Rewrite a link found in a page's HTML.

    Relative links to markup documents point at the generated .html file.
    With a relative prefix the link stays relative to the linking page;
    otherwise it is resolved against the page's directory so the prefix can
    be applied to a site-root-relative path.

    Args:
        target: The href value
        page_directory: Directory of the linking page, relative to the site root
        prefix: Web prefix
        source_root: Absolute source root, used to warn about dangling links

    Returns:
        The rewritten href, or ``target`` unchanged
    """
    if not is_internal_markup_link(target):
        return target

    parsed = urlsplit(target)
    site_relative = posixpath.normpath(posixpath.join(page_directory or '', parsed.path))

    if source_root is not None:
        referenced = os.path.join(source_root, *site_relative.split('/'))
        if not os.path.exists(referenced):
            logger.warning(f"Referenced file path {referenced} does not exist!")

    if is_relative_prefix(prefix):
        link = rewrite_path(output_path_for(parsed.path), prefix)
    else:
        while site_relative.startswith('../'):
            site_relative = site_relative[3:]
        link = rewrite_path(output_path_for(site_relative), prefix)

    if parsed.query:
        link = f"{link}?{parsed.query}"
    if parsed.fragment:
        link = f"{link}#{parsed.fragment}"
    return link


def rewrite_links(html, page_directory, prefix=DEFAULT_WEB_PREFIX, source_root=None):
    """Rewrite every anchor href in ``html`` that points at a markup document."""
    def _repl(match):
        return match.group(1) + rewrite_link(match.group(2), page_directory, prefix, source_root) + match.group(3)

    return HREF_PATTERN.sub(_repl, html)


def is_within(path, parent):
    """Whether filesystem ``path`` is ``parent`` or lies below it."""
    path = os.path.realpath(path)
    parent = os.path.realpath(parent)
    return path == parent or path.startswith(parent.rstrip(os.sep) + os.sep)
