"""
Table of contents for the generated site.

The tree mirrors the source directory layout: one leaf per converted page,
one grouping node per directory that has at least one page below it.
Siblings are ordered lexicographically by path segment, with pages and
directories interleaved.
"""

import logging
from typing import Iterable

from .models import Page, TocNode
from .paths import rewrite_path
from .templating import get_environment

TOC_TEMPLATE = 'toc.html'

logger = logging.getLogger('SimpleSsg.Toc')


def build_table_of_contents(pages: Iterable[Page], web_prefix: str) -> TocNode:
    """
    Build the navigation tree from every converted page of the run.

    Args:
        pages: Snapshot of all successfully converted pages
        web_prefix: Web prefix applied to every href

    Returns:
        Root node (the site root directory)
    """
    root = TocNode(name='', title='')
    directories = {'': root}

    for page in sorted(pages, key=lambda p: p.source_path.split('/')):
        segments = page.source_path.split('/')
        parent = root
        path = ''
        for segment in segments[:-1]:
            path = f'{path}/{segment}' if path else segment
            node = directories.get(path)
            if node is None:
                node = TocNode(name=segment, title=segment)
                directories[path] = node
                parent.children.append(node)
            parent = node
        parent.children.append(TocNode(
            name=segments[-1],
            title=page.title,
            href=rewrite_path(page.output_path, web_prefix),
        ))

    _sort_children(root)
    return root


def _sort_children(node: TocNode) -> None:
    node.children.sort(key=lambda child: child.name)
    for child in node.children:
        if not child.is_page:
            _sort_children(child)


def render_table_of_contents(root: TocNode) -> str:
    """Render the tree as nested ``<ul>`` lists."""
    html = get_environment().get_template(TOC_TEMPLATE).render(nodes=root.children)
    logger.debug(f"Table of contents: {html}")
    return html
