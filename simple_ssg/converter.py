"""
Markup to HTML conversion.

Markdown is rendered with mistune, Djot with pandoc (through pypandoc).
Both converters expose ``convert(text) -> html`` and raise
:class:`ConversionError` when a document cannot be converted.
"""

import logging
import re

import mistune
import pypandoc

from .errors import ConversionError
from .models import DEFAULT_WEB_PREFIX, MarkupKind, PageFailure
from .paths import rewrite_links

PANDOC_LOCATION_PATTERN = re.compile(r'line (\d+),? column (\d+)', re.IGNORECASE)


class MarkdownConverter:
    kind = MarkupKind.MARKDOWN

    def __init__(self):
        self.markdown_parser = self.create_markdown_parser()

    def create_markdown_parser(self):
        """Create a Mistune markdown parser with a custom renderer."""
        class CustomRenderer(mistune.HTMLRenderer):
            def __init__(self):
                super().__init__(escape=False)

            def block_code(self, code, info=None):
                escaped_code = mistune.escape(code)
                if info:
                    lang = mistune.escape(info.strip().split(None, 1)[0])
                    return '<pre style="white-space: pre-wrap;"><code class="language-{}">{}</code></pre>\n'.format(
                        lang, escaped_code)
                return '<pre style="white-space: pre-wrap;"><code>{}</code></pre>\n'.format(escaped_code)

        return mistune.create_markdown(
            renderer=CustomRenderer(),
            plugins=['table', 'task_lists', 'strikethrough']
        )

    def convert(self, text):
        try:
            return self.markdown_parser(text)
        except Exception as e:
            raise ConversionError(f"Markdown rendering failed: {e}")


class DjotConverter:
    kind = MarkupKind.DJOT

    def convert(self, text):
        try:
            return pypandoc.convert_text(text, 'html', format='djot')
        except RuntimeError as e:
            raise pandoc_error(str(e))
        except OSError as e:
            raise ConversionError(f"pandoc is not available: {e}")


def pandoc_error(message):
    """Turn a pandoc failure message into a ConversionError with its location."""
    match = PANDOC_LOCATION_PATTERN.search(message)
    message = ' '.join(message.split())
    if match:
        return ConversionError(message, int(match.group(1)), int(match.group(2)))
    return ConversionError(message)


def default_converters():
    """Return the converter for each markup kind."""
    return {
        MarkupKind.MARKDOWN: MarkdownConverter(),
        MarkupKind.DJOT: DjotConverter(),
    }


class PageConverter:
    """Convert pages to HTML fragments and rewrite their internal links."""

    def __init__(self, source_root, web_prefix=DEFAULT_WEB_PREFIX, converters=None):
        self.source_root = source_root
        self.web_prefix = web_prefix
        self.converters = converters if converters is not None else default_converters()
        self.logger = logging.getLogger('SimpleSsg.Converter')

    def process(self, page):
        """
        Convert a single page.

        Returns:
            (converted page, None) on success, (None, PageFailure) otherwise
        """
        converter = self.converters.get(page.kind)
        if converter is None:
            reason = f"no converter registered for {page.kind.value}"
            self.logger.error(f"Error processing {page.source_path}: {reason}")
            return None, PageFailure(page.source_path, 'convert', reason)

        try:
            fragment = converter.convert(page.text)
        except ConversionError as e:
            self.logger.error(f"Failed to convert {page.source_path}: {e}")
            return None, PageFailure(page.source_path, 'convert', str(e))
        except Exception as e:
            self.logger.error(f"Error processing {page.source_path}: {e}")
            return None, PageFailure(page.source_path, 'convert', f"unexpected error: {e}")

        fragment = rewrite_links(fragment, page.directory, self.web_prefix, self.source_root)
        self.logger.debug(f"Converted {page.source_path} ({page.kind.value})")
        return page.with_fragment(fragment), None
