"""
Template selection for generated pages.

Each directory of the source tree may hold a ``template.html``. A page is
rendered with the template of the nearest directory on the way from the
page's own directory up to the site root. When a built-in template is
selected it replaces every directory template for the whole run.
"""

import logging
import posixpath
from enum import Enum
from typing import Mapping, Optional

from jinja2 import Environment, PackageLoader, TemplateNotFound, select_autoescape

from .errors import ConfigError

TEMPLATE_FILENAME = 'template.html'

DEFAULT_TEMPLATE = """<!DOCTYPE html>
<html>
<body>
<!-- {CONTENT} -->
</body>
</html>
"""

_environment = None


def get_environment() -> Environment:
    """Return the Jinja2 environment for templates shipped with the package."""
    global _environment
    if _environment is None:
        _environment = Environment(
            loader=PackageLoader('simple_ssg', 'templates'),
            autoescape=select_autoescape(['html']),
            keep_trailing_newline=True,
        )
    return _environment


class BuiltInTemplate(Enum):
    MINIMAL = 'minimal'
    LIGHT = 'light'
    DARK = 'dark'

    @classmethod
    def choices(cls):
        return [member.value for member in cls]

    @classmethod
    def from_setting(cls, value) -> Optional['BuiltInTemplate']:
        """Map a config/CLI value to a built-in template; None and 'none' defer to directories."""
        if value is None or isinstance(value, cls):
            return value
        name = str(value).strip().lower()
        if name in ('', 'none'):
            return None
        try:
            return cls(name)
        except ValueError:
            raise ConfigError(
                f"Unknown built-in template '{value}'. Choose one of: {', '.join(cls.choices())}"
            )

    def get_template(self) -> str:
        """Render the built-in template to HTML containing the page macros."""
        template_name = f'builtin/{self.value}.html'
        try:
            return get_environment().get_template(template_name).render()
        except TemplateNotFound:
            raise ConfigError(f"Built-in template {template_name} is missing from the installation")


class TemplateResolver:
    """Pick the template content that governs a page's directory."""

    def __init__(self, templates: Mapping[str, str], builtin: Optional[BuiltInTemplate] = None,
                 default: str = DEFAULT_TEMPLATE):
        self.templates = dict(templates)
        self.builtin = builtin
        self.default = default
        self.logger = logging.getLogger('SimpleSsg.Templates')
        self._builtin_content = builtin.get_template() if builtin else None

    def resolve(self, directory: str) -> str:
        """
        Return the template content for pages in ``directory``.

        Args:
            directory: Page directory relative to the site root ('' for the root)

        Returns:
            Template HTML; never fails, the default template is the floor
        """
        if self._builtin_content is not None:
            return self._builtin_content

        owner = self.find_owner(directory)
        if owner is None:
            return self.default
        return self.templates[owner]

    def find_owner(self, directory: str) -> Optional[str]:
        """Return the nearest directory (inclusive) holding a template, or None."""
        current = posixpath.normpath(directory) if directory else ''
        if current == '.':
            current = ''
        while True:
            if current in self.templates:
                self.logger.debug(f"Template for '{directory}' comes from '{current or '.'}'")
                return current
            if not current:
                return None
            current = posixpath.dirname(current)
