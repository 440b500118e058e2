"""
In-memory records shared by the generation pipeline.

Nothing here outlives a single run: the generator builds these while walking
the source tree and drops them once the output has been written.
"""

import os
import posixpath
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Tuple

from .errors import ConfigError
from .templating import BuiltInTemplate

DEFAULT_WEB_PREFIX = './'
DEFAULT_OUTPUT_DIRNAME = 'output'


class MarkupKind(Enum):
    MARKDOWN = 'markdown'
    DJOT = 'djot'

    @classmethod
    def from_filename(cls, filename: str) -> Optional['MarkupKind']:
        """Return the markup kind for a file name, or None for assets."""
        ext = os.path.splitext(filename)[1].lower()
        return MARKUP_EXTENSIONS.get(ext)


MARKUP_EXTENSIONS = {
    '.md': MarkupKind.MARKDOWN,
    '.dj': MarkupKind.DJOT,
    '.djot': MarkupKind.DJOT,
}


@dataclass(frozen=True)
class Page:
    """A markup document, keyed by its path relative to the site root."""

    source_path: str
    kind: MarkupKind
    text: str
    title: str
    fragment: Optional[str] = None

    @property
    def output_path(self) -> str:
        return posixpath.splitext(self.source_path)[0] + '.html'

    @property
    def directory(self) -> str:
        return posixpath.dirname(self.source_path)

    @property
    def is_converted(self) -> bool:
        return self.fragment is not None

    def with_fragment(self, fragment: str) -> 'Page':
        return replace(self, fragment=fragment)


@dataclass(frozen=True)
class Template:
    directory: str
    content: str


@dataclass(frozen=True)
class Asset:
    """A non-markup file copied verbatim into the output tree."""

    source_path: str
    absolute_path: str


@dataclass(frozen=True)
class PageFailure:
    path: str
    stage: str
    reason: str

    def __str__(self) -> str:
        return f"{self.path} ({self.stage}): {self.reason}"


@dataclass
class SiteInventory:
    """Everything traversal found under the source root."""

    source_root: str
    pages: List[Page] = field(default_factory=list)
    templates: Dict[str, Template] = field(default_factory=dict)
    assets: List[Asset] = field(default_factory=list)
    failures: List[PageFailure] = field(default_factory=list)

    def template_contents(self) -> Dict[str, str]:
        return {directory: template.content for directory, template in self.templates.items()}


@dataclass
class TocNode:
    """One entry of the table of contents.

    Directory nodes have no href and carry their pages and subdirectories in
    ``children``; page nodes are leaves.
    """

    name: str
    title: str
    href: Optional[str] = None
    children: List['TocNode'] = field(default_factory=list)

    @property
    def is_page(self) -> bool:
        return self.href is not None

    def iter_pages(self):
        for child in self.children:
            if child.is_page:
                yield child
            else:
                yield from child.iter_pages()


@dataclass(frozen=True)
class SiteConfig:
    """Settings for one generation run."""

    target: str
    output: str
    single_file: bool = False
    clean: bool = False
    web_prefix: str = DEFAULT_WEB_PREFIX
    template: Optional[BuiltInTemplate] = None
    log_dir: Optional[str] = None

    def __post_init__(self):
        if self.single_file and self.clean:
            raise ConfigError("Cannot clean the output directory when processing a single file.")

    @property
    def source_root(self) -> str:
        if self.single_file:
            return os.path.dirname(os.path.abspath(self.target))
        return os.path.abspath(self.target)

    @classmethod
    def from_settings(cls, target: str, settings: Dict[str, Any], single_file: bool = False) -> 'SiteConfig':
        """
        Build a run configuration from merged settings.

        Args:
            target: Directory to generate, or a single markup file
            settings: Settings dictionary (config file merged with arguments)
            single_file: Whether target names a single file

        Returns:
            Immutable SiteConfig
        """
        if single_file:
            if os.path.isdir(target):
                raise ConfigError(
                    f"Path {target} is a directory. Specify <DIRECTORY> without -f if this was intended."
                )
            if not os.path.isfile(target):
                raise ConfigError(f"File {target} does not exist.")
        else:
            if os.path.isfile(target):
                raise ConfigError(f"Path {target} is a file. Specify -f <FILE> if this was intended.")
            if not os.path.isdir(target):
                raise ConfigError(f"Directory {target} does not exist.")

        output = settings.get('output')
        if not output:
            output = os.getcwd() if single_file else os.path.join(os.getcwd(), DEFAULT_OUTPUT_DIRNAME)
        output = os.path.expanduser(output)

        clean = settings.get('clean')
        if clean is None:
            clean = False
        if not isinstance(clean, bool):
            raise ConfigError(f"Setting 'clean' must be true or false, got {clean!r}")

        web_prefix = settings.get('web_prefix')
        if web_prefix is None:
            web_prefix = DEFAULT_WEB_PREFIX

        return cls(
            target=target,
            output=output,
            single_file=single_file,
            clean=clean,
            web_prefix=str(web_prefix),
            template=BuiltInTemplate.from_setting(settings.get('template')),
            log_dir=settings.get('logs'),
        )


@dataclass
class GenerationResult:
    """Outcome of a run: what was written and what was skipped."""

    written: Set[str] = field(default_factory=set)
    failures: List[PageFailure] = field(default_factory=list)
    pages_generated: int = 0
    assets_copied: int = 0

    @property
    def has_output(self) -> bool:
        return bool(self.written)

    @property
    def exit_code(self) -> int:
        return 0 if self.has_output else 1

    def failed_paths(self) -> Tuple[str, ...]:
        return tuple(sorted({failure.path for failure in self.failures}))
