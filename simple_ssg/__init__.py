"""
simple-ssg - A static site generator for Markdown and Djot.

simple-ssg turns a directory of Markdown and Djot documents into a static
HTML website. Every directory can carry its own template.html, and every page
can embed a table of contents of the whole site.
"""

__version__ = "1.0.0"

from .core import SiteGenerator, generate_site
from .models import GenerationResult, SiteConfig

__all__ = ['SiteGenerator', 'generate_site', 'GenerationResult', 'SiteConfig']
