"""
Materialization of the generated site.

The writer owns the output root for the duration of a run. Cleaning happens
before the first write; a failed clean aborts the run, while individual write
failures are recorded and the remaining files are still written.
"""

import logging
import os
import shutil

from .errors import CleanError
from .models import GenerationResult, PageFailure
from .paths import is_within


class OutputWriter:
    def __init__(self, output_root, source_root=None):
        self.output_root = output_root
        self.source_root = source_root
        self.logger = logging.getLogger('SimpleSsg.Writer')

    def clean(self):
        """
        Remove the output root and everything below it.

        Raises:
            CleanError: the output root cannot be removed, or removing it would
                delete the source tree
        """
        if not os.path.lexists(self.output_root):
            self.logger.debug(f"Nothing to clean at {self.output_root}")
            return

        if self.source_root is not None and is_within(self.source_root, self.output_root):
            raise CleanError(
                f"Refusing to clean {self.output_root}: it contains the source directory {self.source_root}"
            )

        self.logger.debug(f"Clean argument specified, cleaning output path {self.output_root}...")
        try:
            if os.path.isdir(self.output_root) and not os.path.islink(self.output_root):
                shutil.rmtree(self.output_root)
            else:
                os.remove(self.output_root)
        except (IOError, OSError, PermissionError) as e:
            raise CleanError(f"Failed to clean output directory {self.output_root}: {e}")
        self.logger.debug("Clean successful!")

    def _destination(self, relative_path):
        destination = os.path.join(self.output_root, *relative_path.split('/'))
        os.makedirs(os.path.dirname(destination), exist_ok=True)
        return destination

    def write_page(self, relative_path, html):
        """Write one HTML page. Returns a PageFailure instead of raising on I/O errors."""
        try:
            destination = self._destination(relative_path)
            with open(destination, 'w', encoding='utf-8') as output_file:
                output_file.write(html)
            self.logger.debug(f"Generated HTML: {destination}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to write HTML file {relative_path}: {e}")
            return PageFailure(relative_path, 'write', str(e))
        return None

    def copy_asset(self, asset):
        """Copy an asset verbatim. Returns a PageFailure instead of raising on I/O errors."""
        try:
            destination = self._destination(asset.source_path)
            shutil.copy2(asset.absolute_path, destination)
            self.logger.debug(f"Copied asset: {asset.absolute_path} -> {destination}")
        except (IOError, OSError, PermissionError) as e:
            self.logger.error(f"Failed to copy asset {asset.source_path}: {e}")
            return PageFailure(asset.source_path, 'write', str(e))
        return None

    def write_all(self, pages, assets, result=None):
        """
        Write every rendered page and copy every asset.

        Args:
            pages: Mapping of output-relative path to final HTML
            assets: Iterable of Asset records
            result: GenerationResult to update (a new one is created if omitted)

        Returns:
            The updated GenerationResult
        """
        if result is None:
            result = GenerationResult()
        for asset in sorted(assets, key=lambda a: a.source_path):
            failure = self.copy_asset(asset)
            if failure:
                result.failures.append(failure)
            else:
                result.written.add(asset.source_path)
                result.assets_copied += 1

        # Pages are written last: a page replaces an asset with the same output path.
        for relative_path in sorted(pages):
            failure = self.write_page(relative_path, pages[relative_path])
            if failure:
                result.failures.append(failure)
            else:
                result.written.add(relative_path)
                result.pages_generated += 1

        return result
