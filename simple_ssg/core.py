import os
import logging
import time
import threading
from datetime import datetime
from concurrent.futures import ProcessPoolExecutor, as_completed

from .converter import PageConverter
from .discovery import discover_site
from .macros import Macro, expand_macros, find_macros
from .models import GenerationResult, PageFailure
from .templating import TemplateResolver
from .toc import build_table_of_contents, render_table_of_contents
from .writer import OutputWriter

# Based on performance testing, multiprocessing becomes beneficial around 12 files
PARALLEL_THRESHOLD = 12

# Per-process storage for PageConverter instances
thread_local = threading.local()


def initializer(source_root, web_prefix):
    """Initialize a PageConverter in thread-local storage for each worker process."""
    thread_local.page_converter = PageConverter(source_root, web_prefix)


def process_page(page):
    """Convert one page inside a worker process."""
    return thread_local.page_converter.process(page)


class InfoFilter(logging.Filter):
    """Filter to allow only selected INFO messages to be shown in the console."""
    def filter(self, record):
        if record.levelno >= logging.WARNING:
            return True
        allowed_messages = [
            "1/3: Site generation and indexing",
            "2/3: Generating additional site content",
            "3/3: Done!",
            "Site build completed in",
            "Total pages generated:",
            "Total assets copied:",
            "Total pages skipped:",
        ]
        return any(msg in record.getMessage() for msg in allowed_messages)


class SiteGenerator:
    def __init__(self, config, converters=None):
        self.config = config
        self.converters = converters
        self.setup_logging()
        self.writer = OutputWriter(config.output, source_root=config.source_root)

    def setup_logging(self):
        """Set up logging configuration."""
        self.logger = logging.getLogger('SimpleSsg')

        if not any(isinstance(h, logging.StreamHandler) and not isinstance(h, logging.FileHandler)
                   for h in self.logger.handlers):
            if self.logger.level == logging.NOTSET:
                self.logger.setLevel(logging.INFO)

            # Console handler with filter
            console_handler = logging.StreamHandler()
            console_handler.setLevel(logging.INFO)
            console_handler.addFilter(InfoFilter())
            console_formatter = logging.Formatter('%(message)s')
            console_handler.setFormatter(console_formatter)
            self.logger.addHandler(console_handler)

        # File handler for all logs, one per log directory
        if self.config.log_dir:
            self.logger.setLevel(logging.DEBUG)
            log_dir = os.path.abspath(self.config.log_dir)
            if not any(isinstance(h, logging.FileHandler) and os.path.dirname(h.baseFilename) == log_dir
                       for h in self.logger.handlers):
                os.makedirs(log_dir, exist_ok=True)
                log_filename = datetime.now().strftime('simple-ssg_%Y-%m-%d_%H-%M-%S.log')
                log_filepath = os.path.join(log_dir, log_filename)

                file_handler = logging.FileHandler(log_filepath)
                file_handler.setLevel(logging.DEBUG)
                file_formatter = logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s')
                file_handler.setFormatter(file_formatter)
                self.logger.addHandler(file_handler)

    def convert_pages(self, pages, source_root):
        """
        Convert every page, using worker processes for large workloads.

        Returns:
            (converted pages, failures), both ordered by source path
        """
        if not pages:
            self.logger.warning("No markup files found to process.")
            return [], []

        total_files = len(pages)
        if total_files >= PARALLEL_THRESHOLD and self.converters is None:
            self.logger.info(f"Using multiprocessing for {total_files} files with {os.cpu_count()} workers")
            results = self._convert_with_multiprocessing(pages, source_root)
        else:
            self.logger.info(f"Using single-threaded processing for {total_files} files")
            results = self._convert_single_threaded(pages, source_root)

        converted = []
        failures = []
        for source_path in sorted(results):
            page, failure = results[source_path]
            if failure:
                failures.append(failure)
            else:
                converted.append(page)
        return converted, failures

    def _convert_single_threaded(self, pages, source_root):
        processor = PageConverter(source_root, self.config.web_prefix, self.converters)
        return {page.source_path: processor.process(page) for page in pages}

    def _convert_with_multiprocessing(self, pages, source_root):
        results = {}
        with ProcessPoolExecutor(
            max_workers=os.cpu_count(),
            initializer=initializer,
            initargs=(source_root, self.config.web_prefix)
        ) as executor:
            futures = {executor.submit(process_page, page): page for page in pages}
            for future in as_completed(futures):
                page = futures[future]
                try:
                    results[page.source_path] = future.result()
                except Exception as e:
                    self.logger.error(f"Error converting {page.source_path}: {e}")
                    results[page.source_path] = (None, PageFailure(page.source_path, 'convert', str(e)))
        return results

    def render_pages(self, pages, resolver, table_of_contents):
        """Expand each page's template. Returns a mapping of output path to HTML."""
        rendered = {}
        for page in pages:
            template = resolver.resolve(page.directory)
            if Macro.CONTENT not in find_macros(template):
                self.logger.debug(f"Template for {page.source_path} has no {Macro.CONTENT.token} macro")
            rendered[page.output_path] = expand_macros(template, {
                Macro.CONTENT: page.fragment,
                Macro.TABLE_OF_CONTENTS: table_of_contents,
            })
            self.logger.debug(f"{page.output_path} :: {page.source_path}")
        return rendered

    def build(self):
        """
        Main build process.

        Returns:
            GenerationResult describing written files and skipped pages

        Raises:
            CleanError: the output directory could not be cleaned
        """
        start_time = time.time()
        result = GenerationResult()

        # Nothing may be written until the clean step has finished
        if self.config.clean:
            self.writer.clean()

        self.logger.info("1/3: Site generation and indexing...")
        inventory = discover_site(self.config.target, output_root=self.config.output)
        result.failures.extend(inventory.failures)

        converted, failures = self.convert_pages(inventory.pages, inventory.source_root)
        result.failures.extend(failures)

        self.logger.info("2/3: Generating additional site content (if necessary) and saving...")
        # Every page must be converted (or failed) before the table of contents exists
        pages = tuple(converted)
        table_of_contents = render_table_of_contents(
            build_table_of_contents(pages, self.config.web_prefix)
        )
        resolver = TemplateResolver(inventory.template_contents(), builtin=self.config.template)
        rendered = self.render_pages(pages, resolver, table_of_contents)
        self.writer.write_all(rendered, inventory.assets, result)

        self.logger.info("3/3: Done!")
        total_time = time.time() - start_time
        self.logger.info(f"Site build completed in {total_time:.6f} seconds.")
        self.logger.info(f"Total pages generated: {result.pages_generated}")
        self.logger.info(f"Total assets copied: {result.assets_copied}")
        if result.failures:
            self.logger.info(f"Total pages skipped: {len(result.failed_paths())}")
        return result


def generate_site(config, converters=None):
    """Run the whole pipeline for ``config`` and return the GenerationResult."""
    return SiteGenerator(config, converters=converters).build()
