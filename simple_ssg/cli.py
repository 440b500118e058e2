#!/usr/bin/env python3
"""
Command-line interface for simple-ssg - Markdown and Djot static site generator.
"""

import sys
import argparse
from typing import List, Optional

from . import __version__
from .core import SiteGenerator
from .errors import CleanError, ConfigError
from .models import SiteConfig
from .settings import SsgSettings
from .templating import BuiltInTemplate


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog='simple-ssg',
        description='simple-ssg - Markdown and Djot static site generator'
    )
    parser.add_argument('directory', nargs='?',
                        help='Path to the directory to use to generate the site (not required if -f is specified)')
    parser.add_argument('-f', dest='file',
                        help='Process a single file instead of a directory')
    parser.add_argument('-o', dest='output',
                        help='Output path override. Defaults to ./output for directories')
    parser.add_argument('--clean', action='store_true',
                        help='Clean the output directory before generating the site')
    parser.add_argument('--web-prefix', dest='web_prefix',
                        help='Website prefix for generated links (defaults to local paths i.e. ./)')
    parser.add_argument('-t', '--template', choices=BuiltInTemplate.choices(),
                        help='Built-in template to use (overrides template.html in every directory)')
    parser.add_argument('--init', choices=['yml', 'yaml', 'json'],
                        help='Create a sample configuration file')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')
    return parser


def report_failures(result) -> None:
    """Print the pages that were skipped during the run."""
    if not result.failures:
        return
    print(f"Skipped {len(result.failed_paths())} page(s):", file=sys.stderr)
    for failure in sorted(result.failures, key=lambda f: (f.path, f.stage)):
        print(f"  {failure}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point. Returns the process exit status."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Handle init command
    if args.init:
        try:
            config_path = SsgSettings().create_sample_config(args.init)
        except ConfigError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1
        print(f"Created sample configuration file: {config_path}")
        return 0

    if args.directory and args.file:
        parser.error(f"Cannot specify both a directory and a file! (Specified {args.directory} and -f {args.file})")
    if not args.directory and not args.file:
        parser.error("Must specify either a directory <DIRECTORY> or a file with -f <FILE>")
    if args.file and args.clean:
        parser.error("--clean cannot be used together with -f")

    try:
        # Load settings from configuration file
        settings_loader = SsgSettings()
        settings_loader.load_settings()

        # Command line arguments take precedence
        args_dict = {
            'output': args.output,
            'clean': args.clean,
            'web_prefix': args.web_prefix,
            'template': args.template,
        }
        final_settings = settings_loader.merge_with_args(args_dict)

        single_file = args.file is not None
        if single_file and final_settings.get('clean'):
            # A configured clean never applies to single-file runs
            final_settings['clean'] = False
        config = SiteConfig.from_settings(
            args.file if single_file else args.directory,
            final_settings,
            single_file=single_file,
        )
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        result = SiteGenerator(config).build()
    except CleanError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    report_failures(result)
    if not result.has_output:
        print("Error: no output was generated", file=sys.stderr)
    return result.exit_code


if __name__ == '__main__':
    sys.exit(main())
