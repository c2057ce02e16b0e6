"""
cli.py
======
Command line entry point for markup reduction and locator analysis.

Subcommands:
    reduce      Write the reduced markup for a page and a failing locator
    candidates  Show the parsed locator hints and the ranked candidates
    analyze     Ask a model for replacement locators
    find        Ask a model for selectors of an element known only by a description
"""

import argparse
import os
import sys
from pathlib import Path

import logfire
from dotenv import load_dotenv
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich.theme import Theme

from domsift.analyzer import (
    LocatorAnalyzer,
    format_analysis,
    format_selectors,
    validate_find_request,
    validate_request,
)
from domsift.config import ProcessingConfig
from domsift.document import MarkupDocument
from domsift.exceptions import ConfigurationError
from domsift.llm_config import PROVIDER_DEFAULTS, config_from_env
from domsift.pipeline import ReductionPipeline
from domsift.utils.logging import LOG_LEVELS, setup_local_logging

CONSOLE_THEME = Theme(
    {
        'info': 'dim cyan',
        'warning': 'magenta',
        'danger': 'bold red',
        'success': 'bold green',
        'step': 'bold blue',
    }
)


def build_parser() -> argparse.ArgumentParser:
    """Argument parser for the domsift command."""
    parser = argparse.ArgumentParser(
        prog='domsift',
        description='Reduce large pages to the context around a failing locator and suggest repairs',
    )
    parser.add_argument('--log-file', action='store_true', help='Also write library logs to .domsift/logs/')
    parser.add_argument(
        '--log-level',
        type=str.lower,
        choices=LOG_LEVELS,
        default='info',
        help='Lowest level written by --log-file (default: info)',
    )

    subparsers = parser.add_subparsers(dest='command', required=True)

    def add_page_arguments(sub: argparse.ArgumentParser, locator: bool = True) -> None:
        sub.add_argument('html_file', help="Path to the saved page markup, or '-' for stdin")
        if locator:
            sub.add_argument('-l', '--locator', required=True, help='The failing XPath or CSS locator')
        sub.add_argument('--url', default='', help='Page URL (context only)')

    def add_model_arguments(sub: argparse.ArgumentParser) -> None:
        sub.add_argument(
            '--provider',
            choices=sorted(PROVIDER_DEFAULTS),
            help='LLM provider (default: first one with an API key in the environment)',
        )
        sub.add_argument('--model', help='Model name (default: the provider default)')
        sub.add_argument('--attempts', type=int, default=2, help='Model call attempts (default: 2)')

    reduce_parser = subparsers.add_parser('reduce', help='Write the reduced markup')
    add_page_arguments(reduce_parser)
    reduce_parser.add_argument('-o', '--output', help='Write the markup to this file instead of stdout')

    candidates_parser = subparsers.add_parser('candidates', help='Show locator hints and ranked candidates')
    add_page_arguments(candidates_parser)

    analyze_parser = subparsers.add_parser('analyze', help='Ask a model for replacement locators')
    add_page_arguments(analyze_parser)
    analyze_parser.add_argument('--description', default='', help='What the locator was meant to find')
    add_model_arguments(analyze_parser)

    find_parser = subparsers.add_parser('find', help='Ask a model for selectors of a described element')
    add_page_arguments(find_parser, locator=False)
    find_parser.add_argument(
        '-d', '--description', required=True, help="What to find, e.g. 'search box' or 'login button'"
    )
    add_model_arguments(find_parser)

    return parser


def read_markup(path: str) -> str:
    """Read page markup from a file, or from stdin for '-'."""
    if path == '-':
        return sys.stdin.read()
    return Path(path).read_text(encoding='utf-8', errors='replace')


def configure_logfire(console: Console, console_options: logfire.ConsoleOptions | None = None) -> None:
    """Send spans to Logfire when LOGFIRE_TOKEN is set, otherwise keep them local.

    Args:
        console: Rich console for the setup message
        console_options: Where logfire writes locally, e.g. a run log file. Without a token
            nothing is written locally when omitted.

    """
    logfire_token = os.getenv('LOGFIRE_TOKEN')
    if logfire_token:
        if console_options is not None:
            logfire.configure(token=logfire_token, service_name='domsift', console=console_options)
        else:
            logfire.configure(token=logfire_token, service_name='domsift')
        console.print('[info]Logfire setup complete[/info]')
    else:
        logfire.configure(send_to_logfire=False, console=console_options or False)


def run_reduce(args: argparse.Namespace, html: str, config: ProcessingConfig, console: Console) -> int:
    pipeline = ReductionPipeline(config, console=console)
    result = pipeline.process(html, args.locator, args.url)

    if args.output:
        Path(args.output).write_text(result.html, encoding='utf-8')
        console.print(f'[success]Wrote {result.final_size:,} bytes to {args.output}[/success]')
    else:
        sys.stdout.write(result.html + '\n')

    if result.error:
        console.print(f'[warning]Fallback used: {result.error}[/warning]')
    return 0


def run_candidates(args: argparse.Namespace, html: str, config: ProcessingConfig, console: Console) -> int:
    pipeline = ReductionPipeline(config)
    hints = pipeline.extractor.parse(args.locator)

    hints_table = Table(title='Locator Hints', show_header=False)
    hints_table.add_column('Field', style='cyan')
    hints_table.add_column('Value')
    hints_table.add_row('Kind', hints.kind.value)
    hints_table.add_row('IDs', ', '.join(hints.ids) or '-')
    hints_table.add_row('Classes', ', '.join(hints.classes) or '-')
    hints_table.add_row('Tags', ', '.join(hints.tag_names) or '-')
    attributes = [name if value is None else f'{name}={value!r}' for name, value in hints.attributes.items()]
    hints_table.add_row('Attributes', ', '.join(attributes) or '-')
    hints_table.add_row('Text', hints.text or '-')
    console.print(hints_table)

    document = MarkupDocument.from_html(pipeline.cleaner.remove_noise(html))
    candidates = pipeline.finder.find_candidates(document, hints)

    if not candidates:
        console.print('[warning]No candidates found[/warning]')
        return 1

    table = Table(title='Ranked Candidates')
    table.add_column('#', justify='right')
    table.add_column('Element', style='cyan')
    table.add_column('Score', justify='right', style='green')
    table.add_column('Reason')
    for rank, candidate in enumerate(candidates, 1):
        table.add_row(str(rank), candidate.describe(), str(candidate.score), candidate.reason)
    console.print(table)
    return 0


def build_analyzer(args: argparse.Namespace, config: ProcessingConfig, console: Console) -> LocatorAnalyzer | None:
    """Analyzer for the provider and model named on the command line, None if no provider is usable."""
    try:
        llm_config = config_from_env(args.provider, args.model)
    except ValueError as e:
        console.print(f'[danger]Error: {e}[/danger]')
        return None

    console.print(f'[info]Using {llm_config.model_id}[/info]')
    return LocatorAnalyzer(
        llm_config=llm_config,
        pipeline=ReductionPipeline(config, console=console),
        console=console,
        max_attempts=args.attempts,
    )


def run_analyze(args: argparse.Namespace, html: str, config: ProcessingConfig, console: Console) -> int:
    analyzer = build_analyzer(args, config, console)
    if analyzer is None:
        return 1

    console.print(Panel(f'Analyzing: {escape(args.locator)}', style='bold blue'))
    result = analyzer.analyze(html, args.locator, page_url=args.url, element_description=args.description)

    if result is None:
        console.print('[danger]Analysis failed[/danger]')
        return 1

    console.print(Panel(escape(format_analysis(result)), title='Locator Analysis', border_style='green'))
    return 0


def run_find(args: argparse.Namespace, html: str, config: ProcessingConfig, console: Console) -> int:
    analyzer = build_analyzer(args, config, console)
    if analyzer is None:
        return 1

    console.print(Panel(f'Finding: {escape(args.description)}', style='bold blue'))
    result = analyzer.find_element(html, args.description, page_url=args.url)

    if result is None:
        console.print('[danger]Selector search failed[/danger]')
        return 1

    console.print(Panel(escape(format_selectors(result)), title='Selector Search', border_style='green'))
    return 0


COMMANDS = {
    'reduce': run_reduce,
    'candidates': run_candidates,
    'analyze': run_analyze,
    'find': run_find,
}


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    load_dotenv()

    args = build_parser().parse_args(argv)
    # Markup goes to stdout, so status lines go to stderr
    console = Console(theme=CONSOLE_THEME, stderr=True)

    if not args.log_file:
        configure_logfire(console)
        return run_command(args, console)

    log_path, console_options = setup_local_logging(args.log_level)
    configure_logfire(console, console_options)
    console.print(f'[info]Writing logs to {log_path}[/info]')
    try:
        return run_command(args, console)
    finally:
        logfire.force_flush()
        # Stop writing to the file before closing it
        logfire.configure(send_to_logfire=False, console=False)
        console_options.output.close()


def run_command(args: argparse.Namespace, console: Console) -> int:
    """Load configuration and markup, validate the request and dispatch the subcommand."""
    try:
        config = ProcessingConfig.from_env()
    except (ConfigurationError, ValueError) as e:
        console.print(f'[danger]Invalid configuration: {e}[/danger]')
        return 2

    try:
        html = read_markup(args.html_file)
    except OSError as e:
        console.print(f'[danger]Error: could not read {args.html_file}: {e}[/danger]')
        return 1

    if args.command == 'find':
        errors = validate_find_request(html, args.description)
    else:
        errors = validate_request(html, args.locator)
    if errors:
        for error in errors:
            logfire.warn('Invalid request', error=error)
            console.print(f'[warning]{error}[/warning]')
        if args.command != 'reduce':
            return 1

    return COMMANDS[args.command](args, html, config, console)


if __name__ == '__main__':
    sys.exit(main())
