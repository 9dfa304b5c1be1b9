"""Command-line interface for the SMS transaction parser."""

import json
import os
import sys
import click
from typing import Optional, Dict, Any
import logging

from .exceptions import StoreError
from .models.core import InboundMessage
from .parsers.sms_parser import SMSParser
from .utils.config_manager import ConfigManager
from .utils.error_handler import ErrorCategory, ErrorHandler, handle_file_access_error
from .utils.importer import TransactionImporter, ImportResult
from .utils.processing_tracker import ProcessingTracker
from .utils.transaction_store import CSVTransactionStore
from .utils.validation import ValidationEngine


logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


class SMSLedgerCLI:
    """Wires configuration, parser and storage together for the commands"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_manager = ConfigManager(config_path)
        self.config = self.config_manager.load_config()
        self.parser = SMSParser(self.config)
        self._error_handler: Optional[ErrorHandler] = None
        self.tracker: Optional[ProcessingTracker] = None

    @property
    def error_handler(self) -> ErrorHandler:
        if self._error_handler is None:
            self._error_handler = ErrorHandler(self.config.log_directory)
        return self._error_handler

    def import_file(self, input_file: str, owner_id: str,
                    output_dir: Optional[str] = None,
                    fuzzy: bool = False) -> ImportResult:
        """Parse a stored message export and save the results for an owner"""
        store = CSVTransactionStore(output_dir or self.config.data_directory)
        self.tracker = ProcessingTracker(self.config.log_directory, error_handler=self.error_handler)
        importer = TransactionImporter(
            self.parser, store, self.error_handler, self.tracker, use_fuzzy_matching=fuzzy
        )
        result = importer.import_file(owner_id, input_file)

        output_path = store.path_for(owner_id)
        if os.path.exists(output_path):
            for problem in ValidationEngine().validate_csv_output(output_path):
                self.error_handler.log_warning(
                    problem, "INVALID_OUTPUT_FILE", ErrorCategory.DATA_VALIDATION, source=output_path
                )
        return result

    def describe_config(self) -> Dict[str, Any]:
        """Effective tables, in the order they are consulted"""
        return {
            'data_directory': self.config.data_directory,
            'log_directory': self.config.log_directory,
            'high_value_threshold': str(self.parser.categorizer.high_value_threshold),
            'institutions': [
                institution.value for institution, _ in self.parser.identifier.identifiers
            ],
            'pattern_sets': self.parser.extractor.search_order(),
            'categories': [name for name, _ in self.parser.categorizer.groups],
            'spam_keywords': len(self.parser.spam_filter.keywords),
        }


@click.group()
@click.option('--config', '-c', help='Path to configuration file')
@click.option('--verbose', '-v', is_flag=True, help='Enable verbose logging')
@click.pass_context
def cli(ctx, config, verbose):
    """SMS Ledger - Extract transactions from bank and UPI alert messages"""

    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)

    ctx.ensure_object(dict)
    ctx.obj['cli'] = SMSLedgerCLI(config)


@cli.command()
@click.argument('body')
@click.option('--sender', '-s', required=True, help='Sender address or short code')
@click.option('--received-at', type=click.DateTime(), default=None,
              help='Time the message was received')
@click.pass_context
def parse(ctx, body, sender, received_at):
    """Parse a single message and print the transaction as JSON"""

    cli_instance = ctx.obj['cli']
    outcome = cli_instance.parser.parse_message(
        InboundMessage(body=body, sender=sender, received_at=received_at)
    )

    if outcome.parsed:
        click.echo(json.dumps(outcome.transaction.to_dict(), indent=2, ensure_ascii=False))
    else:
        click.echo(f"✗ No transaction ({outcome.status.value}): {outcome.reason}")


@cli.command()
@click.argument('input_file')
@click.option('--owner', '-o', required=True, help='Owner id the transactions belong to')
@click.option('--output-dir', '-d', help='Directory for stored transactions (default: data_directory)')
@click.option('--report', '-r', help='Save batch report to specified file')
@click.option('--fuzzy', is_flag=True,
              help='Also treat bank and app alerts for the same payment as duplicates')
@click.pass_context
def batch(ctx, input_file, owner, output_dir, report, fuzzy):
    """Parse a stored message export (CSV or JSON) and store the transactions"""

    cli_instance = ctx.obj['cli']

    if not os.path.isfile(input_file):
        handle_file_access_error(cli_instance.error_handler, input_file, FileNotFoundError(input_file))
        click.echo(f"✗ Input file not found: {input_file}")
        sys.exit(1)

    click.echo(f"Parsing messages from {input_file}...")

    try:
        result = cli_instance.import_file(input_file, owner, output_dir, fuzzy=fuzzy)
    except StoreError as e:
        click.echo(f"✗ Error storing transactions: {e}")
        sys.exit(1)

    click.echo("✓ Batch parse completed")
    for key, value in result.counts().items():
        click.echo(f"  {key.capitalize()}: {value}")

    if report and result.summary is not None:
        report_file = cli_instance.tracker.save_batch_report(result.summary, report)
        click.echo(f"  Report saved: {report_file}")

    if cli_instance.error_handler.has_errors():
        error_report = cli_instance.error_handler.generate_error_report()
        click.echo(f"  Errors: {len(cli_instance.error_handler.errors)} (details in {error_report})")


@cli.command()
@click.argument('output_path', default='sms_ledger.json')
@click.option('--format', type=click.Choice(['json', 'yaml']), default='json', help='Configuration file format')
@click.pass_context
def init_config(ctx, output_path, format):
    """Generate configuration template file"""

    cli_instance = ctx.obj['cli']

    if format == 'yaml' and not output_path.endswith(('.yml', '.yaml')):
        output_path = os.path.splitext(output_path)[0] + '.yml'
    elif format == 'json' and not output_path.endswith('.json'):
        output_path = os.path.splitext(output_path)[0] + '.json'

    try:
        cli_instance.config_manager.save_config_template(output_path)
    except OSError as e:
        click.echo(f"✗ Error generating config template: {e}")
        sys.exit(1)

    click.echo(f"✓ Configuration template generated: {output_path}")
    click.echo("  Edit the file to customize keywords, identifiers and patterns")


@cli.command()
@click.pass_context
def show_config(ctx):
    """Show the effective configuration tables"""

    info = ctx.obj['cli'].describe_config()

    click.echo("SMS Ledger Configuration")
    click.echo("=" * 40)
    click.echo(f"Data directory: {info['data_directory']}")
    click.echo(f"Log directory: {info['log_directory']}")
    click.echo(f"High-value threshold: {info['high_value_threshold']}")
    click.echo(f"Spam keywords: {info['spam_keywords']}")
    click.echo()
    click.echo(f"Institution order: {', '.join(info['institutions'])}")
    click.echo(f"Pattern sets: {', '.join(info['pattern_sets'])}")
    click.echo()
    click.echo("Category groups:")
    for index, name in enumerate(info['categories'], start=1):
        click.echo(f"  {index}. {name}")


def main():
    cli(obj={})


if __name__ == '__main__':
    main()
