#!/usr/bin/env python3
"""
Ferry - Main Entry Point

Author: Ken Brill
Version: 1.0
Date: October 18, 2026
License: MIT License
"""

import sys
import argparse
import logging
import time
from pathlib import Path
from datetime import datetime
from rich.console import Console
from rich.table import Table
from rich.panel import Panel
from rich.text import Text
from rich.align import Align

from ferry_pkg.cli import SalesforceCLI
from ferry_pkg.config import DEFAULT_CONFIG_PATH, MigrationConfig, load_config
from ferry_pkg.exceptions import FerryError
from ferry_pkg.phase1 import apply_overrides
from ferry_pkg.session import MigrationSession
from ferry_pkg.utils import write_id_mapping_csv

console = Console()


def show_title_screen():
    """Display title screen with version info."""
    from ferry_pkg import __version__, __author__

    title = Text()
    title.append("⛴ ", style="yellow")
    title.append("Ferry", style="bold cyan")
    title.append(" ⛴", style="yellow")

    subtitle = Text("Salesforce Record Migration Tool", style="dim white")

    info = Text()
    info.append(f"Version {__version__}", style="green")
    info.append(" • ", style="dim")
    info.append(f"by {__author__}", style="dim")

    content = Text()
    content.append(title)
    content.append("\n")
    content.append(subtitle)
    content.append("\n\n")
    content.append(info)

    console.print()
    console.print(Panel(Align.center(content), border_style="cyan", padding=(1, 2)))
    console.print()


def setup_logging(script_dir):
    """Configure logging to a timestamped file under logs/ and the console."""
    log_dir = Path(script_dir) / 'logs'
    log_dir.mkdir(exist_ok=True)
    log_file = log_dir / f'migration_{datetime.now().strftime("%Y%m%d_%H%M%S")}.log'

    logging.basicConfig(
        level=logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s',
        handlers=[
            logging.FileHandler(log_file),
            logging.StreamHandler()
        ]
    )
    return log_file


def build_parser():
    from ferry_pkg import __version__

    parser = argparse.ArgumentParser(
        prog='ferry',
        description='Ferry - copy Salesforce records and their related records between orgs',
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument('-s', '--source-alias', help='Source org alias')
    parser.add_argument('-t', '--target-alias', action='append', dest='target_aliases',
                        help='Target org alias (repeat for several targets)')
    parser.add_argument('-o', '--object', dest='object_name', help='Object type of the selected records')
    parser.add_argument('--ids', help='Comma separated Ids of the records to migrate')
    parser.add_argument('--config', help=f'Path to config file (default: {DEFAULT_CONFIG_PATH})')
    parser.add_argument('--dry-run', action='store_true', help='Analyze and show the plan without inserting')
    parser.add_argument('--list-relationships', action='store_true',
                        help='List relationship fields of the object and exit')
    parser.add_argument('--version', action='version', version=f'Ferry {__version__}')
    return parser


def resolve_config(args) -> MigrationConfig:
    """Load the config file (if any) and apply command line overrides."""
    if args.config:
        config = load_config(args.config)
    elif DEFAULT_CONFIG_PATH.exists():
        config = load_config(DEFAULT_CONFIG_PATH)
    else:
        config = MigrationConfig()

    if args.source_alias:
        config.source_alias = args.source_alias
    if args.target_aliases:
        config.target_aliases = args.target_aliases
    if args.object_name:
        config.object_name = args.object_name
    if args.ids:
        config.record_ids = [rid.strip() for rid in args.ids.split(',') if rid.strip()]
    return config


def show_relationships(session, object_name):
    """Print relationship fields with default actions, child relationships and external Id fields."""
    defaults = {c.field_name: c for c in session.default_config_for(object_name)}

    table = Table(title=f"{object_name} relationships", header_style="bold cyan", border_style="cyan")
    table.add_column("Field", style="white")
    table.add_column("Label")
    table.add_column("References")
    table.add_column("Required", justify="center")
    table.add_column("Default", style="green")
    for rel in session.relationships_of(object_name):
        config = defaults.get(rel.field_name)
        table.add_row(
            rel.field_name,
            rel.field_label,
            ', '.join(rel.reference_to),
            "✓" if rel.is_required else "",
            config.action.value if config else "[dim]not createable[/dim]"
        )
    console.print(table)

    children = session.child_relationships(object_name)
    if children:
        child_table = Table(title="Child relationships", header_style="bold cyan", border_style="dim")
        child_table.add_column("Relationship")
        child_table.add_column("Child object")
        child_table.add_column("Field")
        for child in children:
            child_table.add_row(child.relationship_name, child.child_sobject, child.field)
        console.print(child_table)

    ext_fields = session.external_id_fields(object_name)
    if ext_fields:
        names = [f"{f.name}{' ⭐' if f.external_id else ''}" for f in ext_fields]
        console.print(f"[cyan]External Id / unique fields:[/cyan] {', '.join(names)}")


def show_plan(plan):
    table = Table(title="Migration plan", header_style="bold cyan", border_style="cyan")
    table.add_column("#", justify="right", style="dim")
    table.add_column("Object Type", style="white", width=30)
    table.add_column("Records", justify="right", style="green")
    for index, object_name in enumerate(plan.object_order, 1):
        table.add_row(str(index), object_name, str(plan.object_counts.get(object_name, 0)))
    table.add_section()
    table.add_row("", "[bold]TOTAL[/bold]", f"[bold]{plan.total_records}[/bold]")
    console.print(table)


def show_result(result):
    console.rule(f"[bold cyan]MIGRATION SUMMARY: {result.target}", style="cyan")
    table = Table(show_header=True, header_style="bold cyan", border_style="cyan")
    table.add_column("Object Type", style="white", width=30)
    table.add_column("Inserted", justify="right", style="green", width=10)
    table.add_column("Failed", justify="right", style="red", width=10)
    for object_result in result.results:
        name = object_result.object_name + (" [red](aborted)[/red]" if object_result.aborted else "")
        table.add_row(name, str(object_result.inserted), str(object_result.failed))
    table.add_section()
    table.add_row("[bold]TOTAL[/bold]", f"[bold]{result.total_inserted}[/bold]", f"[bold]{result.total_failed}[/bold]")
    console.print(table)

    for object_result in result.results:
        for error in object_result.errors[:3]:
            console.print(f"  [red]{object_result.object_name} {error}[/red]")
        if len(object_result.errors) > 3:
            console.print(f"  [dim]...and {len(object_result.errors) - 3} more errors[/dim]")
    if result.lookups_updated:
        console.print(f"[cyan]Lookups updated after insert:[/cyan] {result.lookups_updated}")
    if result.error:
        console.print(f"[bold red]✗ Aborted:[/bold red] [red]{result.error}[/red]")

    logging.info("=" * 80)
    logging.info(f"MIGRATION SUMMARY: {result.target}")
    for object_result in result.results:
        logging.info(f"  {object_result.object_name:<30} {object_result.inserted:>6} inserted {object_result.failed:>6} failed")
        for error in object_result.errors:
            logging.info(f"    {error}")
    logging.info(f"  {'TOTAL':<30} {result.total_inserted:>6} inserted {result.total_failed:>6} failed")
    logging.info("=" * 80)


def main(argv=None):
    """Main entry point for the Ferry migration tool"""
    args = build_parser().parse_args(argv)

    script_dir = Path.cwd()
    setup_logging(script_dir)
    start_time = time.time()

    try:
        config = resolve_config(args)
    except FerryError as e:
        console.print(f"\n[bold red]❌ Configuration Error[/bold red]\n[red]{e}[/red]\n")
        return 1

    show_title_screen()

    if not config.source_alias or not config.object_name:
        logging.error("Source org alias and object type must be provided")
        return 1

    sf_cli_source = SalesforceCLI(target_org=config.source_alias, api_version=config.api_version)
    session = MigrationSession(sf_cli_source)

    try:
        if args.list_relationships:
            show_relationships(session, config.object_name)
            return 0

        if not config.record_ids:
            logging.error("No record Ids to migrate (use --ids or 'record_ids' in the config file)")
            return 1
        if not config.target_aliases and not args.dry_run:
            logging.error("At least one target org alias must be provided")
            return 1

        console.rule("[bold cyan]PHASE 1: ANALYZING RELATIONSHIPS", style="cyan")
        console.print(f"[cyan]Source:[/cyan] [bold white]{config.source_alias}[/bold white]")
        console.print(f"[cyan]Object:[/cyan] [bold white]{config.object_name}[/bold white] "
                      f"({len(config.record_ids)} selected)")
        console.print()

        records = session.fetch_records(config.object_name, config.record_ids)
        relationship_config = apply_overrides(session.default_config_for(config.object_name),
                                              config.relationships)
        plan = session.analyze(config.object_name, records, relationship_config)
        show_plan(plan)

        if args.dry_run:
            console.print("[yellow]Dry run: nothing was inserted[/yellow]")
            return 0

        console.print()
        console.rule("[bold cyan]PHASE 2: INSERTING RECORDS", style="cyan")
        targets = [SalesforceCLI(target_org=alias, api_version=config.api_version)
                   for alias in config.target_aliases]
        results = session.execute(plan, targets, batch_size=config.batch_size,
                                  max_workers=config.max_workers)

        for result in results:
            console.print()
            show_result(result)
            if config.export_id_mapping and result.id_mapping:
                csv_path = write_id_mapping_csv(result, script_dir)
                console.print(f"[dim]📋 Id mapping: {csv_path}[/dim]")

        elapsed = int(time.time() - start_time)
        console.print(f"\n[cyan]⏱  Total execution time:[/cyan] [bold white]{elapsed // 60}m {elapsed % 60}s[/bold white]")
        return 0 if all(result.success for result in results) else 1

    except FerryError as e:
        logging.error(f"\nMigration Error: {e}")
        return 1
    except Exception as e:
        logging.error(f"\nUnexpected error: {e}")
        import traceback
        traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())
