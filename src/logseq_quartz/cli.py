"""CLI entry point for logseq-quartz."""

from pathlib import Path
from typing import Optional

import click
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table

from logseq_quartz.converter import Converter
from logseq_quartz.graph.resolver import LinkResolver
from logseq_quartz.models.config import ConverterConfig
from logseq_quartz.query.engine import QueryEngine
from logseq_quartz.services.exceptions import QuerySyntaxError
from logseq_quartz.utils.logging import configure_logging, get_logger

logger = get_logger(__name__)
console = Console()


def load_config(config_path: Optional[Path], **overrides) -> ConverterConfig:
    """
    Load configuration from an optional YAML file plus command-line overrides.

    Raises:
        click.ClickException: If the file is missing or validation fails
    """
    try:
        config = ConverterConfig.load(config_path, **overrides)
    except FileNotFoundError as e:
        logger.error("config_not_found", path=str(config_path))
        raise click.ClickException(str(e))
    except ValidationError as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(f"Configuration validation failed:\n{e}")
    except ValueError as e:
        logger.error("config_validation_error", error=str(e))
        raise click.ClickException(str(e))

    logger.info("config_loaded", input_dir=str(config.input_dir), output_dir=str(config.output_dir))
    return config


@click.group()
@click.version_option(version="0.1.0", prog_name="logseq-quartz")
@click.option("-v", "--verbose", is_flag=True, help="Write DEBUG entries to the log file")
@click.option(
    "--log-file",
    type=click.Path(dir_okay=False, path_type=Path),
    help="Log file (default: ~/.cache/logseq-quartz/logs/logseq-quartz.log)",
)
def cli(verbose: bool, log_file: Optional[Path]):
    """logseq-quartz: Convert a Logseq graph into Quartz-ready markdown."""
    configure_logging(log_file=log_file, level="DEBUG" if verbose else None)


@cli.command()
@click.option(
    "-i", "--input-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Logseq graph root (contains pages/ and journals/)",
)
@click.option(
    "-o", "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: quartz-content)",
)
@click.option(
    "-c", "--config",
    "config_path",
    type=click.Path(dir_okay=False, path_type=Path),
    help="YAML file with conversion settings",
)
@click.option("--include-private/--exclude-private", default=None, help="Publish pages marked private:: true")
@click.option("--stubs/--no-stubs", "create_stubs", default=None, help="Write pages for missing link targets")
@click.option("--git-dates/--no-git-dates", default=None, help="Add created/modified dates from git history")
@click.option("--table/--list", "query_table", default=None, help="Default rendering of query results")
@click.option("-j", "--workers", type=int, help="Worker threads")
def convert(
    input_dir: Optional[Path],
    output_dir: Optional[Path],
    config_path: Optional[Path],
    include_private: Optional[bool],
    create_stubs: Optional[bool],
    git_dates: Optional[bool],
    query_table: Optional[bool],
    workers: Optional[int],
):
    """
    Convert a Logseq graph to Quartz markdown.

    Examples:
        logseq-quartz convert -i ~/logseq -o quartz/content
        logseq-quartz convert -c publish.yaml --no-git-dates
    """
    if input_dir is None and config_path is None:
        raise click.UsageError("Provide --input-dir or a --config file with input_dir")

    config = load_config(
        config_path,
        input_dir=input_dir,
        output_dir=output_dir,
        include_private=include_private,
        create_stubs=create_stubs,
        git_dates=git_dates,
        query_table=query_table,
        workers=workers,
    )

    logger.info("convert_command_started", input_dir=str(config.input_dir))
    try:
        stats = Converter(config).run()
    except ValueError as e:
        logger.error("convert_failed", error=str(e))
        raise click.ClickException(str(e))

    table = Table(title="Conversion summary", show_header=False)
    table.add_column("Item", style="bold")
    table.add_column("Count", justify="right")
    table.add_row("Pages", str(stats.pages))
    table.add_row("Journals", str(stats.journals))
    table.add_row("Stub pages", str(stats.stubs))
    table.add_row("Private pages skipped", str(stats.skipped_private))
    table.add_row("Failed", str(len(stats.failed)), style="red" if stats.failed else None)
    console.print(table)
    console.print(f"Wrote {stats.written} file(s) to {config.output_dir} in {stats.elapsed:.2f}s")

    for path in stats.failed:
        console.print(f"[red]Failed:[/red] {path}")

    logger.info("convert_command_completed", written=stats.written, failed=len(stats.failed))
    if stats.failed:
        raise SystemExit(1)


def _load_graph(graph_dir: Path):
    config = load_config(None, input_dir=graph_dir, git_dates=False)
    return Converter(config).build_graph()


@cli.command()
@click.argument("graph_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("reference")
def resolve(graph_dir: Path, reference: str):
    """
    Show which page a link target resolves to.

    Examples:
        logseq-quartz resolve ~/logseq "project alpha"
        logseq-quartz resolve ~/logseq "[[ml/transformers]]"
    """
    graph = _load_graph(graph_dir)
    resolution = LinkResolver(graph).lookup(reference)
    if resolution is None:
        click.echo(f"{reference} -> (missing, would become a stub page)")
        return
    click.echo(f"{reference} -> {resolution.name} ({resolution.kind.value})")


@cli.command()
@click.argument("graph_dir", type=click.Path(exists=True, file_okay=False, path_type=Path))
@click.argument("query")
def query(graph_dir: Path, query: str):
    """
    Run a simple query against a graph and list matching pages.

    Examples:
        logseq-quartz query ~/logseq "(and (page-tags project) (property status active))"
    """
    graph = _load_graph(graph_dir)
    try:
        results = QueryEngine(graph).evaluate(query)
    except QuerySyntaxError as e:
        logger.error("query_syntax_error", query=query, error=e.message)
        raise click.ClickException(str(e))

    if not results:
        click.echo("No pages match this query.")
        return
    for page in results:
        click.echo(page.name)
    click.echo(f"{len(results)} page(s)")


def main():
    """Main entry point for setuptools console script."""
    cli()


if __name__ == "__main__":
    main()
