"""CLI interface for invograph.

Provides commands to parse a single T-SQL script or scan a script tree into
an invocation graph. JSON goes to stdout, logs to stderr.
"""

import sys
from pathlib import Path

import click
from dotenv import load_dotenv

# Load .env before importing other invograph modules
# This ensures env vars are set before module-level code reads them
load_dotenv()

from invograph import __version__  # noqa: E402
from invograph.logging import configure_logging, log_operation  # noqa: E402

# Exit status for a script that creates nothing
EXIT_NO_DEFINITION = 2


@click.group()
@click.version_option(version=__version__, prog_name="invograph")
@click.option("--log-level", default=None, help="Log level (default: INVOGRAPH_LOG_LEVEL or INFO)")
def cli(log_level: str | None) -> None:
    """invograph - invocation graphs for T-SQL scripts."""
    configure_logging(log_level)


@cli.command()
@click.argument("file_path", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def parse(file_path: Path) -> None:
    """Print the definition and references found in one script.

    FILE_PATH: Path to a .sql script.
    """
    from invograph.analyzers import parse_file
    from invograph.models import ParsedFileModel

    fp = parse_file(file_path, file_path.parent)
    if fp.error is not None:
        click.echo(f"Failed to read {file_path}: {fp.error}", err=True)
        sys.exit(1)

    click.echo(ParsedFileModel.from_result(fp.file, fp.result).model_dump_json(by_alias=True, indent=2))
    if fp.result is None:
        click.echo(f"No CREATE statement found in {file_path}", err=True)
        sys.exit(EXIT_NO_DEFINITION)


@cli.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False, resolve_path=True))
@click.option("--workers", type=int, default=None, help="Parallel workers (default: INVOGRAPH_WORKERS or CPU count)")
@click.option("--no-cache", is_flag=True, help="Ignore and do not update the parse cache")
@click.option("--exclude", multiple=True, help="Extra directory name to skip (repeatable)")
@click.option(
    "--output",
    type=click.Path(dir_okay=False, writable=True, path_type=Path),
    default=None,
    help="Write the graph JSON here instead of stdout",
)
def scan(
    directory: str,
    workers: int | None,
    no_cache: bool,
    exclude: tuple[str, ...],
    output: Path | None,
) -> None:
    """Scan a script tree and output its invocation graph.

    DIRECTORY: Root of the SQL script tree.
    """
    from invograph.analyzers import build_graph, graph_metadata, scan_directory
    from invograph.models import GraphMetadata, InvocationGraph, digraph_to_json

    try:
        with log_operation("scan", {"directory": directory}):
            result = scan_directory(
                Path(directory),
                use_cache=not no_cache,
                exclude=list(exclude),
                workers=workers,
            )
            G = build_graph(result.files)
    except (OSError, ValueError) as e:
        click.echo(f"Scan failed: {e}", err=True)
        sys.exit(1)

    data = digraph_to_json(G)
    graph = InvocationGraph(
        nodes=data["nodes"],
        edges=data["edges"],
        metadata=GraphMetadata(
            version=__version__,
            file_count=len(result.files),
            source_directory=result.directory,
            **graph_metadata(G),
        ),
        errors=result.errors,
        skipped=result.skipped,
    )
    payload = graph.model_dump_json(by_alias=True, indent=2)

    if output is None:
        click.echo(payload)
        return

    try:
        output.write_text(payload + "\n", encoding="utf-8")
    except OSError as e:
        click.echo(f"Failed to write {output}: {e}", err=True)
        sys.exit(1)
    click.echo(
        f"Wrote {graph.metadata.node_count} nodes and {graph.metadata.edge_count} edges to {output}",
        err=True,
    )


def main() -> None:
    """Entry point for the CLI."""
    cli()


if __name__ == "__main__":
    main()
