"""CLI entrypoint for fastscan."""

from __future__ import annotations

import click

from fastscan.config.models import (
    DEFAULT_FLUSH_THRESHOLD_BYTES,
    DEFAULT_OUTPUT_FILE,
    MAX_WORKERS,
    buffer_kb_to_bytes,
    build_scan_config,
    default_worker_count,
    parse_filetypes,
)
from fastscan.errors import ConfigError, OutputOpenError, OutputWriteError
from fastscan.fs.scanner import scan_tree
from fastscan.runtime_logging import LOG_LEVELS, configure_runtime_logging
from fastscan.version import __version__


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.option("--path", "root", required=True, help="Root directory to scan.")
@click.option("--prefix", default=None, help="Only scan top-level folders whose name starts with this.")
@click.option(
    "--prefix-mode",
    type=click.Choice(["anchored", "substring"]),
    default="anchored",
    show_default=True,
    help="anchored: match top-level folder names; substring: also require the prefix in every subdirectory path.",
)
@click.option(
    "--buffer",
    "buffer_kb",
    type=click.IntRange(min=1),
    default=None,
    help=f"Output buffer size in KB (default: {DEFAULT_FLUSH_THRESHOLD_BYTES // 1000} KB, about 5000 lines).",
)
@click.option("--output", default=DEFAULT_OUTPUT_FILE, show_default=True, help="Output file name.")
@click.option("--filetypes", default=None, help="Comma-separated extensions to include, e.g. doc,docx,pdf.")
@click.option(
    "--workers",
    type=click.IntRange(min=1, max=MAX_WORKERS),
    default=None,
    help="Worker threads (default: number of CPUs).",
)
@click.option("--bom", "write_bom", is_flag=True, help="Start the output with a UTF-8 byte-order mark.")
@click.option("--follow-symlinks", is_flag=True, help="Descend into symlinked directories.")
@click.option("--log-level", type=click.Choice(LOG_LEVELS), default=None, help="Runtime log level.")
@click.option("--log-file", default=None, help="Runtime JSONL log destination.")
@click.version_option(__version__, prog_name="fastscan")
def main(
    root: str,
    prefix: str | None,
    prefix_mode: str,
    buffer_kb: int | None,
    output: str,
    filetypes: str | None,
    workers: int | None,
    write_bom: bool,
    follow_symlinks: bool,
    log_level: str | None,
    log_file: str | None,
) -> None:
    """Export the list of files under every matching top-level folder of PATH."""
    configure_runtime_logging(level=log_level, log_file=log_file)

    try:
        config = build_scan_config(
            root=root,
            prefix=prefix,
            prefix_mode=prefix_mode,
            extensions=parse_filetypes(filetypes),
            flush_threshold_bytes=(
                buffer_kb_to_bytes(buffer_kb) if buffer_kb is not None else DEFAULT_FLUSH_THRESHOLD_BYTES
            ),
            output_path=output,
            workers=workers if workers is not None else default_worker_count(),
            write_bom=write_bom,
            follow_symlinks=follow_symlinks,
        )
        stats = scan_tree(config)
    except (ConfigError, OutputOpenError, OutputWriteError) as exc:
        raise click.ClickException(str(exc)) from exc

    if stats.seeded_directories == 0:
        click.echo("No matching directories found.")
        return

    for line in stats.report_lines():
        click.echo(line)


if __name__ == "__main__":
    main()
