"""
modrebase CLI.

Command-line interface for rebasing go.mod files and rebuilding go.sum.
"""

import logging

import click

from modrebase import __version__
from modrebase.errors import ModRebaseError, SecurityViolation

LOG_FORMAT = "%(levelname)s:%(name)s:%(message)s"


def _fail(error: ModRebaseError) -> None:
    """Report a library error and exit."""
    click.echo(f"Error: {error}", err=True)
    if isinstance(error, SecurityViolation):
        raise SystemExit(2)
    raise SystemExit(1)


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging")
def main(verbose: bool) -> None:
    """modrebase: rebase a forked go.mod onto upstream and rebuild go.sum."""
    logging.basicConfig(level=logging.DEBUG if verbose else logging.INFO, format=LOG_FORMAT)


@main.command()
@click.argument("upstream", type=click.Path(exists=True, dir_okay=False))
@click.argument("downstream", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False), help="Merged go.mod path")
@click.option("--summary/--no-summary", default=True, help="Show what was kept, raised and dropped")
@click.option("--json", "as_json", is_flag=True, help="Print the summary as JSON")
def rebase(upstream: str, downstream: str, output: str, summary: bool, as_json: bool) -> None:
    """Rebase DOWNSTREAM go.mod onto UPSTREAM go.mod."""
    from modrebase.io.files import load_manifest, write_manifest
    from modrebase.manifest.hash import compute_manifest_hash
    from modrebase.manifest.merge import rebase as rebase_manifests
    from modrebase.manifest.merge import summarize_rebase

    try:
        # Both inputs are read before writing; OUTPUT may be DOWNSTREAM itself
        upstream_manifest = load_manifest(upstream)
        downstream_manifest = load_manifest(downstream)
        merged = rebase_manifests(upstream_manifest, downstream_manifest)
        write_manifest(output, merged)
        rebase_summary = summarize_rebase(upstream_manifest, downstream_manifest, merged)
    except ModRebaseError as e:
        _fail(e)

    if as_json:
        click.echo(rebase_summary.to_json())
        return

    click.echo(f"Wrote {output} (fingerprint {compute_manifest_hash(merged)})")
    if not summary:
        return

    from rich.console import Console
    from rich.table import Table

    console = Console()
    table = Table(title=f"Rebase of {merged.module_path}")
    table.add_column("Module", style="cyan")
    table.add_column("Upstream")
    table.add_column("Merged")
    table.add_column("Status")

    for req in merged.requirements:
        if req.path in rebase_summary.raised:
            old, new = rebase_summary.raised[req.path]
            table.add_row(req.path, old, new, "[yellow]raised[/yellow]")
        else:
            table.add_row(req.path, req.version, req.version, "kept")
    for path in rebase_summary.dropped_upstream_only:
        table.add_row(path, "", "", "[red]dropped (upstream only)[/red]")
    for path in rebase_summary.dropped_downstream_only:
        table.add_row(path, "", "", "[red]dropped (downstream only)[/red]")

    console.print(table)


@main.command()
@click.argument("lockfile", type=click.Path(exists=True, dir_okay=False))
@click.option("--output", "-o", required=True, type=click.Path(dir_okay=False), help="go.sum path")
@click.option("--config", "-c", "config_path", type=click.Path(exists=True), help="Checksum database config YAML")
@click.option("--server-url", help="Checksum database base URL override")
def checksums(lockfile: str, output: str, config_path: str | None, server_url: str | None) -> None:
    """Rebuild go.sum for the requirements of LOCKFILE."""
    from modrebase.strategy import GoStrategy
    from modrebase.sumdb.config import SumDBConfig

    try:
        config = SumDBConfig.from_yaml(config_path) if config_path else SumDBConfig.trust_server()
        if server_url:
            config = config.model_copy(update={"server_url": server_url})
        count = GoStrategy(sumdb_config=config).update_checksums(lockfile, output)
    except ModRebaseError as e:
        _fail(e)

    click.echo(f"Wrote {count} checksum lines to {output}")


@main.command()
@click.argument("directory", type=click.Path(exists=True, file_okay=False))
def probe(directory: str) -> None:
    """Detect which dependency ecosystem DIRECTORY uses."""
    from modrebase.strategy import detect_strategy

    strategy = detect_strategy(directory)
    if strategy is None:
        click.echo(f"No supported manifest found in {directory}", err=True)
        raise SystemExit(1)

    click.echo(f"{strategy.name}: {strategy.lock_file_name()}")


@main.command()
@click.argument("manifest_path", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print as canonical JSON")
def show(manifest_path: str, as_json: bool) -> None:
    """Print a go.mod in canonical form."""
    from modrebase.io.files import load_manifest
    from modrebase.manifest.formatter import format_manifest

    try:
        manifest = load_manifest(manifest_path)
    except ModRebaseError as e:
        _fail(e)

    if as_json:
        click.echo(manifest.to_json())
    else:
        click.echo(format_manifest(manifest), nl=False)


@main.command()
@click.argument("manifest_a", type=click.Path(exists=True, dir_okay=False))
@click.argument("manifest_b", type=click.Path(exists=True, dir_okay=False))
def compare(manifest_a: str, manifest_b: str) -> None:
    """Compare two go.mod files directive by directive."""
    from modrebase.io.files import load_manifest
    from modrebase.manifest.hash import compare_manifests

    try:
        results = compare_manifests(load_manifest(manifest_a), load_manifest(manifest_b))
    except ModRebaseError as e:
        _fail(e)

    for component, match in results.items():
        mark = "✓" if match else "✗"
        click.echo(f"{mark} {component}")

    if not results["overall_hash_match"]:
        raise SystemExit(1)


if __name__ == "__main__":
    main()
