"""CLI entry point: stamp-graph.

Subcommands:
    stamp-graph manifest contracts/ -o out/        # Build and write the manifest
    stamp-graph pack contracts/ src/App.tsx        # Bundle one entry point
    stamp-graph compare old.json new.json          # Drift gate (exit 1 on DRIFT)
    stamp-graph compare --index old/context_main.json new/context_main.json
    stamp-graph validate context.json              # Structural check of a bundle file
    stamp-graph similar contracts/ src/Card.tsx    # Components sharing a hash
"""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path

import click

from stampgraph.bundle import pack_bundle
from stampgraph.comparator import (
    CompareResult,
    FolderStatus,
    IndexCompareResult,
    compare_bundles,
    compare_indices,
)
from stampgraph.config import Settings
from stampgraph.exceptions import StampGraphError
from stampgraph.loader import load_bundles, load_contracts, read_json
from stampgraph.logging_config import setup_logging
from stampgraph.manifest import build_manifest, find_similar, generate_stats, write_manifest
from stampgraph.paths import normalize_entry_id
from stampgraph.validator import validate_bundles

# Defaults (overridable via env vars)
_SETTINGS = Settings.from_env()


@click.group()
@click.option("-v", "--verbose", is_flag=True, help="Verbose logging")
def main(verbose: bool) -> None:
    """stamp-graph: UI contract dependency graphs, bundles and drift checks."""
    setup_logging("DEBUG" if verbose else None)


@main.command("manifest")
@click.argument("contracts_path", metavar="CONTRACTS", type=click.Path(exists=True))
@click.option("-o", "--out-dir", default=".", type=click.Path(file_okay=False),
              help="Directory for the manifest file")
@click.option("--hash-index/--no-hash-index", default=_SETTINGS.include_hash_index,
              help="Include structure/signature hash indices")
def manifest_cmd(contracts_path: str, out_dir: str, hash_index: bool) -> None:
    """Build the project manifest from contracts and write it."""
    try:
        contracts = load_contracts(contracts_path)
        manifest = build_manifest(contracts, include_hash_indices=hash_index)
        path = write_manifest(manifest, out_dir)
    except StampGraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    stats = generate_stats(manifest, limit=5)
    click.echo(f"Manifest written to {path}")
    click.echo(f"  Components: {manifest.total_components}")
    click.echo(f"  Roots: {len(manifest.roots)}")
    click.echo(f"  Leaves: {len(manifest.leaves)}")
    if manifest.resolution_warnings:
        click.echo(f"  Ambiguous references: {len(manifest.resolution_warnings)}")
    if stats["mostUsed"] and stats["mostUsed"][0]["usageCount"]:
        click.echo("\nMost used:")
        for item in stats["mostUsed"]:
            if item["usageCount"]:
                click.echo(f"  {item['id']} ({item['usageCount']})")


@main.command("pack")
@click.argument("contracts_path", metavar="CONTRACTS", type=click.Path(exists=True))
@click.argument("entry")
@click.option("--depth", default=_SETTINGS.depth, type=click.IntRange(min=0),
              show_default=True, help="Dependency depth to include")
@click.option("--max-nodes", default=_SETTINGS.max_nodes, type=click.IntRange(min=1),
              show_default=True, help="Hard cap on packed components")
@click.option("--project-root", default=_SETTINGS.project_root,
              type=click.Path(file_okay=False), help="Directory holding package.json")
@click.option("--strict", is_flag=True, help="Fail when a visited component has no contract")
@click.option("-o", "--output", default=None, help="Output file (default: stdout)")
def pack(
    contracts_path: str,
    entry: str,
    depth: int,
    max_nodes: int,
    project_root: str,
    strict: bool,
    output: str | None,
) -> None:
    """Pack ENTRY and its dependencies into a one-bundle document."""
    try:
        contracts = load_contracts(contracts_path)
        manifest = build_manifest(contracts)
        by_id = {c.entry_id: c for c in contracts}
        bundle = asyncio.run(
            pack_bundle(
                entry,
                manifest,
                by_id,
                depth=depth,
                max_nodes=max_nodes,
                project_root=project_root,
                strict=strict,
            )
        )
    except StampGraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    text = json.dumps([bundle], indent=2) + "\n"
    if output is None:
        click.echo(text, nl=False)
        return
    Path(output).write_text(text, encoding="utf-8")
    click.echo(f"Bundle for {bundle['entryId']} written to {output}", err=True)
    click.echo(f"  Nodes: {len(bundle['graph']['nodes'])}", err=True)
    click.echo(f"  Missing: {len(bundle['meta']['missing'])}", err=True)
    if bundle["meta"]["truncated"]:
        click.echo(f"  Truncated at {max_nodes} nodes", err=True)


_FOLDER_ICONS = {
    FolderStatus.PASS: "=",
    FolderStatus.DRIFT: "~",
    FolderStatus.ADDED: "+",
    FolderStatus.ORPHANED: "-",
}


@main.command("compare")
@click.argument("old_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("new_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--index", "as_index", is_flag=True,
              help="OLD and NEW are project indices (context_main.json)")
def compare(old_file: str, new_file: str, as_json: bool, as_index: bool) -> None:
    """Compare two bundle snapshots or project indices; exit 1 on DRIFT or error."""
    try:
        if as_index:
            result = compare_indices(old_file, new_file)
        else:
            result = compare_bundles(load_bundles(old_file), load_bundles(new_file))
    except StampGraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    elif as_index:
        _echo_index_result(result)
    else:
        click.echo(result.status.value)
        _echo_compare_result(result)

    if not result.passed:
        sys.exit(1)


def _echo_compare_result(result: CompareResult, indent: str = "  ") -> None:
    for entry_id in result.added:
        click.echo(f"{indent}+ {entry_id}")
    for entry_id in result.removed:
        click.echo(f"{indent}- {entry_id}")
    for changed in result.changed:
        click.echo(f"{indent}~ {changed.id}")
        for delta in changed.deltas:
            click.echo(f"{indent}    {delta.type.value}: {delta.old!r} -> {delta.new!r}")


def _echo_index_result(result: IndexCompareResult) -> None:
    click.echo(result.status.value)
    summary = result.to_dict()["summary"]
    click.echo(
        f"  Folders: {summary['totalFolders']} "
        f"(added {summary['addedFolders']}, orphaned {summary['orphanedFolders']}, "
        f"drift {summary['driftFolders']}, pass {summary['passFolders']})"
    )
    click.echo(
        f"  Components: +{result.components_added} -{result.components_removed} "
        f"~{result.components_changed}"
    )
    for folder in result.folders:
        click.echo(
            f"  [{_FOLDER_ICONS[folder.status]}] {folder.status.value} {folder.context_file}"
        )
        if folder.error:
            click.echo(f"        {folder.error}")
        if folder.result is not None:
            _echo_compare_result(folder.result, indent="        ")
    for context_file in result.orphaned_files:
        click.echo(f"  Orphaned file on disk: {context_file}")


@main.command("validate")
@click.argument("file", type=click.Path(exists=True, dir_okay=False))
def validate(file: str) -> None:
    """Validate a bundle document; exit 1 on errors."""
    try:
        document = read_json(file)
    except StampGraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    report = validate_bundles(document)
    for error in report.errors:
        click.echo(f"  [!] {error}")
    for warning in report.warnings:
        click.echo(f"  [~] {warning}")

    if not report.ok:
        click.echo(f"Invalid: {len(report.errors)} error(s)", err=True)
        sys.exit(1)
    click.echo(
        f"Valid: {report.bundle_count} bundle(s), {report.node_count} node(s), "
        f"{report.edge_count} edge(s)"
    )


@main.command("similar")
@click.argument("contracts_path", metavar="CONTRACTS", type=click.Path(exists=True))
@click.argument("entry")
def similar(contracts_path: str, entry: str) -> None:
    """List components sharing ENTRY's structure or signature hash."""
    try:
        manifest = build_manifest(load_contracts(contracts_path), include_hash_indices=True)
    except StampGraphError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    key = manifest.resolver.lookup_id(normalize_entry_id(entry))
    if key is None:
        click.echo(f"Component not found: {entry}", err=True)
        sys.exit(1)

    matches = find_similar(manifest, key)
    click.echo(f"Same structure as {key}:")
    for other in matches["structure"] or ["(none)"]:
        click.echo(f"  {other}")
    click.echo(f"Same signature as {key}:")
    for other in matches["signature"] or ["(none)"]:
        click.echo(f"  {other}")


if __name__ == "__main__":
    main()
