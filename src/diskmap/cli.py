"""CLI interface for diskmap."""

from __future__ import annotations

import json
import logging
import sys
from typing import Any

import click

from diskmap.core.coordinator import DiskMapCoordinator
from diskmap.core.exclusions import ExclusionRuleSet
from diskmap.core.history import DiskSpaceHistory
from diskmap.core.scanner import OsDirectoryLister, ScanEngine
from diskmap.core.tree import FileTree
from diskmap.core.treemap import Rect
from diskmap.errors import ScanCancelled
from diskmap.models.node import Node
from diskmap.models.scan_result import ScanProgress, ScanResult
from diskmap.settings import Settings
from diskmap.storage import load_rules, save_rules
from diskmap.utils import bytes_to_human, format_elapsed


def _setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


def _load_rule_set() -> ExclusionRuleSet:
    return ExclusionRuleSet.from_records(load_rules())


def _save_rule_set(rules: ExclusionRuleSet) -> None:
    save_rules(rules.to_records())


def _build_coordinator(settings: Settings) -> DiskMapCoordinator:
    engine = ScanEngine(
        lister=OsDirectoryLister(skip_hidden=bool(settings.get("scan.skip_hidden"))),
        progress_interval=settings.get_int("scan.progress_interval"),
    )
    return DiskMapCoordinator(
        engine=engine,
        rules=_load_rule_set(),
        on_rules_changed=_save_rule_set,
        history=DiskSpaceHistory(),
    )


def _run_scan(coordinator: DiskMapCoordinator, path: str, quiet: bool, ignore_rules: bool) -> ScanResult:
    def on_progress(progress: ScanProgress) -> None:
        if quiet:
            return
        click.echo(
            f"\r  {progress.files_scanned:,} files, {progress.directories_scanned:,} dirs, "
            f"{bytes_to_human(progress.bytes_scanned)}",
            nl=False,
            err=True,
        )

    try:
        result = coordinator.scan(path, on_progress=on_progress, ignore_rules=ignore_rules)
    except ScanCancelled:
        click.echo("\nScan cancelled.", err=True)
        sys.exit(130)
    except KeyboardInterrupt:
        coordinator.stop_scan()
        click.echo("\nScan cancelled.", err=True)
        sys.exit(130)
    if not quiet:
        click.echo(err=True)
    return result


def _node_flags(node: Node) -> str:
    tags = []
    if node.is_permission_denied:
        tags.append(click.style("[permission denied]", fg="red"))
    if node.awaiting_permission:
        tags.append(click.style("[awaiting access]", fg="yellow"))
    if node.excluded_by_rule_id:
        tags.append(click.style("[excluded]", fg="bright_black"))
    return (" " + " ".join(tags)) if tags else ""


def _echo_listing(tree: FileTree, node: Node, depth: int, top: int, indent: int = 0) -> None:
    for child in tree.children(node)[:top]:
        pct = tree.fraction_of_parent(child) * 100
        name = child.name + ("/" if child.is_dir else "")
        size = click.style(f"{bytes_to_human(child.size):>10s}", fg="green", bold=child.is_dir)
        click.echo(f"{'  ' * indent}  {size} {pct:5.1f}%  {name}{_node_flags(child)}")
        if child.is_dir and indent + 1 < depth:
            _echo_listing(tree, child, depth, top, indent + 1)


def _node_to_json(tree: FileTree, node: Node, depth: int, top: int) -> dict[str, Any]:
    data: dict[str, Any] = {
        "path": node.path,
        "name": node.name,
        "is_dir": node.is_dir,
        "size": node.size,
        "descendant_count": node.descendant_count,
    }
    if node.is_permission_denied:
        data["permission_denied"] = True
    if node.excluded_by_rule_id:
        data["excluded_by_rule_id"] = node.excluded_by_rule_id
    if node.is_dir and depth > 0:
        data["children"] = [_node_to_json(tree, c, depth - 1, top) for c in tree.children(node)[:top]]
    return data


@click.group()
@click.option("-v", "--verbose", count=True, help="Increase verbosity (-v info, -vv debug)")
def main(verbose: int) -> None:
    """diskmap: see where your disk space went."""
    _setup_logging(verbose)


# ── scan ─────────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--depth", "-d", default=1, show_default=True, help="Levels of the tree to print")
@click.option("--top", "-n", default=20, show_default=True, help="Largest entries to show per directory")
@click.option("--ignore-rules", is_flag=True, help="Scan without applying exclusion rules")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def scan(path: str, depth: int, top: int, ignore_rules: bool, as_json: bool) -> None:
    """Scan a directory and list its contents by size."""
    coordinator = _build_coordinator(Settings.instance())
    try:
        result = _run_scan(coordinator, path, quiet=as_json, ignore_rules=ignore_rules)
    finally:
        coordinator.close()
    tree = result.tree

    if as_json:
        data = {
            "root": _node_to_json(tree, tree.root, depth, top),
            "total_files": result.total_files,
            "total_directories": result.total_directories,
            "duration": result.duration,
            "matched_exclusion_rule_ids": sorted(result.matched_exclusion_rule_ids),
        }
        click.echo(json.dumps(data, indent=2))
        return

    root = tree.root
    click.echo(f"\n{click.style(root.path, bold=True)}  {click.style(bytes_to_human(root.size), fg='green', bold=True)}\n")
    _echo_listing(tree, root, max(1, depth), top)

    denied = [n for n in tree.walk() if n.is_permission_denied]
    click.echo(
        f"\n{result.total_files:,} files, {result.total_directories:,} directories "
        f"in {format_elapsed(result.duration)}"
    )
    if denied:
        click.echo(click.style(f"{len(denied)} directories could not be read", fg="yellow"))
    if result.matched_exclusion_rule_ids:
        click.echo(f"{len(result.matched_exclusion_rule_ids)} exclusion rule(s) applied")
    click.echo()


# ── treemap ──────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--width", "-W", default=800.0, show_default=True, help="Bounds width")
@click.option("--height", "-H", default=600.0, show_default=True, help="Bounds height")
@click.option("--max-depth", type=int, default=None, help="Nesting depth (default from settings)")
@click.option("--min-size", type=float, default=None, help="Smallest rectangle side (default from settings)")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def treemap(
    path: str,
    width: float,
    height: float,
    max_depth: int | None,
    min_size: float | None,
    as_json: bool,
) -> None:
    """Compute a squarified treemap layout for a directory."""
    settings = Settings.instance()
    if max_depth is None:
        max_depth = settings.get_int("treemap.max_depth")
    if min_size is None:
        min_size = settings.get_float("treemap.min_size")

    coordinator = _build_coordinator(settings)
    try:
        _run_scan(coordinator, path, quiet=True, ignore_rules=False)
        rects = coordinator.layout(Rect(0, 0, width, height), max_depth=max_depth, min_size=min_size)
    finally:
        coordinator.close()

    if as_json:
        data = [
            {
                "path": r.node.path,
                "size": r.node.size,
                "depth": r.depth,
                "category": r.color_category.value,
                "x": r.rect.x,
                "y": r.rect.y,
                "width": r.rect.width,
                "height": r.rect.height,
            }
            for r in rects
        ]
        click.echo(json.dumps(data, indent=2))
        return

    for r in rects:
        geom = f"{r.rect.x:7.1f},{r.rect.y:7.1f} {r.rect.width:7.1f}x{r.rect.height:<7.1f}"
        click.echo(f"{'  ' * r.depth}{geom}  {r.color_category.value:10s} {r.node.name}")


# ── suggest ──────────────────────────────────────────────────────────────

@main.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False), default=".")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def suggest(path: str, as_json: bool) -> None:
    """Find known space wasters under a directory."""
    coordinator = _build_coordinator(Settings.instance())
    try:
        _run_scan(coordinator, path, quiet=as_json, ignore_rules=False)
    finally:
        coordinator.close()
    suggestions = coordinator.suggestions

    if as_json:
        data = [
            {
                "category": s.category.label,
                "path": s.path,
                "size": s.size,
                "item_count": s.item_count,
                "risk_level": s.category.risk_level,
            }
            for s in suggestions
        ]
        click.echo(json.dumps(data, indent=2))
        return

    if not suggestions:
        click.echo("No suggestions.")
        return

    for s in suggestions:
        risk = click.style(" [moderate risk]", fg="yellow") if s.category.risk_level == "moderate" else ""
        click.echo(
            f"  {click.style(bytes_to_human(s.size), fg='green', bold=True):>20s}  "
            f"{s.category.label:22s} {s.path}{risk}"
        )
        click.echo(f"  {'':>10s}  {click.style(s.category.description, fg='bright_black')}")
    total = sum(s.size for s in suggestions)
    click.echo(f"\nTotal reclaimable: {click.style(bytes_to_human(total), fg='green', bold=True)}\n")


# ── rules ────────────────────────────────────────────────────────────────

@main.group()
def rules() -> None:
    """Manage directories skipped during scans."""


@rules.command("list")
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def rules_list(as_json: bool) -> None:
    """List exclusion rules."""
    rule_set = _load_rule_set()
    if as_json:
        click.echo(json.dumps(rule_set.to_records(), indent=2))
        return
    if not len(rule_set):
        click.echo("No exclusion rules.")
        return
    for rule in rule_set:
        status = click.style("active", fg="green") if rule.is_active else click.style("inactive", fg="bright_black")
        click.echo(
            f"  {rule.id}  {status:>17s}  {rule.remaining_scans:3d} scans left  "
            f"{rule.total_matches:3d} matches  {rule.path}"
        )


@rules.command("add")
@click.argument("path", type=click.Path())
@click.option("--scans", "-s", type=int, default=None, help="Number of scans to skip (default from settings)")
def rules_add(path: str, scans: int | None) -> None:
    """Skip PATH for the next N scans."""
    if scans is None:
        scans = Settings.instance().get_int("rules.default_scans")
    rule_set = _load_rule_set()
    rule = rule_set.upsert(path, scans)
    _save_rule_set(rule_set)
    click.echo(f"Skipping {rule.path} for {rule.remaining_scans} scan(s) ({rule.id})")


@rules.command("set")
@click.argument("rule_id")
@click.argument("scans", type=int)
def rules_set(rule_id: str, scans: int) -> None:
    """Set the remaining scan count of a rule."""
    rule_set = _load_rule_set()
    if not rule_set.set_remaining_scans(rule_id, scans):
        click.echo(f"Rule '{rule_id}' not found.", err=True)
        sys.exit(1)
    _save_rule_set(rule_set)
    click.echo(f"Rule {rule_id}: {rule_set.get(rule_id).remaining_scans} scan(s) left")


@rules.command("remove")
@click.argument("rule_id")
def rules_remove(rule_id: str) -> None:
    """Delete a rule."""
    rule_set = _load_rule_set()
    if not rule_set.remove(rule_id):
        click.echo(f"Rule '{rule_id}' not found.", err=True)
        sys.exit(1)
    _save_rule_set(rule_set)
    click.echo(f"Removed rule {rule_id}")


# ── history ──────────────────────────────────────────────────────────────

@main.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
def history(as_json: bool) -> None:
    """Show free space recorded after each scan."""
    snapshots = DiskSpaceHistory().snapshots
    if as_json:
        click.echo(json.dumps([s.to_dict() for s in snapshots], indent=2))
        return
    if not snapshots:
        click.echo("No free space history yet.")
        return
    for s in snapshots:
        stamp = s.date.astimezone().strftime("%Y-%m-%d %H:%M")
        click.echo(f"  {stamp}  {click.style(bytes_to_human(s.free_bytes), fg='green'):>20s} free")
