"""
pincopy CLI: replicate a pinned folder.

    pincopy                 copy SRC_FOLDER into DST_FOLDER on the target store
    pincopy ./backup        mirror SRC_FOLDER into an existing local directory

Entry point: pincopy.cli:main
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional

import click
from rich.markup import escape

from .. import CONFIG_ENV_VAR, __version__
from ..config import load_settings
from ..errors import PincopyError
from ..models import ConflictPolicy, UnpinnedRule
from ..replicate import LocalPath, RemoteStore, Replicator
from ..store import HttpContentStore
from ._common import (
    ConsoleReporter,
    configure_logging,
    console,
    err_console,
    print_plan,
    print_report,
)


def _resolve_rule(unpinned: Optional[str], copy_unpinned: bool, skip_unpinned: bool) -> UnpinnedRule:
    """Fold the shorthand flags into a single unpinned rule."""
    chosen = set()
    if unpinned:
        chosen.add(UnpinnedRule(unpinned))
    if copy_unpinned:
        chosen.add(UnpinnedRule.COPY)
    if skip_unpinned:
        chosen.add(UnpinnedRule.IGNORE)
    if len(chosen) > 1:
        raise click.UsageError(
            "Conflicting unpinned rules; pick one of --unpinned, "
            "--copy-unpinned or --skip-unpinned."
        )
    return chosen.pop() if chosen else UnpinnedRule.BAN


@click.command()
@click.version_option(version=__version__, prog_name="pincopy")
@click.argument(
    "local_path",
    required=False,
    type=click.Path(file_okay=False, path_type=Path),
)
@click.option(
    "--unpinned",
    type=click.Choice([r.value for r in UnpinnedRule]),
    default=None,
    help="What to do with entries not pinned at the source (default: ban).",
)
@click.option("--copy-unpinned", is_flag=True, help="Same as --unpinned copy.")
@click.option("--skip-unpinned", is_flag=True, help="Same as --unpinned ignore.")
@click.option(
    "--conflict",
    type=click.Choice([c.value for c in ConflictPolicy]),
    default=ConflictPolicy.WARN.value,
    show_default=True,
    help="Whether a target entry with a different hash aborts the run.",
)
@click.option("--source-folder", default=None, help="Source folder (overrides SRC_FOLDER).")
@click.option(
    "--config",
    "config_file",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    envvar=CONFIG_ENV_VAR,
    help="YAML settings file; environment variables take precedence.",
)
@click.option("--dry-run", is_flag=True, help="Show the plan without copying anything.")
@click.option("--verbose", "-v", is_flag=True, help="Debug logging on stderr.")
def main(
    local_path: Optional[Path],
    unpinned: Optional[str],
    copy_unpinned: bool,
    skip_unpinned: bool,
    conflict: str,
    source_folder: Optional[str],
    config_file: Optional[Path],
    dry_run: bool,
    verbose: bool,
):
    """Replicate a pinned folder from a source store.

    With no LOCAL_PATH, the folder is rebuilt under DST_FOLDER on the
    target store and everything copied is pinned there. With LOCAL_PATH,
    the folder is downloaded into that existing directory.

    Source credentials come from SRC_API_URL, SRC_USERNAME and
    SRC_PASSWORD; the target from DST_API_URL, DST_USERNAME, DST_PASSWORD
    and DST_FOLDER.
    """
    configure_logging(verbose)
    rule = _resolve_rule(unpinned, copy_unpinned, skip_unpinned)

    try:
        settings = load_settings(remote=local_path is None, config_file=config_file)
        source_path = source_folder or settings.source.folder
        if not source_path.startswith("/"):
            raise click.BadParameter(
                f"must start with / but was: {source_path}",
                param_hint="--source-folder",
            )

        source = HttpContentStore(
            settings.source.api_url,
            settings.source.username,
            settings.source.password,
        )

        console.print(f"Source        : {escape(settings.source.api_url)}")
        console.print(f"Source folder : {escape(source_path)}")
        if settings.target is not None:
            target = HttpContentStore(
                settings.target.api_url,
                settings.target.username,
                settings.target.password,
            )
            destination = RemoteStore(target, settings.target.folder)
            console.print(f"Target        : {escape(settings.target.api_url)}")
            console.print(f"Target folder : {escape(settings.target.folder)}")
        else:
            destination = LocalPath(local_path)
            console.print(f"Target path   : {escape(str(local_path))}")

        replicator = Replicator(
            source,
            destination,
            rule=rule,
            source_path=source_path,
            conflict_policy=ConflictPolicy(conflict),
            reporter=ConsoleReporter(),
        )

        console.print("\nGetting file list")
        if dry_run:
            print_plan(replicator.build_plan())
            return

        report = replicator.run()
    except PincopyError as exc:
        console.print()
        err_console.print(f"[bold red]Oh, no:[/] {escape(str(exc))}", soft_wrap=True)
        sys.exit(1)

    console.print()
    console.print("[bold green]Done.[/]")
    print_report(report)
