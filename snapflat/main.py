"""
snapflat — CLI entrypoint.

Usage:
    sudo snapflat [--gnome-software | --kde-discover] [--skip-update]
    python -m snapflat --help

Exit codes: 0 success (including help), 1 privilege, environment or
installation failure, 2 argument or settings error.
"""

from __future__ import annotations

import sys

import click

from snapflat.adapters.host import HostProbe, SystemHost
from snapflat.core.engine.executor import Step
from snapflat.core.errors import EXIT_FAILURE, EXIT_OK, GateError
from snapflat.core.observability.logging_config import setup_logging_from_env
from snapflat.core.services.gate import PROG, USAGE, GateStatus
from snapflat.core.use_cases.install import run_install

_CLOSING_HINTS = """\
Done.
- Snap: try 'snap list' (or install a package with 'snap install <name>').
- Flatpak/Flathub: try 'flatpak remotes' and 'flatpak install flathub <app>'.
- If the store doesn't show Flatpak apps right away, reboot your PC."""


def _announce(step: Step) -> None:
    click.secho(f"==> {step.title}...", fg="cyan")


def _fail(error: GateError) -> None:
    click.secho(f"Error: {error}", fg="red", err=True)
    if error.hint:
        click.echo(error.hint, err=True)
    sys.exit(error.exit_code)


@click.command(
    context_settings={
        "help_option_names": [],
        "ignore_unknown_options": True,
        "allow_extra_args": True,
    },
)
@click.argument("args", nargs=-1, type=click.UNPROCESSED)
@click.pass_context
def cli(ctx: click.Context, args: tuple[str, ...]) -> None:
    """Install Snap and Flatpak/Flathub on Debian-family hosts."""
    ctx.ensure_object(dict)
    setup_logging_from_env()

    host: HostProbe = ctx.obj.get("host") or SystemHost()

    try:
        result = run_install(
            args,
            host=host,
            settings=ctx.obj.get("settings"),
            registry=ctx.obj.get("registry"),
            on_step=_announce,
            sleep=ctx.obj.get("sleep"),
        )
    except GateError as e:
        _fail(e)
        return

    outcome = result.outcome

    if outcome.status == GateStatus.HELP:
        click.echo(USAGE, nl=False)
        return

    if outcome.status == GateStatus.RELAUNCH:
        click.echo(f"==> Re-running with sudo: {' '.join(outcome.relaunch_argv)}")
        try:
            host.relaunch(outcome.relaunch_argv)
        except OSError as e:
            click.secho(f"Error: cannot re-run under sudo: {e}", fg="red", err=True)
            sys.exit(EXIT_FAILURE)
        # Only reached when the relauncher hands off without replacing us
        sys.exit(EXIT_OK)

    report = result.report
    assert report is not None

    if not result.ok:
        click.secho(
            f"Error: installation stopped at step '{report.aborted_at}'.",
            fg="red",
            err=True,
        )
        sys.exit(EXIT_FAILURE)

    click.echo()
    if report.dry_run:
        click.secho(f"Dry run: {report.total} steps planned, nothing executed.", fg="yellow")
        return
    click.secho(_CLOSING_HINTS, fg="green")


def main() -> None:
    cli(prog_name=PROG)


if __name__ == "__main__":
    main()
