# src/globalcidr/observers/console.py
import typer

from .events import (
    AllocationFailed,
    AllocationSucceeded,
    AllocationWarning,
    BaseEvent,
    CIDRAllocated,
    PreconfiguredCIDRUsed,
    SpecifiedCIDRAccepted,
    UpdateConflict,
)


class ConsoleObserver:
    """Short human-readable progress lines for the CLI."""

    def notify(self, event: BaseEvent) -> None:
        if isinstance(event, PreconfiguredCIDRUsed):
            typer.echo(f"  ✓ Using pre-configured {event.feature} CIDR {event.cidr}")
        elif isinstance(event, CIDRAllocated):
            typer.echo(f"  ✓ Allocated {event.feature} CIDR {event.cidr}")
        elif isinstance(event, SpecifiedCIDRAccepted):
            typer.echo(f"  ✓ Using specified {event.feature} CIDR {event.cidr}")
        elif isinstance(event, AllocationWarning):
            typer.secho(f"  ⚠ {event.message}", fg=typer.colors.YELLOW, err=True)
        elif isinstance(event, UpdateConflict):
            typer.secho(
                f"  ⚠ Conflict updating the {event.feature} registry (attempt {event.attempt}) - retrying",
                fg=typer.colors.YELLOW,
                err=True,
            )
        elif isinstance(event, AllocationFailed):
            typer.secho(f"  ✗ {event.error}", fg=typer.colors.RED, err=True)
        elif isinstance(event, AllocationSucceeded) and event.written:
            typer.echo(f"  ✓ Updated the {event.feature} registry in {event.namespace}")
