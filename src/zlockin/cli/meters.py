from pathlib import Path

import click
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from zlockin.util import format_error_response

from .base import load_meter, tree_option


@click.group()
@tree_option
def meters():
    """Manage meter configurations."""
    pass


@meters.command(name="list")
def list_meters():
    """List available meter configurations."""
    from zlockin.system import list_available_meters, load_meter_config

    available = list_available_meters()
    console = Console(color_system="standard")

    if not available:
        console.print("No meter configurations found")
        return

    table = Table(title="Meter configurations")
    table.add_column("Name", style="bold")
    table.add_column("Source")
    table.add_column("Capture device")
    table.add_column("Sample rate", justify="right")
    table.add_column("Excitation", justify="right")

    for name, source in sorted(available.items()):
        try:
            config = load_meter_config(name)
        except ValueError as e:
            table.add_row(name, source, f"[red]invalid: {e}[/red]", "", "")
            continue
        table.add_row(
            name,
            source,
            config.capture_type,
            f"{config.sample_rate:.6g} S/s",
            f"{config.excitation_frequency:.4f} Hz",
        )
    console.print(table)


@meters.command()
@click.argument("name")
def show(name: str):
    """Show a meter configuration and its excitation PWM settings.

    NAME: Name of meter configuration
    """
    config = load_meter(name)
    pwm = config.excitation.pwm_settings()
    console = Console(color_system="standard")

    table = Table(show_header=False, box=None)
    table.add_column("Key", style="bold")
    table.add_column("Value")
    table.add_row("Sample rate", f"{config.sample_rate:.6g} S/s (both channels)")
    table.add_row("Series resistance", f"{config.series_resistance:g} ohm")
    table.add_row("Reference resistance", f"{config.reference_resistance:g} ohm")
    table.add_row("Iterations", str(config.iterations))
    table.add_row("Capture timeout", f"{config.capture_timeout_s:g} s")
    table.add_row("ADC resolution", f"{config.adc_bits} bit")
    table.add_row("Save directory", config.save_dir)
    table.add_row("Capture device", config.capture_type)
    for key, value in sorted(config.capture_params.items()):
        table.add_row(f"  {key}", value)
    table.add_row("[bold]Excitation[/bold]", "")
    table.add_row("  Clock", f"{config.excitation.clock_freq:.6g} Hz")
    table.add_row("  Requested", f"{config.excitation.pwm_freq:g} Hz")
    table.add_row("  Duty cycle", f"{config.excitation.duty_cycle_percent:g} %")
    table.add_row("  Clock divider", f"{pwm.clock_divider:g}")
    table.add_row("  Wrap", str(pwm.wrap))
    table.add_row("  Level", str(pwm.level))
    table.add_row("  Actual frequency", f"{pwm.actual_frequency:.6f} Hz")

    console.print(Panel(table, title=config.name, border_style="blue"))


@meters.command()
@click.option(
    "--path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=None,
    help="File to write (default: ~/.zlockin/meters.ini)",
)
def init(path):
    """Write the default meters.ini, keeping existing sections."""
    from zlockin.system import meterconfig

    path = path or meterconfig.user_meters_file()
    try:
        meterconfig.create_default_meters_file(path)
        click.echo(f"Wrote meter configurations to {path}")
    except OSError:
        click.echo(f"Error: {format_error_response()}", err=True)
