from typing import Optional

import click
from click_option_group import optgroup
from loguru import logger
from rich.console import Console
from rich.progress import Progress, TextColumn, TimeElapsedColumn

from zlockin.meas import ImpedanceMeter, MeasurementVector, compute, to_complex
from zlockin.types import MeterConfig, MeterError
from zlockin.util import (
    format_progress,
    load_measurement,
    load_measurement_config,
    save_measurement,
)

from .base import load_meter, log_options, managed_source, setup_logging


def _echo_vector(label: str, vector: MeasurementVector) -> None:
    click.echo(f"{label}: {vector.components.tolist()}")
    click.echo(
        f"  bursts: {vector.bursts}, dropped: {vector.dropped} "
        f"({100 * vector.success_ratio:.1f}% with phase origin)"
    )
    click.echo(f"  complex: {to_complex(vector)}")


def _run_session(
    meter: ImpedanceMeter, iterations: int, quiet: bool
) -> MeasurementVector:
    try:
        if quiet:
            return meter.measure(iterations)
        with Progress(
            TextColumn("{task.description}", markup=False),
            TimeElapsedColumn(),
            console=Console(),
        ) as bar:
            task = bar.add_task(format_progress(0, iterations), total=iterations)

            def update(completed: int, total: int) -> None:
                bar.update(
                    task,
                    completed=completed,
                    description=format_progress(completed, total),
                )

            return meter.measure(iterations, progress=update)
    except MeterError as e:
        logger.error("Measurement failed: {}", e)
        raise click.ClickException(f"Measurement failed: {e}")


@click.command()
@click.option(
    "--meter-name",
    "-n",
    type=str,
    required=True,
    help='Name of the meter configuration (e.g. "mock")',
)
@click.option(
    "--iterations",
    "-i",
    type=click.IntRange(min=1),
    default=None,
    help="Number of capture bursts (default: from meter configuration)",
)
@optgroup.group("Saving")
@optgroup.option(
    "--save/--no-save",
    default=False,
    help="Save the measurement vector as JSON (default: disabled)",
)
@optgroup.option(
    "--name",
    type=str,
    default="measurement",
    help="Measurement name used in the saved filename",
)
@optgroup.option(
    "--project-name",
    "-p",
    type=str,
    default="",
    help="Project name for grouping saved measurements",
)
@optgroup.option(
    "--save-dir",
    type=str,
    default=None,
    help="Root data directory (default: from meter configuration)",
)
@click.option("--quiet", "-q", is_flag=True, default=False, help="No progress bar")
@log_options
def measure(
    meter_name: str,
    iterations: Optional[int],
    save: bool,
    name: str,
    project_name: str,
    save_dir: Optional[str],
    quiet: bool,
    **log_kwargs,
):
    """Run one measurement session.

    Captures ITERATIONS bursts, demodulates each against the reference and
    prints the averaged quadrature vector and its complex form.

    Usage
    `zlockin measure -n mock -i 500 --save --name open -p dut_batch`
    """
    setup_logging(**log_kwargs)
    meter_config = load_meter(meter_name)
    if iterations is None:
        iterations = meter_config.iterations

    with managed_source(meter_config) as source:
        with ImpedanceMeter(source, meter_config) as meter:
            vector = _run_session(meter, iterations, quiet)

    _echo_vector(name, vector)
    if save:
        path = save_measurement(
            vector,
            save_dir or meter_config.save_dir,
            name,
            project_name=project_name,
            meter_config=meter_config,
        )
        click.echo(f"Saved to {path}")


@click.command()
@click.argument("open_file", type=click.Path(exists=True, dir_okay=False))
@click.argument("dut_file", type=click.Path(exists=True, dir_okay=False))
@click.option(
    "--meter-name",
    "-n",
    type=str,
    default=None,
    help="Take the divider resistances from this meter configuration",
)
@optgroup.group("Divider")
@optgroup.option(
    "--series-resistance",
    "-rs",
    type=float,
    default=None,
    help="Series resistance in ohms",
)
@optgroup.option(
    "--reference-resistance",
    "-rr",
    type=float,
    default=None,
    help="Reference resistance in ohms",
)
def impedance(
    open_file: str,
    dut_file: str,
    meter_name: Optional[str],
    series_resistance: Optional[float],
    reference_resistance: Optional[float],
):
    """Compute the DUT impedance from two saved measurements.

    OPEN_FILE: open-circuit measurement (JSON)
    DUT_FILE: measurement with the DUT connected (JSON)

    Divider resistances are taken from, in order: the options, the meter
    configuration given with -n, the configuration saved with OPEN_FILE.
    """
    try:
        v_open = load_measurement(open_file)
        v_dut = load_measurement(dut_file)
        if meter_name:
            base = load_meter(meter_name)
        else:
            base = load_measurement_config(open_file) or MeterConfig()
    except ValueError as e:
        raise click.ClickException(f"Could not load measurement: {e}")
    series_resistance = series_resistance or base.series_resistance
    reference_resistance = reference_resistance or base.reference_resistance

    _echo_vector("open", v_open)
    _echo_vector("dut", v_dut)
    try:
        z = compute(v_open, v_dut, series_resistance, reference_resistance)
    except MeterError as e:
        raise click.ClickException(str(e))
    _echo_impedance(z, series_resistance, reference_resistance)


def _echo_impedance(z, series_resistance: float, reference_resistance: float) -> None:
    click.echo(
        f"Divider: series {series_resistance:g} ohm, reference {reference_resistance:g} ohm"
    )
    click.echo(f"Z = {z} ohm")
    click.echo(f"|Z| = {abs(z):.6g} ohm, phase = {z.phase_deg:.3f} deg")


@click.command()
@click.option(
    "--meter-name",
    "-n",
    type=str,
    required=True,
    help='Name of the meter configuration (e.g. "mock")',
)
@click.option(
    "--iterations",
    "-i",
    type=click.IntRange(min=1),
    default=None,
    help="Number of capture bursts per pass (default: from meter configuration)",
)
@click.option(
    "--project-name",
    "-p",
    type=str,
    default="",
    help="Save both passes under this project name",
)
@optgroup.group("Simulated DUT (mock capture sources only)")
@optgroup.option(
    "--mock-dut-amplitude",
    type=float,
    default=None,
    help="Input amplitude in ADC counts for the DUT pass",
)
@optgroup.option(
    "--mock-dut-phase",
    type=float,
    default=0.0,
    help="Input phase in degrees for the DUT pass",
)
@click.option("--quiet", "-q", is_flag=True, default=False, help="No progress bar")
@log_options
def calibrate(
    meter_name: str,
    iterations: Optional[int],
    project_name: str,
    mock_dut_amplitude: Optional[float],
    mock_dut_phase: float,
    quiet: bool,
    **log_kwargs,
):
    """Measure a DUT against an open-circuit calibration.

    1. Open-circuit pass with the DUT terminals open

    2. Pause for the operator to connect the DUT

    3. DUT pass, then print the computed impedance
    """
    setup_logging(**log_kwargs)
    meter_config = load_meter(meter_name)
    if iterations is None:
        iterations = meter_config.iterations

    with managed_source(meter_config) as source:
        with ImpedanceMeter(source, meter_config) as meter:
            click.echo("Open-circuit pass: leave the DUT terminals open.")
            v_open = _run_session(meter, iterations, quiet)
            _echo_vector("open", v_open)

            click.confirm("Connect the DUT and continue?", default=True, abort=True)
            if mock_dut_amplitude is not None:
                if not hasattr(source, "set_response"):
                    raise click.UsageError(
                        "--mock-dut-amplitude requires a mock capture source"
                    )
                source.set_response(mock_dut_amplitude, mock_dut_phase)

            click.echo("DUT pass.")
            v_dut = _run_session(meter, iterations, quiet)
            _echo_vector("dut", v_dut)

            try:
                z = meter.compute_impedance(v_open, v_dut)
            except MeterError as e:
                raise click.ClickException(str(e))

    _echo_impedance(
        z, meter_config.series_resistance, meter_config.reference_resistance
    )
    if project_name:
        for label, vector in (("open", v_open), ("dut", v_dut)):
            path = save_measurement(
                vector,
                meter_config.save_dir,
                label,
                project_name=project_name,
                meter_config=meter_config,
            )
            click.echo(f"Saved {label} to {path}")
