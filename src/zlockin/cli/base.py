from contextlib import contextmanager
from typing import Any, Generator

import click
from click_option_group import optgroup
from loguru import logger

from zlockin.device import Device
from zlockin.types import MeterConfig
from zlockin.util import DEFAULT_LOGLEVEL


def print_tree(cmd, prefix="", parent_ctx=None):
    """Print command tree starting from given command."""
    ctx = click.Context(cmd, info_name=cmd.name, parent=parent_ctx)

    # Only print root name if no parent
    if not parent_ctx:
        click.echo(cmd.name)

    for sub in sorted(cmd.list_commands(ctx)):
        sub_cmd = cmd.get_command(ctx, sub)
        click.echo(f"{prefix}└── {sub}")
        if isinstance(sub_cmd, click.Group):
            print_tree(sub_cmd, prefix + "    ", ctx)


def tree_option(f):
    """Add --tree option to command."""

    def callback(ctx, param, value):
        if not value or ctx.resilient_parsing:
            return
        print_tree(ctx.command)
        ctx.exit()

    return click.option(
        "--tree",
        is_flag=True,
        help="Show command tree from this point",
        expose_value=False,
        is_eager=True,
        callback=callback,
    )(f)


def log_options(f):
    """Add the logging option group to a command."""
    options = [
        optgroup.group("Logging"),
        optgroup.option(
            "--log-to-file/--no-log-to-file",
            "-ltf/",
            default=True,
            help="Enable/disable logging to file (default: enabled)",
        ),
        optgroup.option(
            "--log-to-stdout/--no-log-to-stdout",
            "-lts/",
            default=False,
            help="Enable/disable console logging (default: disabled)",
        ),
        optgroup.option(
            "--log-path",
            "-lp",
            default="",
            help="Custom path for log file (default: ~/.zlockin/zlockin.log)",
        ),
        optgroup.option(
            "--clear-prev-log/--no-clear-prev-log",
            "-c/",
            default=True,
            help="Clear previous log file on startup (default: enabled)",
        ),
        optgroup.option(
            "--log-level",
            "-ll",
            default=DEFAULT_LOGLEVEL,
            help="Logging level (TRACE, DEBUG, INFO, WARNING, ERROR) (default: INFO)",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def setup_logging(
    log_path: str = "",
    clear_prev_log: bool = True,
    log_to_file: bool = True,
    log_to_stdout: bool = False,
    log_level: str = DEFAULT_LOGLEVEL,
) -> None:
    """Configure logging based on parameters.

    Parameters
    ----------
    log_path : str, optional
        Path to log file. If empty, uses default path.
    clear_prev_log : bool, optional
        Whether to clear previous log file, by default True
    log_to_file : bool, optional
        Enable logging to file, by default True
    log_to_stdout : bool, optional
        Enable console logging, by default False
    log_level : str, optional
        Logging level (DEBUG, INFO, WARNING, ERROR), by default DEFAULT_LOGLEVEL
    """
    from zlockin.util.logging import start_log

    start_log(
        log_to_file=log_to_file,
        log_to_stdout=log_to_stdout,
        log_path=log_path,
        clear_prev=clear_prev_log,
        log_level=log_level,
    )


def load_meter(meter_name: str) -> MeterConfig:
    """Load a meter configuration, turning config errors into usage errors."""
    from zlockin.system import load_meter_config

    try:
        return load_meter_config(meter_name)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="'--meter-name'")


@contextmanager
def managed_source(
    meter_config: MeterConfig,
) -> Generator[Device, Any, None]:
    """Context manager for capture device setup and cleanup.

    Parameters
    ----------
    meter_config : MeterConfig
        Meter configuration naming the capture device
    """
    from zlockin.system import build_capture_source

    source = build_capture_source(meter_config)
    ok, msg = source.open()
    if not ok:
        raise click.ClickException(f"Could not open capture source: {msg}")
    try:
        yield source
    finally:
        try:
            source.close()
        except Exception:
            logger.exception("Error closing capture source")


@click.group()
@tree_option
def cli():
    """zlockin - synchronous (lock-in) impedance meter.

    Measures the complex impedance of a device under test (DUT) with a
    square wave excitation and quadrature demodulation of the response:

    - Measurement sessions averaged over many capture bursts

    - Open-circuit calibration and impedance calculation

    - Meter configuration management
    """
    pass
