# -*- coding: utf-8 -*-
# pydoit task file
# see https://pydoit.org/
# run from this dir with `doit`, or `doit list`, `doit help` etc. (pip install doit 1st)

from doit.action import CmdAction

SPEED_MARKERS = {
    "slow": "-m slow",
    "fast": '-m "not slow"',
    "not slow": '-m "not slow"',
    "hardware": "-m hardware",
    "all": "",
}

TEST_PARAMS = [
    {"name": "help", "long": "help", "default": False, "type": bool},
    {"name": "keyword", "short": "k", "default": ""},
    {"name": "speed", "short": "s", "default": "all"},
    {"name": "retry", "short": "r", "default": False, "type": bool},
    {"name": "print_logs", "short": "p", "default": False, "type": bool},
    {"name": "full_trace", "short": "f", "default": False, "type": bool},
    {"name": "show_time", "short": "t", "default": False, "type": bool},
]

TEST_HELP = """echo '
Test Runner Help
================

Filter Options:
  -k, --keyword TEXT    Only run tests matching the keyword expression
                        Example: -k "impedance and not cli"
  -s, --speed TEXT      "slow", "fast" (or "not slow"), "hardware" or "all"
  -r, --retry           Only run previously failed tests

Output Options:
  -p, --print-logs      Print test logs to console instead of capturing
  -f, --full-trace      Show full traceback on errors
  -t, --show-time       Display duration of all tests

Examples:
  doit test_logic                     # Run all tests
  doit test_logic -k demod            # Run tests containing "demod"
  doit test_logic -s fast -p          # Run fast tests with logs
  doit test_logic --retry --show-time # Rerun failed tests with timing
  '"""


def _build_pytest_command(
    test_dir,
    keyword="",
    speed="all",
    retry=False,
    print_logs=False,
    full_trace=False,
    show_time=False,
):
    """Helper function to build pytest commands for test tasks."""
    if speed not in SPEED_MARKERS:
        raise ValueError(
            f"Invalid speed filter: {speed}. Use one of {', '.join(SPEED_MARKERS)}"
        )
    cmd = ["pytest", "--color=yes", "-vv", "-x"]
    if print_logs:
        cmd.append("--capture=no")
    if full_trace:
        cmd.append("--full-trace")
    if show_time:
        cmd.append("--durations=0")
    if retry:
        cmd.append("--lf")
    if keyword:
        cmd.extend(["-k", f'"{keyword}"'])
    if SPEED_MARKERS[speed]:
        cmd.append(SPEED_MARKERS[speed])
    cmd.append(test_dir)
    return " ".join(cmd)


def task_make_env():
    """Create a conda environment"""
    return {
        "actions": ["conda create --prefix ./conda_env python=3.11"],
        "targets": ["./conda_env"],
        "uptodate": [True],  # Only run if target doesn't exist
        "verbosity": 2,
    }


def task_install():
    """Install zlockin in editable mode, with test dependencies"""
    return {
        "actions": ["pip install -e .[test]"],
        "task_dep": ["make_env"],
        "verbosity": 2,
    }


def task_test_logic():
    """Run the logic test suite (tests in test/logic/)."""

    def router(keyword, speed, retry, print_logs, full_trace, show_time, help=False):
        if help:
            return TEST_HELP
        try:
            return _build_pytest_command(
                "test/logic/",
                keyword=keyword,
                speed=speed,
                retry=retry,
                print_logs=print_logs,
                full_trace=full_trace,
                show_time=show_time,
            )
        except ValueError as e:
            return f"echo 'Error: {str(e)}' && exit 1"

    return {
        "actions": [CmdAction(router)],
        "params": TEST_PARAMS,
        "verbosity": 2,
    }


def task_format():
    """Format code using ruff (sort imports, then format)."""
    targets = ["src/zlockin", "test/", "dodo.py"]
    actions = []
    for target in targets:
        actions.append(f"ruff check --select I --fix {target}")
        actions.append(f"ruff format {target}")
    return {"actions": actions, "verbosity": 2}


def task_docs():
    """Generate HTML documentation in docs/ using pdoc3."""
    return {
        "actions": [
            "pdoc3 --output-dir docs/ --html --force --skip-errors ./src/zlockin/"
        ],
        "verbosity": 2,
    }
