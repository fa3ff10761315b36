# -*- coding: utf-8 -*-
"""Utilities for saving and reloading measurement vectors.

Directory Structure
-----------------
Data is saved in a hierarchical structure:
<save_dir>/<YYYY>/<YYYY-MM>/<YYYY-MM-DD>_<project_name>/

Directory Selection Logic
-----------------------
- Empty project_name: Always creates/uses directory for current day
- Named project: Reuses most recent matching directory to keep related
  measurements together (e.g. an open-circuit pass and its DUT passes)

File Naming
----------
Files within directories use 4-digit counters (0000-9999):
<counter>_<name>.json

Example: 0000_open.json, 0001_dut.json
"""

from __future__ import annotations

import glob
import os
import time
import typing
from datetime import datetime

import numpy as np
import simplejson as json
from loguru import logger

from zlockin._version import __version__

if typing.TYPE_CHECKING:
    from zlockin.meas.demod import MeasurementVector
    from zlockin.types.config import MeterConfig


class NumpyEncoder(json.JSONEncoder):
    """Special json encoder for numpy types"""

    # o = an object to be encoded
    def default(self, o):
        if isinstance(o, np.integer):
            return int(o)
        if isinstance(o, np.floating):
            return float(o)
        if isinstance(o, np.ndarray):
            return o.tolist()
        return json.JSONEncoder.default(self, o)


def _get_latest_directory(root_dir: str, project_name: str) -> str:
    """Get the most recent directory matching our date format and project name.

    Searches for directories matching pattern:
    <root>/<YYYY>/<YYYY-MM>/<YYYY-MM-DD>_<project_name>

    Returns the most recently created matching directory, or an empty string.
    """
    date_pattern = os.path.join(
        root_dir,
        "[0-9][0-9][0-9][0-9]",
        "[0-9][0-9][0-9][0-9]-[0-9][0-9]",
        "[0-9][0-9][0-9][0-9]-[0-9][0-9]-[0-9][0-9]_" + project_name,
    )
    directories = glob.glob(date_pattern)

    if not directories:
        return ""

    return max(directories, key=os.path.getctime)


def _get_dir(save_dir: str, project_name: str = "") -> str:
    """Get directory for saving data.

    - Empty project_name: always the directory for the current day
    - Named project: reuse the most recent matching directory, or create a
      new dated one
    """
    data_root = os.path.abspath(save_dir)

    if project_name:
        latest_dir = _get_latest_directory(data_root, project_name)
        if latest_dir:
            return latest_dir

    date = time.strftime("%Y/%Y-%m/%Y-%m-%d_")
    return os.path.normpath(os.path.join(data_root, date + project_name))


def _get_path(dr: str, name: str) -> str:
    """Generate a numbered path for a new measurement file.

    Creates paths with format: <dir>/<counter>_<name>
    where counter is a 4-digit number (0000-9999) that hasn't been used yet.

    Raises
    ------
    ValueError
        If directory already contains 9999 files
    """
    counter = 0
    file_list = os.listdir(dr)
    while True:
        check_str = f"{counter:04}_"
        if not any(x.startswith(check_str) for x in file_list):
            break
        counter += 1
        if counter > 9999:
            raise ValueError("Too many files in directory")
    return os.path.join(dr, f"{counter:04}_{name}")


def save_measurement(
    vector: MeasurementVector,
    save_dir: str,
    name: str,
    project_name: str = "",
    meter_config: MeterConfig | None = None,
    notes: str = "",
) -> str:
    """Save a measurement vector (and the meter setup) as JSON.

    Parameters
    ----------
    vector : MeasurementVector
        Normalized result of one measurement session
    save_dir : str
        Root data directory
    name : str
        Short measurement name used in the filename (e.g. "open", "dut")
    project_name : str, optional
        Groups related measurements in one directory
    meter_config : MeterConfig, optional
        Configuration the vector was measured with
    notes : str, optional
        Free-form operator notes

    Returns
    -------
    str
        Path of the written JSON file
    """
    dr = _get_dir(save_dir, project_name)
    os.makedirs(dr, exist_ok=True)
    path = _get_path(dr, name) + ".json"

    data = {
        "zlockin_version": __version__,
        "timestamp": datetime.now().isoformat(),
        "name": name,
        "notes": notes,
        "components": vector.components,
        "bursts": vector.bursts,
        "dropped": vector.dropped,
        "meter_config": meter_config.to_dict() if meter_config is not None else None,
    }
    with open(path, "w") as f:
        json.dump(data, f, cls=NumpyEncoder, indent=4)

    logger.info("Saved measurement '{}' to {}", name, path)
    return path


def load_measurement(path: str) -> MeasurementVector:
    """Load a measurement vector previously written by `save_measurement`."""
    from zlockin.meas.demod import MeasurementVector

    with open(path, "r") as f:
        data = json.load(f)

    try:
        components = np.asarray(data["components"], dtype=np.int64)
        vector = MeasurementVector(
            components=components,
            bursts=int(data["bursts"]),
            dropped=int(data.get("dropped", 0)),
        )
    except KeyError as e:
        raise ValueError(f"{path} is not a measurement file (missing {e})") from e
    except TypeError as e:
        raise ValueError(f"{path} is not a measurement file ({e})") from e

    logger.debug("Loaded measurement from {}: {}", path, vector)
    return vector


def load_measurement_config(path: str) -> MeterConfig | None:
    """Meter configuration stored alongside a saved measurement, if any."""
    from zlockin.types.config import MeterConfig

    with open(path, "r") as f:
        data = json.load(f)
    if not data.get("meter_config"):
        return None
    return MeterConfig.from_dict(data["meter_config"])
