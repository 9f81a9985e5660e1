import os
import logging
import numpy as np

from typing import Any, Mapping, Optional
from uwv.dynamics.exceptions import InvalidConfiguration
from uwv.vehicle.uwv_parameters import ModelType, UWVParameters


LOG_FORMAT = '%(levelname)s: %(message)s'
LOG_LEVEL_ENV = "UWV_LOG_LEVEL"


"""
Default vehicle configuration. A neutrally buoyant body with unit inertia
and no damping; replace it with identified values for a real vehicle.
"""

DEFAULT_UWV_PARAMETERS = {
    'inertia_matrix': np.eye(6),
    'damping_matrices': (np.zeros((6, 6)), np.zeros((6, 6))),
    'model_type': ModelType.SIMPLE,
    'distance_body2centerofgravity': np.zeros(3),
    'distance_body2centerofbuoyancy': np.zeros(3),
    'weight': 1.0,
    'buoyancy': 1.0,
}


def default_parameters() -> UWVParameters:
    """Build a fresh copy of the default configuration"""
    return parameters_from_dict({})


def parameters_from_dict(values: Mapping[str, Any]) -> UWVParameters:
    """
    Build vehicle parameters from a plain mapping.

    Keys missing from `values` fall back to DEFAULT_UWV_PARAMETERS. The
    model type may be given as a ModelType or by name, case-insensitive.
    The result is not validated yet; that happens when it is handed to
    the dynamic model.

    Args:
        values: Mapping with a subset of the UWVParameters field names.

    Returns:
        UWVParameters: New parameters owning copies of all arrays.

    Raises:
        InvalidConfiguration: If a key is unknown or the model type name
            does not exist.
    """
    unknown = set(values) - set(DEFAULT_UWV_PARAMETERS)
    if unknown:
        raise InvalidConfiguration(f"Unknown UWV parameter(s): {', '.join(sorted(unknown))}")

    merged = {**DEFAULT_UWV_PARAMETERS, **values}

    model_type = merged['model_type']
    if not isinstance(model_type, ModelType):
        try:
            model_type = ModelType[str(model_type).upper()]
        except KeyError:
            available = ', '.join(member.name for member in ModelType)
            raise InvalidConfiguration(f"Unknown model type: {model_type}. Available: {available}")

    try:
        return UWVParameters(
            inertia_matrix=np.array(merged['inertia_matrix'], dtype=float),
            damping_matrices=tuple(np.array(matrix, dtype=float) for matrix in merged['damping_matrices']),
            model_type=model_type,
            distance_body2centerofgravity=np.array(merged['distance_body2centerofgravity'], dtype=float),
            distance_body2centerofbuoyancy=np.array(merged['distance_body2centerofbuoyancy'], dtype=float),
            weight=merged['weight'],
            buoyancy=merged['buoyancy'],
        )
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"UWV parameters could not be converted to numeric arrays: {e}") from e


def configure_logging(level: Optional[int] = None, logfile: Optional[str] = None) -> None:
    """
    Configure global logging for applications embedding the model.

    Args:
        level: Logging level. Defaults to the UWV_LOG_LEVEL environment
            variable, or INFO when it is not set.
        logfile: Optional file to log to instead of stderr.
    """
    if level is None:
        level = logging.getLevelName(os.environ.get(LOG_LEVEL_ENV, "INFO").upper())
        if not isinstance(level, int):
            level = logging.INFO

    logging.basicConfig(filename=logfile, level=level, format=LOG_FORMAT)
