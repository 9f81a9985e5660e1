"""
Hydrodynamic force terms for a 6-DOF underwater vehicle.

Pure functions shared by the forward and inverse dynamics:

    - Inverse of the combined inertia matrix (SVD based)
    - Gravity and buoyancy restoring forces
    - Coriolis and centripetal coupling
    - Linear, quadratic and per-DOF quadratic damping
    - Fidelity dispatch and argument checks

Based on:

    Fossen, T. I. (1994). *Guidance and Control of Ocean Vehicles*. Wiley.
    McFarland, C. J., Whitcomb, L. L. (2013). *Experimental evaluation of
    adaptive model-based control for underwater vehicles*. IEEE ICRA.

Vectors are ordered [linear; angular] = [u, v, w, p, q, r]. Positive z
points up, which flips the sign of the restoring terms with respect to
the marine literature.
"""

import logging
import numpy as np

from typing import Callable, Dict, Sequence
from scipy.spatial.transform import Rotation
from uwv.dynamics.exceptions import InvalidConfiguration, InvalidInput
from uwv.vehicle.uwv_parameters import ModelType, UWVParameters, REQUIRED_DAMPING_MATRICES


logger = logging.getLogger(__name__)

DOF = 6
E3 = np.array([0.0, 0.0, 1.0])


def calc_inv_inertia_matrix(inertia_matrix: np.ndarray) -> np.ndarray:
    """
    Invert the inertia matrix through a singular value decomposition.

    Solves M * X = I in the least-squares sense. Singular values below
    `max(s) * 6 * eps` are treated as zero, so a singular matrix yields
    its pseudo-inverse instead of raising. The caller is responsible for
    supplying a well-conditioned matrix; a rank deficiency is only logged.

    Args:
        inertia_matrix: Combined rigid-body and added-mass inertia, shape (6, 6).

    Returns:
        The (pseudo-)inverse, shape (6, 6).
    """

    matrix = np.asarray(inertia_matrix, dtype=float)
    u, s, vt = np.linalg.svd(matrix)

    tolerance = s.max() * max(matrix.shape) * np.finfo(float).eps
    nonzero = s > tolerance

    s_inv = np.zeros_like(s)
    s_inv[nonzero] = 1.0 / s[nonzero]

    rank = int(np.count_nonzero(nonzero))
    if rank < matrix.shape[0]:
        logger.warning(f"Inertia matrix is rank deficient (rank {rank} of {matrix.shape[0]}), "
                       f"using its pseudo-inverse.")

    return (vt.T * s_inv) @ u.T


def as_rotation(orientation) -> Rotation:
    """
    Coerce an orientation to a scipy Rotation.

    Args:
        orientation: A Rotation, or a quaternion [x, y, z, w] mapping the
            body frame to the world frame. Quaternions are normalised.

    Raises:
        InvalidInput: If the quaternion is malformed, non-finite or has zero norm,
            or a Rotation holds more than one rotation.
    """

    if isinstance(orientation, Rotation):
        if not orientation.single:
            raise InvalidInput("orientation must be a single rotation")
        return orientation

    try:
        quaternion = np.asarray(orientation, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"orientation is not a quaternion: {e}") from e

    if quaternion.shape != (4,):
        raise InvalidInput(f"orientation must be a quaternion of shape (4,), got {quaternion.shape}")
    if not np.all(np.isfinite(quaternion)):
        raise InvalidInput("orientation is unset")
    if np.linalg.norm(quaternion) == 0.0:
        raise InvalidInput("orientation has zero norm")

    return Rotation.from_quat(quaternion)


def calc_gravity_buoyancy(orientation, weight: float, buoyancy: float,
                          cg: np.ndarray, cb: np.ndarray) -> np.ndarray:
    """
    Restoring force and moment from weight and buoyancy.

        f = R^T * [0, 0, W - B]
        t = (cg * W - cb * B) x (R^T * e3)

    R rotates from the body frame to the world frame.
    """

    world_to_body = as_rotation(orientation).inv()
    up_in_body = world_to_body.apply(E3)

    force = up_in_body * (weight - buoyancy)
    torque = np.cross(np.asarray(cg) * weight - np.asarray(cb) * buoyancy, up_in_body)

    return np.concatenate((force, torque))


def calc_coriolis_effect(inertia_matrix: np.ndarray, velocity: np.ndarray) -> np.ndarray:
    """
    Coriolis and centripetal effect, -H(M * v) * v.

    H maps p = M * v to the skew-symmetric coupling operator
    [[0, S(p1)], [S(p1), S(p2)]]; applying it to v reduces to cross products.
    """

    velocity = np.asarray(velocity, dtype=float)
    prod = np.asarray(inertia_matrix) @ velocity

    linear = np.cross(prod[:3], velocity[3:])
    angular = np.cross(prod[:3], velocity[:3]) + np.cross(prod[3:], velocity[3:])

    return -np.concatenate((linear, angular))


def calc_lin_damping(lin_damp_matrix: np.ndarray, velocity: np.ndarray) -> np.ndarray:
    return np.asarray(lin_damp_matrix) @ velocity


def calc_quad_damping(quad_damp_matrix: np.ndarray, velocity: np.ndarray) -> np.ndarray:
    return np.asarray(quad_damp_matrix) @ (np.abs(velocity) * velocity)


def calc_simple_damping(damp_matrices: Sequence[np.ndarray], velocity: np.ndarray) -> np.ndarray:
    """
    Linear plus quadratic damping, D_lin * v + D_quad * |v| * v.

    The matrix count is checked here as well so the helper is safe to call
    on its own; DynamicModel has already validated it when the parameters
    were set.
    """

    if len(damp_matrices) != 2:
        raise InvalidConfiguration(f"damping_matrices does not have 2 elements, got {len(damp_matrices)}")

    return calc_lin_damping(damp_matrices[0], velocity) + calc_quad_damping(damp_matrices[1], velocity)


def calc_general_quad_damping(quad_damp_matrices: Sequence[np.ndarray], velocity: np.ndarray) -> np.ndarray:
    """
    Per-DOF quadratic damping, sum(D_i * |v_i|) * v, i = 1...6.

    Like calc_simple_damping, checks the matrix count for direct callers.
    """

    if len(quad_damp_matrices) != DOF:
        raise InvalidConfiguration(f"damping_matrices does not have {DOF} elements, got {len(quad_damp_matrices)}")

    damp_matrix = np.zeros((DOF, DOF))
    for matrix, speed in zip(quad_damp_matrices, np.abs(velocity)):
        damp_matrix += np.asarray(matrix) * speed

    return damp_matrix @ velocity


def _simple_model(parameters: UWVParameters, velocity: np.ndarray) -> np.ndarray:
    return calc_simple_damping(parameters.damping_matrices, velocity)


def _intermediate_model(parameters: UWVParameters, velocity: np.ndarray) -> np.ndarray:
    return (calc_coriolis_effect(parameters.inertia_matrix, velocity)
            + calc_simple_damping(parameters.damping_matrices, velocity))


def _complex_model(parameters: UWVParameters, velocity: np.ndarray) -> np.ndarray:
    return (calc_coriolis_effect(parameters.inertia_matrix, velocity)
            + calc_general_quad_damping(parameters.damping_matrices, velocity))


_DAMPING_MODELS: Dict[ModelType, Callable[[UWVParameters, np.ndarray], np.ndarray]] = {
    ModelType.SIMPLE: _simple_model,
    ModelType.INTERMEDIATE: _intermediate_model,
    ModelType.COMPLEX: _complex_model,
}


def calc_damping_and_coriolis_effect(parameters: UWVParameters, velocity: np.ndarray) -> np.ndarray:
    """
    Velocity-dependent forces for the configured fidelity level.

    SIMPLE: linear and quadratic damping.
    INTERMEDIATE: SIMPLE damping plus Coriolis.
    COMPLEX: per-DOF quadratic damping plus Coriolis.
    """

    try:
        model = _DAMPING_MODELS[parameters.model_type]
    except KeyError:
        raise InvalidConfiguration(f"Unknown model type: {parameters.model_type}")

    return model(parameters, np.asarray(velocity, dtype=float))


def check_parameters(parameters: UWVParameters) -> UWVParameters:
    """
    Validate vehicle parameters and return a frozen copy of them.

    Args:
        parameters: Candidate configuration.

    Returns:
        A read-only copy of `parameters` safe to store.

    Raises:
        InvalidConfiguration: If the damping matrix count does not match the
            model type, weight or buoyancy is not positive, or an array has
            the wrong shape or a non-finite entry.
    """

    if not isinstance(parameters, UWVParameters):
        raise InvalidConfiguration(f"Expected UWVParameters, got {type(parameters).__name__}")
    if not isinstance(parameters.model_type, ModelType):
        raise InvalidConfiguration(f"model_type must be a ModelType, got {parameters.model_type!r}")

    try:
        count = len(parameters.damping_matrices)
    except TypeError:
        raise InvalidConfiguration("damping_matrices must be a sequence of (6, 6) matrices")

    expected = REQUIRED_DAMPING_MATRICES[parameters.model_type]
    if count != expected:
        raise InvalidConfiguration(
            f"in {parameters.model_type.name} model, damping_matrices should have {expected} elements, "
            f"got {count}")

    try:
        frozen = parameters.frozen_copy()
    except (TypeError, ValueError) as e:
        raise InvalidConfiguration(f"parameters could not be converted to numeric arrays: {e}") from e

    if not frozen.weight > 0:
        raise InvalidConfiguration(f"weight must be a positive value, got {frozen.weight}")
    if not frozen.buoyancy > 0:
        raise InvalidConfiguration(f"buoyancy must be a positive value, got {frozen.buoyancy}")

    _check_array(frozen.inertia_matrix, (DOF, DOF), "inertia_matrix")
    for i, matrix in enumerate(frozen.damping_matrices):
        _check_array(matrix, (DOF, DOF), f"damping_matrices[{i}]")
    _check_array(frozen.distance_body2centerofgravity, (3,), "distance_body2centerofgravity")
    _check_array(frozen.distance_body2centerofbuoyancy, (3,), "distance_body2centerofbuoyancy")

    return frozen


def _check_array(array: np.ndarray, shape, name: str) -> None:
    if array.shape != shape:
        raise InvalidConfiguration(f"{name} must have shape {shape}, got {array.shape}")
    if not np.all(np.isfinite(array)):
        raise InvalidConfiguration(f"{name} contains non-finite values")


def check_vector(vector, name: str) -> np.ndarray:
    """
    Convert a 6-vector argument and reject it if it is unset.

    Raises:
        InvalidInput: If `vector` is not of shape (6,) or contains NaN.
    """

    try:
        array = np.asarray(vector, dtype=float)
    except (TypeError, ValueError) as e:
        raise InvalidInput(f"{name} is not numeric: {e}") from e

    if array.shape != (DOF,):
        raise InvalidInput(f"{name} must have shape ({DOF},), got {array.shape}")
    if np.isnan(array).any():
        raise InvalidInput(f"{name} is unset")

    return array
