import logging
import threading
import numpy as np

from typing import Optional
from dataclasses import dataclass
from uwv.config import default_parameters
from uwv.dynamics import hydrodynamics
from uwv.dynamics.exceptions import InvalidConfiguration, InvalidInput
from uwv.dynamics.dynamics_base import DynamicsBase
from uwv.vehicle.uwv_parameters import UWVParameters


logger = logging.getLogger(__name__)


@dataclass(frozen=True, eq=False)
class _ModelSnapshot:
    """Validated parameters together with the inverse derived from them."""
    parameters: UWVParameters
    inv_inertia_matrix: np.ndarray


class DynamicModel(DynamicsBase):
    """
    Rigid-body hydrodynamic model of an underwater vehicle.

    Computes the 6-DOF response of the vehicle to control efforts
    (forward dynamics) and the efforts required for a given acceleration
    (inverse dynamics):

        M * a + C(v) * v + D(v) * v + g(R) = tau

    The damping and Coriolis terms depend on the configured ModelType.

    The model holds no state besides its configuration. Parameters and the
    inverse inertia matrix derived from them are kept in one immutable
    snapshot that is swapped as a whole, so an instance can be shared by
    threads evaluating while another thread reconfigures it. Readers take
    no lock; they read the snapshot reference once per call. Writers hold
    `_lock` for the swap, so concurrent `set_uwv_parameters` calls commit
    one after the other and the last one to acquire the lock wins.
    """

    def __init__(self, parameters: Optional[UWVParameters] = None):
        """
        Initialize the model.

        Args:
            parameters: Vehicle configuration. When omitted, the default
                configuration from `uwv.config.default_parameters` is used.

        Raises:
            InvalidConfiguration: If `parameters` fails validation.
        """

        self._lock = threading.Lock()
        self._snapshot: Optional[_ModelSnapshot] = None
        self.set_uwv_parameters(parameters if parameters is not None else default_parameters())


    def set_uwv_parameters(self, parameters: UWVParameters) -> None:
        """
        Validate and store a new configuration.

        The inverse inertia matrix is recomputed before the configuration is
        committed. On failure the previous configuration stays in place.

        Note:
            A singular inertia matrix is not rejected; its pseudo-inverse is
            cached instead and a warning is logged. Check the conditioning of
            the matrix beforehand if a true inverse is required.

        Raises:
            InvalidConfiguration: If the damping matrix count does not match
                the model type, weight or buoyancy is not positive, or an
                array is malformed.
        """

        try:
            validated = hydrodynamics.check_parameters(parameters)
        except InvalidConfiguration as e:
            logger.error(f"Rejected UWV parameters: {e}")
            raise

        snapshot = _ModelSnapshot(
            parameters=validated,
            inv_inertia_matrix=hydrodynamics.calc_inv_inertia_matrix(validated.inertia_matrix),
        )
        snapshot.inv_inertia_matrix.setflags(write=False)

        with self._lock:
            self._snapshot = snapshot

        logger.info(f"UWV parameters updated: {validated.model_type.name} model with "
                    f"{len(validated.damping_matrices)} damping matrices.")

    set_parameters = set_uwv_parameters


    def get_uwv_parameters(self) -> UWVParameters:
        """
        Get the current configuration.

        Returns:
            UWVParameters: The stored configuration. Its arrays are read-only,
            so it cannot be used to alter the model.
        """

        return self._snapshot.parameters

    get_parameters = get_uwv_parameters


    @property
    def inverse_inertia_matrix(self) -> np.ndarray:
        """Cached (pseudo-)inverse of the configured inertia matrix."""
        return self._snapshot.inv_inertia_matrix


    def calc_acceleration(self, control_input, velocity, orientation) -> np.ndarray:
        """
        Forward dynamics, a = M^-1 * (tau - g(R) - d(v)).

        Raises:
            InvalidInput: If control_input or velocity contains NaN or has
                the wrong shape, or the orientation is degenerate.
        """

        snapshot = self._snapshot

        control_input = self._check_input(control_input, "control input")
        velocity = self._check_input(velocity, "velocity")
        rotation = self._check_orientation(orientation)

        acceleration = control_input - self._gravity_buoyancy(snapshot.parameters, rotation)
        acceleration -= hydrodynamics.calc_damping_and_coriolis_effect(snapshot.parameters, velocity)

        return snapshot.inv_inertia_matrix @ acceleration


    def calc_efforts(self, acceleration, velocity, orientation) -> np.ndarray:
        """
        Inverse dynamics, tau = M * a + g(R) + d(v).

        Raises:
            InvalidInput: If acceleration or velocity contains NaN or has the
                wrong shape, or the orientation is degenerate.
        """

        snapshot = self._snapshot

        acceleration = self._check_input(acceleration, "acceleration")
        velocity = self._check_input(velocity, "velocity")
        rotation = self._check_orientation(orientation)

        efforts = snapshot.parameters.inertia_matrix @ acceleration
        efforts += self._gravity_buoyancy(snapshot.parameters, rotation)
        efforts += hydrodynamics.calc_damping_and_coriolis_effect(snapshot.parameters, velocity)

        return efforts


    def calc_gravity_buoyancy(self, orientation) -> np.ndarray:
        """
        Restoring force and moment for the given orientation.

        Returns:
            [force; torque] in the body frame, shape (6,).
        """

        rotation = self._check_orientation(orientation)
        return self._gravity_buoyancy(self._snapshot.parameters, rotation)


    def calc_damping_and_coriolis_effect(self, velocity) -> np.ndarray:
        """
        Damping and Coriolis forces for the given velocity at the configured fidelity.
        """

        velocity = self._check_input(velocity, "velocity")
        return hydrodynamics.calc_damping_and_coriolis_effect(self._snapshot.parameters, velocity)


    @staticmethod
    def _gravity_buoyancy(parameters: UWVParameters, rotation) -> np.ndarray:
        return hydrodynamics.calc_gravity_buoyancy(
            rotation,
            parameters.weight,
            parameters.buoyancy,
            parameters.distance_body2centerofgravity,
            parameters.distance_body2centerofbuoyancy,
        )


    @staticmethod
    def _check_input(vector, name: str) -> np.ndarray:
        try:
            return hydrodynamics.check_vector(vector, name)
        except InvalidInput as e:
            logger.debug(f"DynamicModel rejected input: {e}")
            raise


    @staticmethod
    def _check_orientation(orientation):
        try:
            return hydrodynamics.as_rotation(orientation)
        except InvalidInput as e:
            logger.debug(f"DynamicModel rejected input: {e}")
            raise
