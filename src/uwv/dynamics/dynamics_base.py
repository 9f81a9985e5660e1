import numpy as np

from abc import ABC, abstractmethod


class DynamicsBase(ABC):
    """
    Interface of a 6-DOF underwater vehicle model evaluated once per control cycle.

    `calc_acceleration` answers "what does this effort do" and
    `calc_efforts` answers "what effort does this acceleration need", both
    for a given body-fixed velocity and body-to-world orientation. Vectors
    are ordered [u, v, w, p, q, r]. Implementations keep no state between
    calls; the caller owns the integrator.
    """

    @abstractmethod
    def calc_acceleration(self, control_input, velocity, orientation) -> np.ndarray:
        """
        Compute body-fixed accelerations from efforts and the current state.

        Args:
            control_input: Forces and torques [N, N, N, Nm, Nm, Nm], shape (6,).
            velocity: Body-fixed velocity [m/s, m/s, m/s, rad/s, rad/s, rad/s], shape (6,).
            orientation: Rotation from body frame to world frame.

        Returns:
            Linear and angular acceleration [m/s², rad/s²], shape (6,).
        """
        pass


    @abstractmethod
    def calc_efforts(self, acceleration, velocity, orientation) -> np.ndarray:
        """
        Compute the efforts needed to produce an acceleration in the current state.

        Args:
            acceleration: Linear and angular acceleration [m/s², rad/s²], shape (6,).
            velocity: Body-fixed velocity [m/s, m/s, m/s, rad/s, rad/s, rad/s], shape (6,).
            orientation: Rotation from body frame to world frame.

        Returns:
            Forces and torques [N, N, N, Nm, Nm, Nm], shape (6,).
        """
        pass
