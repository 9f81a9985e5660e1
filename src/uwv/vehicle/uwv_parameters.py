import numpy as np

from enum import auto, Enum
from typing import Sequence
from dataclasses import dataclass, field


class ModelType(Enum):
    SIMPLE = auto()
    INTERMEDIATE = auto()
    COMPLEX = auto()


# Linear + quadratic for SIMPLE/INTERMEDIATE, one quadratic matrix per DOF for COMPLEX
REQUIRED_DAMPING_MATRICES = {
    ModelType.SIMPLE: 2,
    ModelType.INTERMEDIATE: 2,
    ModelType.COMPLEX: 6,
}


@dataclass(frozen=True, eq=False)
class UWVParameters:
    """
    Container for the physical configuration of an underwater vehicle.

    This immutable dataclass holds everything the hydrodynamic model needs
    apart from the instantaneous state:

        - Combined rigid-body and added-mass inertia
        - Damping matrices, whose number and meaning depend on `model_type`
        - Weight, buoyancy and the offsets where they act

    Coordinate frame and conventions:
        - Body-fixed frame located at the vehicle origin.
        - Positive z points up (opposite to the usual marine convention).
        - Vectors are ordered [surge, sway, heave, roll, pitch, yaw].

    All units are expressed in SI unless otherwise specified.
    """

    inertia_matrix: np.ndarray = field(default_factory=lambda: np.eye(6))
    """
    Rigid-body plus added-mass inertia matrix, shape (6, 6). Must be invertible.
    """

    damping_matrices: Sequence[np.ndarray] = field(
        default_factory=lambda: (np.zeros((6, 6)), np.zeros((6, 6))))
    """
    Damping matrices, each of shape (6, 6).
    SIMPLE and INTERMEDIATE: (linear, quadratic).
    COMPLEX: one quadratic damping matrix per degree of freedom.
    """

    model_type: ModelType = ModelType.SIMPLE
    """
    Fidelity level of the damping and Coriolis terms.
    """

    distance_body2centerofgravity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    """
    Offset of the center of gravity from the body origin [m], shape (3,).
    """

    distance_body2centerofbuoyancy: np.ndarray = field(default_factory=lambda: np.zeros(3))
    """
    Offset of the center of buoyancy from the body origin [m], shape (3,).
    """

    weight: float = 1.0
    """
    Vehicle weight [N]. Must be positive.
    """

    buoyancy: float = 1.0
    """
    Buoyancy force [N]. Must be positive.
    """

    def frozen_copy(self) -> "UWVParameters":
        """
        Return a copy whose arrays are float64, owned, and read-only.

        The damping matrices are collected into a tuple so the stored
        configuration cannot be changed through a reference held by the
        caller.
        """

        def _freeze(value) -> np.ndarray:
            array = np.array(value, dtype=float)
            array.setflags(write=False)
            return array

        return UWVParameters(
            inertia_matrix=_freeze(self.inertia_matrix),
            damping_matrices=tuple(_freeze(matrix) for matrix in self.damping_matrices),
            model_type=self.model_type,
            distance_body2centerofgravity=_freeze(self.distance_body2centerofgravity),
            distance_body2centerofbuoyancy=_freeze(self.distance_body2centerofbuoyancy),
            weight=float(self.weight),
            buoyancy=float(self.buoyancy),
        )
