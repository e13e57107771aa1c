"""
Kalman Filter for Image Target Corners.

Smooths the four projected target corners between frames so the anchor
pose does not jitter.
"""

from __future__ import annotations

import numpy as np
from numpy.typing import NDArray


class KalmanCornerTracker:
    """
    Constant-velocity Kalman filter over four 2D corners.

    State vector: [x0, y0, x1, y1, x2, y2, x3, y3, vx0, vy0, ..., vx3, vy3]
    Measurement: [x0, y0, x1, y1, x2, y2, x3, y3]
    """

    def __init__(
        self,
        corners: NDArray[np.float64],
        process_noise: float = 0.01,
        measurement_noise: float = 0.1,
    ):
        """
        Initialize Kalman tracker with the first corner measurement.

        Args:
            corners: (4, 2) corner positions in pixels
            process_noise: Process noise covariance
            measurement_noise: Measurement noise covariance
        """
        self.dim_z = 8
        self.dim_x = 16

        # State transition matrix
        self.F = np.eye(self.dim_x)
        self.F[:self.dim_z, self.dim_z:] = np.eye(self.dim_z)  # position += velocity

        # Measurement matrix (positions only)
        self.H = np.zeros((self.dim_z, self.dim_x))
        self.H[:, :self.dim_z] = np.eye(self.dim_z)

        # Process noise covariance
        self.Q = np.eye(self.dim_x) * process_noise
        self.Q[self.dim_z:, self.dim_z:] *= 10  # Higher noise for velocity components

        # Measurement noise covariance
        self.R = np.eye(self.dim_z) * measurement_noise

        # Initial state covariance
        self.P = np.eye(self.dim_x)
        self.P[self.dim_z:, self.dim_z:] *= 1000  # High uncertainty for initial velocities

        self.x = np.zeros(self.dim_x)
        self.x[:self.dim_z] = np.asarray(corners, dtype=np.float64).reshape(-1)

        self.age = 0
        self.hits = 1
        self.time_since_update = 0

    def predict(self) -> NDArray[np.float64]:
        """
        Predict next state.

        Returns:
            Predicted (4, 2) corners
        """
        self.x = self.F @ self.x
        self.P = self.F @ self.P @ self.F.T + self.Q

        self.age += 1
        self.time_since_update += 1
        return self.get_state()

    def update(self, corners: NDArray[np.float64]) -> NDArray[np.float64]:
        """
        Update state with measured corners.

        Args:
            corners: (4, 2) measured corners

        Returns:
            Filtered (4, 2) corners
        """
        self.time_since_update = 0
        self.hits += 1

        z = np.asarray(corners, dtype=np.float64).reshape(-1)

        # Innovation (measurement residual)
        y = z - self.H @ self.x

        # Innovation covariance
        S = self.H @ self.P @ self.H.T + self.R

        # Kalman gain
        K = self.P @ self.H.T @ np.linalg.inv(S)

        self.x = self.x + K @ y

        I = np.eye(self.dim_x)
        self.P = (I - K @ self.H) @ self.P
        return self.get_state()

    def get_state(self) -> NDArray[np.float64]:
        """Current (4, 2) corner estimate."""
        return self.x[:self.dim_z].reshape(4, 2).copy()

    def get_velocity(self) -> NDArray[np.float64]:
        """Current (4, 2) corner velocity estimate in pixels per frame."""
        return self.x[self.dim_z:].reshape(4, 2).copy()
