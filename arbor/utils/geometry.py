"""
Canonical vector geometry utilities for tree growth and meshing.

This module provides the single source of truth for the small vector
computations used across the codebase: guarded normalization, plane
projection, cone sampling and shortest-arc rotations.

UNIT CONVENTIONS
----------------
Angles are in RADIANS. The canonical up axis is +Y.
"""

import numpy as np
from typing import Optional, Tuple

UP = np.array([0.0, 1.0, 0.0])

EPSILON = 1e-12


def normalize(vector: np.ndarray, fallback: Optional[np.ndarray] = None) -> np.ndarray:
    """
    Normalize a vector, substituting a fallback for degenerate input.

    Parameters
    ----------
    vector : np.ndarray
        Vector to normalize (shape (3,))
    fallback : np.ndarray, optional
        Returned (normalized) when ``vector`` has (near) zero length.
        Defaults to the canonical up vector.

    Returns
    -------
    np.ndarray
        Unit vector
    """
    vector = np.asarray(vector, dtype=float)
    length = float(np.linalg.norm(vector))
    if length > EPSILON:
        return vector / length
    if fallback is None:
        return UP.copy()
    return normalize(fallback)


def project_onto_plane(vector: np.ndarray, normal: np.ndarray) -> np.ndarray:
    """Remove the component of ``vector`` along the unit ``normal``."""
    return vector - np.dot(vector, normal) * normal


def perpendicular_frame(axis: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Build two unit vectors perpendicular to ``axis`` and to each other.

    Parameters
    ----------
    axis : np.ndarray
        Unit vector (shape (3,))

    Returns
    -------
    u, w : np.ndarray
        Orthonormal pair spanning the plane perpendicular to ``axis``
    """
    helper = np.array([1.0, 0.0, 0.0])
    if abs(np.dot(axis, helper)) > 0.9:
        helper = np.array([0.0, 0.0, 1.0])
    u = normalize(np.cross(axis, helper))
    w = np.cross(axis, u)
    return u, w


def sample_cone_direction(
    axis: np.ndarray,
    half_angle: float,
    rng: np.random.Generator,
) -> np.ndarray:
    """
    Draw a direction uniformly from the spherical cap around ``axis``.

    Exactly two draws are taken from ``rng`` per call, so the sequence of
    draws does not depend on the geometry.

    Parameters
    ----------
    axis : np.ndarray
        Unit cone axis (shape (3,))
    half_angle : float
        Cone half-angle in radians
    rng : np.random.Generator
        Seeded generator

    Returns
    -------
    np.ndarray
        Unit vector inside the cone
    """
    cos_theta = rng.uniform(np.cos(half_angle), 1.0)
    phi = rng.uniform(0.0, 2.0 * np.pi)
    sin_theta = np.sqrt(max(0.0, 1.0 - cos_theta * cos_theta))
    u, w = perpendicular_frame(axis)
    direction = cos_theta * axis + sin_theta * (np.cos(phi) * u + np.sin(phi) * w)
    return normalize(direction, fallback=axis)


def rotation_arc(source: np.ndarray, target: np.ndarray) -> np.ndarray:
    """
    Rotation matrix taking unit ``source`` onto unit ``target`` along the
    shortest arc.

    Antiparallel inputs rotate by pi about an axis perpendicular to
    ``source``.

    Returns
    -------
    np.ndarray
        Rotation matrix (shape (3, 3))
    """
    v = np.cross(source, target)
    c = float(np.dot(source, target))

    if c < -1.0 + 1e-9:
        k, _ = perpendicular_frame(source)
        return 2.0 * np.outer(k, k) - np.eye(3)

    vx = np.array([
        [0.0, -v[2], v[1]],
        [v[2], 0.0, -v[0]],
        [-v[1], v[0], 0.0],
    ])
    return np.eye(3) + vx + vx @ vx * (1.0 / (1.0 + c))


def in_cone(
    offsets: np.ndarray,
    axis: np.ndarray,
    half_angle: float,
    max_distance: float,
) -> Tuple[np.ndarray, np.ndarray]:
    """
    Test which offset vectors fall inside a cone with apex at the origin.

    Parameters
    ----------
    offsets : np.ndarray
        Vectors from the cone apex (shape (N, 3))
    axis : np.ndarray
        Unit cone axis
    half_angle : float
        Cone half-angle in radians
    max_distance : float
        Cone radius; offsets farther away are outside

    Returns
    -------
    mask : np.ndarray
        Boolean mask (shape (N,)); zero-length offsets are outside
    distances : np.ndarray
        Euclidean length of every offset (shape (N,))
    """
    distances = np.linalg.norm(offsets, axis=1)
    nonzero = distances > EPSILON
    cosines = np.zeros_like(distances)
    cosines[nonzero] = (offsets[nonzero] @ axis) / distances[nonzero]
    mask = nonzero & (distances <= max_distance) & (cosines >= np.cos(half_angle))
    return mask, distances


__all__ = [
    "UP",
    "EPSILON",
    "normalize",
    "project_onto_plane",
    "perpendicular_frame",
    "sample_cone_direction",
    "rotation_arc",
    "in_cone",
]
