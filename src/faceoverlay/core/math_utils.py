"""NumPy-backed math utilities for vectors, bases and rigid transforms.

Vectors are plain numpy arrays; quaternions are [x, y, z, w] arrays.
Matrices are 4x4 numpy arrays indexed [row, col], with basis vectors
stored in columns (OpenGL convention).
"""

import numpy as np
from numpy.typing import NDArray

# Type aliases
Vec3 = NDArray[np.float64]
Mat3 = NDArray[np.float64]
Mat4 = NDArray[np.float64]
Quat = NDArray[np.float64]  # [x, y, z, w]


def mat4_from_basis(x_axis: Vec3, y_axis: Vec3, z_axis: Vec3) -> Mat4:
    """Build a rotation matrix whose columns are the three given axes."""
    m = np.eye(4, dtype=np.float64)
    m[:3, 0] = x_axis
    m[:3, 1] = y_axis
    m[:3, 2] = z_axis
    return m


def mat4_with_translation(m: Mat4, position: Vec3) -> Mat4:
    """Return a copy of *m* with its translation column set to *position*."""
    out = np.array(m, dtype=np.float64)
    out[:3, 3] = position
    return out


def unit(v: Vec3) -> Vec3:
    """Divide by the Euclidean length without guarding zero vectors.

    Zero-length input yields NaN components (numpy warns, does not raise).
    Use :func:`normalize_rows` where a zero vector is an expected input.
    """
    return v / np.linalg.norm(v)


def normalize_rows(v: NDArray) -> NDArray:
    """Normalize each row of an (N, 3) array; zero rows stay zero."""
    lengths = np.linalg.norm(v, axis=1, keepdims=True)
    out = np.zeros_like(v)
    np.divide(v, lengths, out=out, where=lengths > 0)
    return out


def mat3_to_quat(r: Mat3) -> Quat:
    """Convert a single 3x3 rotation matrix to a quaternion [x, y, z, w]."""
    return batch_mat3_to_quat(np.asarray(r, dtype=np.float64)[None, :3, :3])[0]


def batch_mat3_to_quat(R: NDArray) -> NDArray:
    """Convert (N, 3, 3) rotation matrices to (N, 4) quaternions [x, y, z, w].

    Uses Shepperd's method with masked branching for numerical stability.
    """
    N = len(R)
    q = np.zeros((N, 4), dtype=np.float64)
    trace = R[:, 0, 0] + R[:, 1, 1] + R[:, 2, 2]

    # Case 1: trace > 0
    m1 = trace > 0
    if m1.any():
        s = 0.5 / np.sqrt(trace[m1] + 1.0)
        q[m1, 3] = 0.25 / s
        q[m1, 0] = (R[m1, 2, 1] - R[m1, 1, 2]) * s
        q[m1, 1] = (R[m1, 0, 2] - R[m1, 2, 0]) * s
        q[m1, 2] = (R[m1, 1, 0] - R[m1, 0, 1]) * s

    # Case 2: R[0,0] is largest diagonal
    m2 = ~m1 & (R[:, 0, 0] > R[:, 1, 1]) & (R[:, 0, 0] > R[:, 2, 2])
    if m2.any():
        s = 2.0 * np.sqrt(1.0 + R[m2, 0, 0] - R[m2, 1, 1] - R[m2, 2, 2])
        q[m2, 3] = (R[m2, 2, 1] - R[m2, 1, 2]) / s
        q[m2, 0] = 0.25 * s
        q[m2, 1] = (R[m2, 0, 1] + R[m2, 1, 0]) / s
        q[m2, 2] = (R[m2, 0, 2] + R[m2, 2, 0]) / s

    # Case 3: R[1,1] is largest diagonal
    m3 = ~m1 & ~m2 & (R[:, 1, 1] > R[:, 2, 2])
    if m3.any():
        s = 2.0 * np.sqrt(1.0 + R[m3, 1, 1] - R[m3, 0, 0] - R[m3, 2, 2])
        q[m3, 3] = (R[m3, 0, 2] - R[m3, 2, 0]) / s
        q[m3, 0] = (R[m3, 0, 1] + R[m3, 1, 0]) / s
        q[m3, 1] = 0.25 * s
        q[m3, 2] = (R[m3, 1, 2] + R[m3, 2, 1]) / s

    # Case 4: R[2,2] is largest diagonal
    m4 = ~m1 & ~m2 & ~m3
    if m4.any():
        s = 2.0 * np.sqrt(1.0 + R[m4, 2, 2] - R[m4, 0, 0] - R[m4, 1, 1])
        q[m4, 3] = (R[m4, 1, 0] - R[m4, 0, 1]) / s
        q[m4, 0] = (R[m4, 0, 2] + R[m4, 2, 0]) / s
        q[m4, 1] = (R[m4, 1, 2] + R[m4, 2, 1]) / s
        q[m4, 2] = 0.25 * s

    return q


def quat_rotate_vec3(q: Quat, v: Vec3) -> Vec3:
    """Rotate a vector by a quaternion."""
    qv = q[:3]
    w = q[3]
    t = 2.0 * np.cross(qv, v)
    return v + w * t + np.cross(qv, t)
