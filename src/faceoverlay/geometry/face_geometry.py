"""Face mesh geometry driven by per-frame landmarks.

:class:`FaceGeometry` owns one set of vertex buffers for a tracked face.
Each frame the caller passes the estimator's landmarks to :meth:`update`,
which rewrites positions, normals and UVs in place and flags the changed
buffers for the rendering sink.  :meth:`track` derives a rigid frame from
any three landmarks for attaching props.

Landmarks arrive in estimator pixel space (x right, y down, z into the
screen).  The local object space is centred on the source frame with y up
and z toward the viewer, so an orthographic camera spanning
``[-w/2, w/2] x [-h/2, h/2]`` shows the mesh over the video.

Typical frame loop::

    geometry = FaceGeometry(use_video_uvs=True)
    geometry.set_size(video_w, video_h)
    ...
    faces = landmarks_from_result(result, video_w, video_h)
    if faces:
        geometry.update(faces[0], source_mirrored=True)
        nose = geometry.track_anchor("nose")
    upload(geometry.geometry.consume_dirty())
"""

import logging
from typing import Optional

import numpy as np
from numpy.typing import NDArray

from faceoverlay.constants import DEFAULT_POSITION_SCALE
from faceoverlay.core.events import EventBus, EventType
from faceoverlay.core.mesh import NORMAL, POSITION, UV, BufferGeometry
from faceoverlay.geometry.anchors import get_anchor
from faceoverlay.geometry.topology import TopologyTable, default_topology
from faceoverlay.geometry.tracking import TrackFrame, compute_frame

logger = logging.getLogger(__name__)


class FaceGeometry:
    """Renderable face mesh with fixed topology and per-frame vertex data.

    Parameters
    ----------
    topology : TopologyTable, optional
        Connectivity and reference UVs.  Defaults to
        ``assets/meshdata/face_topology.json``, which
        ``tools/extract_topology.py`` generates.
    use_video_uvs : bool
        If True, UVs are re-projected onto the source frame every update so
        a video texture lines up with the face.  Otherwise the reference
        parameterization is used.
    scale : float
        Factor applied to positions after the axis conversion.
    event_bus : EventBus, optional
        Receives ``GEOMETRY_UPDATED`` after each update.
    """

    def __init__(
        self,
        topology: Optional[TopologyTable] = None,
        use_video_uvs: bool = False,
        scale: float = DEFAULT_POSITION_SCALE,
        event_bus: Optional[EventBus] = None,
    ):
        self.topology = topology if topology is not None else default_topology()
        self.use_video_uvs = use_video_uvs
        self.scale = float(scale)
        self.event_bus = event_bus

        self.flipped = False
        self.width: Optional[float] = None
        self.height: Optional[float] = None
        self._updates = 0

        self.geometry = BufferGeometry.allocate(
            self.topology.vertex_count, self.topology.triangles(),
        )
        self._write_reference_uvs()
        self.geometry.compute_normals()

    # ── Buffer views ──────────────────────────────────────────────────

    @property
    def vertex_count(self) -> int:
        return self.topology.vertex_count

    @property
    def positions(self) -> NDArray[np.float32]:
        """(N, 3) view of the position buffer."""
        return self.geometry.positions.reshape(-1, 3)

    @property
    def normals(self) -> NDArray[np.float32]:
        return self.geometry.normals.reshape(-1, 3)

    @property
    def uvs(self) -> NDArray[np.float32]:
        return self.geometry.uvs.reshape(-1, 2)

    @property
    def indices(self) -> NDArray[np.uint32]:
        return self.geometry.indices.reshape(-1, 3)

    @property
    def is_ready(self) -> bool:
        """True once at least one frame has been applied."""
        return self._updates > 0

    # ── Frame size ────────────────────────────────────────────────────

    def set_size(self, width: float, height: float) -> bool:
        """Record the source frame dimensions.

        Returns True if they changed.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Frame size must be positive, got {width}x{height}")
        if width == self.width and height == self.height:
            return False

        self.width = float(width)
        self.height = float(height)
        logger.debug("Face geometry frame size set to %gx%g", self.width, self.height)
        if self.event_bus is not None:
            self.event_bus.publish(
                EventType.FRAME_SIZE_CHANGED, width=self.width, height=self.height,
            )
        return True

    # ── Per-frame update ──────────────────────────────────────────────

    def update(self, landmarks, source_mirrored: bool) -> None:
        """Apply one frame of landmarks.

        *landmarks* is an (N, 3) array-like in estimator pixel space.  Its
        length is not checked.  *source_mirrored* tells whether the image
        was flipped horizontally before estimation.
        """
        source_mirrored = bool(source_mirrored)
        if self.use_video_uvs and self.width is None:
            raise RuntimeError("set_size() must be called before update() with video UVs")

        w = self.width or 0.0
        h = self.height or 0.0
        pts = np.asarray(landmarks, dtype=np.float64).reshape(-1, 3)

        local = np.empty_like(pts)
        if source_mirrored:
            local[:, 0] = pts[:, 0] + 0.5 * w
        else:
            local[:, 0] = pts[:, 0] - 0.5 * w
        local[:, 1] = h - pts[:, 1] - 0.5 * h
        local[:, 2] = -pts[:, 2]

        self.positions[:] = local * self.scale
        self.geometry.mark_dirty(POSITION)
        self.geometry.compute_normals()
        changed = [POSITION, NORMAL]

        mirror_changed = source_mirrored != self.flipped
        self.flipped = source_mirrored
        if self.use_video_uvs:
            self._write_video_uvs(local)
            changed.append(UV)
        elif mirror_changed:
            self._write_reference_uvs()
            changed.append(UV)

        self._updates += 1
        if self.event_bus is not None:
            if mirror_changed:
                self.event_bus.publish(EventType.MIRROR_CHANGED, flipped=self.flipped)
            self.event_bus.publish(EventType.GEOMETRY_UPDATED, attributes=tuple(changed))

    def set_uvs_from_landmarks(self, landmarks, width: float, height: float) -> None:
        """Texture the mesh with a photo whose landmarks are known.

        *landmarks* are the (N, 3) pixel-space landmarks detected in an
        image of size *width* x *height*.  The UVs stay in place until the
        mirror state changes in reference mode, or the next update in video
        mode.
        """
        if width <= 0 or height <= 0:
            raise ValueError(f"Image size must be positive, got {width}x{height}")
        pts = np.asarray(landmarks, dtype=np.float64).reshape(-1, 3)
        self.uvs[:, 0] = pts[:, 0] / width
        self.uvs[:, 1] = 1.0 - pts[:, 1] / height
        self.geometry.mark_dirty(UV)

    # ── Tracking ──────────────────────────────────────────────────────

    def track(self, a: int, b: int, c: int) -> TrackFrame:
        """Frame attached to landmarks *a*, *b*, *c* in the current mesh."""
        return compute_frame(self.positions, a, b, c)

    def track_anchor(self, name: str) -> TrackFrame:
        """Frame for a named anchor such as ``"nose"`` or ``"left_eye"``."""
        return self.track(*get_anchor(name))

    # ── UV generation ─────────────────────────────────────────────────

    def _write_reference_uvs(self) -> None:
        ref = self.topology.reference_uvs
        uvs = self.uvs
        uvs[:, 0] = 1.0 - ref[:, 0] if self.flipped else ref[:, 0]
        uvs[:, 1] = 1.0 - ref[:, 1]
        self.geometry.mark_dirty(UV)

    def _write_video_uvs(self, local: NDArray[np.float64]) -> None:
        # Mirroring of the source and of the estimator output cancel once
        u = local[:, 0] / self.width + 0.5
        uvs = self.uvs
        uvs[:, 0] = u if self.flipped else 1.0 - u
        uvs[:, 1] = local[:, 1] / self.height + 0.5
        self.geometry.mark_dirty(UV)
