from quadric_slam.structures.quadric import (
    Quadric,
    bbox_to_rect,
    canonicalize,
    clip_rect,
    dual_matrix_from_vector10d,
    rect_to_bbox,
)

__all__ = [
    "Quadric",
    "bbox_to_rect",
    "canonicalize",
    "clip_rect",
    "dual_matrix_from_vector10d",
    "rect_to_bbox",
]
