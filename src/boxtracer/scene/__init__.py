"""Scene module for geometry storage, materials and intersection.

Components:
    intersection: Rectangle storage and closest-hit queries
    manager: SceneManager coordinating rectangles and materials
    cornell_box: Factory for the classic Cornell box scene
"""

from .cornell_box import (
    BOX_SIZE,
    CornellBoxParams,
    create_cornell_box_scene,
    get_cornell_box_bounds,
    get_light_rect_info,
)
from .intersection import (
    MAX_RECTS,
    SceneHitRecord,
    add_rect,
    clear_scene,
    get_rect,
    get_rect_count,
    intersect_scene,
)
from .manager import (
    MAX_MATERIALS,
    MaterialInfo,
    MaterialType,
    RectInfo,
    SceneConfig,
    SceneManager,
    get_material_type,
    get_material_type_index,
)

__all__ = [
    # Intersection module
    "SceneHitRecord",
    "add_rect",
    "clear_scene",
    "get_rect",
    "get_rect_count",
    "intersect_scene",
    "MAX_RECTS",
    # Manager module
    "SceneManager",
    "MaterialType",
    "MaterialInfo",
    "RectInfo",
    "SceneConfig",
    "MAX_MATERIALS",
    "get_material_type",
    "get_material_type_index",
    # Cornell box module
    "CornellBoxParams",
    "create_cornell_box_scene",
    "get_cornell_box_bounds",
    "get_light_rect_info",
    "BOX_SIZE",
]
