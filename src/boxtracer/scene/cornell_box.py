"""Cornell box scene configuration.

This module provides a factory function to create the classic Cornell box scene,
a standard test scene used in computer graphics for evaluating global illumination
algorithms.

The Cornell box consists of:
- 5 walls forming an open box (left, right, back, floor, ceiling)
- Wall at x=0: red diffuse; wall at x=555: green diffuse
- Back, floor, ceiling: white diffuse
- A rectangular area light just below the ceiling, facing down
- A tall box and a short box, each built from five rectangles

The box spans 0 to 555 in each dimension, with the camera positioned outside
looking in through the open front (z = 0).

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.scene.cornell_box import create_cornell_box_scene
    >>> from boxtracer.camera.thin_lens import setup_camera
    >>>
    >>> scene, camera, light_mat_id = create_cornell_box_scene()
    >>> setup_camera(camera)
    >>> # Now render using the scene and camera
"""

import logging
from dataclasses import dataclass

from boxtracer.camera.thin_lens import ThinLensCamera
from boxtracer.scene.manager import SceneManager

logger = logging.getLogger(__name__)

# =============================================================================
# Cornell Box Constants
# =============================================================================

# Classic Cornell box dimensions (555x555x555 units)
BOX_SIZE = 555.0

# Wall colors (normalized RGB values matching original Cornell box measurements)
RED_WALL_ALBEDO = (0.65, 0.05, 0.05)
GREEN_WALL_ALBEDO = (0.12, 0.45, 0.15)
WHITE_WALL_ALBEDO = (0.73, 0.73, 0.73)

LIGHT_RADIANCE = (15.0, 15.0, 15.0)

# Light rectangle in the plane y = LIGHT_Y
LIGHT_X_RANGE = (213.0, 343.0)
LIGHT_Z_RANGE = (227.0, 332.0)
LIGHT_Y = 554.0

# Boxes as (min corner, max corner); both stand on the floor
TALL_BOX = ((265.0, 0.0, 295.0), (430.0, 330.0, 460.0))
SHORT_BOX = ((130.0, 0.0, 65.0), (295.0, 165.0, 230.0))


@dataclass
class CornellBoxParams:
    """Parameters for configuring a Cornell box scene.

    All parameters have defaults matching the classic Cornell box
    configuration.

    Attributes:
        light_radiance: Emitted radiance of the area light.
        red_wall_albedo: RGB albedo of the wall at x=0.
        green_wall_albedo: RGB albedo of the wall at x=box_size.
        white_albedo: RGB albedo of floor, ceiling, back wall and both boxes.
        box_size: Edge length of the room.
        include_boxes: Whether to add the tall and short boxes.

    Example:
        >>> params = CornellBoxParams()
        >>> params.light_radiance
        (15.0, 15.0, 15.0)
        >>> warm = CornellBoxParams(light_radiance=(17.0, 12.0, 4.0))
    """

    light_radiance: tuple[float, float, float] = LIGHT_RADIANCE
    red_wall_albedo: tuple[float, float, float] = RED_WALL_ALBEDO
    green_wall_albedo: tuple[float, float, float] = GREEN_WALL_ALBEDO
    white_albedo: tuple[float, float, float] = WHITE_WALL_ALBEDO
    box_size: float = BOX_SIZE
    include_boxes: bool = True


# =============================================================================
# Cornell Box Factory
# =============================================================================


def create_cornell_box_scene(
    params: CornellBoxParams | None = None,
    aspect_ratio: float = 1.0,
) -> tuple[SceneManager, ThinLensCamera, int]:
    """Create a Cornell box scene with standard configuration.

    The coordinate system places the box origin at (0, 0, 0) with:
    - X-axis: 0 to box_size (red wall at x=0, green wall at x=box_size)
    - Y-axis: floor to ceiling (0 to box_size)
    - Z-axis: front to back (0 to box_size), camera looks toward +Z

    Wall normals face into the room, box faces face outward and the light
    faces down.

    Args:
        params: Optional CornellBoxParams for customizing light and wall colors.
            If None, uses default CornellBoxParams().
        aspect_ratio: Aspect ratio of the returned camera.

    Returns:
        A tuple of (SceneManager, ThinLensCamera, light_material_id) where:
        - SceneManager contains all geometry and materials
        - ThinLensCamera is configured for the standard view
        - light_material_id is the material ID of the area light

    Example:
        >>> scene, camera, light_mat_id = create_cornell_box_scene()
        >>> scene.get_rect_count()
        16
    """
    if params is None:
        params = CornellBoxParams()
    size = params.box_size

    scene = SceneManager()

    # =========================================================================
    # Materials
    # =========================================================================

    red_mat = scene.add_lambertian_material(albedo=params.red_wall_albedo)
    white_mat = scene.add_lambertian_material(albedo=params.white_albedo)
    green_mat = scene.add_lambertian_material(albedo=params.green_wall_albedo)
    light_mat = scene.add_diffuse_light_material(radiance=params.light_radiance)

    # =========================================================================
    # Walls and light
    # =========================================================================

    # Green wall at x=size, facing -x
    scene.add_yz_rect(0.0, size, 0.0, size, size, green_mat, flip_normal=True)
    # Red wall at x=0, facing +x
    scene.add_yz_rect(0.0, size, 0.0, size, 0.0, red_mat)
    # Light just below the ceiling, facing down
    scene.add_xz_rect(*LIGHT_X_RANGE, *LIGHT_Z_RANGE, LIGHT_Y, light_mat, flip_normal=True)
    # Floor, facing up
    scene.add_xz_rect(0.0, size, 0.0, size, 0.0, white_mat)
    # Ceiling, facing down
    scene.add_xz_rect(0.0, size, 0.0, size, size, white_mat, flip_normal=True)
    # Back wall, facing the camera
    scene.add_xy_rect(0.0, size, 0.0, size, size, white_mat, flip_normal=True)

    # =========================================================================
    # Boxes (open at the bottom, resting on the floor)
    # =========================================================================

    if params.include_boxes:
        scene.add_box(*TALL_BOX, white_mat)
        scene.add_box(*SHORT_BOX, white_mat)

    # =========================================================================
    # Camera Setup
    # =========================================================================

    # Camera positioned outside the box, looking in through the open front
    camera = ThinLensCamera(
        lookfrom=(278.0, 278.0, -800.0),
        lookat=(278.0, 278.0, 0.0),
        vup=(0.0, 1.0, 0.0),
        vfov=35.0,
        aspect_ratio=aspect_ratio,
        aperture=0.0,
        focus_dist=10.0,
    )

    logger.info(
        "Created Cornell box with %d rectangles and %d materials",
        scene.get_rect_count(),
        scene.get_material_count(),
    )
    return scene, camera, light_mat


def get_light_rect_info() -> dict[str, tuple[float, ...] | float]:
    """Get the area light rectangle geometry.

    Returns:
        A dictionary with keys:
        - 'x_range': The (x0, x1) extent of the light
        - 'z_range': The (z0, z1) extent of the light
        - 'y': The plane coordinate of the light
        - 'center': The center point of the light
        - 'area': The area of the light
    """
    x0, x1 = LIGHT_X_RANGE
    z0, z1 = LIGHT_Z_RANGE
    return {
        "x_range": LIGHT_X_RANGE,
        "z_range": LIGHT_Z_RANGE,
        "y": LIGHT_Y,
        "center": ((x0 + x1) / 2.0, LIGHT_Y, (z0 + z1) / 2.0),
        "area": (x1 - x0) * (z1 - z0),
    }


def get_cornell_box_bounds(box_size: float = BOX_SIZE) -> dict[str, tuple[float, float, float]]:
    """Get the bounding box of the Cornell box scene.

    Args:
        box_size: The size of the box. Default is 555.0.

    Returns:
        A dictionary with keys 'min', 'max', 'center' and 'size'.
    """
    return {
        "min": (0.0, 0.0, 0.0),
        "max": (box_size, box_size, box_size),
        "center": (box_size / 2.0, box_size / 2.0, box_size / 2.0),
        "size": (box_size, box_size, box_size),
    }
