"""Unified scene manager for coordinating rectangles and materials.

This module provides a high-level scene management API that coordinates
rectangle storage with material assignment. It tracks which material type
(Lambertian, DiffuseLight) each material ID corresponds to, enabling proper
material dispatch in the path tracer.

The SceneManager maintains:
- A unified material_id space across all material types
- Mapping from material_id to (material_type, type_local_index)
- Validated rectangle construction (XY, XZ, YZ) and box helpers
- Scene serialization/configuration support

Example:
    >>> import taichi as ti
    >>> ti.init(arch=ti.cpu)
    >>> from boxtracer.scene.manager import SceneManager
    >>> scene = SceneManager()
    >>> white = scene.add_lambertian_material(albedo=(0.73, 0.73, 0.73))
    >>> scene.add_xz_rect(0, 555, 0, 555, 0, white)  # floor, facing up
    >>> # Use get_material_type(mat_id) in the path tracer for dispatch
"""

import logging
import math
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

import taichi as ti

from boxtracer.geometry.aarect import RectOrientation, axis_normal, orientation_axis
from boxtracer.materials.diffuse_light import (
    add_diffuse_light_material,
    clear_diffuse_light_materials,
)
from boxtracer.materials.lambertian import (
    add_lambertian_material,
    clear_lambertian_materials,
)
from boxtracer.scene.intersection import (
    MAX_RECTS,
    add_rect,
    clear_scene,
    get_rect_count,
)

logger = logging.getLogger(__name__)


class MaterialType(IntEnum):
    """Enumeration of supported material types.

    Used for material dispatch in the path tracer to determine which
    scattering and emission functions to call.
    """

    LAMBERTIAN = 0
    DIFFUSE_LIGHT = 1


# Maximum number of materials across all types
MAX_MATERIALS = 320  # 256 Lambertian + 64 diffuse light

# Taichi fields for GPU-side material type lookup
# material_types[i] stores the MaterialType for material_id i
material_types = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
# material_type_indices[i] stores the type-local index for material_id i
# (e.g., if material_id 5 is the 2nd diffuse light, material_type_indices[5] = 1)
material_type_indices = ti.field(dtype=ti.i32, shape=MAX_MATERIALS)
num_materials = ti.field(dtype=ti.i32, shape=())


def _clear_material_tracking() -> None:
    """Clear the material tracking fields."""
    num_materials[None] = 0


@ti.func
def get_material_type(material_id: ti.i32) -> ti.i32:
    """Get the material type for a given material ID.

    This is a Taichi function for use in kernels.

    Args:
        material_id: The unified material ID.

    Returns:
        The material type as an integer (see MaterialType enum).
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_types[material_id]
    return result


@ti.func
def get_material_type_index(material_id: ti.i32) -> ti.i32:
    """Get the type-local index for a given material ID.

    This is used to look up material properties in the type-specific
    material arrays (e.g., lambertian_albedos[type_index]).

    Args:
        material_id: The unified material ID.

    Returns:
        The index into the type-specific material array.
        Returns -1 for invalid material IDs.
    """
    result = -1
    if 0 <= material_id < num_materials[None]:
        result = material_type_indices[material_id]
    return result


def _register_material(material_type: MaterialType, type_index: int) -> int:
    material_id = num_materials[None]
    if material_id >= MAX_MATERIALS:
        raise RuntimeError(f"Maximum number of materials ({MAX_MATERIALS}) exceeded")

    material_types[material_id] = int(material_type)
    material_type_indices[material_id] = type_index
    num_materials[None] = material_id + 1
    return material_id


def _as_triple(values, name: str) -> tuple[float, float, float]:
    if len(values) != 3:
        raise ValueError(f"{name} must have 3 components, got {len(values)}")
    return (float(values[0]), float(values[1]), float(values[2]))


def _as_range(values, name: str) -> tuple[float, float]:
    if len(values) != 2:
        raise ValueError(f"{name} must be a (low, high) pair, got {values!r}")
    low, high = float(values[0]), float(values[1])
    if not (math.isfinite(low) and math.isfinite(high)):
        raise ValueError(f"{name} must be finite, got {values!r}")
    if low >= high:
        raise ValueError(f"{name} is empty or inverted: ({low}, {high})")
    return (low, high)


@dataclass
class MaterialInfo:
    """Information about a registered material.

    Attributes:
        material_id: The unified material ID.
        material_type: The type of material (Lambertian, DiffuseLight).
        type_index: The index within the type-specific material array.
        params: The material parameters as provided during creation.
    """

    material_id: int
    material_type: MaterialType
    type_index: int
    params: dict[str, Any]


@dataclass
class RectInfo:
    """Information about a rectangle in the scene.

    Attributes:
        rect_index: The index in the rectangle storage arrays.
        orientation: The plane the rectangle lies in.
        a_range: Extent along the first free axis.
        b_range: Extent along the second free axis.
        k: Plane coordinate along the fixed axis.
        material_id: The material ID assigned to the rectangle.
        flip_normal: Whether the normal points along -axis.
    """

    rect_index: int
    orientation: RectOrientation
    a_range: tuple[float, float]
    b_range: tuple[float, float]
    k: float
    material_id: int
    flip_normal: bool = False

    @property
    def normal(self) -> tuple[float, float, float]:
        """The rectangle's fixed unit normal."""
        return axis_normal(orientation_axis(self.orientation), self.flip_normal)


@dataclass
class SceneConfig:
    """Configuration for scene serialization.

    Attributes:
        materials: List of material configurations.
        rects: List of rectangle configurations.
    """

    materials: list[dict[str, Any]] = field(default_factory=list)
    rects: list[dict[str, Any]] = field(default_factory=list)


class SceneManager:
    """Unified scene manager coordinating rectangles and materials.

    The SceneManager provides a high-level API for building scenes with
    automatic material tracking. It maintains a unified material_id space
    that maps to type-specific material registries, enabling the path tracer
    to dispatch to the correct scattering and emission functions.

    Scenes are built once and then rendered; the manager does not support
    removing individual rectangles.

    Attributes:
        materials: List of MaterialInfo for all registered materials.
        rects: List of RectInfo for all rectangles in the scene.

    Example:
        >>> scene = SceneManager()
        >>> red = scene.add_lambertian_material(albedo=(0.65, 0.05, 0.05))
        >>> light = scene.add_diffuse_light_material(radiance=(15, 15, 15))
        >>> scene.add_yz_rect(0, 555, 0, 555, 0, red)
        >>> scene.add_xz_rect(213, 343, 227, 332, 554, light, flip_normal=True)
    """

    def __init__(self) -> None:
        """Initialize an empty scene."""
        self.materials: list[MaterialInfo] = []
        self.rects: list[RectInfo] = []
        self._clear_all()

    def _clear_all(self) -> None:
        """Clear all scene data including Taichi fields."""
        clear_scene()
        clear_lambertian_materials()
        clear_diffuse_light_materials()
        _clear_material_tracking()
        self.materials.clear()
        self.rects.clear()

    def clear(self) -> None:
        """Clear the entire scene (rectangles and materials).

        Resets all Taichi fields and internal tracking structures.
        """
        self._clear_all()

    # =========================================================================
    # Material Management
    # =========================================================================

    def add_lambertian_material(
        self,
        albedo: tuple[float, float, float],
    ) -> int:
        """Add a Lambertian (diffuse) material to the scene.

        Args:
            albedo: The diffuse reflectance color as (R, G, B) tuple.
                Each component must be in [0, 1].

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any albedo component is outside [0, 1].
        """
        type_index = add_lambertian_material(albedo)
        material_id = _register_material(MaterialType.LAMBERTIAN, type_index)

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=MaterialType.LAMBERTIAN,
                type_index=type_index,
                params={"albedo": tuple(albedo)},
            )
        )
        return material_id

    def add_diffuse_light_material(
        self,
        radiance: tuple[float, float, float],
    ) -> int:
        """Add a diffuse light (emitter) material to the scene.

        Args:
            radiance: Emitted radiance as (R, G, B) tuple. Components must be
                non-negative and may exceed 1.

        Returns:
            The unified material ID for this material.

        Raises:
            RuntimeError: If the maximum number of materials is exceeded.
            ValueError: If any radiance component is negative or not finite.
        """
        type_index = add_diffuse_light_material(radiance)
        material_id = _register_material(MaterialType.DIFFUSE_LIGHT, type_index)

        self.materials.append(
            MaterialInfo(
                material_id=material_id,
                material_type=MaterialType.DIFFUSE_LIGHT,
                type_index=type_index,
                params={"radiance": tuple(radiance)},
            )
        )
        return material_id

    def get_material_count(self) -> int:
        """Get the total number of materials in the scene."""
        return int(num_materials[None])

    def get_material_info(self, material_id: int) -> MaterialInfo | None:
        """Get information about a material by ID.

        Args:
            material_id: The unified material ID.

        Returns:
            MaterialInfo for the material, or None if not found.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id]
        return None

    def get_material_type_python(self, material_id: int) -> MaterialType | None:
        """Get the material type for a given material ID (Python side).

        For kernel-side lookup, use the get_material_type() Taichi function.

        Args:
            material_id: The unified material ID.

        Returns:
            The MaterialType, or None for invalid material IDs.
        """
        if 0 <= material_id < len(self.materials):
            return self.materials[material_id].material_type
        return None

    # =========================================================================
    # Rectangle Management
    # =========================================================================

    def add_rect(
        self,
        orientation: RectOrientation,
        a_range: tuple[float, float],
        b_range: tuple[float, float],
        k: float,
        material_id: int,
        flip_normal: bool = False,
    ) -> int:
        """Add an axis-aligned rectangle to the scene.

        The free axes of each orientation, in order, are: XY -> (x, y),
        XZ -> (x, z), YZ -> (y, z). The normal is +axis of the fixed axis,
        or -axis when flip_normal is set.

        Args:
            orientation: The plane the rectangle lies in.
            a_range: (a0, a1) extent along the first free axis, a0 < a1.
            b_range: (b0, b1) extent along the second free axis, b0 < b1.
            k: Plane coordinate along the fixed axis.
            material_id: The unified material ID to assign.
            flip_normal: Point the normal along -axis.

        Returns:
            The index of the added rectangle.

        Raises:
            RuntimeError: If the maximum number of rectangles is exceeded.
            ValueError: If the orientation, ranges, k or material_id are invalid.
        """
        axis = orientation_axis(orientation)
        orientation = RectOrientation(orientation)
        a_range = _as_range(a_range, "a_range")
        b_range = _as_range(b_range, "b_range")
        k = float(k)
        if not math.isfinite(k):
            raise ValueError(f"Plane coordinate k must be finite, got {k}")
        if material_id < 0 or material_id >= num_materials[None]:
            raise ValueError(f"Invalid material_id: {material_id}")

        normal = axis_normal(axis, flip_normal)
        rect_index = add_rect(axis, k, a_range, b_range, normal, material_id)

        self.rects.append(
            RectInfo(
                rect_index=rect_index,
                orientation=orientation,
                a_range=a_range,
                b_range=b_range,
                k=k,
                material_id=material_id,
                flip_normal=bool(flip_normal),
            )
        )
        return rect_index

    def add_xy_rect(
        self,
        x0: float,
        x1: float,
        y0: float,
        y1: float,
        k: float,
        material_id: int,
        flip_normal: bool = False,
    ) -> int:
        """Add a rectangle in the plane z = k spanning [x0, x1] x [y0, y1]."""
        return self.add_rect(RectOrientation.XY, (x0, x1), (y0, y1), k, material_id, flip_normal)

    def add_xz_rect(
        self,
        x0: float,
        x1: float,
        z0: float,
        z1: float,
        k: float,
        material_id: int,
        flip_normal: bool = False,
    ) -> int:
        """Add a rectangle in the plane y = k spanning [x0, x1] x [z0, z1]."""
        return self.add_rect(RectOrientation.XZ, (x0, x1), (z0, z1), k, material_id, flip_normal)

    def add_yz_rect(
        self,
        y0: float,
        y1: float,
        z0: float,
        z1: float,
        k: float,
        material_id: int,
        flip_normal: bool = False,
    ) -> int:
        """Add a rectangle in the plane x = k spanning [y0, y1] x [z0, z1]."""
        return self.add_rect(RectOrientation.YZ, (y0, y1), (z0, z1), k, material_id, flip_normal)

    def add_box(
        self,
        p_min: tuple[float, float, float],
        p_max: tuple[float, float, float],
        material_id: int,
    ) -> list[int]:
        """Add an open-bottomed box standing on its lower face.

        The box is built from five rectangles (top and four sides) with
        normals facing outward. The bottom face is omitted because the box
        rests on the floor.

        Args:
            p_min: Minimum corner (x0, y0, z0).
            p_max: Maximum corner (x1, y1, z1).
            material_id: The unified material ID for every face.

        Returns:
            The rectangle indices of the five faces.
        """
        x0, y0, z0 = _as_triple(p_min, "p_min")
        x1, y1, z1 = _as_triple(p_max, "p_max")
        return [
            self.add_xz_rect(x0, x1, z0, z1, y1, material_id),
            self.add_xy_rect(x0, x1, y0, y1, z0, material_id, flip_normal=True),
            self.add_xy_rect(x0, x1, y0, y1, z1, material_id),
            self.add_yz_rect(y0, y1, z0, z1, x0, material_id, flip_normal=True),
            self.add_yz_rect(y0, y1, z0, z1, x1, material_id),
        ]

    # =========================================================================
    # Scene Queries
    # =========================================================================

    def get_rect_count(self) -> int:
        """Get the number of rectangles in the scene."""
        return get_rect_count()

    def get_rect_info(self, rect_index: int) -> RectInfo | None:
        """Get information about a rectangle by index, or None if not found."""
        if 0 <= rect_index < len(self.rects):
            return self.rects[rect_index]
        return None

    def get_emissive_rects(self) -> list[RectInfo]:
        """Get the rectangles whose material is a diffuse light."""
        return [
            rect
            for rect in self.rects
            if self.get_material_type_python(rect.material_id) == MaterialType.DIFFUSE_LIGHT
        ]

    # =========================================================================
    # Scene Serialization
    # =========================================================================

    def to_config(self) -> SceneConfig:
        """Export the scene to a configuration object.

        Returns:
            A SceneConfig containing all materials and rectangles.
        """
        config = SceneConfig()

        for mat in self.materials:
            mat_config: dict[str, Any] = {"type": mat.material_type.name.lower()}
            for key, value in mat.params.items():
                mat_config[key] = list(value)
            config.materials.append(mat_config)

        for rect in self.rects:
            config.rects.append(
                {
                    "orientation": rect.orientation.name.lower(),
                    "a_range": list(rect.a_range),
                    "b_range": list(rect.b_range),
                    "k": rect.k,
                    "material_id": rect.material_id,
                    "flip_normal": rect.flip_normal,
                }
            )

        return config

    def from_config(self, config: SceneConfig) -> None:
        """Load a scene from a configuration object.

        Clears the current scene and loads the configuration.

        Args:
            config: The scene configuration to load.

        Raises:
            ValueError: If the configuration contains invalid data.
        """
        self.clear()

        # Load materials first (needed for rectangles)
        for mat_config in config.materials:
            mat_type = mat_config.get("type", "").lower()
            if mat_type == "lambertian":
                albedo = _as_triple(mat_config.get("albedo", [0.5, 0.5, 0.5]), "albedo")
                self.add_lambertian_material(albedo)
            elif mat_type == "diffuse_light":
                radiance = _as_triple(mat_config.get("radiance", [1.0, 1.0, 1.0]), "radiance")
                self.add_diffuse_light_material(radiance)
            else:
                raise ValueError(f"Unknown material type: {mat_type}")

        for rect_config in config.rects:
            name = str(rect_config.get("orientation", "")).upper()
            if name not in RectOrientation.__members__:
                raise ValueError(f"Unknown rectangle orientation: {name.lower()}")
            self.add_rect(
                RectOrientation[name],
                tuple(rect_config["a_range"]),
                tuple(rect_config["b_range"]),
                rect_config["k"],
                rect_config.get("material_id", 0),
                rect_config.get("flip_normal", False),
            )

        logger.info(
            "Loaded scene with %d materials and %d rectangles",
            len(self.materials),
            len(self.rects),
        )

    def to_dict(self) -> dict[str, Any]:
        """Export the scene to a dictionary (for JSON serialization).

        Returns:
            A dictionary representation of the scene.
        """
        config = self.to_config()
        return {
            "materials": config.materials,
            "rects": config.rects,
        }

    def from_dict(self, data: dict[str, Any]) -> None:
        """Load a scene from a dictionary.

        Args:
            data: Dictionary with 'materials' and 'rects' keys.
        """
        config = SceneConfig(
            materials=data.get("materials", []),
            rects=data.get("rects", []),
        )
        self.from_config(config)

    # =========================================================================
    # Capacity Information
    # =========================================================================

    @staticmethod
    def get_max_rects() -> int:
        """Get the maximum number of rectangles supported."""
        return MAX_RECTS

    @staticmethod
    def get_max_materials() -> int:
        """Get the maximum number of materials supported."""
        return MAX_MATERIALS
