"""Layout directives handed to the rendering surface.

The surface runs the layout algorithm itself; all we own is the configuration
blob, which must match the option names the fcose layout expects.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class LayoutConfig(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    name: str = "fcose"
    quality: str = "proof"
    randomize: bool = True
    animate: bool = True
    animation_duration: int = 1000
    fit: bool = True
    padding: int = 80
    node_repulsion: float = Field(default=100_000, gt=0)
    ideal_edge_length: float = Field(default=200, gt=0)
    edge_elasticity: float = 0.1
    gravity: float = 0.25
    gravity_range: float = 3.8
    node_separation: float = 200
    pack_components: bool = True
    tiling_padding_vertical: int = 40
    tiling_padding_horizontal: int = 40
    node_dimensions_include_labels: bool = True

    def to_options(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True)


DEFAULT_LAYOUT = LayoutConfig()
