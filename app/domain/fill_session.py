# app/domain/fill_session.py
from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Optional

from PIL import Image


class RenderMode(str, Enum):
    DESIGN = "design"
    FILL = "fill"


@dataclass
class FillSession:
    """Operator-entered values for one fill pass.

    ``values`` is keyed by text field label. At most one photo is held; it is
    shared by every photo field of the template.
    """

    values: Dict[str, str] = field(default_factory=dict)
    photo: Optional[Image.Image] = None

    def value_for(self, label: str) -> str:
        return self.values.get(label, "")
