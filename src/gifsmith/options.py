"""Export option schema, quality presets and JSON loading."""
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field
from pydantic import ValidationError as PydanticValidationError

from gifsmith.errors import ValidationError

DEFAULT_WIDTH = 480
DEFAULT_FPS = 15


class Quality(str, Enum):
    """GIF quality level.

    str, Enum keeps the JSON form a plain string ("medium" not {"value": "medium"}).
    """
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


@dataclass(frozen=True)
class QualityPreset:
    """Palette size and Bayer dithering strength for one quality level."""

    colors: int
    dither_scale: int
    dither: str = "bayer"


QUALITY_PRESETS: dict[Quality, QualityPreset] = {
    Quality.HIGH: QualityPreset(colors=256, dither_scale=5),
    Quality.MEDIUM: QualityPreset(colors=128, dither_scale=3),
    Quality.LOW: QualityPreset(colors=64, dither_scale=1),
}


class CropRegion(BaseModel):
    """Crop rectangle in source pixel coordinates."""
    x: int = Field(ge=0)
    y: int = Field(ge=0)
    width: int = Field(gt=0)
    height: int = Field(gt=0)

    def fits_within(self, frame_width: int, frame_height: int) -> bool:
        return self.x + self.width <= frame_width and self.y + self.height <= frame_height


class ExportOptions(BaseModel):
    input_path: str
    start_time: float = Field(ge=0.0)
    end_time: float = Field(ge=0.0)
    width: int = Field(default=DEFAULT_WIDTH, gt=0)
    fps: int = Field(default=DEFAULT_FPS, gt=0)
    quality: Quality = Quality.MEDIUM
    crop: Optional[CropRegion] = None

    # end_time > start_time is checked by the export pipeline so that the
    # failure is reported as a gifsmith ValidationError before any spawn.

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def preset(self) -> QualityPreset:
        return QUALITY_PRESETS[self.quality]


def load_export_options(path: Path) -> ExportOptions:
    """Load export options from a JSON file. Raises ValidationError on failure."""
    try:
        return ExportOptions.model_validate_json(path.read_text(encoding="utf-8"))
    except PydanticValidationError as e:
        field_errors = "; ".join(
            f"{' -> '.join(str(x) for x in err['loc'])}: {err['msg']}"
            for err in e.errors()
        )
        raise ValidationError(f"{path.name}: {field_errors}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise ValidationError(f"{path.name}: {e}") from e
