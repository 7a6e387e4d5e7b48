from pydantic import BaseModel, Field
from typing import Optional, Dict
from enum import Enum


class AspectRatio(str, Enum):
    SQUARE = "1:1"
    WIDE = "16:9"
    TALL = "9:16"
    STANDARD = "4:3"
    STANDARD_PORTRAIT = "3:4"


class DetailedSettings(BaseModel):
    number_of_images: int = Field(default=4, ge=1, le=4, description="Number of images to generate")
    aspect_ratio: AspectRatio = Field(default=AspectRatio.SQUARE, description="Aspect ratio of the generated images")
    negative_prompt: Optional[str] = Field(default=None, max_length=500, description="Elements to avoid")

    model_config = {"use_enum_values": True, "validate_default": True}


class GenerationTags(BaseModel):
    style: Optional[str] = None
    pose: Optional[str] = None
    camera: Optional[str] = None
    lighting: Optional[str] = None


class GenerateRequest(BaseModel):
    base_prompt: str
    tags: GenerationTags
    count: int = Field(..., ge=1, le=4)
    aspect_ratio: str
    negative_prompt: Optional[str] = None


class GeneratedReference(BaseModel):
    id: str
    image_url: str
    image_path: Optional[str] = None
    base_prompt: str = ""
    enhanced_prompt: str = ""
    tags: Dict[str, str] = Field(default_factory=dict)
    created_at: Optional[str] = None
