from typing import List, Optional
from pydantic import BaseModel, Field, field_validator, model_validator


def _normalize_extension(ext: str) -> str:
    ext = ext.strip().lower()
    return ext if ext.startswith(".") else f".{ext}"


class GeneralConfig(BaseModel):
    title: str = "Videos"
    video_extensions: List[str] = Field(
        default_factory=lambda: [".mp4", ".webm", ".mkv", ".avi", ".mov", ".m4v", ".ogv", ".3gp"]
    )
    # Containers browsers cannot play; converted to native_extension by --convert
    conversion_extensions: List[str] = Field(
        default_factory=lambda: [".mkv", ".avi", ".mov", ".wmv", ".flv"]
    )
    native_extension: str = ".mp4"
    debug: bool = False
    log_path: Optional[str] = None

    @field_validator("video_extensions", "conversion_extensions")
    @classmethod
    def normalize_extensions(cls, v: List[str]) -> List[str]:
        seen = []
        for ext in v:
            ext = _normalize_extension(ext)
            if ext not in seen:
                seen.append(ext)
        return seen

    @field_validator("native_extension")
    @classmethod
    def normalize_native(cls, v: str) -> str:
        return _normalize_extension(v)

    @model_validator(mode="after")
    def validate_native(self):
        if self.native_extension not in self.video_extensions:
            raise ValueError(f"native_extension {self.native_extension} must be one of video_extensions")
        if self.native_extension in self.conversion_extensions:
            raise ValueError(f"native_extension {self.native_extension} cannot require conversion")
        return self


class EncoderProfile(BaseModel):
    """One fixed ffmpeg parameter set. Changing it changes every converted file."""
    name: str
    input_args: List[str] = Field(default_factory=list)
    video_codec: str
    preset: str
    quality_flag: str
    quality: int = Field(ge=0, le=63)
    audio_codec: str = "aac"
    audio_bitrate: str = "128k"
    faststart: bool = True

    @field_validator("quality_flag")
    @classmethod
    def validate_quality_flag(cls, v: str) -> str:
        allowed = {"-crf", "-cq", "-qp"}
        if v not in allowed:
            raise ValueError(f"Unsupported quality flag: {v}. Use one of {sorted(allowed)}")
        return v


def _default_cpu_profile() -> EncoderProfile:
    return EncoderProfile(
        name="cpu",
        video_codec="libx264",
        preset="fast",
        quality_flag="-crf",
        quality=22,
    )


def _default_gpu_profile() -> EncoderProfile:
    return EncoderProfile(
        name="gpu",
        input_args=["-hwaccel", "cuda", "-hwaccel_output_format", "cuda"],
        video_codec="h264_nvenc",
        preset="p4",
        quality_flag="-cq",
        quality=23,
    )


class ConversionConfig(BaseModel):
    ffmpeg_path: str = "ffmpeg"
    gpu_query_tool: str = "nvidia-smi"
    cpu: EncoderProfile = Field(default_factory=_default_cpu_profile)
    gpu: EncoderProfile = Field(default_factory=_default_gpu_profile)

    def profile(self, use_gpu: bool) -> EncoderProfile:
        return self.gpu if use_gpu else self.cpu


class AppConfig(BaseModel):
    general: GeneralConfig = Field(default_factory=GeneralConfig)
    conversion: ConversionConfig = Field(default_factory=ConversionConfig)
