from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

DEFAULT_STYLE_REFERENCE_URL = "https://v3.fal.media/files/zebra/azeGR36A-TbLKKajVnhp__man-presenting.jpg"


@dataclass(frozen=True, slots=True)
class GenerationDefaults:
    """Fixed sampling parameters sent with every generation request."""

    guidance_scale: float = 3.5
    num_images: int = 1
    output_format: str = "jpeg"
    aspect_ratio: str = "16:9"
    style_reference_url: str = DEFAULT_STYLE_REFERENCE_URL
    prompt_suffix: str = " in this style"

    def build_input(self, prompt: str) -> dict[str, object]:
        return {
            "prompt": f"{prompt}{self.prompt_suffix}",
            "guidance_scale": self.guidance_scale,
            "num_images": self.num_images,
            "output_format": self.output_format,
            "aspect_ratio": self.aspect_ratio,
            "image_url": self.style_reference_url,
        }


@dataclass(frozen=True, slots=True)
class Settings:
    fal_key: str | None = None
    queue_url: str = "https://queue.fal.run"
    generate_model: str = "fal-ai/flux-pro/kontext"
    vectorize_model: str = "fal-ai/recraft/vectorize"
    poll_interval: float = 1.0
    request_timeout: float = 30.0
    job_deadline: float = 600.0
    gallery_root: Path | None = None
    cors_origins: list[str] = field(default_factory=list)
    log_level: str = "INFO"
    generation: GenerationDefaults = field(default_factory=GenerationDefaults)


def _float_env(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None


def load_settings() -> Settings:
    """Collect settings from the process environment."""

    origins_env = os.getenv("API_CORS_ORIGINS", "")
    origins = [origin.strip() for origin in origins_env.split(",") if origin.strip()]
    if not origins:
        origins = ["http://localhost:3000", "http://127.0.0.1:3000"]

    gallery_env = os.getenv("GALLERY_ROOT")
    gallery_root = Path(gallery_env).expanduser().resolve() if gallery_env else None

    generation = GenerationDefaults(
        style_reference_url=os.getenv("STYLE_REFERENCE_URL") or DEFAULT_STYLE_REFERENCE_URL,
    )

    return Settings(
        fal_key=os.getenv("FAL_KEY") or None,
        queue_url=(os.getenv("FAL_QUEUE_URL") or "https://queue.fal.run").rstrip("/"),
        generate_model=os.getenv("FAL_GENERATE_MODEL") or "fal-ai/flux-pro/kontext",
        vectorize_model=os.getenv("FAL_VECTORIZE_MODEL") or "fal-ai/recraft/vectorize",
        poll_interval=_float_env("FAL_POLL_INTERVAL", 1.0),
        request_timeout=_float_env("FAL_TIMEOUT", 30.0),
        job_deadline=_float_env("FAL_JOB_DEADLINE", 600.0),
        gallery_root=gallery_root,
        cors_origins=origins,
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
        generation=generation,
    )
