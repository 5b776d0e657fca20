"""Editor settings loaded from the environment."""

from __future__ import annotations

from functools import lru_cache
import logging
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EditorSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="FIELD_EDITOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Geometry bounds, in percent of the page.
    min_size: float = 2.0
    max_width: float = 95.0
    max_height: float = 80.0
    default_x: float = 10.0
    default_y: float = 10.0
    resize_step: float = 5.0

    # Type -> (width, height) for newly added fields.
    default_sizes: dict[str, tuple[float, float]] = Field(
        default_factory=lambda: {
            "text": (20.0, 3.0),
            "date": (15.0, 3.0),
            "email": (25.0, 3.0),
            "phone": (18.0, 3.0),
            "signature": (25.0, 4.0),
            "checkbox": (3.0, 3.0),
            "radio": (3.0, 3.0),
        }
    )
    default_filled_by: str = "guest"

    render_width: int = 700
    templates_dir: Path = Path.home() / ".field_editor" / "templates"
    log_level: str = "INFO"

    def default_size_for(self, field_type: str) -> tuple[float, float]:
        return self.default_sizes.get(field_type, self.default_sizes["text"])


@lru_cache()
def get_settings() -> EditorSettings:
    return EditorSettings()


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
