from __future__ import annotations

from functools import lru_cache

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pagestamp.adapters.code_image import CodeImageConfig
from pagestamp.adapters.html_prep import DEFAULT_PAGE_CSS
from pagestamp.adapters.image_fetch import FetchConfig
from pagestamp.adapters.renderer import RendererConfig
from pagestamp.annotate.policy import Anchor, AnnotationPolicy


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore',
    )

    app_name: str = 'pagestamp PDF service'

    server_host: str = Field(
        default='0.0.0.0',
        validation_alias=AliasChoices('PAGESTAMP_HOST', 'SERVER_HOST'),
    )
    server_port: int = Field(
        default=3000,
        validation_alias=AliasChoices('PAGESTAMP_PORT', 'PORT', 'SERVER_PORT'),
    )
    log_level: str = 'INFO'

    # Rendering
    render_timeout_seconds: float = 30.0
    max_html_bytes: int = 5 * 1024 * 1024
    page_css: str = DEFAULT_PAGE_CSS

    # Watermark fetch
    watermark_timeout_seconds: float = 15.0
    max_watermark_bytes: int = 10 * 1024 * 1024

    # QR image
    code_image_pixels: int = 200
    code_image_border: int = 1
    code_image_dark: str = '#000000'
    code_image_light: str = '#FFFFFF'

    # Stamping policy, fixed per deployment
    stamp_code_size: float = 40.0
    stamp_font_size: float = 6.0
    stamp_margin: float = 10.0
    stamp_line_gap: float = 1.0
    stamp_watermark_opacity: float = 0.1
    stamp_code_opacity: float = 0.7
    stamp_caption_opacity: float | None = None
    stamp_bounding_fraction: float = 0.6
    stamp_anchor: Anchor = Anchor.top_right

    def annotation_policy(self) -> AnnotationPolicy:
        return AnnotationPolicy(
            code_size=self.stamp_code_size,
            font_size=self.stamp_font_size,
            margin=self.stamp_margin,
            line_gap=self.stamp_line_gap,
            watermark_opacity=self.stamp_watermark_opacity,
            code_opacity=self.stamp_code_opacity,
            caption_opacity=self.stamp_caption_opacity,
            bounding_fraction=self.stamp_bounding_fraction,
            anchor=self.stamp_anchor,
        )

    def renderer_config(self) -> RendererConfig:
        return RendererConfig(
            timeout_seconds=self.render_timeout_seconds,
            page_css=self.page_css,
        )

    def fetch_config(self) -> FetchConfig:
        return FetchConfig(
            timeout_seconds=self.watermark_timeout_seconds,
            max_bytes=self.max_watermark_bytes,
        )

    def code_image_config(self) -> CodeImageConfig:
        return CodeImageConfig(
            pixels=self.code_image_pixels,
            border=self.code_image_border,
            dark=self.code_image_dark,
            light=self.code_image_light,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
