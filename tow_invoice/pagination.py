"""Page planning for image-based invoice documents.

An invoice raster is drawn at the full page width. When its proportional
height does not fit one page, the ``fit`` policy shrinks it onto a single
page and the ``tile`` policy repeats it on consecutive pages, shifted up by
one page height each time.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import List, Tuple

POLICY_FIT = "fit"
POLICY_TILE = "tile"
POLICIES = (POLICY_FIT, POLICY_TILE)

# Slack for float rounding when comparing heights in millimetres.
_EPSILON = 1e-6


@dataclass(frozen=True)
class PageFormat:
    width: float
    height: float
    unit: str = "mm"
    name: str = "A4"


A4 = PageFormat(210.0, 297.0)


@dataclass(frozen=True)
class PagePlacement:
    x: float
    y: float
    width: float
    height: float


@dataclass(frozen=True)
class PagePlan:
    page_format: PageFormat
    placements: Tuple[PagePlacement, ...]
    policy: str

    @property
    def page_count(self) -> int:
        return len(self.placements)


def plan_pages(
    image_width: int,
    image_height: int,
    page_format: PageFormat = A4,
    policy: str = POLICY_FIT,
) -> PagePlan:
    if image_width <= 0 or image_height <= 0:
        raise ValueError(f"Image dimensions must be positive, got {image_width}x{image_height}")
    if policy not in POLICIES:
        raise ValueError(f"Unknown pagination policy {policy!r}; expected one of {POLICIES}")

    page_w = page_format.width
    page_h = page_format.height
    img_w = page_w
    img_h = image_height * img_w / image_width

    if img_h <= page_h + _EPSILON:
        return PagePlan(page_format, (PagePlacement(0.0, 0.0, img_w, img_h),), policy)

    if policy == POLICY_FIT:
        factor = page_h / img_h
        scaled_w = img_w * factor
        scaled_h = img_h * factor
        x_offset = (page_w - scaled_w) / 2
        return PagePlan(page_format, (PagePlacement(x_offset, 0.0, scaled_w, scaled_h),), policy)

    pages = math.ceil(img_h / page_h - _EPSILON)
    placements: List[PagePlacement] = [
        PagePlacement(0.0, -index * page_h, img_w, img_h) for index in range(pages)
    ]
    return PagePlan(page_format, tuple(placements), policy)


def estimate_page_count(
    image_width: int,
    image_height: int,
    page_format: PageFormat = A4,
    policy: str = POLICY_FIT,
) -> int:
    return plan_pages(image_width, image_height, page_format, policy).page_count
