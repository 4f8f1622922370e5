"""
Screenshot normalisation and baseline comparison.

Baseline management:
- First run creates baselines in lumina_e2e/baselines/
- Subsequent runs compare against baselines with pixelmatch
- Set UPDATE_BASELINES=1 to overwrite baselines
- Diff and current images are saved to <SCREENSHOT_DIR>/diffs/
"""
from __future__ import annotations

import io
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from PIL import Image
from pixelmatch.contrib.PIL import pixelmatch
from playwright.async_api import Locator, Page

from lumina_e2e.config import E2eConfig, settings

BASELINE_DIR = Path(__file__).parent / "baselines"

DISABLE_ANIMATIONS_CSS = """
*, *::before, *::after {
  animation-duration: 0s !important;
  animation-delay: 0s !important;
  transition-duration: 0s !important;
  transition-delay: 0s !important;
  scroll-behavior: auto !important;
}
"""

HIDE_SCROLLBARS_CSS = """
::-webkit-scrollbar { display: none !important; }
html { scrollbar-width: none !important; }
"""

DYNAMIC_SELECTORS = (
    '[data-testid*="timestamp"]',
    '[data-testid*="date"]',
    '[data-testid*="time"]',
    ".timestamp",
    ".date-time",
    '[aria-label*="current time"]',
    '[aria-label*="last updated"]',
)

MASK_SCRIPT = """(el) => {
  el.style.backgroundColor = '#f0f0f0';
  el.style.color = 'transparent';
  el.textContent = 'MASKED_DYNAMIC_CONTENT';
}"""

BREAKPOINTS: Tuple[Tuple[str, int, int], ...] = (
    ("mobile-sm", 320, 568),
    ("mobile-md", 375, 667),
    ("mobile-lg", 414, 896),
    ("tablet-sm", 768, 1024),
    ("tablet-lg", 1024, 768),
    ("desktop-sm", 1280, 720),
    ("desktop-md", 1440, 900),
    ("desktop-lg", 1920, 1080),
)


@dataclass
class ComparisonResult:
    passed: bool
    diff_ratio: float
    message: str
    diff_path: Optional[Path] = None


async def mask_dynamic_elements(page: Page, selectors: Sequence[str] = DYNAMIC_SELECTORS) -> int:
    """Blank out visible timestamps and similar content. Returns how many were masked."""
    masked = 0
    for selector in selectors:
        for element in await page.locator(selector).all():
            if await element.is_visible():
                await element.evaluate(MASK_SCRIPT)
                masked += 1
    return masked


async def prepare_for_screenshot(
    page: Page,
    hide_scrollbars: bool = True,
    disable_animations: bool = True,
    mask_dynamic_content: bool = True,
    wait_for_fonts: bool = True,
) -> None:
    """Bring the page into a stable state before capturing it."""
    await page.wait_for_load_state("networkidle")

    if wait_for_fonts:
        await page.evaluate("() => document.fonts.ready.then(() => true)")
    if disable_animations:
        await page.add_style_tag(content=DISABLE_ANIMATIONS_CSS)
    if hide_scrollbars:
        await page.add_style_tag(content=HIDE_SCROLLBARS_CSS)
    if mask_dynamic_content:
        await mask_dynamic_elements(page)

    # remaining layout shifts
    await page.wait_for_timeout(300)


async def screenshot_with_mask(
    page: Page,
    name: str,
    mask: Sequence[Locator] = (),
    full_page: bool = False,
    config: E2eConfig | None = None,
) -> Path:
    config = config or settings
    path = Path(config.screenshot_dir) / name
    path.parent.mkdir(parents=True, exist_ok=True)
    await prepare_for_screenshot(page)
    await page.screenshot(path=str(path), full_page=full_page, mask=list(mask))
    return path


async def capture_responsive_breakpoints(
    page: Page,
    base_name: str,
    breakpoints: Sequence[Tuple[str, int, int]] = BREAKPOINTS,
) -> List[Tuple[str, bytes]]:
    """Screenshot the page at each viewport size and restore the original size."""
    original = page.viewport_size
    shots: List[Tuple[str, bytes]] = []
    try:
        for name, width, height in breakpoints:
            await page.set_viewport_size({"width": width, "height": height})
            await prepare_for_screenshot(page)
            shots.append((f"{base_name}-{name}", await page.screenshot()))
    finally:
        if original:
            await page.set_viewport_size(original)
    return shots


def compare_images(
    current_bytes: bytes,
    baseline_path: Path,
    diff_path: Path,
    threshold: float,
) -> ComparisonResult:
    """Compare a capture against its baseline; saves a diff image when pixels differ."""
    if not baseline_path.exists():
        return ComparisonResult(False, 1.0, f"Baseline not found: {baseline_path}")

    current_img = Image.open(io.BytesIO(current_bytes)).convert("RGBA")
    baseline_img = Image.open(baseline_path).convert("RGBA")

    if current_img.size != baseline_img.size:
        return ComparisonResult(
            False, 1.0, f"Size mismatch: current={current_img.size}, baseline={baseline_img.size}"
        )

    width, height = current_img.size
    diff_img = Image.new("RGBA", (width, height))
    diff_pixels = pixelmatch(baseline_img, current_img, diff_img, threshold=0.1, includeAA=True)
    diff_ratio = diff_pixels / (width * height)

    saved: Optional[Path] = None
    if diff_pixels > 0:
        diff_path.parent.mkdir(parents=True, exist_ok=True)
        diff_img.save(diff_path)
        saved = diff_path

    return ComparisonResult(
        passed=diff_ratio <= threshold,
        diff_ratio=diff_ratio,
        message=f"{diff_pixels} pixels differ ({diff_ratio:.2%})",
        diff_path=saved,
    )


def save_baseline(image_bytes: bytes, baseline_path: Path) -> None:
    baseline_path.parent.mkdir(parents=True, exist_ok=True)
    baseline_path.write_bytes(image_bytes)


def check_against_baseline(
    image_bytes: bytes,
    name: str,
    config: E2eConfig | None = None,
    baseline_dir: Path = BASELINE_DIR,
) -> ComparisonResult:
    """Baseline bookkeeping around compare_images for one named capture."""
    config = config or settings
    baseline_path = baseline_dir / f"{name}.png"
    diff_dir = Path(config.screenshot_dir) / "diffs"

    if config.update_baselines:
        save_baseline(image_bytes, baseline_path)
        return ComparisonResult(True, 0.0, f"Baseline updated: {baseline_path}")
    if not baseline_path.exists():
        save_baseline(image_bytes, baseline_path)
        return ComparisonResult(True, 0.0, f"Baseline created: {baseline_path}")

    result = compare_images(image_bytes, baseline_path, diff_dir / f"{name}_diff.png", config.visual_threshold)
    if not result.passed:
        current_path = diff_dir / f"{name}_current.png"
        current_path.parent.mkdir(parents=True, exist_ok=True)
        current_path.write_bytes(image_bytes)
        result.message = f"{result.message}. Diff saved to {result.diff_path or diff_dir}"
    return result


async def assert_matches_baseline(
    page: Page,
    name: str,
    full_page: bool = False,
    mask: Sequence[Locator] = (),
    config: E2eConfig | None = None,
) -> ComparisonResult:
    await prepare_for_screenshot(page)
    image_bytes = await page.screenshot(full_page=full_page, mask=list(mask))
    result = check_against_baseline(image_bytes, name, config=config)
    assert result.passed, f"Visual regression for '{name}': {result.message}"
    return result

