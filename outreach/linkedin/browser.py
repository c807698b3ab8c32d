"""
Playwright browser launch and anti-detection configuration.
"""
import logging

from playwright.sync_api import sync_playwright

from outreach.linkedin.surface import PlaywrightSurface

logger = logging.getLogger("outreach")


def launch_browser(headless: bool, user_agent: str) -> PlaywrightSurface:
    """
    Launch Playwright Chromium with anti-detection settings.

    Returns a PlaywrightSurface over the single page; closing the surface
    shuts down the browser and Playwright.
    """
    pw = sync_playwright().start()
    browser = pw.chromium.launch(
        headless=headless,
        slow_mo=100,
        args=[
            "--disable-blink-features=AutomationControlled",
            "--no-sandbox",
            "--disable-dev-shm-usage",
        ],
    )
    context = browser.new_context(
        viewport={"width": 1280, "height": 800},
        user_agent=user_agent,
        locale="en-US",
        timezone_id="America/New_York",
        extra_http_headers={"Accept-Language": "en-US,en;q=0.9"},
    )
    page = context.new_page()

    # Mask the navigator.webdriver flag
    page.add_init_script(
        "Object.defineProperty(navigator, 'webdriver', {get: () => undefined})"
    )

    # Dismiss alert/confirm/prompt dialogs so they never block the page
    page.on("dialog", lambda dialog: dialog.dismiss())

    def close():
        try:
            context.close()
            browser.close()
        finally:
            pw.stop()
        logger.info("Browser closed.")

    logger.info("Browser launched with anti-detection settings.")
    return PlaywrightSurface(page, closer=close)
