#!/usr/bin/env python3
"""
Live API Capture

Opens a Chromium tab, records its network traffic over the DevTools Protocol
and prints the JSON/GraphQL requests as an LLM-friendly report.

Usage:
    python capture_har.py --url https://example.com
    python capture_har.py --url https://example.com --duration 30 --har-file capture.har
"""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from playwright.async_api import async_playwright
from dotenv import load_dotenv

load_dotenv()

from har_api.capture import CaptureSession
from har_api.config import ExtractorConfig
from extract_har import build_report, select_mode

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

NETWORK_EVENTS = [
    'Network.requestWillBeSent',
    'Network.responseReceived',
    'Network.loadingFinished',
    'Network.loadingFailed',
]


# ============================================================================
# CDP WIRING
# ============================================================================

async def fetch_body(cdp, session: CaptureSession, request_id: str):
    """Fetch one response body; missing bodies (images, redirects) are expected."""
    try:
        result = await cdp.send('Network.getResponseBody', {'requestId': request_id})
    except Exception as e:
        logger.debug(f"No body available for {request_id}: {e}")
        return

    if result.get('base64Encoded'):
        logger.debug(f"Skipping binary body for {request_id}")
        return
    session.record_body(request_id, result.get('body'))


def attach_listeners(cdp, session: CaptureSession, body_tasks: list):
    """Forward Network.* events into the session."""
    def make_handler(method):
        def handler(params):
            session.record_event(method, params)
            if method == 'Network.loadingFinished':
                request_id = params.get('requestId')
                if session.needs_body(request_id):
                    body_tasks.append(asyncio.ensure_future(fetch_body(cdp, session, request_id)))
        return handler

    for method in NETWORK_EVENTS:
        cdp.on(method, make_handler(method))


async def drain_body_tasks(body_tasks: list):
    """Await body fetches, including ones scheduled while waiting."""
    while body_tasks:
        pending = list(body_tasks)
        body_tasks.clear()
        await asyncio.gather(*pending)


async def wait_for_stop(duration):
    if duration:
        logger.info(f"Capturing for {duration} seconds...")
        await asyncio.sleep(duration)
    else:
        logger.info("Capturing... press Enter to stop")
        await asyncio.get_running_loop().run_in_executor(None, sys.stdin.readline)


# ============================================================================
# MAIN CAPTURE
# ============================================================================

async def capture(url: str, duration=None, headless: bool = False):
    """
    Record network traffic of one page.

    Args:
        url: Page to open
        duration: Seconds to record (None = until Enter)
        headless: Run Chromium without a window

    Returns:
        HARFile built from the captured events
    """
    session = CaptureSession()
    body_tasks = []
    playwright_instance = None
    browser = None

    try:
        playwright_instance = await async_playwright().start()
        browser = await playwright_instance.chromium.launch(headless=headless)
        context = await browser.new_context(viewport={
            "width": ExtractorConfig.VIEWPORT_WIDTH,
            "height": ExtractorConfig.VIEWPORT_HEIGHT,
        })
        page = await context.new_page()

        cdp = await context.new_cdp_session(page)
        session.begin(target_id=url)
        attach_listeners(cdp, session, body_tasks)
        await cdp.send('Network.enable', {'maxPostDataSize': ExtractorConfig.MAX_POST_DATA_SIZE})

        logger.info(f"Opening {url}")
        await page.goto(url)
        await wait_for_stop(duration)

        # Let in-flight events land before collecting bodies
        await asyncio.sleep(ExtractorConfig.SETTLE_DELAY_SECONDS)
        await drain_body_tasks(body_tasks)
        await asyncio.gather(*(fetch_body(cdp, session, rid) for rid in session.pending_bodies()))

        logger.info(f"Capture status: {session.status()}")
        return session.finalize()

    finally:
        logger.info("Cleaning up resources...")
        if browser:
            await browser.close()
        if playwright_instance:
            await playwright_instance.stop()


def main(argv=None):
    """Main entry point with CLI argument parsing."""
    parser = argparse.ArgumentParser(description='Capture live API traffic and format it for LLM analysis')
    parser.add_argument('--url', type=str, required=True, help='Page to open and record')
    parser.add_argument('--duration', type=float, default=None,
                        help='Seconds to record (default: until Enter is pressed)')
    parser.add_argument('--headless', action='store_true', help='Run the browser without a window')
    parser.add_argument('--har-file', type=str, default=None, help='Also save the captured HAR here')
    mode = parser.add_mutually_exclusive_group()
    mode.add_argument('-c', '--compact', action='store_true', help='Output in compact format')
    mode.add_argument('-m', '--markdown', action='store_true', help='Output as a Markdown report')
    parser.add_argument('-a', '--all', action='store_true', help='Include all requests, not just JSON/GraphQL')
    args = parser.parse_args(argv)

    try:
        har = asyncio.run(capture(args.url, duration=args.duration, headless=args.headless))
    except KeyboardInterrupt:
        logger.warning("\nCapture interrupted by user")
        return 130
    except Exception as e:
        logger.error(f"Capture failed: {e}", exc_info=True)
        return 1

    if args.har_file:
        with open(Path(args.har_file), 'w', encoding='utf-8') as f:
            json.dump(har.model_dump(by_alias=True, exclude_none=True), f, indent=2, ensure_ascii=False)
        logger.info(f"HAR saved to: {args.har_file}")

    print(build_report(har.log.entries, select_mode(args), args.all, ExtractorConfig.response_limit()))
    return 0


if __name__ == "__main__":
    sys.exit(main())
