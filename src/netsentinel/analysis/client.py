"""Gemini security analysis of a device snapshot.

The only outbound call in the application. Failures never propagate:
callers always get back a string, either the model's markdown report or
a fixed fallback message.
"""

import json
import logging
from collections.abc import Sequence
from typing import Any

import httpx

from netsentinel.network.models import Device

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"

FALLBACK_REPORT = "An error occurred during network analysis. Please check your API key."
EMPTY_REPORT = "Analysis could not be generated."

_PROMPT_TEMPLATE = """\
You are an expert cybersecurity analyst. Below is the device list of a
scanned local network ({subnet}).

Your tasks:
1. Identify the most critical security weaknesses on the network
   (e.g. exposed RDP or SMB ports, unknown IoT devices).
2. Point out suspicious devices (e.g. phones with unusual open ports).
3. Write a short, clear and actionable summary report for the network
   administrator.
4. Present the result in markdown with prominent headings.

Data:
{data}
"""


def summarize_devices(devices: Sequence[Device]) -> list[dict[str, Any]]:
    """Reduce devices to the fields the analyst needs."""
    return [
        {
            "ip": d.ip,
            "mac": d.mac,
            "type": str(d.type),
            "vendor": d.vendor,
            "openPorts": [f"{p.port}/{p.service}" for p in d.open_ports],
            "risk": str(d.security_risk),
        }
        for d in devices
    ]


def build_prompt(devices: Sequence[Device], subnet: str) -> str:
    data = json.dumps(summarize_devices(devices), indent=2)
    return _PROMPT_TEMPLATE.format(subnet=subnet, data=data)


def _extract_text(body: dict[str, Any]) -> str:
    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


async def analyze_network_security(
    devices: Sequence[Device],
    subnet: str,
    *,
    api_key: str | None,
    model: str = DEFAULT_MODEL,
    base_url: str = DEFAULT_BASE_URL,
    temperature: float = 0.4,
    timeout: float = 60.0,
) -> str:
    """Ask Gemini for a markdown security report on ``devices``.

    Returns:
        The report text, EMPTY_REPORT if the model returned nothing, or
        FALLBACK_REPORT on any configuration, transport, or provider error.
    """
    if not api_key:
        logger.warning("Gemini API key not configured, skipping analysis")
        return FALLBACK_REPORT

    payload = {
        "contents": [{"parts": [{"text": build_prompt(devices, subnet)}]}],
        "generationConfig": {"temperature": temperature},
    }

    try:
        async with httpx.AsyncClient(base_url=base_url, timeout=timeout) as client:
            resp = await client.post(
                f"/models/{model}:generateContent",
                params={"key": api_key},
                json=payload,
            )
            resp.raise_for_status()
            text = _extract_text(resp.json())
    except Exception:
        logger.exception("Gemini analysis failed for %d device(s)", len(devices))
        return FALLBACK_REPORT

    if not text.strip():
        logger.warning("Gemini returned an empty analysis")
        return EMPTY_REPORT

    logger.info("Gemini analysis received (%d chars)", len(text))
    return text
