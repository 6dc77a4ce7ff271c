"""Summary narrative: streaming LLM completion with an offline fallback."""

from __future__ import annotations

import json
import logging
import threading
from typing import Any, Callable, Tuple

from openai import APIError, APITimeoutError, OpenAI

from config import NarrativeConfig
from models import NarrativeStats, to_plain

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You are a senior game-economy analyst. The data describes how players spend the premium "
    "in-game currency (jade) across payment tiers (Whale, BigSpender, MidSpender, SmallSpender, "
    "FreeUser), consumption channels and items. Cosmetic spending buys appearance only; power "
    "spending buys gameplay value. Write a concise report in Markdown with the sections: "
    "Overall assessment, Key findings, Recommendations (with priority), Action plan. "
    "Quote the numbers you rely on and do not invent data that is not in the input."
)

PROCESSING_ERROR_MESSAGE = "An error occurred during processing, please retry."


class NarrativeError(RuntimeError):
    """Narrative endpoint failed or returned nothing usable."""


class NarrativeAborted(NarrativeError):
    """Streaming was cancelled by the caller."""


def _pct(value: float) -> str:
    return f"{value * 100.0:.1f}%"


def build_offline_narrative(stats: NarrativeStats | None) -> str:
    """Deterministic summary used when the endpoint is unavailable."""
    if stats is None or stats.days == 0:
        return "\n".join(
            [
                "### Summary",
                "",
                "- No dated consumption was found in the uploaded file.",
                "- Check that the export contains date, tier and consumption columns.",
            ]
        )

    lines = [
        "### Summary",
        "",
        f"- Daily jade consumption is {stats.direction} over {stats.days} day(s): "
        f"{stats.first_value:,.0f} -> {stats.last_value:,.0f} ({stats.growth_rate:+.1f}%).",
    ]
    if stats.top_tier is not None:
        lines.append(
            f"- {stats.top_tier} is the highest-spending tier with {stats.top_tier_mean:,.0f} jade per day on average."
        )
    if stats.top_items:
        names = ", ".join(item.name for item in stats.top_items)
        lines.append(f"- Top items ({names}) make up {_pct(stats.top_items_share)} of ranked consumption.")
    lines.append(f"- Cosmetic spending accounts for {_pct(stats.cosmetic_share)} of positive consumption.")

    lines.append("")
    lines.append("### Recommendations")
    if stats.direction == "decreasing":
        lines.append("- Review recent events and pricing; consumption is trending down.")
    else:
        lines.append("- Keep the current event cadence and watch for saturation in top items.")
    if stats.cosmetic_share < 0.3:
        lines.append("- Cosmetic share is low; consider new appearance content or costume lotteries.")
    elif stats.cosmetic_share > 0.7:
        lines.append("- Spending is dominated by cosmetics; check progression sinks for power spending.")
    if stats.top_items and stats.top_items_share > 0.8:
        lines.append("- Revenue is concentrated in few items; diversify the shop to reduce risk.")

    lines.append("")
    lines.append("Note: set LLM_API_KEY for a generated narrative.")
    return "\n".join(lines)


def build_narrative_payload(
    stats: NarrativeStats | None,
    aggregates: dict[str, Any],
    config: NarrativeConfig,
) -> dict[str, Any]:
    """Chat-completion request embedding aggregated (never raw) results."""
    content = {
        "summary_statistics": to_plain(stats) if stats is not None else {},
        "aggregates": to_plain(aggregates),
    }
    return {
        "model": config.model,
        "stream": True,
        "temperature": 0.3,
        "messages": [
            {"role": "system", "content": SYSTEM_PROMPT},
            {
                "role": "user",
                "content": "Analyse this jade consumption data:\n" + json.dumps(content, ensure_ascii=False),
            },
        ],
    }


def _client(config: NarrativeConfig) -> OpenAI:
    return OpenAI(api_key=config.api_key.strip(), base_url=config.base_url, timeout=config.timeout)


def stream_narrative(
    payload: dict[str, Any],
    config: NarrativeConfig,
    cancel_event: threading.Event | None = None,
    on_token: Callable[[str], None] | None = None,
) -> str:
    """Request a streamed completion and accumulate its content deltas."""
    client = _client(config)
    stream = client.chat.completions.create(**payload)
    pieces: list[str] = []
    try:
        for chunk in stream:
            if cancel_event is not None and cancel_event.is_set():
                raise NarrativeAborted("narrative request aborted")
            if not chunk.choices:
                continue
            text = chunk.choices[0].delta.content
            if not text:
                continue
            pieces.append(text)
            if on_token is not None:
                on_token(text)
    finally:
        stream.close()
    narrative = "".join(pieces).strip()
    if not narrative:
        raise NarrativeError("endpoint returned an empty narrative")
    return narrative


def generate_narrative(
    stats: NarrativeStats | None,
    aggregates: dict[str, Any],
    config: NarrativeConfig | None = None,
    cancel_event: threading.Event | None = None,
    on_token: Callable[[str], None] | None = None,
) -> Tuple[str, str]:
    """Return (mode, narrative). Falls back to the offline summary on any failure."""
    offline = build_offline_narrative(stats)
    config = config or NarrativeConfig.from_env()
    if not config.enabled:
        return "offline", offline

    payload = build_narrative_payload(stats, aggregates, config)
    try:
        return "online", stream_narrative(payload, config, cancel_event=cancel_event, on_token=on_token)
    except NarrativeAborted:
        logger.info("[Narrative] request aborted, using offline summary")
    except APITimeoutError as exc:
        logger.warning(f"[Narrative] request timed out after {config.timeout}s: {exc}")
    except (APIError, NarrativeError) as exc:
        logger.warning(f"[Narrative] falling back to offline summary: {exc}")
    return "offline", offline
