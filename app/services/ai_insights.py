"""
Gemini-backed narrative features for the dashboard.

Insights, chat, semantic chart filters, anomaly explanations, team
recommendations, predictions, sentiment, layout suggestions and markdown
reports. Every feature is one prompt plus optional data context sent to
Gemini's generateContent endpoint; the data layer never depends on it.
"""
import asyncio
import json
import logging
import re
import time
from pathlib import Path
from typing import Any, Optional

import httpx

from app.core.errors import AIProviderError, ConfigurationError, ReportWriteError

logger = logging.getLogger(__name__)

GEMINI_URL = "https://generativelanguage.googleapis.com/v1beta/models/{model}:generateContent"


def _context_text(data: Any, limit: int) -> str:
    """Serialize data context for a prompt, truncated to ``limit`` characters."""
    return json.dumps(data, default=str)[:limit]


def parse_json_reply(text: str) -> Any:
    """Parse a model reply that should be JSON.

    Handles markdown code fences. Raises ValueError when the reply is not JSON.
    """
    if "```json" in text:
        text = text.split("```json")[1].split("```")[0]
    elif "```" in text:
        text = text.split("```")[1].split("```")[0]
    return json.loads(text.strip())


class GeminiClient:
    """Thin async client for Gemini generateContent.

    Args:
        api_key: Gemini API key; calls raise ConfigurationError without one.
        transport: Optional httpx transport (tests pass httpx.MockTransport).
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-pro",
        timeout: float = 30.0,
        context_max_chars: int = 12000,
        reports_dir: Path | str = Path("./reports"),
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.context_max_chars = context_max_chars
        self.reports_dir = Path(reports_dir)
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.api_key)

    async def generate(self, prompt: str, *context: str) -> str:
        """Send prompt (and context parts) to Gemini and return the reply text.

        Returns an empty string when Gemini answers without candidates.
        """
        if not self.api_key:
            raise ConfigurationError("Gemini API key not configured (GEMINI_API_KEY)")

        contents = [{"parts": [{"text": prompt}]}]
        contents.extend({"parts": [{"text": part}]} for part in context)

        try:
            async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                response = await client.post(
                    GEMINI_URL.format(model=self.model),
                    params={"key": self.api_key},
                    json={"contents": contents},
                )
        except httpx.HTTPError as e:
            logger.warning("Gemini request failed: %s", e)
            raise AIProviderError(f"Gemini request failed: {type(e).__name__}") from e

        if response.status_code == 429:
            logger.warning("Gemini rate limited")
            raise AIProviderError("Gemini rate limit reached, try again later")
        if not response.is_success:
            logger.warning("Gemini error: %s - %s", response.status_code, response.text[:200])
            raise AIProviderError(f"Gemini returned HTTP {response.status_code}")

        try:
            result = response.json()
            return result["candidates"][0]["content"]["parts"][0]["text"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            return ""

    def _context(self, data: Any) -> str:
        return _context_text(data, self.context_max_chars)

    # ─── Features ──────────────────────────────────────────────────────────

    async def insights(self, sport: str, data: Any) -> dict:
        prompt = f"Summarize the top trends and standout performances for this {sport} dataset."
        text = await self.generate(prompt, self._context(data))
        return {"summary": text or "No summary available."}

    async def chat(self, question: str, context: Any = None) -> dict:
        prompt = (
            "You are a sports data analyst. Answer the user's question. "
            "If relevant, include a link to the appropriate graph or chart section."
        )
        parts = [f"Question: {question}"]
        if context:
            parts.append(f"Context: {self._context(context)}")
        text = await self.generate(prompt, *parts)
        return {"answer": text or "No answer available."}

    async def semantic(self, query: str, data: Any) -> dict:
        """Turn a natural-language query into chart metric filters."""
        prompt = (
            "Given this dataset, parse the following user query and return a JSON "
            f"object with metric filters for chart rendering.\nQuery: {query}"
        )
        text = await self.generate(prompt, self._context(data))
        try:
            filters = parse_json_reply(text)
        except ValueError:
            filters = text
        return {"filters": filters, "raw": text}

    async def explain(self, sport: str, anomaly: Any) -> dict:
        prompt = f"Explain why this anomaly occurred in {sport} data: {self._context(anomaly)}"
        text = await self.generate(prompt)
        return {"explanation": text or "No explanation available."}

    async def recommendations(self, selections: list) -> dict:
        prompt = (
            "Given this user's past selections, recommend 3 teams to follow. "
            "Output ONLY a JSON array."
        )
        text = await self.generate(prompt, self._context(selections))
        try:
            recommendations = parse_json_reply(text)
        except ValueError:
            recommendations = text
        return {"recommendations": recommendations, "raw": text}

    async def predict(self, sport: str, data: Any) -> dict:
        prompt = (
            f"Predict the next {sport} game outcomes based on these historical stats. "
            "Output ONLY a JSON array of predictions."
        )
        text = await self.generate(prompt, self._context(data))
        try:
            predictions = parse_json_reply(text)
        except ValueError:
            logger.info("Prediction reply was not JSON")
            predictions = []
        return {"predictions": predictions, "raw": text}

    async def sentiment(self, team: str) -> dict:
        prompt = f"What is the public sentiment around {team} in recent sports news and tweets?"
        text = await self.generate(prompt)
        return {"sentiment": text or "No sentiment found."}

    async def dashboard_layout(self) -> dict:
        prompt = (
            "Suggest a dashboard layout for a user who views mostly ERA and OPS charts. "
            "Include layout sections, recommended widgets, and a brief rationale. Format as JSON."
        )
        text = await self.generate(prompt) or "{}"
        try:
            layout = parse_json_reply(text)
        except ValueError:
            layout = text
        return {"layout": layout}

    def _save_report(self, filename: str, markdown: str) -> None:
        self.reports_dir.mkdir(parents=True, exist_ok=True)
        (self.reports_dir / filename).write_text(markdown, encoding="utf-8")

    async def report(self, sport: str, data: list) -> dict:
        """Generate a markdown performance report and save it for download."""
        prompt = (
            f"Write a performance summary for each {sport} team over the last 3 games. "
            "Use the provided data. Format the output as Markdown with a section for each team."
        )
        markdown = await self.generate(prompt, self._context(data)) or "# No report generated."

        safe_sport = re.sub(r"[^A-Za-z0-9_-]", "_", sport)
        filename = f"report_{safe_sport}_{int(time.time() * 1000)}.md"
        try:
            await asyncio.to_thread(self._save_report, filename, markdown)
        except OSError as e:
            logger.error("Could not save report %s: %s", filename, e)
            raise ReportWriteError(f"Could not save report: {e}") from e
        logger.info("Saved report %s", filename)

        return {"markdown": markdown, "download_url": f"/reports/{filename}"}
