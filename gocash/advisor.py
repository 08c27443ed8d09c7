"""
Portfolio Advisor Client Module

REST client for a generative-language model that turns the headline
portfolio figures into short collection advice. The advisor is optional:
every failure degrades to a fixed message and never reaches the caller.
"""

import httpx
import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

from .errors import AdvisoryUnavailable

logger = logging.getLogger("gocash.advisor")


NO_KEY_MESSAGE = "Configura tu API_KEY para activar el asesor inteligente."
UNAVAILABLE_MESSAGE = "El motor de IA está experimentando alta demanda. Intente más tarde."
EMPTY_MESSAGE = "Análisis no disponible actualmente."

PROMPT_TEMPLATE = (
    "Actúa como un Consultor Senior de Riesgos Fintech. Analiza los siguientes datos de cartera:\n"
    "- Cartera Total: {totalPortfolio}\n"
    "- Recaudo Hoy: {collectedToday}\n"
    "- En Mora: {overdue}\n"
    "- Eficiencia: {efficiency}%\n"
    "\n"
    "Proporciona 3 consejos ejecutivos breves para mejorar el recaudo hoy mismo. Responde en español."
)


@dataclass
class Advice:
    """Advice text and where it came from"""
    text: str
    source: str  # model, fallback, mock
    latency_ms: float

    @property
    def is_fallback(self) -> bool:
        return self.source == "fallback"

    def to_dict(self) -> Dict[str, Any]:
        return {"text": self.text, "source": self.source, "latency_ms": round(self.latency_ms, 1)}


def build_prompt(overview: Mapping[str, Any]) -> str:
    """Render the advisor prompt from the four headline figures"""
    return PROMPT_TEMPLATE.format(
        totalPortfolio=overview.get("totalPortfolio", 0),
        collectedToday=overview.get("collectedToday", 0),
        overdue=overview.get("overdue", 0),
        efficiency=overview.get("efficiency", 0),
    )


class AdvisorClient:
    """REST client for the Gemini generateContent endpoint"""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        model: str = "gemini-3-flash-preview",
        timeout: float = 10.0,
        temperature: float = 0.7,
        max_output_tokens: int = 500,
        http_client: Optional[httpx.Client] = None,
    ):
        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self.model = model
        self.timeout = timeout
        self.temperature = temperature
        self.max_output_tokens = max_output_tokens
        self._client = http_client or httpx.Client(timeout=timeout)

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def get_advice(self, overview: Mapping[str, Any]) -> Advice:
        """Ask the model for advice on the given portfolio overview

        Args:
            overview: dict with totalPortfolio, collectedToday, overdue, efficiency

        Returns:
            Advice from the model, or a fallback message
        """
        if not self.enabled:
            logger.warning("Advisor API key not configured")
            return Advice(text=NO_KEY_MESSAGE, source="fallback", latency_ms=0.0)

        start = time.time()
        try:
            text = self._generate(build_prompt(overview))
        except AdvisoryUnavailable as e:
            logger.error(f"Advisor request failed: {e}")
            return Advice(text=UNAVAILABLE_MESSAGE, source="fallback",
                          latency_ms=(time.time() - start) * 1000)

        latency_ms = (time.time() - start) * 1000
        if not text:
            return Advice(text=EMPTY_MESSAGE, source="fallback", latency_ms=latency_ms)
        return Advice(text=text, source="model", latency_ms=latency_ms)

    def _generate(self, prompt: str) -> str:
        request = {
            "contents": [{"role": "user", "parts": [{"text": prompt}]}],
            "generationConfig": {
                "temperature": self.temperature,
                "maxOutputTokens": self.max_output_tokens,
            },
        }

        try:
            response = self._client.post(
                f"{self.base_url}/models/{self.model}:generateContent",
                json=request,
                headers={"x-goog-api-key": self.api_key},
            )
        except httpx.HTTPError as e:
            raise AdvisoryUnavailable(f"connection failed: {e}") from e

        if response.status_code != 200:
            logger.warning(f"Advisor returned {response.status_code}: {response.text}")
            raise AdvisoryUnavailable(f"status {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise AdvisoryUnavailable("response is not JSON") from e

        try:
            return self._extract_text(data)
        except (AttributeError, TypeError, KeyError, IndexError) as e:
            raise AdvisoryUnavailable(f"unexpected response shape: {e}") from e

    @staticmethod
    def _extract_text(data: Dict[str, Any]) -> str:
        """Join the text parts of the first candidate

        Raises AttributeError or TypeError when the body is not shaped like
        a generateContent response.
        """
        candidates = data.get("candidates") or []
        if not candidates:
            return ""
        parts = (candidates[0].get("content") or {}).get("parts") or []
        return "".join(part.get("text", "") for part in parts).strip()

    def close(self):
        """Close the HTTP client"""
        self._client.close()


class MockAdvisorClient(AdvisorClient):
    """Mock client for testing - advice keyed on efficiency and overdue"""

    def __init__(self, **kwargs):
        kwargs.setdefault("api_key", "mock")
        super().__init__(**kwargs)

    def get_advice(self, overview: Mapping[str, Any]) -> Advice:
        efficiency = float(overview.get("efficiency", 0) or 0)
        overdue = float(overview.get("overdue", 0) or 0)

        if overdue > 0:
            text = "Prioriza las cuotas vencidas de la ruta antes de originar nuevos créditos."
        elif efficiency < 50:
            text = "Refuerza los recordatorios de pago con tus clientes de cobro diario."
        else:
            text = "La cartera está al día. Mantén la frecuencia de visitas actual."
        return Advice(text=text, source="mock", latency_ms=1.0)
