"""
Resolution Guide Service
Static remediation steps per error category, and LLM-generated explanations
"""
import json
import logging
from typing import Dict, List, Optional

from pydantic import ValidationError

from analytics_dashboard.core.config import settings
from analytics_dashboard.core.errors import ApiError, ConfigurationError
from analytics_dashboard.pipeline.llm import build_solution_prompt, call_llm_async, parse_json
from analytics_dashboard.schemas import ResolutionGuide, ResolutionStep, SolutionResponse
from analytics_dashboard.services.transaction_classifier import classify_error_category

logger = logging.getLogger(__name__)

SOLUTION_FAILED = "Failed to generate solution"

STATIC_GUIDES: Dict[str, List[ResolutionStep]] = {
    "network": [
        ResolutionStep(
            id="1",
            title="Netzwerkverbindung prüfen",
            description="Überprüfen Sie die Internetverbindung und DNS-Auflösung.",
            code="curl -I https://api.payment-provider.com/health",
        ),
        ResolutionStep(
            id="2",
            title="Proxy-Einstellungen überprüfen",
            description="Stellen Sie sicher, dass Proxy-Einstellungen korrekt konfiguriert sind.",
            code="export https_proxy=http://proxy.company.com:8080",
        ),
        ResolutionStep(
            id="3",
            title="Firewall-Regeln prüfen",
            description="Verifizieren Sie, dass ausgehende Verbindungen zur Payment-API erlaubt sind.",
        ),
    ],
    "authentication": [
        ResolutionStep(
            id="1",
            title="API-Schlüssel validieren",
            description="Überprüfen Sie, ob der verwendete API-Schlüssel noch gültig ist.",
            code='curl -H "Authorization: Bearer YOUR_API_KEY" https://api.payment-provider.com/auth/validate',
        ),
        ResolutionStep(
            id="2",
            title="Token-Ablaufzeit prüfen",
            description="Stellen Sie sicher, dass das Access Token nicht abgelaufen ist.",
        ),
        ResolutionStep(
            id="3",
            title="Berechtigungen überprüfen",
            description="Verifizieren Sie, dass der API-Schlüssel die erforderlichen Berechtigungen hat.",
        ),
    ],
    "validation": [
        ResolutionStep(
            id="1",
            title="Eingabedaten validieren",
            description="Überprüfen Sie alle erforderlichen Felder und Datenformate.",
            code=json.dumps({
                "amount": "99.99",
                "currency": "EUR",
                "payment_method": "card",
                "card_number": "4111111111111111",
            }, indent=2),
        ),
        ResolutionStep(
            id="2",
            title="Schema-Validierung durchführen",
            description="Stellen Sie sicher, dass alle Daten dem erwarteten Schema entsprechen.",
        ),
        ResolutionStep(
            id="3",
            title="Sonderzeichen prüfen",
            description="Entfernen Sie ungültige Sonderzeichen aus Eingabefeldern.",
        ),
    ],
    "database": [
        ResolutionStep(
            id="1",
            title="Datenbankverbindung testen",
            description="Überprüfen Sie die Verbindung zur Datenbank.",
            code="SELECT 1; -- Test connection",
        ),
        ResolutionStep(
            id="2",
            title="Connection Pool prüfen",
            description="Stellen Sie sicher, dass der Connection Pool nicht erschöpft ist.",
        ),
        ResolutionStep(
            id="3",
            title="Transaktions-Locks überprüfen",
            description="Suchen Sie nach blockierenden Transaktionen oder Deadlocks.",
        ),
    ],
    "timeout": [
        ResolutionStep(
            id="1",
            title="Timeout-Werte erhöhen",
            description="Passen Sie die Timeout-Konfiguration an.",
            code="request_timeout = 30000  # 30 seconds",
        ),
        ResolutionStep(
            id="2",
            title="Retry-Mechanismus implementieren",
            description="Fügen Sie exponential backoff retry logic hinzu.",
        ),
        ResolutionStep(
            id="3",
            title="Performance optimieren",
            description="Analysieren Sie langsame Abfragen und optimieren Sie diese.",
        ),
    ],
}

DEFAULT_GUIDE: List[ResolutionStep] = [
    ResolutionStep(
        id="1",
        title="Logs analysieren",
        description="Überprüfen Sie die detaillierten Logs für weitere Hinweise.",
        code="tail -f /var/log/payment-service.log | grep ERROR",
    ),
    ResolutionStep(
        id="2",
        title="System-Status prüfen",
        description="Verifizieren Sie den Status aller abhängigen Services.",
    ),
    ResolutionStep(
        id="3",
        title="Support kontaktieren",
        description="Kontaktieren Sie den technischen Support mit der Transaktions-ID.",
    ),
]


def static_guide(category: Optional[str]) -> ResolutionGuide:
    """Canned steps for a category; unknown categories get the generic guide"""
    key = (category or "").lower()
    steps = STATIC_GUIDES.get(key, DEFAULT_GUIDE)
    return ResolutionGuide(category=key if key in STATIC_GUIDES else "default", steps=steps)


def static_solution(category: Optional[str], error_message: str) -> SolutionResponse:
    """SolutionResponse built from the static guide (used only when the fallback is enabled)"""
    guide = static_guide(category)
    return SolutionResponse(
        explanation=f"Für den Fehler \"{error_message}\" liegt keine generierte Erklärung vor.",
        fixes=[f"{step.title}: {step.description}" for step in guide.steps[:3]],
        source="static",
    )


class ResolutionService:
    """
    Generates a plain-language explanation and three fixes for an error message

    Args:
        api_key: LLM API key; settings.OPENAI_API_KEY when omitted
        static_fallback: Serve the static guide when the LLM answer cannot be parsed
        transport: Optional httpx transport for the LLM call
    """

    def __init__(self, api_key: Optional[str] = None, static_fallback: Optional[bool] = None, transport=None):
        self.api_key = api_key if api_key is not None else settings.OPENAI_API_KEY
        self.static_fallback = settings.SOLUTION_STATIC_FALLBACK if static_fallback is None else static_fallback
        self.transport = transport

    async def generate_solution(self, error_message: Optional[str], category: Optional[str] = None) -> SolutionResponse:
        if not error_message or not error_message.strip():
            raise ApiError(400, "Missing errorMessage")

        try:
            content = await call_llm_async(
                build_solution_prompt(error_message),
                temperature=0.2,
                attempts=1,
                api_key=self.api_key,
                transport=self.transport,
            )
        except ConfigurationError:
            raise
        except Exception as e:
            logger.error(f"Solution generation failed upstream: {e}", exc_info=True)
            raise ApiError(500, SOLUTION_FAILED)

        try:
            parsed = parse_json(content)
            solution = SolutionResponse(explanation=parsed.get("explanation"), fixes=parsed.get("fixes"))
        except (ValueError, ValidationError) as e:
            logger.error(f"Unparseable solution response: {e} | content={content[:200]!r}")
            if self.static_fallback:
                logger.info("Serving static resolution guide instead")
                return static_solution(category or classify_error_category(error_message, None), error_message)
            raise ApiError(500, SOLUTION_FAILED)

        return solution
