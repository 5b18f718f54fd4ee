"""
Disclaimer Injection

Mandatory disclaimer attached to every analysis response.
"""

from typing import Optional, Dict, Any
from enum import Enum

from ...domain.entities.analysis_response import DEFAULT_DISCLAIMER, AnalysisResponse


class DisclaimerLanguage(Enum):
    """Supported disclaimer languages."""
    ENGLISH = "en"
    TURKISH = "tr"


MEDICAL_DISCLAIMER = {
    "en": DEFAULT_DISCLAIMER,
    "tr": (
        "Bu bilgiler yalnızca genel bilgilendirme amaçlıdır ve profesyonel tıbbi "
        "tavsiye, teşhis veya tedavi yerine geçmez. Herhangi bir ilacı kullanmaya "
        "başlamadan, değiştirmeden veya bırakmadan önce mutlaka doktorunuza veya "
        "eczacınıza danışınız."
    ),
}


class DisclaimerInjector:
    """
    Guarantees the disclaimer on responses leaving the pipeline.

    ``disclaimer`` is always the English text, verbatim. A configured
    translation travels next to it in ``localized_disclaimer``; English and
    unknown languages add no translation.
    """

    def __init__(self, language: str = DisclaimerLanguage.ENGLISH.value):
        self.language = language

    def get_disclaimer(self) -> str:
        return DEFAULT_DISCLAIMER

    def get_localized(self, language: Optional[str] = None) -> Optional[str]:
        """Translation for the configured language, or None when there is none."""
        lang = language or self.language
        if lang == DisclaimerLanguage.ENGLISH.value:
            return None
        return MEDICAL_DISCLAIMER.get(lang)

    def has_disclaimer(self, text: Optional[str]) -> bool:
        """Check whether text contains the verbatim disclaimer."""
        return bool(text) and DEFAULT_DISCLAIMER in text

    def ensure(self, response: AnalysisResponse) -> AnalysisResponse:
        """
        Make sure a response carries the disclaimer.

        Args:
            response: Response built by the service

        Returns:
            The same response, with the disclaimer set if it was missing
        """
        if not self.has_disclaimer(response.disclaimer):
            response.disclaimer = self.get_disclaimer()
        if response.localized_disclaimer is None:
            response.localized_disclaimer = self.get_localized()
        return response

    def ensure_payload(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Add the disclaimer to a serialized body, such as an error response."""
        if not self.has_disclaimer(payload.get("disclaimer")):
            payload["disclaimer"] = self.get_disclaimer()
        localized = self.get_localized()
        if localized and "localizedDisclaimer" not in payload:
            payload["localizedDisclaimer"] = localized
        return payload
