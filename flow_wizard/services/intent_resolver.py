"""
Intent Resolver Interface.

Defines the contract for the "Intent Resolver" - the component responsible
for interpreting free text that neither a capture step nor the current
step's synonym table could handle, and mapping it to a coarse intent
(start a flow, continue a branch, show help, or nothing).
"""
import logging
import re
from abc import ABC, abstractmethod
from typing import Optional

from ..domain.models import StepDefinition
from ..schemas.intents import Intent, IntentResult

logger = logging.getLogger(__name__)


def normalize(text: str) -> str:
    """Lowercase, strip punctuation and collapse whitespace."""
    text = re.sub(r"[^\w\s-]", " ", (text or "").lower())
    return " ".join(text.split())


def _has_word(text: str, word: str) -> bool:
    return re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text) is not None


class IntentResolver(ABC):
    @abstractmethod
    def resolve(self, text: str, step: Optional[StepDefinition] = None) -> IntentResult:
        """
        Classifies the user's free text.

        Args:
            text: Raw text as typed.
            step: The current step, when a flow is running.
        """
        pass


class KeywordIntentResolver(IntentResolver):
    """
    Keyword policy mirroring the help desk's canned routing: help topics,
    client creation and bulk upload. No model calls.
    """

    HELP_PHRASES = ("help", "best practices", "delivery methods", "lead routing")

    def __init__(
        self,
        create_flow_id: str = "create-client",
        bulk_flow_id: str = "bulk-client-upload",
        simplified_flow_id: str = "create-client-simplified",
    ):
        self.create_flow_id = create_flow_id
        self.bulk_flow_id = bulk_flow_id
        self.simplified_flow_id = simplified_flow_id

    def resolve(self, text: str, step: Optional[StepDefinition] = None) -> IntentResult:
        normalized = normalize(text)

        if step is not None:
            branch = self._match_option(normalized, step)
            if branch:
                return IntentResult(intent=Intent.CONTINUE_BRANCH, branch_key=branch, confidence=0.8)

        mentions_client = "client" in normalized

        if mentions_client:
            if _has_word(normalized, "bulk") or _has_word(normalized, "upload"):
                return IntentResult(intent=Intent.START_FLOW, flow_id=self.bulk_flow_id)
            if (_has_word(normalized, "quick") or _has_word(normalized, "simplified")) and (
                _has_word(normalized, "create") or _has_word(normalized, "new")
            ):
                return IntentResult(intent=Intent.START_FLOW, flow_id=self.simplified_flow_id)
            if _has_word(normalized, "create") or _has_word(normalized, "new"):
                return IntentResult(intent=Intent.START_FLOW, flow_id=self.create_flow_id)

        for phrase in self.HELP_PHRASES:
            if phrase in normalized:
                topic = phrase.replace(" ", "-") if phrase != "help" else "general"
                return IntentResult(intent=Intent.GENERAL_HELP, topic=topic, confidence=0.9)

        if mentions_client:
            return IntentResult(intent=Intent.GENERAL_HELP, topic="clients", confidence=0.6)

        logger.debug(f"No intent recognised for '{normalized}'")
        return IntentResult(intent=Intent.UNRECOGNIZED, confidence=0.0)

    def _match_option(self, normalized: str, step: StepDefinition) -> Optional[str]:
        for option in step.options():
            for term in (option.id, option.label):
                term = normalize(term)
                if term and _has_word(normalized, term):
                    return option.id
        return None
