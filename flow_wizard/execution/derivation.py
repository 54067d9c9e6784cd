"""
Derivation Engine - Computed Field Values

Produces field values from other fields (e.g. a username from an email).
Strategies are registered by name. Deterministic strategies always return
the same value for the same sources; non-deterministic ones (secret
generation) are computed once per change of their sources and cached in the
Session until a source changes again.

Randomness comes from an injectable random.Random so the engine can be
seeded; the default is the OS-backed secrets.SystemRandom.
"""

import logging
import random
import re
import secrets
import string
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional

from ..config import settings
from ..domain.models import STRONG_SECRET, USERNAME_FROM_EMAIL, DerivationRule
from ..exceptions import DerivationUnavailable
from ..state.models import Session

logger = logging.getLogger(__name__)

# Ambiguous glyphs (0/O, 1/l/I) are left out on purpose.
UPPERCASE = "ABCDEFGHJKLMNPQRSTUVWXYZ"
LOWERCASE = "abcdefghijkmnpqrstuvwxyz"
DIGITS = "23456789"
SYMBOLS = "!@#$%"
SECRET_ALPHABET = UPPERCASE + LOWERCASE + DIGITS + SYMBOLS

TOKEN_ALPHABET = string.ascii_lowercase + string.digits
TOKEN_LENGTH = 6


@dataclass
class Strategy:
    name: str
    fn: Callable[[Mapping[str, Any], random.Random], Any]
    deterministic: bool = True


class DerivationEngine:
    def __init__(
        self,
        rng: Optional[random.Random] = None,
        secret_min_length: int = settings.SECRET_MIN_LENGTH,
        username_prefix: str = settings.USERNAME_FALLBACK_PREFIX,
    ):
        self.rng = rng or secrets.SystemRandom()
        # Four classes must fit
        self.secret_min_length = max(secret_min_length, 4)
        self.username_prefix = username_prefix
        self._strategies: Dict[str, Strategy] = {}

        self.register(USERNAME_FROM_EMAIL, self._username_from_email)
        self.register(STRONG_SECRET, self._strong_secret, deterministic=False)

    def register(
        self,
        name: str,
        fn: Callable[[Mapping[str, Any], random.Random], Any],
        deterministic: bool = True,
    ):
        self._strategies[name] = Strategy(name=name, fn=fn, deterministic=deterministic)

    def has_strategy(self, name: str) -> bool:
        return name in self._strategies

    def derive(self, strategy_name: str, source_values: Mapping[str, Any]) -> Optional[Any]:
        """Returns the derived value, or None when the sources are insufficient."""
        try:
            return self._compute(strategy_name, source_values)
        except DerivationUnavailable as e:
            logger.debug(f"Derivation '{strategy_name}' unavailable: {e}")
            return None

    def apply(
        self,
        rules: Iterable[DerivationRule],
        session: Session,
        changed_keys: Iterable[str],
    ) -> Dict[str, Any]:
        """
        Re-evaluates the rules whose sources were touched and actually changed.

        Updates session.derived_values / session.derivation_sources in place
        and returns the values that were (re)computed.
        """
        changed = set(changed_keys)
        updates: Dict[str, Any] = {}

        for rule in rules:
            if not changed.intersection(rule.source_field_ids):
                continue

            sources = {key: session.session_values.get(key) for key in rule.source_field_ids}
            previous = session.derivation_sources.get(rule.target_field_id)
            if previous == sources and rule.target_field_id in session.derived_values:
                # Same inputs: keep the cached value (matters for random strategies)
                continue

            value = self.derive(rule.strategy, sources)
            session.derivation_sources[rule.target_field_id] = sources
            if value is None:
                # Leave the field blank; the form shows its placeholder
                session.derived_values.pop(rule.target_field_id, None)
                continue

            session.derived_values[rule.target_field_id] = value
            updates[rule.target_field_id] = value

        if updates:
            logger.debug(f"Derived fields updated: {sorted(updates)}")
        return updates

    # ==========================================================================
    # Strategies
    # ==========================================================================

    def _compute(self, strategy_name: str, source_values: Mapping[str, Any]) -> Any:
        strategy = self._strategies.get(strategy_name)
        if strategy is None:
            raise DerivationUnavailable(f"Unknown strategy '{strategy_name}'.")
        return strategy.fn(source_values, self.rng)

    def _random_token(self, rng: random.Random) -> str:
        return self.username_prefix + "".join(
            rng.choice(TOKEN_ALPHABET) for _ in range(TOKEN_LENGTH)
        )

    def _username_from_email(self, source_values: Mapping[str, Any], rng: random.Random) -> str:
        email = source_values.get("email")
        if not isinstance(email, str) or email.count("@") != 1:
            return self._random_token(rng)

        local_part = email.strip().split("@")[0]
        username = re.sub(r"[^a-z0-9]", "", local_part.lower())
        return username or self._random_token(rng)

    def _strong_secret(self, source_values: Mapping[str, Any], rng: random.Random) -> str:
        # One of each class first, then pad from the full alphabet
        chars: List[str] = [
            rng.choice(UPPERCASE),
            rng.choice(LOWERCASE),
            rng.choice(DIGITS),
            rng.choice(SYMBOLS),
        ]
        while len(chars) < self.secret_min_length:
            chars.append(rng.choice(SECRET_ALPHABET))
        rng.shuffle(chars)
        return "".join(chars)
