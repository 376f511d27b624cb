"""Byte budget estimation for a set of replication rules.

The estimate is deliberately rough: feed sizes come from the goal tracker
when a goal is bounded (``newest-100``) and from configured averages
otherwise. Exceeding the budget only produces advisories; rules are never
changed here.
"""

from __future__ import annotations

import logging
import math
from typing import List, Optional, Tuple, Union

from ..configuration.settings import ConductorConfig
from ..errors import ConfigError, InvalidRuleError
from .collaborators import GoalTracker
from .models import AdvisoryWarning, BudgetEstimate, Rule, Rules, RuleSet
from .rules import parse_rule_pair

logger = logging.getLogger(__name__)

BUDGET_TOO_SMALL = "BUDGET_TOO_SMALL"
RULES_TOO_LARGE = "RULES_TOO_LARGE"
BUDGET_ABOVE_RECOMMENDED = "BUDGET_ABOVE_RECOMMENDED"


class BudgetEstimator:
    """Estimates disk usage of a rule pair and flags likely overruns.

    Args:
        goals: Goal tracker, consulted for each goal's expected message count
        config: Conductor configuration holding estimates and thresholds
    """

    def __init__(self, goals: GoalTracker, config: ConductorConfig) -> None:
        self._goals = goals
        self._config = config
        self.last_estimate: Optional[BudgetEstimate] = None

    def check_max_bytes(self, max_bytes: object) -> List[AdvisoryWarning]:
        """Validate a byte budget against the hard floor.

        Raises:
            ConfigError: If ``max_bytes`` is not an integer or below the floor

        Returns:
            Advisories for budgets above the recommended maximum
        """
        budget = self._config.budget
        if isinstance(max_bytes, bool) or not isinstance(max_bytes, int):
            raise ConfigError(
                f"maxBytes must be an integer, got {max_bytes!r}",
                details={"max_bytes": repr(max_bytes)},
            )
        if max_bytes < budget.min_max_bytes:
            raise ConfigError(
                f"maxBytes must be at least {budget.min_max_bytes} bytes, got {max_bytes}",
                details={"max_bytes": max_bytes, "min_max_bytes": budget.min_max_bytes},
            )

        advisories = []
        if max_bytes > budget.max_recommended_max_bytes:
            advisories.append(
                AdvisoryWarning(
                    code=BUDGET_ABOVE_RECOMMENDED,
                    message=(
                        f"maxBytes {max_bytes} is above the recommended maximum "
                        f"of {budget.max_recommended_max_bytes} bytes"
                    ),
                    details={
                        "max_bytes": max_bytes,
                        "max_recommended_max_bytes": budget.max_recommended_max_bytes,
                    },
                )
            )
        return advisories

    def expected_messages(self, rule: Rule) -> int:
        """Expected message count of one feed under ``rule``.

        Raises:
            InvalidRuleError: If the goal tracker rejects the goal expression
        """
        try:
            count = self._goals.parse(rule.goal).count
        except ValueError as exc:
            raise InvalidRuleError(str(rule), str(exc)) from exc
        if math.isinf(count):
            return self._config.estimates.avg_unknown_feed_size
        return int(count)

    def estimate(
        self,
        rules: Rules,
        num_followed: int,
        max_bytes: int,
    ) -> BudgetEstimate:
        """Estimate bytes used by ``rules`` when following ``num_followed`` accounts."""
        my_rules, their_rules = rules
        estimates = self._config.estimates

        messages = (
            (1 + num_followed) * estimates.avg_follows_feed_size
            + estimates.avg_blocks_feed_size
        )
        for rule in my_rules:
            messages += self.expected_messages(rule)
        for rule in their_rules:
            messages += self.expected_messages(rule) * num_followed

        estimate = BudgetEstimate(
            num_followed=num_followed,
            estimated_messages=messages,
            estimated_bytes=messages * estimates.avg_message_bytes,
            max_bytes=max_bytes,
        )

        if estimate.exceeds_budget:
            budget = self._config.budget
            if max_bytes < budget.min_decent_max_bytes:
                estimate.advisories.append(
                    AdvisoryWarning(
                        code=BUDGET_TOO_SMALL,
                        message=(
                            f"maxBytes {max_bytes} is too small in practice, use between "
                            f"{budget.min_decent_max_bytes} and "
                            f"{budget.max_recommended_max_bytes} bytes"
                        ),
                        details={
                            "max_bytes": max_bytes,
                            "recommended_min": budget.min_decent_max_bytes,
                            "recommended_max": budget.max_recommended_max_bytes,
                        },
                    )
                )
            else:
                percent = estimate.scale_down_percent
                estimate.advisories.append(
                    AdvisoryWarning(
                        code=RULES_TOO_LARGE,
                        message=(
                            f"Rules need about {estimate.estimated_bytes} bytes but maxBytes "
                            f"is {max_bytes}; consider scaling rules down to {percent:.1f}%"
                        ),
                        details={
                            "estimated_bytes": estimate.estimated_bytes,
                            "max_bytes": max_bytes,
                            "scale_down_percent": round(percent, 1),
                        },
                    )
                )

        return estimate

    def estimate_and_warn(
        self,
        rules: Union[Rules, Tuple[List[str], List[str]]],
        num_followed: int,
        max_bytes: int,
    ) -> Tuple[RuleSet, RuleSet]:
        """Parse ``rules``, estimate them and log every advisory.

        The parsed rules are returned unchanged; the estimate is kept on
        ``last_estimate``.

        Raises:
            InvalidRuleError: If any rule is malformed
        """
        my_rules, their_rules = parse_rule_pair(rules)
        estimate = self.estimate((my_rules, their_rules), num_followed, max_bytes)

        for advisory in estimate.advisories:
            log_advisory(advisory)

        logger.debug(
            "Estimated replication budget",
            extra=estimate.to_dict(),
        )
        self.last_estimate = estimate
        return my_rules, their_rules


def log_advisory(advisory: AdvisoryWarning) -> None:
    logger.warning(
        f"WARNING: {advisory.message}",
        extra={"advisory": advisory.code, **advisory.details},
    )


__all__ = [
    "BUDGET_TOO_SMALL",
    "RULES_TOO_LARGE",
    "BUDGET_ABOVE_RECOMMENDED",
    "BudgetEstimator",
    "log_advisory",
]
