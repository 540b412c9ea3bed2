"""Custom exception hierarchy for flowvault.

Every error carries a stable numeric ``code`` so trigger sources and audit
consumers can match on the failure kind without parsing messages.
"""


class FlowVaultError(Exception):
    """Base exception for all flowvault errors."""

    code: int = 0


# Vault errors (1-99)


class VaultError(FlowVaultError):
    """Raised by the custodial vault."""


class InsufficientBalanceError(VaultError):
    """Raised when a debit exceeds the account's vault balance."""

    code = 1


class NotVaultOwnerError(VaultError):
    """Raised when a privileged vault operation is called by a non-admin."""

    code = 2


class UnauthorizedExecutorError(VaultError):
    """Raised when a third-party debit comes from an unauthorized caller."""

    code = 3


class ZeroAmountError(VaultError):
    """Raised when a zero amount is deposited, withdrawn or staked."""

    code = 4


class InvalidAmountError(VaultError):
    """Raised when an amount is not a non-negative integer."""

    code = 5


# Automation engine errors (100-199)


class RuleError(FlowVaultError):
    """Raised by the rule engine."""


class RuleNotFoundError(RuleError):
    """Raised when a rule id is unknown or the rule was deleted."""

    code = 100


class NotRuleOwnerError(RuleError):
    """Raised when a rule operation is called by someone other than its owner."""

    code = 101


class RuleNotActiveError(RuleError):
    """Raised when executing a rule that is not active."""

    code = 102


class RuleAlreadyPausedError(RuleError):
    code = 103


class RuleNotPausedError(RuleError):
    code = 104


class ConditionNotMetError(RuleError):
    """Raised when a condition evaluator rejects a condition-triggered rule."""

    code = 105


class InvalidRuleConfigError(RuleError):
    """Raised when a transfer-class rule has no recipient or no vault."""

    code = 106


class MaxRulesReachedError(RuleError):
    """Raised when an account is at its tier's active-rule limit."""

    code = 107


class TriggerTimeNotReachedError(RuleError):
    """Raised when a time-triggered rule is executed before it is due."""

    code = 108


class UnauthorizedAdminError(RuleError):
    """Raised when an admin-only engine or adapter setting is changed by a non-admin."""

    code = 109


# Staking errors (200-299)


class StakingError(FlowVaultError):
    """Raised by the staking adapter."""


class InsufficientStakingBalanceError(StakingError):
    code = 200


class InvalidValidatorError(StakingError):
    code = 201


class MinimumStakeNotMetError(StakingError):
    code = 202


# Infrastructure errors (900+)


class ConfigurationError(FlowVaultError):
    """Raised when configuration is invalid or missing."""

    code = 900


class StoreError(FlowVaultError):
    """Raised when a storage backend operation fails."""

    code = 901


class SinkError(FlowVaultError):
    """Raised when a sink operation fails."""

    code = 902
