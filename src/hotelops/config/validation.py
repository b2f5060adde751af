"""Configuration validation for startup checks.

Usage:
    from hotelops.config.validation import validate_configuration

    for issue in validate_configuration():
        logger.warning("configuration_issue", issue=str(issue))
"""

from dataclasses import dataclass
from enum import Enum

from hotelops.config.settings import Settings, get_settings
from hotelops.utils.exceptions import ConfigurationError


class ValidationSeverity(str, Enum):
    """Severity of configuration validation issues."""

    ERROR = "error"  # Must be fixed, app cannot start
    WARNING = "warning"


@dataclass
class ValidationResult:
    """Result of a configuration validation check."""

    field: str
    severity: ValidationSeverity
    message: str
    suggestion: str | None = None

    def __str__(self) -> str:
        prefix = "ERROR" if self.severity == ValidationSeverity.ERROR else "WARNING"
        result = f"[{prefix}] {self.field}: {self.message}"
        if self.suggestion:
            result += f"\n  Suggestion: {self.suggestion}"
        return result


def validate_configuration(settings: Settings | None = None) -> list[ValidationResult]:
    """Run all configuration checks.

    Args:
        settings: Settings to validate (default: global settings)

    Returns:
        List of validation results, empty when configuration is sound
    """
    settings = settings or get_settings()
    results: list[ValidationResult] = []
    results.extend(_validate_security(settings))
    results.extend(_validate_subscription(settings))
    results.extend(_validate_environment(settings))
    return results


def validate_or_raise(settings: Settings | None = None) -> None:
    """Validate configuration and raise if errors found.

    Raises:
        ConfigurationError: If any validation errors are found
    """
    errors = [
        r for r in validate_configuration(settings) if r.severity == ValidationSeverity.ERROR
    ]
    if errors:
        raise ConfigurationError("\n".join(str(e) for e in errors))


def _validate_security(settings: Settings) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    secret = settings.JWT_SECRET.get_secret_value()

    if len(secret) < 32:
        results.append(
            ValidationResult(
                field="JWT_SECRET",
                severity=(
                    ValidationSeverity.ERROR
                    if settings.ENVIRONMENT == "production"
                    else ValidationSeverity.WARNING
                ),
                message="JWT secret is shorter than 32 characters",
                suggestion="Generate a long random secret for token signing",
            )
        )

    if settings.ENVIRONMENT == "production" and "*" in settings.CORS_ORIGINS:
        results.append(
            ValidationResult(
                field="CORS_ORIGINS",
                severity=ValidationSeverity.ERROR,
                message="Wildcard CORS origin not allowed in production",
                suggestion="Specify exact allowed origins",
            )
        )

    return results


def _validate_subscription(settings: Settings) -> list[ValidationResult]:
    results: list[ValidationResult] = []
    sub = settings.subscription

    if sub.renewal_days < 1:
        results.append(
            ValidationResult(
                field="subscription.renewal_days",
                severity=ValidationSeverity.ERROR,
                message=f"Renewal window must be positive, got {sub.renewal_days}",
            )
        )
    if not (1 <= sub.alert_default_window_days <= sub.alert_max_window_days):
        results.append(
            ValidationResult(
                field="subscription.alert_default_window_days",
                severity=ValidationSeverity.ERROR,
                message="Default alert window must lie within [1, alert_max_window_days]",
            )
        )

    return results


def _validate_environment(settings: Settings) -> list[ValidationResult]:
    results: list[ValidationResult] = []

    if settings.ENVIRONMENT == "production" and settings.DEBUG:
        results.append(
            ValidationResult(
                field="DEBUG",
                severity=ValidationSeverity.ERROR,
                message="Debug mode must be disabled in production",
                suggestion="Set DEBUG=false for production",
            )
        )

    if settings.ENVIRONMENT == "production" and settings.log_level == "DEBUG":
        results.append(
            ValidationResult(
                field="log_level",
                severity=ValidationSeverity.WARNING,
                message="DEBUG log level in production may expose sensitive data",
                suggestion="Use INFO or WARNING for production",
            )
        )

    return results
