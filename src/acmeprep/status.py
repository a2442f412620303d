"""Status conditions reported on certificate requests.

The functions here only compute conditions; the preparation pass applies
them to the request.
"""

from acmeprep.models import Condition, ConditionStatus

CONDITION_READY = "Ready"

REASON_INVALID_CONFIG = "ErrInvalidConfig"
REASON_GET_ACME_ACCOUNT = "ErrGetACMEAccount"
REASON_CHECK_AUTHORIZATION = "ErrCheckAuthorization"
REASON_OBTAIN_AUTHORIZATION = "ErrObtainAuthorization"

MESSAGE_MISSING_CONFIG = "certificate.spec.acme must be specified"
MESSAGE_GET_ACME_ACCOUNT = "Error getting ACME account: "
MESSAGE_CHECK_AUTHORIZATION = "Error checking ACME domain validation: "
MESSAGE_OBTAIN_AUTHORIZATION = "Error obtaining validations for domains {domains}"


def _not_ready(reason: str, message: str) -> Condition:
    return Condition(
        type=CONDITION_READY,
        status=ConditionStatus.FALSE,
        reason=reason,
        message=message,
    )


def missing_config_condition() -> Condition:
    return _not_ready(REASON_INVALID_CONFIG, MESSAGE_MISSING_CONFIG)


def account_error_condition(error: Exception) -> Condition:
    return _not_ready(REASON_GET_ACME_ACCOUNT, MESSAGE_GET_ACME_ACCOUNT + str(error))


def check_authorization_condition(error: Exception) -> Condition:
    return _not_ready(REASON_CHECK_AUTHORIZATION, MESSAGE_CHECK_AUTHORIZATION + str(error))


def failed_authorizations_condition(domains: list[str]) -> Condition:
    """Condition naming every domain whose authorization failed."""
    message = MESSAGE_OBTAIN_AUTHORIZATION.format(domains=domains)
    return _not_ready(REASON_OBTAIN_AUTHORIZATION, message)
