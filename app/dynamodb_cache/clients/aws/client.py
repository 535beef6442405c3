"""Base AWS client utilities.

Provides `get_boto3_client` and `execute_aws_api_call` with the
OperationResult pattern. This module intentionally avoids reading
settings at import time and accepts configuration via parameters.
"""

import threading
from typing import Any, Dict, Optional

import boto3  # type: ignore
from botocore.client import BaseClient  # type: ignore
from botocore.exceptions import BotoCoreError, ClientError  # type: ignore
import structlog

from dynamodb_cache.operations.cancellation import (
    OperationCancelledError,
    raise_if_cancelled,
    wait_or_cancel,
)
from dynamodb_cache.operations.result import OperationResult
from dynamodb_cache.operations.status import OperationStatus

logger = structlog.get_logger()

CONFLICT_ERROR_CODES = frozenset(
    {
        "ResourceInUseException",
        "ResourceAlreadyExistsException",
        "TableAlreadyExistsException",
        "ConflictException",
    }
)
NOT_FOUND_ERROR_CODES = frozenset({"ResourceNotFoundException", "TableNotFoundException"})
TRANSIENT_ERROR_CODES = frozenset(
    {
        "Throttling",
        "ThrottlingException",
        "RequestLimitExceeded",
        "ProvisionedThroughputExceededException",
        "InternalServerError",
        "ServiceUnavailable",
        "LimitExceededException",
    }
)
UNAUTHORIZED_ERROR_CODES = frozenset({"AccessDeniedException", "UnauthorizedOperation"})


def get_boto3_client(
    service_name: str,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    role_arn: Optional[str] = None,
    session_name: str = "DistributedCacheSession",
) -> BaseClient:
    """Create a boto3 client for the given service.

    Args:
        service_name: AWS service name (e.g., 'dynamodb')
        session_config: Optional boto3 session kwargs (e.g., region_name)
        client_config: Optional client kwargs (e.g., endpoint_url)
        role_arn: Optional role to assume for cross-account access
        session_name: Name for assumed role session

    Returns:
        botocore client instance
    """
    session_config = session_config or {}
    client_config = client_config or {}

    if role_arn:
        sts = boto3.client("sts")
        assumed = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
        creds = assumed["Credentials"]
        session = boto3.Session(
            aws_access_key_id=creds["AccessKeyId"],
            aws_secret_access_key=creds["SecretAccessKey"],
            aws_session_token=creds["SessionToken"],
            **session_config,
        )
    else:
        session = boto3.Session(**session_config)

    return session.client(service_name, **client_config)


def _calculate_retry_delay(attempt: int, backoff_factor: float = 0.5) -> float:
    return backoff_factor * (2**attempt)


def _map_client_error(
    e: ClientError,
    service_name: str,
    method: str,
    treat_conflict_as_success: bool,
) -> OperationResult:
    error_code = e.response.get("Error", {}).get("Code")
    error_message = e.response.get("Error", {}).get("Message", str(e))

    if error_code in CONFLICT_ERROR_CODES:
        logger.info(
            "aws_api_conflict",
            service=service_name,
            method=method,
            code=error_code,
            message=error_message,
        )
        if treat_conflict_as_success:
            return OperationResult.success(data=None, message=error_message)

        return OperationResult.permanent_error(
            message=error_message, error_code=error_code
        )

    if error_code in NOT_FOUND_ERROR_CODES:
        return OperationResult.not_found(message=error_message, error_code=error_code)

    if error_code in TRANSIENT_ERROR_CODES:
        retry_after = None
        try:
            retry_after = int(e.response.get("RetryAfter", 0))
        except (TypeError, ValueError):
            retry_after = None
        return OperationResult.transient_error(
            message=error_message, error_code=error_code, retry_after=retry_after
        )

    if error_code in UNAUTHORIZED_ERROR_CODES:
        return OperationResult.error(
            OperationStatus.UNAUTHORIZED, message=error_message, error_code=error_code
        )

    return OperationResult.permanent_error(message=error_message, error_code=error_code)


def execute_aws_api_call(
    service_name: str,
    method: str,
    role_arn: Optional[str] = None,
    session_config: Optional[Dict[str, Any]] = None,
    client_config: Optional[Dict[str, Any]] = None,
    max_retries: int = 3,
    backoff_factor: float = 0.5,
    treat_conflict_as_success: bool = False,
    client: Optional[Any] = None,
    cancel_event: Optional[threading.Event] = None,
    **kwargs,
) -> OperationResult:
    """Execute an AWS API call with retries and standardized results.

    Args mirror `boto3` call parameters; the function returns an
    `OperationResult` object for consistent downstream handling. A prebuilt
    low-level `client` is used as-is when given, otherwise one is created
    from the session/client config.

    Raises:
        OperationCancelledError: If `cancel_event` is set before a request is
            issued or while waiting between retries.
    """
    operation = f"{service_name}.{method}"
    last_exc: Optional[Exception] = None

    for attempt in range(max_retries + 1):
        raise_if_cancelled(cancel_event, operation)
        try:
            api_client = client or get_boto3_client(
                service_name,
                session_config=session_config,
                client_config=client_config,
                role_arn=role_arn,
            )
            result = getattr(api_client, method)(**kwargs)
            return OperationResult.success(data=result, message=f"{operation} succeeded")

        except ClientError as e:
            last_exc = e
            mapped = _map_client_error(
                e, service_name, method, treat_conflict_as_success
            )

            # If conflict was treated as success, return success result immediately
            if mapped.is_success:
                return mapped

            if (
                mapped.status == OperationStatus.TRANSIENT_ERROR
                and attempt < max_retries
            ):
                delay = _calculate_retry_delay(attempt, backoff_factor)
                logger.warning(
                    "aws_api_retry",
                    service=service_name,
                    method=method,
                    attempt=attempt + 1,
                    error=str(e),
                    delay=delay,
                )
                wait_or_cancel(delay, cancel_event, operation)
                continue

            log = logger.debug if mapped.is_not_found else logger.error
            log(
                "aws_api_error_final",
                service=service_name,
                method=method,
                code=mapped.error_code,
                error=str(e),
            )
            return mapped

        except OperationCancelledError:
            raise

        except BotoCoreError as e:
            last_exc = e
            if attempt < max_retries:
                delay = _calculate_retry_delay(attempt, backoff_factor)
                logger.warning(
                    "aws_api_retry",
                    service=service_name,
                    method=method,
                    attempt=attempt + 1,
                    error=str(e),
                    delay=delay,
                )
                wait_or_cancel(delay, cancel_event, operation)
                continue
            logger.error(
                "aws_api_connection_error",
                service=service_name,
                method=method,
                error=str(e),
            )
            return OperationResult.transient_error(
                message=str(e), error_code=type(e).__name__
            )

        except Exception as e:  # pylint: disable=broad-except
            last_exc = e
            logger.error(
                "aws_api_unexpected_error",
                service=service_name,
                method=method,
                error=str(e),
            )
            return OperationResult.permanent_error(message=str(e))

    return OperationResult.permanent_error(
        message=str(last_exc) if last_exc else "unknown_error"
    )
