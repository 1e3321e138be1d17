from collections.abc import Iterator
from contextlib import contextmanager

from botocore.exceptions import BotoCoreError, ClientError

from sitedeploy.exceptions import ProviderError


def client_error_code(error: ClientError) -> str:
    return error.response.get("Error", {}).get("Code", "Unknown")


@contextmanager
def provider_errors(operation: str) -> Iterator[None]:
    """Re-raise botocore errors as ProviderError prefixed with the operation.

    Service errors keep their code and message; connection and credential
    failures (``BotoCoreError``) carry only their own description.
    """
    try:
        yield
    except ClientError as e:
        error_code = client_error_code(e)
        error_message = e.response.get("Error", {}).get("Message", str(e))
        raise ProviderError(f"[{operation}] {error_code}: {error_message}", cause=e) from e
    except BotoCoreError as e:
        raise ProviderError(f"[{operation}] {e}", cause=e) from e
