"""
KVKK consent API client.

Handles looking up, creating and updating consent records in the cari
directory service.
"""

import asyncio
from typing import Any, Dict, Optional, Union

import requests
from pydantic import BaseModel, ConfigDict, Field, ValidationError
from requests import RequestException

from kvkk_widget.api.schemas import (
    ConsentNotFound,
    ConsentRecord,
    KvkkErrorResponse,
    KvkkSuccessResponse,
)
from kvkk_widget.config import Settings
from kvkk_widget.utils.logger import get_logger

logger = get_logger(__name__)

KVKK_ENDPOINT = "kvkk"


class ConsentApiError(RuntimeError):
    """Base class for failures reported by the consent API client."""


class TransportError(ConsentApiError):
    """Raised on network failure, non-success status or a malformed body."""

    def __init__(self, message: str, *, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RequestTimeoutError(TransportError):
    """Raised when a call exceeds the configured timeout."""


class ConsentRejectedError(ConsentApiError):
    """Raised when the service answers a write with `status: false`."""

    def __init__(self, description: str, message: str = ""):
        super().__init__(description or message or "KVKK request rejected")
        self.description = description
        self.message = message


class ClientConfig(BaseModel):
    """
    Connection settings injected into KvkkClient.

    The access key is part of the request path, not a header.
    """

    model_config = ConfigDict(frozen=True)

    base_url: str = Field(min_length=1)
    api_key: str = Field(min_length=1)
    timeout: float = Field(default=10.0, gt=0)
    verify_tls: bool = True

    @classmethod
    def from_settings(cls, settings: Settings) -> "ClientConfig":
        return cls(
            base_url=settings.API_BASE_URL,
            api_key=settings.API_KEY,
            timeout=settings.REQUEST_TIMEOUT_SECONDS,
            verify_tls=settings.VERIFY_TLS,
        )

    @property
    def endpoint_url(self) -> str:
        return f"{self.base_url.rstrip('/')}/{self.api_key}/{KVKK_ENDPOINT}"


class KvkkClient:
    """
    Async client for the KVKK endpoints.

    Requests are blocking `requests` calls executed in a worker thread.
    The client keeps no state besides its HTTP session and never
    deduplicates calls.
    """

    def __init__(
        self,
        config: ClientConfig,
        *,
        session: Optional[requests.Session] = None,
    ):
        self._config = config
        self._session = session or requests.Session()

    async def lookup(self, phone: str) -> Union[ConsentRecord, ConsentNotFound]:
        """
        Fetch the consent record for a normalized phone number.

        Args:
            phone: Normalized phone number.

        Returns:
            The record, or ConsentNotFound when the service has none.

        Raises:
            TransportError: On request failure or malformed response.
        """
        logger.info("Looking up KVKK record", extra={"phone": phone})

        payload = await self._call("GET", params={"telefon": phone})

        if payload.get("status") is False:
            error = _parse(KvkkErrorResponse, payload)
            logger.info(
                "No KVKK record for phone",
                extra={"phone": phone, "description": error.description},
            )
            return ConsentNotFound(
                description=error.description,
                message=error.message,
            )

        return self._record_from(payload)

    async def create(
        self,
        *,
        full_name: str,
        phone: str,
        permitted: bool,
    ) -> ConsentRecord:
        """
        Create a consent record.

        Must only be called after lookup reported ConsentNotFound.

        Raises:
            TransportError: On request failure or malformed response.
            ConsentRejectedError: If the service refuses the record.
        """
        draft = ConsentRecord(full_name=full_name, phone=phone, permitted=permitted)

        logger.info(
            "Creating KVKK record",
            extra={"phone": phone, "permitted": permitted},
        )
        return await self._write(draft)

    async def update(self, record: ConsentRecord) -> ConsentRecord:
        """
        Send the full record back with its (possibly changed) permission.

        Raises:
            ValueError: If the record has no identifier.
            TransportError: On request failure or malformed response.
            ConsentRejectedError: If the service refuses the update.
        """
        if not record.is_persisted:
            raise ValueError("Cannot update a KVKK record without cariKodu")

        logger.info(
            "Updating KVKK record",
            extra={"code": record.code, "permitted": record.permitted},
        )
        return await self._write(record)

    async def _write(self, record: ConsentRecord) -> ConsentRecord:
        payload = await self._call("POST", json_data=record.to_payload())

        if payload.get("status") is False:
            error = _parse(KvkkErrorResponse, payload)
            logger.warning(
                "KVKK write rejected",
                extra={"description": error.description},
            )
            raise ConsentRejectedError(error.description, error.message)

        return self._record_from(payload)

    async def _call(
        self,
        method: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        try:
            return await asyncio.wait_for(
                asyncio.to_thread(
                    self._request,
                    method,
                    params=params,
                    json_data=json_data,
                ),
                timeout=self._config.timeout,
            )
        except asyncio.TimeoutError as exc:
            logger.error(
                "KVKK request timed out",
                extra={"method": method, "timeout": self._config.timeout},
            )
            raise RequestTimeoutError("KVKK request timed out") from exc

    def _request(
        self,
        method: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Perform a blocking request and decode the JSON body.

        Raises:
            TransportError: On request or response failure.
        """
        url = self._config.endpoint_url

        try:
            response = self._session.request(
                method,
                url,
                params=params,
                json=json_data,
                headers={"Accept": "application/json"},
                timeout=self._config.timeout,
                verify=self._config.verify_tls,
            )
            response.raise_for_status()
            payload = response.json()

        except requests.Timeout as exc:
            logger.exception("KVKK request timed out", extra={"method": method})
            raise RequestTimeoutError("KVKK request timed out") from exc

        except RequestException as exc:
            status_code = getattr(exc.response, "status_code", None)
            logger.exception(
                "KVKK request failed",
                extra={"method": method, "status_code": status_code},
            )
            raise TransportError(
                "KVKK request failed",
                status_code=status_code,
            ) from exc

        except ValueError as exc:
            logger.exception("Invalid JSON in KVKK response", extra={"method": method})
            raise TransportError("Invalid KVKK response received") from exc

        if not isinstance(payload, dict) or "status" not in payload:
            logger.error("KVKK response without status", extra={"method": method})
            raise TransportError("Invalid KVKK response received")

        return payload

    def _record_from(self, payload: Dict[str, Any]) -> ConsentRecord:
        if payload.get("status") is not True:
            raise TransportError("Invalid KVKK response received")

        record = _parse(KvkkSuccessResponse, payload).cari

        if not record.is_persisted:
            logger.error("KVKK response record has no cariKodu")
            raise TransportError("KVKK response record has no identifier")

        return record

    def close(self) -> None:
        self._session.close()


def _parse(model, payload: Dict[str, Any]):
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        logger.exception("Malformed KVKK response", extra={"model": model.__name__})
        raise TransportError("Invalid KVKK response received") from exc
