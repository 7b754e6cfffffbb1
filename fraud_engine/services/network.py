"""
Telecom network signal checks.

Providers speak the CAMARA wire contract and return raw response dicts (or
raise ``ProviderError``). ``NetworkSignalVerifier`` is the only place raw
responses become typed results, so the live provider and the deterministic
mock share one mapping path. No verifier operation raises: a failed branch
settles as ``success=False`` with the error attached.
"""

import hashlib
import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import requests

from fraud_engine.config import Settings, get_settings
from fraud_engine.schemas import (
    ComprehensiveFraudCheck,
    DeviceStatusResult,
    LocationVerificationResult,
    NetworkCheckRequest,
    NetworkResults,
    NumberVerificationResult,
    RiskLevel,
    SimSwapResult,
)
from fraud_engine.services.scoring import NETWORK_SCORING, NetworkScoringTable, score_network_results
from fraud_engine.services.token_cache import TokenCache

logger = logging.getLogger(__name__)

DEFAULT_SIM_SWAP_MAX_AGE_HOURS = 240
COMPREHENSIVE_SIM_SWAP_MAX_AGE_HOURS = 168
DEFAULT_LOCATION_RADIUS_METERS = 10000
LOCATION_MAX_AGE_SECONDS = 3600
DEFAULT_NUMBER_CONFIDENCE = 0.95
ACTIVE_CONNECTIVITY_STATUSES = ("CONNECTED_SMS", "CONNECTED_DATA")

CANCELLED = "Check cancelled"


class ProviderError(RuntimeError):
    pass


class CheckCancelled(ProviderError):
    def __init__(self) -> None:
        super().__init__(CANCELLED)


def raise_if_cancelled(cancel_event: Optional[threading.Event]) -> None:
    if cancel_event is not None and cancel_event.is_set():
        raise CheckCancelled()


def hash_phone_number(phone_number: str) -> str:
    return hashlib.sha256(phone_number.encode("utf-8")).hexdigest()


def mask_phone(phone_number: str) -> str:
    if len(phone_number) <= 4:
        return "*" * len(phone_number)
    return "*" * (len(phone_number) - 4) + phone_number[-4:]


# ---------------------------------------------------------------------------
# Providers
# ---------------------------------------------------------------------------


class NetworkCapabilityProvider:
    """Raw telecom capability calls. Implementations raise ProviderError on failure."""

    def verify_number(self, phone_number: str, cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        raise NotImplementedError

    def check_sim_swap(
        self, phone_number: str, max_age_hours: int, cancel_event: Optional[threading.Event] = None
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def verify_location(
        self,
        phone_number: str,
        latitude: float,
        longitude: float,
        radius: int,
        cancel_event: Optional[threading.Event] = None,
    ) -> Dict[str, Any]:
        raise NotImplementedError

    def device_status(self, phone_number: str, cancel_event: Optional[threading.Event] = None) -> Dict[str, Any]:
        raise NotImplementedError


class LiveNetworkProvider(NetworkCapabilityProvider):
    """
    Network-as-Code / CAMARA client.

    One ``TokenCache`` is shared by all four operations; the client-credentials
    exchange only runs when the cached token has expired.
    """

    def __init__(
        self,
        base_url: str,
        client_id: Optional[str],
        client_secret: Optional[str],
        timeout: float = 20,
        session: Optional[requests.Session] = None,
        token_cache: Optional[TokenCache] = None,
        safety_buffer_seconds: float = 60,
    ):
        self.base_url = base_url.rstrip("/")
        self.client_id = client_id
        self.client_secret = client_secret
        self.timeout = timeout
        self.session = session or requests.Session()
        self.tokens = token_cache or TokenCache(self._fetch_token, safety_buffer_seconds)

    def _fetch_token(self) -> tuple[str, float]:
        try:
            resp = self.session.post(
                f"{self.base_url}/oauth/token",
                data={
                    "grant_type": "client_credentials",
                    "client_id": self.client_id,
                    "client_secret": self.client_secret,
                },
                headers={"Content-Type": "application/x-www-form-urlencoded"},
                timeout=self.timeout,
            )
            resp.raise_for_status()
            body = resp.json()
            return body["access_token"], float(body["expires_in"])
        except (requests.RequestException, ValueError, KeyError, TypeError) as e:
            raise ProviderError(f"Failed to get provider access token: {e}") from e

    def _post(self, path: str, payload: Dict[str, Any], cancel_event: Optional[threading.Event]) -> Dict[str, Any]:
        raise_if_cancelled(cancel_event)
        token = self.tokens.get_access_token()
        raise_if_cancelled(cancel_event)
        try:
            resp = self.session.post(
                f"{self.base_url}{path}",
                json=payload,
                headers={
                    "Authorization": f"Bearer {token}",
                    "Content-Type": "application/json",
                },
                timeout=self.timeout,
            )
            resp.raise_for_status()
            return resp.json()
        except (requests.RequestException, ValueError) as e:
            raise ProviderError(f"{path} request failed: {e}") from e

    def verify_number(self, phone_number, cancel_event=None):
        # The hash rides alongside the plaintext number; the provider contract expects both.
        return self._post(
            "/camara/number-verification/v0/verify",
            {"phoneNumber": phone_number, "hashedPhoneNumber": hash_phone_number(phone_number)},
            cancel_event,
        )

    def check_sim_swap(self, phone_number, max_age_hours, cancel_event=None):
        return self._post(
            "/camara/sim-swap/v0/check",
            {"phoneNumber": phone_number, "maxAge": max_age_hours},
            cancel_event,
        )

    def verify_location(self, phone_number, latitude, longitude, radius, cancel_event=None):
        return self._post(
            "/camara/location-verification/v0/verify",
            {
                "device": {"phoneNumber": phone_number},
                "area": {
                    "areaType": "Circle",
                    "center": {"latitude": float(latitude), "longitude": float(longitude)},
                    "radius": radius,
                },
                "maxAge": LOCATION_MAX_AGE_SECONDS,
            },
            cancel_event,
        )

    def device_status(self, phone_number, cancel_event=None):
        return self._post(
            "/camara/device-status/v0/status",
            {"device": {"phoneNumber": phone_number}},
            cancel_event,
        )


class MockNetworkProvider(NetworkCapabilityProvider):
    """
    Deterministic stand-in returning provider-shaped responses.

    Test markers on the phone number:
        contains "000"  -> number not verified
        ends with "666" -> SIM swapped two days ago
        ends with "999" -> outside the location area
        ends with "555" -> device not connected
        ends with "777" -> device roaming
    """

    def verify_number(self, phone_number, cancel_event=None):
        raise_if_cancelled(cancel_event)
        verified = "000" not in phone_number
        return {
            "devicePhoneNumberVerified": verified,
            "verificationResult": "TRUE" if verified else "FALSE",
            "confidence": 0.9,
        }

    def check_sim_swap(self, phone_number, max_age_hours, cancel_event=None):
        raise_if_cancelled(cancel_event)
        swapped = phone_number.endswith("666")
        swap_date = datetime.now(timezone.utc) - timedelta(days=2)
        return {"swapped": swapped, "swapDate": swap_date.isoformat() if swapped else None}

    def verify_location(self, phone_number, latitude, longitude, radius, cancel_event=None):
        raise_if_cancelled(cancel_event)
        if phone_number.endswith("999"):
            return {"verificationResult": "FALSE", "distance": radius * 2.5, "accuracy": 500}
        return {"verificationResult": "TRUE", "distance": 0, "accuracy": 500}

    def device_status(self, phone_number, cancel_event=None):
        raise_if_cancelled(cancel_event)
        status = "NOT_CONNECTED" if phone_number.endswith("555") else "CONNECTED_SMS"
        return {"connectivityStatus": status, "roaming": phone_number.endswith("777")}


def build_provider(settings: Optional[Settings] = None) -> NetworkCapabilityProvider:
    settings = settings or get_settings()
    if settings.NETWORK_PROVIDER_MODE == "mock":
        logger.info("Using mock network provider")
        return MockNetworkProvider()
    return LiveNetworkProvider(
        base_url=settings.NETWORK_BASE_URL,
        client_id=settings.NETWORK_CLIENT_ID,
        client_secret=settings.NETWORK_CLIENT_SECRET,
        timeout=settings.NETWORK_TIMEOUT_SECONDS,
        safety_buffer_seconds=settings.TOKEN_SAFETY_BUFFER_SECONDS,
    )


# ---------------------------------------------------------------------------
# Verifier
# ---------------------------------------------------------------------------


class NetworkSignalVerifier:
    def __init__(
        self,
        provider: NetworkCapabilityProvider,
        provider_name: str = "Nokia",
        table: NetworkScoringTable = NETWORK_SCORING,
    ):
        self.provider = provider
        self.provider_name = provider_name
        self.table = table

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "NetworkSignalVerifier":
        settings = settings or get_settings()
        return cls(build_provider(settings), provider_name=settings.NETWORK_PROVIDER_NAME)

    def verify_phone_number(
        self, phone_number: str, cancel_event: Optional[threading.Event] = None
    ) -> NumberVerificationResult:
        try:
            data = self.provider.verify_number(phone_number, cancel_event=cancel_event)
            confidence = data.get("confidence")
            return NumberVerificationResult(
                success=True,
                verified=bool(data.get("devicePhoneNumberVerified")),
                result=data.get("verificationResult"),
                confidence=DEFAULT_NUMBER_CONFIDENCE if confidence is None else float(confidence),
            )
        except Exception as e:
            logger.warning("Number verification failed for %s: %s", mask_phone(phone_number), e)
            return NumberVerificationResult(success=False, error=str(e))

    def check_sim_swap(
        self,
        phone_number: str,
        max_age_hours: int = DEFAULT_SIM_SWAP_MAX_AGE_HOURS,
        cancel_event: Optional[threading.Event] = None,
    ) -> SimSwapResult:
        try:
            data = self.provider.check_sim_swap(phone_number, max_age_hours, cancel_event=cancel_event)
            swapped = bool(data.get("swapped"))
            return SimSwapResult(
                success=True,
                swap_detected=swapped,
                last_swap_date=data.get("swapDate"),
                risk_level=RiskLevel.HIGH if swapped else RiskLevel.LOW,
            )
        except Exception as e:
            logger.warning("SIM swap check failed for %s: %s", mask_phone(phone_number), e)
            return SimSwapResult(success=False, error=str(e))

    def verify_location(
        self,
        phone_number: str,
        latitude: Optional[float],
        longitude: Optional[float],
        radius: int = DEFAULT_LOCATION_RADIUS_METERS,
        cancel_event: Optional[threading.Event] = None,
    ) -> LocationVerificationResult:
        if latitude is None or longitude is None:
            return LocationVerificationResult(success=False, error="Location coordinates not provided")
        try:
            data = self.provider.verify_location(
                phone_number, latitude, longitude, radius, cancel_event=cancel_event
            )
            return LocationVerificationResult(
                success=True,
                location_match=data.get("verificationResult") == "TRUE",
                distance=data.get("distance"),
                accuracy=data.get("accuracy"),
            )
        except Exception as e:
            logger.warning("Location verification failed for %s: %s", mask_phone(phone_number), e)
            return LocationVerificationResult(success=False, error=str(e))

    def check_device_status(
        self, phone_number: str, cancel_event: Optional[threading.Event] = None
    ) -> DeviceStatusResult:
        try:
            data = self.provider.device_status(phone_number, cancel_event=cancel_event)
            status = data.get("connectivityStatus")
            return DeviceStatusResult(
                success=True,
                is_active=status in ACTIVE_CONNECTIVITY_STATUSES,
                connectivity_status=status,
                roaming=bool(data.get("roaming")),
            )
        except Exception as e:
            logger.warning("Device status check failed for %s: %s", mask_phone(phone_number), e)
            return DeviceStatusResult(success=False, error=str(e))

    def comprehensive_fraud_check(
        self,
        request: NetworkCheckRequest,
        cancel_event: Optional[threading.Event] = None,
    ) -> ComprehensiveFraudCheck:
        """
        Run all four checks concurrently and score them.

        Settle-all: every branch runs to completion regardless of its
        siblings. ``cancel_event`` lets a caller stop branches that have not
        yet issued their request; those settle as failed.
        """
        try:
            phone = request.phone_number
            logger.info("Starting comprehensive fraud check for %s", mask_phone(phone))

            branches = {
                "number_verification": (
                    NumberVerificationResult,
                    lambda: self.verify_phone_number(phone, cancel_event=cancel_event),
                ),
                "sim_swap_detection": (
                    SimSwapResult,
                    lambda: self.check_sim_swap(phone, COMPREHENSIVE_SIM_SWAP_MAX_AGE_HOURS, cancel_event=cancel_event),
                ),
                "location_verification": (
                    LocationVerificationResult,
                    lambda: self.verify_location(phone, request.latitude, request.longitude, cancel_event=cancel_event),
                ),
                "device_status": (
                    DeviceStatusResult,
                    lambda: self.check_device_status(phone, cancel_event=cancel_event),
                ),
            }

            with ThreadPoolExecutor(max_workers=len(branches), thread_name_prefix="network-check") as pool:
                futures = {name: pool.submit(call) for name, (_, call) in branches.items()}
                wait(futures.values())

            settled = {}
            for name, future in futures.items():
                result_type = branches[name][0]
                try:
                    settled[name] = future.result()
                except Exception as e:
                    logger.warning("Network branch %s raised: %s", name, e)
                    settled[name] = result_type(success=False, error="API call failed")

            results = NetworkResults(**settled)
            score, level, factors, confidence = score_network_results(results, self.table)
            logger.info(
                "Fraud check for %s: score=%d level=%s confidence=%.2f",
                mask_phone(phone), score, level.value, confidence,
            )
            return ComprehensiveFraudCheck(
                risk_score=score,
                risk_level=level,
                risk_factors=factors,
                network_results=results,
                confidence=confidence,
            )
        except Exception as e:
            logger.exception("Comprehensive fraud check failed")
            return self.terminal_failure(str(e))

    def terminal_failure(self, error: str) -> ComprehensiveFraudCheck:
        return ComprehensiveFraudCheck(
            success=False,
            risk_score=100,
            risk_level=RiskLevel.CRITICAL,
            risk_factors=[f"{self.provider_name} API verification failed"],
            network_results=NetworkResults(
                number_verification=NumberVerificationResult(success=False, error=error),
                sim_swap_detection=SimSwapResult(success=False, error=error),
                location_verification=LocationVerificationResult(success=False, error=error),
                device_status=DeviceStatusResult(success=False, error=error),
            ),
            confidence=0.0,
            error=error,
        )
