import logging
import threading
from dataclasses import replace
from typing import Optional

from lbp_core.common.errors import OwnerConfigAlreadyInitialized, OwnerConfigNotInitialized, Unauthorized
from lbp_core.common.model import EventLog, FeeSetEvent, OwnerConfig
from lbp_core.common.settings import EngineSettings
from lbp_core.validation.fee_validator import FeeValidator


logger = logging.getLogger(__name__)


class OwnerConfigManager:
    """
    Holds the singleton OwnerConfig: fee parameters, the fee recipient and the
    owner allowed to change them. Ownership moves in two steps, nominate then
    accept, so control never lands on a key nobody holds.
    """

    def __init__(self, settings: Optional[EngineSettings] = None, events: Optional[EventLog] = None):
        self._settings = settings or EngineSettings()
        self._events = events if events is not None else EventLog()
        self._config: Optional[OwnerConfig] = None
        self._lock = threading.RLock()

    @property
    def is_initialized(self) -> bool:
        return self._config is not None

    @property
    def config(self) -> OwnerConfig:
        """A copy of the current config."""
        with self._lock:
            return replace(self._require_config())

    def _require_config(self) -> OwnerConfig:
        if self._config is None:
            raise OwnerConfigNotInitialized()
        return self._config

    def _require_owner(self, caller: str) -> OwnerConfig:
        config = self._require_config()
        if caller != config.owner:
            logger.debug("Rejected owner-only call from %s", caller)
            raise Unauthorized(f"{caller} is not the owner")
        return config

    def initialize_owner_config(
        self,
        owner_key: str,
        fee_recipient: str,
        platform_fee: int,
        referral_fee: int,
        swap_fee: int
    ) -> OwnerConfig:
        with self._lock:
            if self._config is not None:
                raise OwnerConfigAlreadyInitialized()
            FeeValidator.validate_fees(platform_fee, referral_fee, swap_fee, self._settings)

            self._config = OwnerConfig(
                owner=owner_key,
                fee_recipient=fee_recipient,
                platform_fee=platform_fee,
                referral_fee=referral_fee,
                swap_fee=swap_fee,
            )
            logger.info(
                "Owner config initialized: owner=%s recipient=%s fees=%s/%s/%s",
                owner_key, fee_recipient, platform_fee, referral_fee, swap_fee
            )
            return replace(self._config)

    def set_fees(
        self,
        caller: str,
        fee_recipient: Optional[str] = None,
        platform_fee: Optional[int] = None,
        referral_fee: Optional[int] = None,
        swap_fee: Optional[int] = None
    ) -> OwnerConfig:
        """
        Updates any subset of the fee parameters. Omitted values keep their current setting.
        """
        with self._lock:
            config = self._require_owner(caller)
            updated = replace(
                config,
                fee_recipient=fee_recipient if fee_recipient is not None else config.fee_recipient,
                platform_fee=platform_fee if platform_fee is not None else config.platform_fee,
                referral_fee=referral_fee if referral_fee is not None else config.referral_fee,
                swap_fee=swap_fee if swap_fee is not None else config.swap_fee,
            )
            FeeValidator.validate_fees(updated.platform_fee, updated.referral_fee, updated.swap_fee, self._settings)

            self._config = updated
            self._events.emit(FeeSetEvent(
                fee_recipient=updated.fee_recipient,
                platform_fee=updated.platform_fee,
                referral_fee=updated.referral_fee,
                swap_fee=updated.swap_fee,
            ))
            logger.info(
                "Fees set: recipient=%s fees=%s/%s/%s",
                updated.fee_recipient, updated.platform_fee, updated.referral_fee, updated.swap_fee
            )
            return replace(updated)

    def nominate_new_owner(self, caller: str, new_owner_key: str) -> None:
        with self._lock:
            config = self._require_owner(caller)
            config.pending_owner = new_owner_key
            logger.info("Owner %s nominated %s", caller, new_owner_key)

    def accept_new_owner(self, caller: str) -> None:
        with self._lock:
            config = self._require_config()
            if config.pending_owner is None or caller != config.pending_owner:
                logger.debug("Rejected ownership acceptance from %s", caller)
                raise Unauthorized(f"{caller} is not the pending owner")
            previous = config.owner
            config.owner = caller
            config.pending_owner = None
            logger.info("Ownership transferred from %s to %s", previous, caller)
