"""
Auto-Sender service - watches source wallets and sweeps everything above a
reserve to a destination address.

This service provides:
- Management surface: add/remove/toggle configs, policy setters, status
- Evaluate-and-maybe-transfer procedure run by the scheduler on every tick
- Scheduler lifecycle tied to the number of active configs
- Signing secret lifetime (purge on remove, inactivity expiry)
"""

import asyncio
from dataclasses import replace
from typing import Any, Dict, List, Optional

import structlog

from auto_sender.core.config import Settings, settings as default_settings
from auto_sender.core.exceptions import (
    AutoSenderNotFoundError,
    ConfigurationError,
    SolanaError,
    TransientError,
    ValidationError,
)
from auto_sender.models.auto_sender import (
    AutoSenderConfig,
    EvaluationOutcome,
    OutcomeStatus,
    PriceThreshold,
)
from auto_sender.scheduler.auto_sender_scheduler import AutoSenderScheduler
from auto_sender.services.balance_oracle import BalanceOracle
from auto_sender.services.coingecko_service import CoinGeckoService
from auto_sender.services.config_registry import ConfigRegistry
from auto_sender.services.price_policy import decide
from auto_sender.services.secret_store import SecretStore
from auto_sender.services.solana_client import SolanaClient
from auto_sender.services.stats_tracker import StatsTracker
from auto_sender.services.transfer_executor import TransferExecutor
from auto_sender.utils.validation import require_non_negative, require_wallet_address


logger = structlog.get_logger(__name__)


class AutoSenderService:
    """
    Owns the config registry, secret store, policy threshold and scheduler.

    One instance per process; create it explicitly and pass it to whoever
    needs it.
    """

    def __init__(
        self,
        solana_client: Optional[SolanaClient] = None,
        app_settings: Optional[Settings] = None,
        secret_store: Optional[SecretStore] = None,
        stats_tracker: Optional[StatsTracker] = None,
        price_service: Optional[CoinGeckoService] = None,
    ):
        self.settings = app_settings or default_settings
        self.logger = logger.bind(service="auto_sender")

        self.solana_client = solana_client or SolanaClient()
        self.oracle = BalanceOracle(self.solana_client)
        self.executor = TransferExecutor(self.solana_client)
        self.registry = ConfigRegistry()
        self.secrets = secret_store or SecretStore(ttl_seconds=self.settings.secret_ttl_seconds)
        self.stats = stats_tracker or StatsTracker(
            backoff_base_seconds=self.settings.transient_backoff_base_seconds,
            backoff_max_seconds=self.settings.transient_backoff_max_seconds,
        )
        self.threshold = PriceThreshold(
            sol_to_usd_rate=self.settings.sol_to_usd_rate,
            min_usd_threshold=self.settings.min_usd_threshold,
            min_transfer_amount=self.settings.min_transfer_amount,
        )
        self.scheduler = AutoSenderScheduler(
            evaluate=self._evaluate,
            snapshot=self.registry.active,
            interval_seconds=self.settings.scheduler_interval_seconds,
            parallel=self.settings.scheduler_parallel,
        )
        self.price_service = price_service

        self._lock = asyncio.Lock()
        self._background_tasks: List[asyncio.Task] = []

    async def __aenter__(self):
        await self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # Lifecycle

    async def start(self) -> None:
        """Start background housekeeping; the scheduler follows the active configs."""
        if self._background_tasks:
            return
        self._background_tasks.append(asyncio.create_task(self._secret_sweep_loop()))
        if self.settings.price_feed_enabled:
            self.price_service = self.price_service or CoinGeckoService()
            self._background_tasks.append(asyncio.create_task(self._price_feed_loop()))
        await self._sync_scheduler()
        self.logger.info(
            "Auto-sender service started",
            interval_ms=self.settings.scheduler_interval_ms,
            price_feed=self.settings.price_feed_enabled,
        )

    async def close(self) -> None:
        """Stop everything and wipe all signing secrets."""
        await self.scheduler.stop()
        for task in self._background_tasks:
            task.cancel()
        if self._background_tasks:
            await asyncio.gather(*self._background_tasks, return_exceptions=True)
        self._background_tasks = []
        await self.scheduler.drain()
        purged = self.secrets.purge_all()
        await self.solana_client.close()
        self.logger.info("Auto-sender service stopped", secrets_purged=purged)

    # Management surface

    async def add_auto_sender(
        self,
        source_address: str,
        destination_address: str,
        signing_secret: str,
        reserve_amount: Optional[float] = None,
        name: Optional[str] = None,
    ) -> AutoSenderConfig:
        """
        Register a new active sweeper.

        The signing secret goes to the secret store only. It is checked
        against ``source_address`` on every evaluation, not here.
        """
        require_wallet_address(source_address, "source_address")
        require_wallet_address(destination_address, "destination_address")
        if reserve_amount is None:
            reserve_amount = self.settings.default_reserve_amount
        reserve = require_non_negative(reserve_amount, "reserve_amount")
        if not signing_secret:
            raise ValidationError("signing_secret is required", {"field": "signing_secret"})

        config = AutoSenderConfig(
            source_address=source_address,
            destination_address=destination_address,
            reserve_amount=reserve,
            name=name or "Auto-Sender",
        )
        self.secrets.put(config.id, signing_secret)

        async with self._lock:
            self.registry.add(config)
            self.logger.info(
                "Auto-sender added",
                config_id=config.id,
                config_name=config.name,
                source_address=config.source_address,
                destination_address=config.destination_address,
                reserve_amount=config.reserve_amount,
            )
            await self._sync_scheduler_locked()
        return config

    async def remove_auto_sender(self, config_id: str) -> bool:
        """Remove a config and purge its signing secret."""
        async with self._lock:
            config = self.registry.remove(config_id)
            if config is None:
                return False
            self.secrets.purge(config_id)
            self.logger.info("Auto-sender removed", config_id=config.id, config_name=config.name)
            await self._sync_scheduler_locked()
        return True

    async def toggle_auto_sender(self, config_id: str) -> bool:
        """Flip ``is_active``; starts or stops the scheduler as needed."""
        async with self._lock:
            config = self.registry.toggle(config_id)
            if config is None:
                return False
            if config.is_active:
                self.stats.clear_failures(config)
            self.logger.info(
                "Auto-sender toggled",
                config_id=config.id,
                config_name=config.name,
                is_active=config.is_active,
            )
            await self._sync_scheduler_locked()
        return True

    async def refresh_secret(self, config_id: str, signing_secret: str) -> bool:
        """Re-arm the signing secret of an existing config and clear its last error."""
        if not signing_secret:
            raise ValidationError("signing_secret is required", {"field": "signing_secret"})
        config = self.registry.get(config_id)
        if config is None:
            return False
        self.secrets.put(config_id, signing_secret)
        self.stats.clear_error(config)
        self.logger.info("Signing secret refreshed", config_id=config.id, config_name=config.name)
        return True

    def get_configs(self) -> List[Dict[str, Any]]:
        return [c.to_dict() for c in self.registry.list()]

    def get_config(self, config_id: str) -> Dict[str, Any]:
        config = self.registry.get(config_id)
        if config is None:
            raise AutoSenderNotFoundError(config_id)
        data = config.to_dict()
        data["has_signing_secret"] = self.secrets.contains(config_id)
        return data

    def update_sol_rate(self, rate: float) -> None:
        rate = require_non_negative(rate, "sol_to_usd_rate")
        self.threshold = replace(self.threshold, sol_to_usd_rate=rate)
        self.logger.info("SOL rate updated", sol_to_usd_rate=rate)

    def update_usd_threshold(self, amount: float) -> None:
        amount = require_non_negative(amount, "min_usd_threshold")
        self.threshold = replace(self.threshold, min_usd_threshold=amount)
        self.logger.info("USD threshold updated", min_usd_threshold=amount)

    def update_min_transfer_amount(self, amount: float) -> None:
        amount = require_non_negative(amount, "min_transfer_amount")
        self.threshold = replace(self.threshold, min_transfer_amount=amount)
        self.logger.info("Minimum transfer amount updated", min_transfer_amount=amount)

    def get_status(self) -> Dict[str, Any]:
        return {
            "is_running": self.scheduler.is_running,
            "config_count": len(self.registry),
            "active_config_count": self.registry.active_count,
            "sol_to_usd_rate": self.threshold.sol_to_usd_rate,
            "min_usd_threshold": self.threshold.min_usd_threshold,
            "min_transfer_amount": self.threshold.min_transfer_amount,
            "configs": self.get_configs(),
        }

    async def health_check(self) -> Dict[str, Any]:
        rpc_healthy = await self.solana_client.get_health()
        return {
            "healthy": rpc_healthy,
            "rpc_healthy": rpc_healthy,
            "scheduler": self.scheduler.get_status(),
            "stored_secrets": len(self.secrets),
        }

    async def evaluate_now(self, config_id: str) -> EvaluationOutcome:
        """Run one evaluation immediately, honoring the in-flight guard."""
        config = self.registry.get(config_id)
        if config is None:
            raise AutoSenderNotFoundError(config_id)
        return await self.scheduler.run_guarded(config)

    # Evaluation

    async def _evaluate(self, config: AutoSenderConfig) -> EvaluationOutcome:
        """
        Evaluate-and-maybe-transfer for one config.

        Always advances ``last_checked_at``. Errors are recorded on the
        config and returned as a failed outcome, never raised.
        """
        log = self.logger.bind(config_id=config.id, config_name=config.name)

        if self.stats.in_backoff(config):
            log.debug("Auto-sender in backoff, skipping", next_attempt_at=config.next_attempt_at.isoformat())
            return EvaluationOutcome(config_id=config.id, status=OutcomeStatus.SKIPPED, error="backoff")

        try:
            return await asyncio.wait_for(
                self._sweep(config, log),
                timeout=self.settings.evaluation_timeout_seconds,
            )
        except asyncio.TimeoutError:
            error = TransientError(
                "Evaluation timed out",
                stage="timeout",
                details={"timeout_seconds": self.settings.evaluation_timeout_seconds},
            )
            return self._handle_transient(config, error, log)
        except ConfigurationError as e:
            return await self._handle_configuration_error(config, e, log)
        except SolanaError as e:
            return self._handle_transient(config, e, log)
        except Exception as e:
            log.exception("Unexpected auto-sender error", error=str(e))
            self.stats.record_failure(config, e, transient=True)
            return EvaluationOutcome(
                config_id=config.id,
                status=OutcomeStatus.FAILED,
                error_code=config.last_error_code,
                error=str(e),
            )
        finally:
            self.stats.record_check(config)

    async def _sweep(self, config: AutoSenderConfig, log) -> EvaluationOutcome:
        secret = self.secrets.get(config.id)
        if secret is None:
            raise ConfigurationError(
                "Signing secret missing or expired",
                {"config_id": config.id}
            )
        keypair = self.executor.load_signer(config, secret)

        balance = await self.oracle.get_balance(config.source_address)
        decision = decide(balance, config.reserve_amount, self.threshold)

        if not decision.should_transfer:
            self.stats.record_no_op(config)
            log.debug(
                "No sweep needed",
                reason=decision.kind.value,
                balance=balance,
                balance_usd=decision.balance_usd,
            )
            return EvaluationOutcome(config_id=config.id, status=OutcomeStatus.NO_OP, decision=decision)

        result = await self.executor.execute(config, keypair, decision.transfer_amount)
        self.stats.record_transfer(config, result)
        log.info(
            "Auto-sender transfer confirmed",
            amount_sol=result.amount_transferred,
            lamports=result.lamports,
            destination_address=result.destination,
            signature=result.signature,
            total_transferred=config.total_transferred,
            transfer_count=config.transfer_count,
        )
        return EvaluationOutcome(
            config_id=config.id,
            status=OutcomeStatus.TRANSFERRED,
            decision=decision,
            transfer=result,
        )

    def _handle_transient(self, config: AutoSenderConfig, error: SolanaError, log) -> EvaluationOutcome:
        self.stats.record_failure(config, error, transient=True)
        log.warning(
            "Auto-sender evaluation failed",
            error=error.message,
            error_code=error.code,
            details=error.details,
            consecutive_failures=config.consecutive_failures,
        )
        return EvaluationOutcome(
            config_id=config.id,
            status=OutcomeStatus.FAILED,
            error_code=error.code,
            error=error.message,
        )

    async def _handle_configuration_error(
        self,
        config: AutoSenderConfig,
        error: ConfigurationError,
        log,
    ) -> EvaluationOutcome:
        self.stats.record_failure(config, error, transient=False)
        deactivate = self.settings.deactivate_on_configuration_error and config.is_active
        log.error(
            "Auto-sender misconfigured",
            error=error.message,
            error_code=error.code,
            details=error.details,
            deactivated=deactivate,
        )
        if deactivate:
            async with self._lock:
                config.is_active = False
                await self._sync_scheduler_locked()
        return EvaluationOutcome(
            config_id=config.id,
            status=OutcomeStatus.FAILED,
            error_code=error.code,
            error=error.message,
        )

    # Scheduler lifecycle

    async def _sync_scheduler(self) -> None:
        async with self._lock:
            await self._sync_scheduler_locked()

    async def _sync_scheduler_locked(self) -> None:
        active = self.registry.active_count
        if active and not self.scheduler.is_running:
            self.scheduler.start()
        elif not active and self.scheduler.is_running:
            await self.scheduler.stop()

    # Background housekeeping

    async def _secret_sweep_loop(self) -> None:
        while True:
            try:
                await asyncio.sleep(self.settings.secret_sweep_interval_seconds)
                self.secrets.sweep()
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Secret sweep failed", error=str(e))

    async def _price_feed_loop(self) -> None:
        while True:
            try:
                price = await self.price_service.get_sol_price_usd()
                if price:
                    self.update_sol_rate(price)
                await asyncio.sleep(self.settings.price_feed_interval_seconds)
            except asyncio.CancelledError:
                break
            except Exception as e:
                self.logger.error("Price feed update failed", error=str(e))
                await asyncio.sleep(self.settings.price_feed_interval_seconds)
