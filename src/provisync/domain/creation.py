"""Step-by-step creation of a new provider on the server.

Creation is not transactional. Once the platform exists every later failure
is recorded in the :class:`CreationResult` and the run continues; nothing is
rolled back.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

from provisync.domain import messages
from provisync.domain.errors import ItemError, PlatformCreateFailed
from provisync.domain.model import ErrorKind
from provisync.domain.ports import ModelCreate, PlatformFields

if TYPE_CHECKING:
    from provisync.domain.model import Draft
    from provisync.domain.ports import ProviderApi

log = getLogger(__name__)


@dataclass(slots=True)
class PlatformStep:
    success: bool = False
    error: str | None = None


@dataclass(slots=True)
class StepReport:
    total: int = 0
    success: int = 0
    failed: int = 0
    errors: list[ItemError] = field(default_factory=list[ItemError])


@dataclass(slots=True)
class CreationSteps:
    platform: PlatformStep = field(default_factory=PlatformStep)
    api_keys: StepReport = field(default_factory=StepReport)
    models: StepReport = field(default_factory=StepReport)


@dataclass(slots=True)
class CreationResult:
    success: bool = False
    platform_id: int | None = None
    results: CreationSteps = field(default_factory=CreationSteps)

    @property
    def platform(self) -> PlatformStep:
        return self.results.platform

    @property
    def api_keys(self) -> StepReport:
        return self.results.api_keys

    @property
    def models(self) -> StepReport:
        return self.results.models

    @property
    def is_complete(self) -> bool:
        return self.success and self.api_keys.failed == 0 and self.models.failed == 0

    def summary(self) -> str:
        return messages.describe_creation(self)


class CreationOrchestrator:
    """Creates platform, keys and models in order against a :class:`ProviderApi`."""

    def __init__(self, api: ProviderApi) -> None:
        self._api = api

    async def create_provider(self, draft: Draft) -> CreationResult:
        result = CreationResult(
            results=CreationSteps(
                api_keys=StepReport(total=len(draft.keys)),
                models=StepReport(total=len(draft.models)),
            )
        )

        platform_id = await self._create_platform(draft, result)
        created_key_ids = await self._create_keys(draft, platform_id, result)
        if draft.models:
            await self._create_models(draft, platform_id, created_key_ids, result)

        result.success = result.platform.success
        log.info(
            "Created platform %d: keys %d/%d, models %d/%d",
            platform_id,
            result.api_keys.success,
            result.api_keys.total,
            result.models.success,
            result.models.total,
        )
        return result

    async def _create_platform(self, draft: Draft, result: CreationResult) -> int:
        try:
            record = await self._api.create_platform(PlatformFields.from_draft(draft.platform))
        except Exception as exc:
            message = str(exc) or "platform creation failed"
            result.platform.error = message
            log.error("Platform %r could not be created: %s", draft.platform.name, message)
            raise PlatformCreateFailed(message, result=result) from exc
        result.platform.success = True
        result.platform_id = record.id
        return record.id

    async def _create_keys(
        self, draft: Draft, platform_id: int, result: CreationResult
    ) -> list[int]:
        report = result.api_keys
        created: list[int] = []
        for index, key in enumerate(draft.keys):
            try:
                record = await self._api.create_key(platform_id, key.value)
            except Exception as exc:  # noqa: BLE001
                report.failed += 1
                reason = str(exc) or "unknown error"
                report.errors.append(
                    ItemError(
                        kind=ErrorKind.KEY_CREATE_FAILED,
                        message=messages.key_create_failed(index, reason),
                        index=index,
                    )
                )
                log.warning(
                    "Key %d (%s) could not be created: %s", index + 1, key.masked_value, reason
                )
                continue
            created.append(record.id)
            report.success += 1
        return created

    async def _create_models(
        self,
        draft: Draft,
        platform_id: int,
        created_key_ids: list[int],
        result: CreationResult,
    ) -> None:
        report = result.models
        if not created_key_ids:
            report.failed = len(draft.models)
            report.errors.append(
                ItemError(kind=ErrorKind.NO_KEY_AVAILABLE, message=messages.NO_KEY_AVAILABLE)
            )
            log.warning("No key was created; skipping %d model(s)", len(draft.models))
            return

        key_ids = tuple(created_key_ids)
        payload = [
            ModelCreate(name=model.name, alias=model.alias, key_ids=key_ids)
            for model in draft.models
        ]
        try:
            batch = await self._api.create_models_batch(platform_id, payload)
        except Exception as exc:  # noqa: BLE001
            report.failed = len(draft.models)
            reason = str(exc) or "unknown error"
            report.errors.append(
                ItemError(
                    kind=ErrorKind.MODEL_BATCH_CREATE_FAILED,
                    message=messages.model_batch_failed(reason),
                )
            )
            log.warning("Batch model creation failed: %s", reason)
            return
        report.success = batch.created_count
        report.failed = batch.total_count - batch.created_count
