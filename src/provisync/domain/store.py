"""Session object owning one provider draft from creation or load to submit."""

from __future__ import annotations

from contextlib import contextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from provisync.domain import associations, messages
from provisync.domain.creation import CreationOrchestrator, CreationResult
from provisync.domain.edit_sync import EditSyncReport, submit_edit
from provisync.domain.errors import (
    DraftStateError,
    FetchError,
    OperationInProgressError,
    PlatformCreateFailed,
    ProviderSyncError,
)
from provisync.domain.model import (
    Draft,
    FormMode,
    KeyDraft,
    KeyRef,
    ModelDraft,
    PlatformDraft,
    RateLimitSettings,
    ReconcileScope,
)
from provisync.domain.ports.notices import LoggingNotifier, NoticeLevel
from provisync.domain.reconciliation import (
    FetchOutcome,
    FetchOutcomeKind,
    MergeResult,
    ModelDiff,
    SingleKeyConfirmation,
    compute_keys_in_scope,
    confirm_single_key,
    merge_by_name,
    reconcile_fetched,
)

if TYPE_CHECKING:
    from collections.abc import Iterable, Iterator, Mapping, Sequence

    from provisync.domain.model import ApiFormat
    from provisync.domain.ports import (
        KeyRecord,
        ModelCatalog,
        ModelChangeResult,
        ModelRecord,
        Notifier,
        PlatformRecord,
        ProviderApi,
    )

log = getLogger(__name__)


def hydrate_draft(
    platform: PlatformRecord,
    keys: Iterable[KeyRecord],
    models: Iterable[ModelRecord],
) -> Draft:
    """Build a clean draft from server records."""

    return Draft(
        platform=PlatformDraft(
            name=platform.name,
            api_format=platform.api_format,
            base_url=platform.base_url,
            rate_limit=platform.rate_limit,
            custom_headers=dict(platform.custom_headers),
        ),
        keys=[KeyDraft(value=record.value, id=record.id) for record in keys],
        models=[
            ModelDraft(
                id=record.id,
                name=record.name,
                alias=record.alias,
                associations=[KeyRef(id=key_id) for key_id in record.key_ids],
            )
            for record in models
        ],
    )


class DraftProviderStore:
    """Owns one :class:`Draft` and serialises the async operations run against it."""

    def __init__(
        self,
        api: ProviderApi,
        catalog: ModelCatalog,
        notifier: Notifier | None = None,
    ) -> None:
        self._api = api
        self._catalog = catalog
        self._notifier = notifier or LoggingNotifier()
        self._draft: Draft | None = None
        self._busy: str | None = None
        # Set when the server holds changes the draft has not been reloaded with.
        self._stale = False
        self.mode: FormMode | None = None
        self.platform_id: int | None = None
        self.pending_diff: ModelDiff | None = None

    @property
    def draft(self) -> Draft:
        if self._draft is None:
            raise DraftStateError("no draft is open")
        return self._draft

    @property
    def has_draft(self) -> bool:
        return self._draft is not None

    @property
    def is_busy(self) -> bool:
        return self._busy is not None

    @contextmanager
    def _operation(self, name: str) -> Iterator[None]:
        if self._busy is not None:
            raise OperationInProgressError(f"cannot {name} while {self._busy} is running")
        self._busy = name
        try:
            yield
        finally:
            self._busy = None

    def init_new(self) -> Draft:
        self._draft = Draft()
        self.mode = FormMode.ADD
        self.platform_id = None
        self.pending_diff = None
        self._stale = False
        return self._draft

    def open(self, draft: Draft) -> Draft:
        """Start an add session from a prepared draft."""

        self._draft = draft
        self.mode = FormMode.ADD
        self.platform_id = None
        self.pending_diff = None
        self._stale = False
        return draft

    async def load_for_edit(self, platform_id: int) -> Draft:
        with self._operation("load"):
            return await self._hydrate(platform_id)

    async def refresh(self) -> Draft:
        platform_id = self._require_platform_id("refresh")
        with self._operation("refresh"):
            return await self._hydrate(platform_id)

    def discard(self) -> None:
        self._draft = None
        self.mode = None
        self.platform_id = None
        self.pending_diff = None
        self._stale = False

    async def _hydrate(self, platform_id: int) -> Draft:
        platform = await self._api.get_platform(platform_id)
        try:
            keys = await self._api.list_keys(platform_id)
        except ProviderSyncError as exc:
            log.warning(
                "Could not load keys for platform %d, continuing without: %s", platform_id, exc
            )
            keys = []
        models = await self._api.list_models(platform_id)
        self._draft = hydrate_draft(platform, keys, models)
        self.mode = FormMode.EDIT
        self.platform_id = platform_id
        self.pending_diff = None
        self._stale = False
        log.info(
            "Loaded platform %d (%d key(s), %d model(s))", platform_id, len(keys), len(models)
        )
        return self._draft

    def update_platform(
        self,
        *,
        name: str | None = None,
        api_format: ApiFormat | None = None,
        base_url: str | None = None,
        rate_limit: RateLimitSettings | None = None,
        custom_headers: Mapping[str, str] | None = None,
    ) -> None:
        self.draft.platform.update(
            name=name,
            api_format=api_format,
            base_url=base_url,
            rate_limit=rate_limit,
            custom_headers=custom_headers,
        )

    def add_key(self, value: str) -> KeyDraft:
        return self.draft.add_key(value)

    def update_key(self, key_index: int, value: str) -> None:
        self.draft.keys[key_index].set_value(value)

    def remove_key(self, key_index: int) -> list[ModelDraft]:
        return associations.remove_key(self.draft, key_index, self._notifier)

    def add_model_row(self, key_filter: str | None = None) -> ModelDraft:
        return associations.add_model_row(self.draft, key_filter)

    def rename_model(
        self, model_index: int, *, name: str | None = None, alias: str | None = None
    ) -> None:
        self.draft.models[model_index].rename(name=name, alias=alias)

    def attach_key(self, model_index: int, key_token: str) -> bool:
        key = self._require_key(key_token)
        return associations.attach(self.draft.models[model_index], key.ref)

    def detach_key(self, model_index: int, key_token: str | None = None) -> bool:
        return associations.detach(self.draft, model_index, key_token, self._notifier)

    def import_model_names(
        self, names: Iterable[str], key_filter: str | None = None
    ) -> MergeResult:
        """Merge pasted model names into the draft, linked to the keys in scope."""

        draft = self.draft
        cleaned = [name.strip() for name in names if name.strip()]
        _, refs = compute_keys_in_scope(key_filter, draft.keys)
        result = merge_by_name(draft.models, cleaned, refs)
        result.commit(draft)
        self._notifier.notify(
            messages.merge_outcome(result.merged_count, result.added_count, action="Imported"),
            level=NoticeLevel.SUCCESS
            if result.added_count or result.merged_count
            else NoticeLevel.INFO,
        )
        return result

    async def fetch_models(
        self, key_token: str, *, scope: ReconcileScope = ReconcileScope.SINGLE
    ) -> FetchOutcome:
        """List models through one key and reconcile them into the draft.

        When a diff is produced it is kept in :attr:`pending_diff` until
        :meth:`confirm_diff` or :meth:`cancel_diff`.
        """

        if self.pending_diff is not None:
            raise DraftStateError("a model diff is awaiting confirmation")
        with self._operation("fetch models"):
            key = self._require_key(key_token)
            platform = self.draft.platform
            try:
                fetched = await self._catalog.fetch_models_for_key(
                    key.value,
                    platform.api_format,
                    platform.base_url,
                    platform.custom_headers,
                )
            except FetchError as exc:
                self._notifier.notify(messages.describe_fetch_error(exc), level=NoticeLevel.ERROR)
                raise

            # The key may have been promoted or removed while the request ran.
            key = self._require_key(key_token)
            outcome = reconcile_fetched(self.draft, key, fetched, scope)

        if outcome.kind is FetchOutcomeKind.REPLACED:
            self._notifier.notify(
                messages.models_replaced(outcome.fetched_count), level=NoticeLevel.SUCCESS
            )
        elif outcome.kind is FetchOutcomeKind.MERGED:
            merge = outcome.merge or MergeResult()
            self._notifier.notify(
                messages.merge_outcome(merge.merged_count, merge.added_count, action="Fetched"),
                level=NoticeLevel.SUCCESS,
            )
        else:
            self.pending_diff = outcome.diff
        return outcome

    async def confirm_diff(
        self,
        selected: Sequence[ModelDraft] | None = None,
        removed: Sequence[ModelDraft] | None = None,
    ) -> SingleKeyConfirmation | ModelChangeResult:
        """Apply the pending diff; without arguments every listed change is accepted."""

        diff = self.pending_diff
        if diff is None:
            raise DraftStateError("no model diff is pending")
        if selected is None or removed is None:
            default_selected, default_removed = diff.accept_all()
            selected = default_selected if selected is None else selected
            removed = default_removed if removed is None else removed

        if diff.scope is ReconcileScope.SINGLE:
            confirmation = confirm_single_key(self.draft, diff, selected, removed)
            self.pending_diff = None
            self._notifier.notify(
                messages.single_key_confirmed(confirmation.new_count), level=NoticeLevel.SUCCESS
            )
            for model in confirmation.retained:
                self._notifier.notify(
                    messages.link_not_stripped(model.name), level=NoticeLevel.WARNING
                )
            return confirmation

        platform_id = self._require_platform_id("apply model changes")
        with self._operation("apply model changes"):
            try:
                change = await self._api.apply_model_changes(platform_id, selected, removed)
            except ProviderSyncError as exc:
                self._notifier.notify(
                    messages.describe_api_error(exc, "Apply model changes"),
                    level=NoticeLevel.ERROR,
                )
                raise
            self.pending_diff = None
            self._notifier.notify(
                messages.global_confirmed(change.added_count, change.removed_count),
                level=NoticeLevel.SUCCESS,
            )
            await self._hydrate(platform_id)
        return change

    def cancel_diff(self) -> None:
        self.pending_diff = None

    async def submit(self) -> CreationResult | EditSyncReport:
        """Create the provider in add mode, otherwise push the draft's changes."""

        if self.mode is FormMode.ADD:
            return await self.create_provider()
        return await self.push_changes()

    async def push_changes(self) -> EditSyncReport:
        draft = self.draft
        platform_id = self._require_platform_id("submit")
        if self._stale:
            raise DraftStateError("the provider was created but not reloaded; refresh first")
        with self._operation("submit"):
            try:
                report = await submit_edit(self._api, draft, platform_id)
            except ProviderSyncError as exc:
                self._notifier.notify(
                    messages.describe_api_error(exc, "Update provider"), level=NoticeLevel.ERROR
                )
                raise
            self._notifier.notify(messages.PROVIDER_UPDATED, level=NoticeLevel.SUCCESS)
            await self._hydrate(platform_id)
        return report

    async def create_provider(self) -> CreationResult:
        draft = self.draft
        if self.mode is not FormMode.ADD:
            raise DraftStateError("the provider already exists")
        with self._operation("create provider"):
            try:
                result = await CreationOrchestrator(self._api).create_provider(draft)
            except PlatformCreateFailed as exc:
                self._notifier.notify(
                    messages.describe_api_error(exc.__cause__ or exc, "Add provider"),
                    level=NoticeLevel.ERROR,
                )
                raise
            self._notifier.notify(
                result.summary(),
                level=NoticeLevel.SUCCESS if result.is_complete else NoticeLevel.WARNING,
            )
            if result.platform_id is not None:
                self.mode = FormMode.EDIT
                self.platform_id = result.platform_id
                self._stale = True
                try:
                    await self._hydrate(result.platform_id)
                except ProviderSyncError as exc:
                    log.warning(
                        "Platform %d was created but could not be reloaded: %s",
                        result.platform_id,
                        exc,
                    )
                    self._notifier.notify(
                        messages.describe_api_error(exc, "Reload provider"),
                        level=NoticeLevel.WARNING,
                    )
        return result

    def _require_key(self, key_token: str) -> KeyDraft:
        key = self.draft.key_for(key_token)
        if key is None:
            raise DraftStateError(f"no key with identity {key_token!r}")
        return key

    def _require_platform_id(self, action: str) -> int:
        if self.mode is not FormMode.EDIT or self.platform_id is None:
            raise DraftStateError(f"cannot {action} outside edit mode")
        return self.platform_id
