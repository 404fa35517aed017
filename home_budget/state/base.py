"""
Paginated List State

DESIGN DECISION: One generic state object per list resource owns:
- the loaded, ordered collection and the page cursor
- the filter and sort descriptors and the selected budget year
- at most one inline edit in progress
- the undo window of the last delete

Every operation returns a Result. Expected failures (network, server,
validation, precondition) never raise; they are logged, reported to the
activity feed and returned as Err.

ORDERING: each reset bumps a generation counter. A page response from an
older generation is dropped, and an appended page is only applied when it
is the page right after the cursor. Late or duplicate responses therefore
cannot scramble the list.

RECONCILIATION: mutations first show a predicted record flagged pending,
then replace it with the server's canonical record. A failure restores
the previous record.
"""

import time
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Generic, Mapping, Optional, Type, TypeVar

import structlog
from pydantic import BaseModel, ValidationError

from home_budget.activity import ActivityLogger
from home_budget.config import get_settings, resolve_page_size
from home_budget.models import (
    ActivityEventBuilder,
    Err,
    ErrorKind,
    ListFilters,
    Ok,
    Page,
    ResourceType,
    Result,
    SortSpec,
    ValidationResult,
)
from home_budget.services.api import ApiError
from home_budget.services.gateway import ResourceGateway
from home_budget.services.storage import KeyValueStore
from home_budget.validation import FormValidator


RecordT = TypeVar("RecordT", bound=BaseModel)
FiltersT = TypeVar("FiltersT", bound=ListFilters)
SortFieldT = TypeVar("SortFieldT", bound=Enum)

StateListener = Callable[["ListState"], None]


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class PendingKind(str, Enum):
    """Why a row is waiting on the server."""
    UPDATE = "update"
    DELETE = "delete"


@dataclass
class InlineEdit:
    """The single cell being edited in place."""
    record_id: str
    field: str
    value: Any
    original: Any


@dataclass
class UndoWindow:
    """Snapshot of the last deleted record and when undo stops working."""
    record: Any
    expires_at: float


@dataclass
class RecordGroup(Generic[RecordT]):
    key: str
    records: list = field(default_factory=list)
    total: Decimal = Decimal("0")

    @property
    def count(self) -> int:
        return len(self.records)


class ListState(Generic[RecordT, FiltersT, SortFieldT]):
    """
    Paginated, filterable, inline-editable collection of one resource.

    Subclasses declare the resource, its filter model, sort and editable
    field enums, the group keys, and how a record becomes a full update
    request.
    """

    resource: ResourceType
    record_model: Type[RecordT]
    filters_model: Type[FiltersT]
    sort_fields: Type[SortFieldT]
    editable_fields: Type[Enum]
    default_sort_field: SortFieldT
    group_keys: dict[str, Callable[[Any], Optional[str]]] = {}

    def __init__(
        self,
        gateway: ResourceGateway,
        budget_year_id: Optional[str] = None,
        page_size: Optional[int] = None,
        activity: Optional[ActivityLogger] = None,
        validator: Optional[FormValidator] = None,
        store: Optional[KeyValueStore] = None,
        clock: Callable[[], float] = time.monotonic,
        undo_grace_seconds: Optional[float] = None,
        filters: Optional[FiltersT] = None,
        sort: Optional[SortSpec] = None,
    ):
        """
        Initialize list state.

        Args:
            gateway: Resource gateway (HTTP or in-memory)
            budget_year_id: Selected budget year; passed to every list call
            page_size: Records per page; defaults to the configured size
            activity: Activity feed; a private one is created if None
            validator: Form validator for inline edits and form submits
            store: If given, budget year changes are persisted there
            clock: Monotonic clock for the undo window (tests pin it)
            undo_grace_seconds: Undo window length; defaults to config
            filters: Initial filters
            sort: Initial sort; defaults to the resource's date-desc sort
        """
        self._gateway = gateway
        self._budget_year_id = budget_year_id
        self._page_size = resolve_page_size(page_size)
        self._activity = activity or ActivityLogger()
        self._validator = validator or FormValidator()
        self._store = store
        self._clock = clock
        if undo_grace_seconds is None:
            undo_grace_seconds = get_settings().app.undo_grace_seconds
        self._undo_grace = undo_grace_seconds

        self._filters: FiltersT = filters or self.filters_model()
        self._sort: SortSpec = sort or SortSpec(field=self.default_sort_field)

        self._items: list[RecordT] = []
        self._pending: dict[str, PendingKind] = {}
        self._page = 1
        self._has_more = True
        self._total: Optional[int] = None
        self._status = LoadStatus.IDLE
        self._last_error: Optional[Err] = None
        self._loading = False
        self._generation = 0
        self._load_seq = 0
        # False until a page 1 is applied since the last reset
        self._first_page_loaded = False

        self._edit: Optional[InlineEdit] = None
        self._undo: Optional[UndoWindow] = None
        self._listeners: list[StateListener] = []
        self._logger = structlog.get_logger(__name__).bind(resource=self.resource.value)

    # -------------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------------

    @property
    def items(self) -> list[RecordT]:
        return list(self._items)

    @property
    def page(self) -> int:
        return self._page

    @property
    def page_size(self) -> int:
        return self._page_size

    @property
    def has_more(self) -> bool:
        return self._has_more

    @property
    def total(self) -> Optional[int]:
        return self._total

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def status(self) -> LoadStatus:
        return self._status

    @property
    def last_error(self) -> Optional[Err]:
        return self._last_error

    @property
    def filters(self) -> FiltersT:
        return self._filters

    @property
    def sort(self) -> SortSpec:
        return self._sort

    @property
    def budget_year_id(self) -> Optional[str]:
        return self._budget_year_id

    @property
    def generation(self) -> int:
        return self._generation

    @property
    def edit(self) -> Optional[InlineEdit]:
        return self._edit

    @property
    def undo_available(self) -> bool:
        return self._undo is not None and self._clock() <= self._undo.expires_at

    @property
    def activity(self) -> ActivityLogger:
        return self._activity

    def get(self, record_id: str) -> Optional[RecordT]:
        for record in self._items:
            if record.id == record_id:
                return record
        return None

    def is_pending(self, record_id: str) -> bool:
        return record_id in self._pending

    def pending_kind(self, record_id: str) -> Optional[PendingKind]:
        return self._pending.get(record_id)

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Call listener after every state change; returns an unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception as e:
                self._logger.error("state_listener_failed", error=str(e))

    # -------------------------------------------------------------------------
    # Loading
    # -------------------------------------------------------------------------

    async def load_page(self, page: int, reset: bool = False) -> Result[int]:
        """
        Fetch one page with the current filters, sort and budget year.

        reset=True replaces the collection; otherwise the page is appended.
        Returns the number of records applied (0 when the response was stale).
        """
        generation = self._generation
        self._load_seq += 1
        token = self._load_seq
        self._loading = True
        self._status = LoadStatus.LOADING
        self._notify()

        try:
            result: Page = await self._gateway.list(
                filters=self._filters,
                page=page,
                limit=self._page_size,
                sort=self._sort,
                budget_year_id=self._budget_year_id,
            )
        except ApiError as e:
            err = e.to_err()
            if token == self._load_seq:
                self._loading = False
            if generation != self._generation:
                self._logger.debug("stale_page_error_dropped", page=page)
                return Ok(0)
            self._status = LoadStatus.ERROR
            self._last_error = err
            self._logger.warning(
                "page_load_failed",
                page=page,
                error_kind=err.kind.value,
                error=err.message,
            )
            self._activity.log(
                ActivityEventBuilder.page_load_failed(self.resource.value, page, err)
            )
            self._notify()
            return err

        if token == self._load_seq:
            self._loading = False

        if generation != self._generation:
            self._logger.debug("stale_page_dropped", page=page, generation=generation)
            self._notify()
            return Ok(0)

        if not reset and page != self._page + 1:
            self._logger.debug("out_of_order_page_dropped", page=page, cursor=self._page)
            self._notify()
            return Ok(0)

        if reset:
            self._items = list(result.items)
            self._pending = {k: v for k, v in self._pending.items() if self.get(k)}
        else:
            known = {r.id for r in self._items}
            self._items.extend(r for r in result.items if r.id not in known)

        self._page = page
        self._first_page_loaded = True
        self._has_more = result.has_more
        self._total = result.total
        self._status = LoadStatus.LOADED
        self._last_error = None
        self._after_load(result.items)

        self._logger.debug(
            "page_loaded",
            page=page,
            count=len(result.items),
            has_more=self._has_more,
            from_server_hint=result.from_server_hint,
        )
        self._activity.log(ActivityEventBuilder.page_loaded(
            self.resource.value, page, len(result.items), self._has_more,
        ))
        self._notify()
        return Ok(len(result.items))

    async def load_more(self) -> Result[int]:
        """
        Fetch the next page; a no-op while loading or when nothing is left.

        Until page 1 has been applied (never loaded, or the first load
        failed) this is a full reset_and_load.
        """
        if self._loading or not self._has_more:
            return Ok(0)
        if not self._first_page_loaded:
            return await self.reset_and_load()
        return await self.load_page(self._page + 1)

    async def reset_and_load(self) -> Result[int]:
        """Drop the collection and fetch page 1 of the current query."""
        self._generation += 1
        self._items = []
        self._page = 1
        self._first_page_loaded = False
        self._has_more = True
        self._total = None
        if self._edit is not None:
            self._edit = None
        return await self.load_page(1, reset=True)

    def _after_load(self, records: list[RecordT]) -> None:
        """Hook for subclasses; called with each applied page."""
        pass

    # -------------------------------------------------------------------------
    # Filters, sort, budget year
    # -------------------------------------------------------------------------

    def _invalid(self, message: str) -> Err:
        self._logger.info("invalid_list_input", message=message)
        return Err(ErrorKind.VALIDATION, message)

    async def update_filters(self, **values: Any) -> Result[int]:
        """Merge values into the filters, then reset and reload."""
        try:
            merged = {**self._filters.model_dump(), **values}
            self._filters = self.filters_model.model_validate(merged)
        except ValidationError as e:
            return self._invalid(f"Invalid filter: {e.errors()[0]['msg']}")
        return await self.reset_and_load()

    async def set_filter(self, field: Any, value: Any) -> Result[int]:
        name = field.value if isinstance(field, Enum) else str(field)
        if name not in self.filters_model.model_fields:
            return self._invalid(f"Unknown filter field: {name}")
        return await self.update_filters(**{name: value})

    async def clear_filters(self) -> Result[int]:
        self._filters = self.filters_model()
        return await self.reset_and_load()

    async def toggle_sort(self, field: Any) -> Result[int]:
        """Same field flips direction; a new field starts ascending."""
        try:
            sort_field = self.sort_fields(field)
        except ValueError:
            return self._invalid(f"Unknown sort field: {field}")
        self._sort = self._sort.toggled(sort_field)
        return await self.reset_and_load()

    async def set_sort(self, sort: SortSpec) -> Result[int]:
        try:
            sort_field = self.sort_fields(sort.field)
        except ValueError:
            return self._invalid(f"Unknown sort field: {sort.field}")
        self._sort = SortSpec(field=sort_field, direction=sort.direction)
        return await self.reset_and_load()

    async def set_budget_year(self, budget_year_id: Optional[str]) -> Result[int]:
        """Switch the budget year scope; reloads only when it changed."""
        if budget_year_id == self._budget_year_id:
            return Ok(0)
        self._budget_year_id = budget_year_id
        if self._store is not None:
            self._store.set_selected_budget_year_id(budget_year_id)
        return await self.reset_and_load()

    # -------------------------------------------------------------------------
    # Local collection helpers
    # -------------------------------------------------------------------------

    def _replace(self, record_id: str, record: RecordT) -> bool:
        for i, existing in enumerate(self._items):
            if existing.id == record_id:
                self._items[i] = record
                return True
        return False

    def _remove(self, record_id: str) -> Optional[RecordT]:
        for i, existing in enumerate(self._items):
            if existing.id == record_id:
                return self._items.pop(i)
        return None

    def _predict(self, record: RecordT, changes: Mapping[str, Any]) -> RecordT:
        """The record as it should look once the server accepts the change."""
        try:
            return self.record_model.model_validate({**record.model_dump(), **changes})
        except ValidationError:
            return record

    def _label(self, record: Any) -> str:
        for attr in ("name", "description", "title"):
            value = getattr(record, attr, None)
            if value:
                return str(value)
        return str(getattr(record, "id", ""))

    def _update_request(self, record: RecordT) -> BaseModel:
        """Full update request carrying every field of record."""
        raise NotImplementedError

    def _validate_form(self, form: Mapping[str, Any]) -> ValidationResult:
        raise NotImplementedError

    def _side_load_failed(self, e: ApiError, resource: Optional[ResourceType] = None) -> Err:
        """A summary or lookup list failed; the main list is unaffected."""
        err = e.to_err()
        name = (resource or self.resource).value
        self._logger.warning(
            "side_load_failed",
            what=name,
            error_kind=err.kind.value,
            error=err.message,
        )
        self._activity.log(ActivityEventBuilder.summary_load_failed(name, err))
        return err

    def _mutation_failed(self, action: str, e: ApiError, record_id: Optional[str] = None) -> Err:
        err = e.to_err()
        self._last_error = err
        self._logger.warning(
            "mutation_failed",
            action=action,
            record_id=record_id,
            error_kind=err.kind.value,
            error=err.message,
        )
        self._activity.mutation_failed(self.resource.value, action, err, record_id)
        return err

    # -------------------------------------------------------------------------
    # Inline edit
    # -------------------------------------------------------------------------

    def start_inline_edit(
        self,
        record_id: str,
        field: Any,
        current_value: Any = None,
    ) -> Result[InlineEdit]:
        """
        Open an in-place edit of one cell.

        Opening a new edit replaces any edit already open.
        """
        name = field.value if isinstance(field, Enum) else str(field)
        try:
            self.editable_fields(name)
        except ValueError:
            return self._invalid(f"{name} cannot be edited inline")

        record = self.get(record_id)
        if record is None:
            return Err(ErrorKind.NOT_FOUND, f"{self.resource.value} {record_id} is not loaded")
        if self.is_pending(record_id):
            return Err(ErrorKind.CONFLICT, "Record is waiting for the server")

        original = getattr(record, name)
        value = original if current_value is None else current_value
        self._edit = InlineEdit(record_id=record_id, field=name, value=value, original=original)
        self._notify()
        return Ok(self._edit)

    def set_inline_value(self, value: Any) -> Result[InlineEdit]:
        if self._edit is None:
            return Err(ErrorKind.CONFLICT, "No inline edit in progress")
        self._edit.value = value
        return Ok(self._edit)

    def cancel_inline_edit(self) -> None:
        if self._edit is not None:
            self._edit = None
            self._notify()

    async def save_inline_edit(self) -> Result[RecordT]:
        """
        Validate the edited value and send the full record with it.

        On failure the row is restored and the edit stays open.
        """
        edit = self._edit
        if edit is None:
            return Err(ErrorKind.CONFLICT, "No inline edit in progress")

        record = self.get(edit.record_id)
        if record is None:
            self._edit = None
            self._notify()
            return Err(ErrorKind.NOT_FOUND, f"{self.resource.value} {edit.record_id} is not loaded")
        if self.is_pending(record.id):
            return Err(ErrorKind.CONFLICT, "Record is waiting for the server")

        validation = self._validator.validate_field(edit.field, edit.value)
        if not validation.is_valid:
            self._activity.log(ActivityEventBuilder.validation_failed(
                self.resource.value,
                [i.model_dump() for i in validation.issues],
                edit.record_id,
            ))
            return validation.as_err()

        value = validation.request
        if value == edit.original:
            self._edit = None
            self._notify()
            return Ok(record)

        predicted = self._predict(record, {edit.field: value})
        request = self._update_request(predicted)

        self._replace(record.id, predicted)
        self._pending[record.id] = PendingKind.UPDATE
        self._notify()

        try:
            canonical = await self._gateway.update(record.id, request)
        except ApiError as e:
            self._replace(record.id, record)
            self._pending.pop(record.id, None)
            err = self._mutation_failed("update", e, record.id)
            self._notify()
            return err

        self._replace(record.id, canonical)
        self._pending.pop(record.id, None)
        if self._edit is edit:
            self._edit = None
        self._activity.log(ActivityEventBuilder.inline_edit_saved(
            self.resource.value, canonical.id, edit.field,
        ))
        self._notify()
        return Ok(canonical)

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def _scope_request(self, request: BaseModel) -> BaseModel:
        if (
            "budget_year_id" in type(request).model_fields
            and getattr(request, "budget_year_id") is None
            and self._budget_year_id
        ):
            return request.model_copy(update={"budget_year_id": self._budget_year_id})
        return request

    async def create(self, request: BaseModel) -> Result[RecordT]:
        """Create through the gateway and put the canonical record first."""
        request = self._scope_request(request)
        try:
            record = await self._gateway.create(request)
        except ApiError as e:
            err = self._mutation_failed("create", e)
            self._notify()
            return err

        if self.get(record.id) is None:
            self._items.insert(0, record)
            if self._total is not None:
                self._total += 1
        self._after_create(record)
        self._activity.log(ActivityEventBuilder.record_created(
            self.resource.value, record.id, self._label(record),
        ))
        self._notify()
        return Ok(record)

    async def create_from_form(self, form: Mapping[str, Any]) -> Result[RecordT]:
        """Validate raw form input, then create."""
        validation = self._validate_form(form)
        if not validation.is_valid:
            self._activity.log(ActivityEventBuilder.validation_failed(
                self.resource.value,
                [i.model_dump() for i in validation.issues],
            ))
            return validation.as_err()
        return await self.create(validation.request)

    def _after_create(self, record: RecordT) -> None:
        pass

    async def update(self, record_id: str, request: BaseModel) -> Result[RecordT]:
        """
        Replace a record.

        The row shows the predicted record (flagged pending) until the
        server answers; on failure the previous record comes back.
        """
        request = self._scope_request(request)
        previous = self.get(record_id)
        if previous is not None:
            if self.is_pending(record_id):
                return Err(ErrorKind.CONFLICT, "Record is waiting for the server")
            self._replace(record_id, self._predict(previous, request.model_dump()))
            self._pending[record_id] = PendingKind.UPDATE
            self._notify()

        try:
            record = await self._gateway.update(record_id, request)
        except ApiError as e:
            if previous is not None:
                self._replace(record_id, previous)
                self._pending.pop(record_id, None)
            err = self._mutation_failed("update", e, record_id)
            self._notify()
            return err

        if previous is not None:
            self._replace(record_id, record)
            self._pending.pop(record_id, None)
        self._after_create(record)
        self._activity.log(ActivityEventBuilder.record_updated(
            self.resource.value, record.id, self._label(record),
        ))
        self._notify()
        return Ok(record)

    async def delete(self, record_id: str) -> Result[None]:
        """
        Delete a loaded record and open the undo window.

        The row stays visible, flagged pending, until the server confirms.
        """
        record = self.get(record_id)
        if record is None:
            return Err(ErrorKind.NOT_FOUND, f"{self.resource.value} {record_id} is not loaded")
        if self.is_pending(record_id):
            return Err(ErrorKind.CONFLICT, "Record is waiting for the server")

        self._pending[record_id] = PendingKind.DELETE
        self._notify()

        try:
            await self._gateway.delete(record_id)
        except ApiError as e:
            self._pending.pop(record_id, None)
            err = self._mutation_failed("delete", e, record_id)
            self._notify()
            return err

        self._remove(record_id)
        self._pending.pop(record_id, None)
        if self._total is not None:
            self._total = max(0, self._total - 1)
        if self._edit is not None and self._edit.record_id == record_id:
            self._edit = None

        self._undo = UndoWindow(record=record, expires_at=self._clock() + self._undo_grace)
        label = self._label(record)
        self._activity.log(ActivityEventBuilder.record_deleted(
            self.resource.value, record_id, label,
        ))
        self._activity.log(ActivityEventBuilder.undo_available(
            self.resource.value, record_id, label, self._undo_grace,
        ))
        self._notify()
        return Ok(None)

    async def undo_delete(self) -> Result[int]:
        """
        Bring back the last deleted record within the grace window.

        The record is re-created from its snapshot (it gets a new id) and
        the list is reloaded.
        """
        window = self._undo
        if window is None:
            return Err(ErrorKind.CONFLICT, "Nothing to undo")

        self._undo = None
        record = window.record
        if self._clock() > window.expires_at:
            self._activity.log(ActivityEventBuilder.undo_expired(self.resource.value, record.id))
            self._notify()
            return Err(ErrorKind.EXPIRED, "Undo is no longer available")

        try:
            await self._gateway.create(self._update_request(record))
        except ApiError as e:
            err = self._mutation_failed("restore", e, record.id)
            self._notify()
            return err

        result = await self.reset_and_load()
        if result.is_ok:
            self._activity.log(ActivityEventBuilder.undo_applied(self.resource.value, record.id))
        return result

    def dismiss_undo(self) -> None:
        if self._undo is not None:
            self._undo = None
            self._notify()

    # -------------------------------------------------------------------------
    # Grouping
    # -------------------------------------------------------------------------

    def group_by(self, key: str) -> list[RecordGroup]:
        """
        Group the loaded records, keeping first-seen order of the groups.

        Records with no value for the key land in the "" group.
        """
        key_fn = self.group_keys.get(key)
        if key_fn is None:
            raise ValueError(
                f"Cannot group {self.resource.value} by {key}; "
                f"choose one of {sorted(self.group_keys)}"
            )
        groups: dict[str, RecordGroup] = {}
        for record in self._items:
            label = key_fn(record) or ""
            group = groups.setdefault(label, RecordGroup(key=label))
            group.records.append(record)
            group.total += record.amount
        return list(groups.values())
