"""
Per-user list management sessions.

These objects hold the interactive state of the lists screen (filters,
the open form, the bulk selection) and drive ContactListService. Outcomes
are reported through a FlashBag.
"""
import uuid
from enum import Enum
from typing import Optional, List, Dict

from contactlists.core.exceptions import ValidationError, OperationFailedError, NotFoundError
from contactlists.core.flash import FlashBag
from contactlists.models.contact_list import ContactList, ListType
from contactlists.schemas.contact_list import ListFilter
from contactlists.services.contact_list_service import ContactListService, Messages


class ListBrowser:
    """Search, filter, sort and page state for the lists overview."""

    def __init__(self, service: ContactListService, owner_id: uuid.UUID):
        self.service = service
        self.owner_id = owner_id
        self.filters = ListFilter()
        self.page = 1

    def _set(self, **changes) -> None:
        self.filters = self.filters.model_copy(update=changes)
        self.page = 1

    def set_search(self, search: Optional[str]) -> None:
        self._set(search=search or None)

    def set_type(self, list_type: str) -> None:
        self._set(type=list_type)

    def set_status(self, status: str) -> None:
        self._set(status=status)

    def sort_by(self, field: str) -> None:
        """Same field flips the direction; a new field starts ascending."""
        if field == self.filters.sort_field:
            direction = "desc" if self.filters.sort_direction == "asc" else "asc"
        else:
            direction = "asc"
        self.filters = self.filters.model_copy(update={"sort_field": field, "sort_direction": direction})

    def go_to(self, page: int) -> None:
        self.page = max(1, page)

    async def load(self) -> dict:
        result = await self.service.list(self.owner_id, self.filters, self.page)
        result["stats"] = await self.service.get_stats(self.owner_id)
        return result


class EditorState(str, Enum):
    IDLE = "idle"
    CREATING = "creating"
    EDITING = "editing"
    VALIDATING = "validating"
    CONFIRMING_DELETE = "confirming_delete"


def _blank_form() -> dict:
    return {
        "name": "",
        "description": "",
        "type": ListType.STATIC.value,
        "is_active": True,
    }


class ListEditor:
    """
    Create/edit/delete flow for a single list.

    Idle -> Creating|Editing -> Validating -> Idle on save, or back to the
    form with field errors. Idle -> ConfirmingDelete -> Idle on delete or
    cancel.
    """

    def __init__(self, service: ContactListService, owner_id: uuid.UUID, flash: Optional[FlashBag] = None):
        self.service = service
        self.owner_id = owner_id
        self.flash = flash or FlashBag()
        self.state = EditorState.IDLE
        self.form: dict = _blank_form()
        self.errors: Dict[str, str] = {}
        self.list_id: Optional[uuid.UUID] = None
        self._mode = EditorState.IDLE

    def _reset(self) -> None:
        self.state = self._mode = EditorState.IDLE
        self.form = _blank_form()
        self.errors = {}
        self.list_id = None

    def open_create(self) -> None:
        self._reset()
        self.state = self._mode = EditorState.CREATING

    def open_edit(self, contact_list: ContactList) -> None:
        self._reset()
        self.list_id = contact_list.id
        self.form = {
            "name": contact_list.name,
            "description": contact_list.description or "",
            "type": contact_list.type,
            "is_active": contact_list.is_active,
        }
        self.state = self._mode = EditorState.EDITING

    def cancel(self) -> None:
        self._reset()

    async def save(self) -> Optional[ContactList]:
        """Submit the form. Returns the saved list, or None when the form stays open."""
        if self.state not in (EditorState.CREATING, EditorState.EDITING):
            raise RuntimeError(f"Cannot save from state {self.state.value}")

        self.state = EditorState.VALIDATING
        self.errors = {}
        try:
            if self._mode == EditorState.CREATING:
                contact_list = await self.service.create(self.owner_id, self.form)
                message = Messages.LIST_CREATED
            else:
                contact_list = await self.service.update(self.owner_id, self.list_id, self.form)
                message = Messages.LIST_UPDATED
        except ValidationError as exc:
            self.errors = exc.errors
            self.state = self._mode
            return None
        except OperationFailedError as exc:
            self.flash.error(exc.message)
            self.state = self._mode
            return None

        self.flash.success(message)
        self._reset()
        return contact_list

    def confirm_delete(self, list_id: uuid.UUID) -> None:
        self._reset()
        self.list_id = list_id
        self.state = self._mode = EditorState.CONFIRMING_DELETE

    async def delete(self) -> bool:
        if self.state != EditorState.CONFIRMING_DELETE:
            raise RuntimeError("Delete must be confirmed first")

        try:
            await self.service.delete(self.owner_id, self.list_id)
        except (NotFoundError, OperationFailedError) as exc:
            self.flash.error(exc.message)
            self._reset()
            return False

        self.flash.success(Messages.LIST_DELETED)
        self._reset()
        return True

    async def toggle_status(self, list_id: uuid.UUID) -> Optional[ContactList]:
        try:
            contact_list = await self.service.toggle_status(self.owner_id, list_id)
        except (NotFoundError, OperationFailedError) as exc:
            self.flash.error(exc.message)
            return None
        self.flash.success(Messages.STATUS_UPDATED)
        return contact_list


class BulkActionSession:
    """Selection of list ids plus the pending bulk action."""

    def __init__(self, service: ContactListService, owner_id: uuid.UUID, flash: Optional[FlashBag] = None):
        self.service = service
        self.owner_id = owner_id
        self.flash = flash or FlashBag()
        self.selected: List[uuid.UUID] = []
        self.action: Optional[str] = None
        self.confirming = False

    def toggle(self, list_id: uuid.UUID) -> None:
        if list_id in self.selected:
            self.selected.remove(list_id)
        else:
            self.selected.append(list_id)

    def select_all(self, list_ids: List[uuid.UUID]) -> None:
        self.selected = list(dict.fromkeys(list_ids))

    def clear(self) -> None:
        self.selected = []
        self.action = None
        self.confirming = False

    def choose(self, action: str) -> None:
        self.action = action
        self.confirming = False

    async def execute(self) -> Optional[int]:
        """
        Run the chosen action on the selection.

        A delete first moves to the confirmation step and returns None;
        call confirm() to carry it out.
        """
        if not self.selected:
            self.flash.error("Please select at least one list.")
            return None
        if self.action == "delete" and not self.confirming:
            self.confirming = True
            return None
        return await self._run(confirm=self.confirming)

    async def confirm(self) -> Optional[int]:
        if not self.confirming:
            raise RuntimeError("Nothing to confirm")
        return await self._run(confirm=True)

    def cancel(self) -> None:
        self.confirming = False

    async def _run(self, confirm: bool) -> Optional[int]:
        try:
            count, message = await self.service.bulk_action(
                self.owner_id, self.selected, self.action or "", confirm
            )
        except ValidationError as exc:
            self.flash.error(next(iter(exc.errors.values()), exc.message))
            self.confirming = False
            return None
        except OperationFailedError as exc:
            self.flash.error(exc.message)
            self.confirming = False
            return None

        self.flash.success(message)
        self.clear()
        return count
