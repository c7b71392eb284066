# magpie/auth/permissions.py
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class Operation(str, Enum):
    VIEW = "view"
    EDIT = "edit"
    LOAN = "loan"
    SHARE = "share"
    REMOVE = "remove"


# Operations only the owner may perform, whatever the stored permissions say
OWNER_ONLY_OPERATIONS = frozenset({Operation.SHARE, Operation.REMOVE})

_FLAG_FOR_OPERATION = {
    Operation.VIEW: "can_view",
    Operation.EDIT: "can_edit",
    Operation.LOAN: "can_loan",
    Operation.SHARE: "can_share",
    Operation.REMOVE: "can_remove",
}


class BookPermissions(BaseModel):
    """The closed set of capabilities a book grants to its shared-with set."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    can_view: bool = False
    can_edit: bool = False
    can_loan: bool = False
    can_share: bool = False
    can_remove: bool = False

    def allows(self, operation: Operation) -> bool:
        return getattr(self, _FLAG_FOR_OPERATION[Operation(operation)])

    @classmethod
    def from_book(cls, book) -> "BookPermissions":
        """Read the stored permission columns of a Book row."""
        return cls(
            can_view=book.can_view,
            can_edit=book.can_edit,
            can_loan=book.can_loan,
            can_share=book.can_share,
            can_remove=book.can_remove,
        )

    def apply_to(self, book) -> None:
        """Write these flags onto the permission columns of a Book row."""
        for flag in _FLAG_FOR_OPERATION.values():
            setattr(book, flag, getattr(self, flag))

    def merged(self, overrides: Optional["PermissionsUpdate"]) -> "BookPermissions":
        if overrides is None:
            return self
        return self.model_copy(update=overrides.model_dump(exclude_none=True))


class PermissionsUpdate(BaseModel):
    """A partial permission set, as sent in share requests."""

    model_config = ConfigDict(
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    can_view: Optional[bool] = None
    can_edit: Optional[bool] = None
    can_loan: Optional[bool] = None
    can_share: Optional[bool] = None
    can_remove: Optional[bool] = None


FULL_PERMISSIONS = BookPermissions(
    can_view=True, can_edit=True, can_loan=True, can_share=True, can_remove=True
)
DEFAULT_SHARED_PERMISSIONS = BookPermissions(can_view=True)
NO_PERMISSIONS = BookPermissions()
