import dataclasses
import datetime

from django.conf import settings

from core.approval_store import store_errors
from core.models import Memoir


@dataclasses.dataclass(frozen=True, slots=True)
class MemoirSummary:
    id: int
    name: str
    email: str
    batch: int | None
    branch: str
    role_company: str
    message: str
    show_on_main_page: bool
    priority_seq: int | None
    date_approved: datetime.datetime | None
    created_at: datetime.datetime

    def as_dict(self) -> dict[str, object]:
        row = dataclasses.asdict(self)
        row["date_approved"] = self.date_approved.isoformat() if self.date_approved else None
        row["created_at"] = self.created_at.isoformat()
        return row


@dataclasses.dataclass(frozen=True, slots=True)
class MemoirPage:
    items: list[MemoirSummary]
    total: int
    page: int
    per_page: int


def _summary(memoir: Memoir) -> MemoirSummary:
    return MemoirSummary(
        id=memoir.pk,
        name=memoir.name,
        email=memoir.email,
        batch=memoir.batch,
        branch=memoir.branch,
        role_company=memoir.role_company,
        message=memoir.message,
        show_on_main_page=memoir.show_on_main_page,
        priority_seq=memoir.priority_seq,
        date_approved=memoir.date_approved,
        created_at=memoir.created_at,
    )


def list_memoirs(*, page: int = 1, per_page: int | None = None) -> MemoirPage:
    """Return one page of published memoirs, lowest ``priority_seq`` first.

    Ties are broken by most recent approval. Pages are 1-based; a page past
    the end is empty.
    """
    page = max(1, page)
    per_page = settings.MEMOIRS_PER_PAGE if per_page is None else max(1, per_page)
    offset = (page - 1) * per_page

    with store_errors("list_memoirs"):
        published = Memoir.objects.published()
        total = published.count()
        rows = list(published.in_display_order()[offset : offset + per_page])

    return MemoirPage(items=[_summary(row) for row in rows], total=total, page=page, per_page=per_page)
