from __future__ import annotations

import csv
import io
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from sqlalchemy import func, or_, select, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import async_sessionmaker

from ..db.models import NOTIFICATION_FIELDS, JournalEntry, SettingEntry, User

SORT_ORDERS = {
    "newest": (JournalEntry.created_at.desc(), JournalEntry.id.desc()),
    "oldest": (JournalEntry.created_at.asc(), JournalEntry.id.asc()),
    "title": (JournalEntry.title.asc(), JournalEntry.created_at.desc()),
    "updated": (JournalEntry.updated_at.desc(), JournalEntry.created_at.desc()),
}


class DuplicateEmail(Exception):
    """An account with this email already exists."""


class EntryNotFound(Exception):
    """No journal entry with the requested id."""


class EntryForbidden(Exception):
    """The journal entry belongs to another user."""


def _search_clause(search: str | None):
    term = (search or "").strip()
    if not term:
        return None
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    pattern = f"%{escaped}%"
    return or_(
        JournalEntry.title.ilike(pattern, escape="\\"),
        JournalEntry.content.ilike(pattern, escape="\\"),
    )


class StorageService:
    """Persist users and their journal entries."""

    def __init__(self, session_factory: async_sessionmaker) -> None:
        self._session_factory = session_factory

    async def healthcheck(self) -> None:
        async with self._session_factory() as session:
            await session.execute(text("SELECT 1"))

    # -- settings helpers ------------------------------------------------
    async def get_setting(self, key: str) -> str | None:
        async with self._session_factory() as session:
            result = await session.execute(
                select(SettingEntry).where(SettingEntry.key == key)
            )
            entry = result.scalar_one_or_none()
            return entry.value if entry else None

    # -- user management -------------------------------------------------
    async def create_user(self, *, name: str, email: str, password_hash: str) -> User:
        async with self._session_factory() as session:
            user = User(name=name, email=email.lower(), password_hash=password_hash)
            session.add(user)
            try:
                await session.commit()
            except IntegrityError as exc:
                await session.rollback()
                raise DuplicateEmail(email) from exc
            await session.refresh(user)
            return user

    async def get_user_by_id(self, user_id: int) -> User | None:
        async with self._session_factory() as session:
            return await session.get(User, user_id)

    async def get_user_by_email(self, email: str) -> User | None:
        async with self._session_factory() as session:
            return await session.scalar(select(User).where(User.email == email.lower()))

    async def update_profile(
        self,
        user_id: int,
        *,
        name: str | None = None,
        email: str | None = None,
    ) -> User | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            if email is not None and email.lower() != user.email:
                clash = await session.scalar(
                    select(User.id).where(User.email == email.lower(), User.id != user_id)
                )
                if clash is not None:
                    raise DuplicateEmail(email)
                user.email = email.lower()
            if name is not None:
                user.name = name
            await session.commit()
            await session.refresh(user)
            return user

    async def update_password(self, user_id: int, password_hash: str) -> None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return
            user.password_hash = password_hash
            await session.commit()

    async def get_notification_settings(self, user_id: int) -> dict[str, bool] | None:
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        return {field: bool(getattr(user, field)) for field in NOTIFICATION_FIELDS}

    async def update_notification_settings(
        self, user_id: int, changes: dict[str, bool]
    ) -> dict[str, bool] | None:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return None
            for field, value in changes.items():
                if field in NOTIFICATION_FIELDS and value is not None:
                    setattr(user, field, bool(value))
            await session.commit()
            await session.refresh(user)
            return {field: bool(getattr(user, field)) for field in NOTIFICATION_FIELDS}

    async def delete_user(self, user_id: int) -> bool:
        async with self._session_factory() as session:
            user = await session.get(User, user_id)
            if user is None:
                return False
            await session.delete(user)
            await session.commit()
            return True

    # -- journal entries -------------------------------------------------
    async def add_journal_entry(self, *, user_id: int, title: str, content: str) -> JournalEntry:
        async with self._session_factory() as session:
            entry = JournalEntry(user_id=user_id, title=title, content=content)
            session.add(entry)
            await session.commit()
            await session.refresh(entry)
            return entry

    async def get_owned_entry(self, entry_id: int, user_id: int) -> JournalEntry:
        async with self._session_factory() as session:
            entry = await session.get(JournalEntry, entry_id)
        if entry is None:
            raise EntryNotFound(entry_id)
        if entry.user_id != user_id:
            raise EntryForbidden(entry_id)
        return entry

    async def update_journal_entry(
        self,
        entry_id: int,
        user_id: int,
        *,
        title: str | None = None,
        content: str | None = None,
    ) -> JournalEntry:
        async with self._session_factory() as session:
            entry = await session.get(JournalEntry, entry_id)
            if entry is None:
                raise EntryNotFound(entry_id)
            if entry.user_id != user_id:
                raise EntryForbidden(entry_id)
            if title is not None:
                entry.title = title
            if content is not None:
                entry.content = content
            entry.updated_at = datetime.utcnow()
            await session.commit()
            await session.refresh(entry)
            return entry

    async def delete_journal_entry(self, entry_id: int, user_id: int) -> None:
        async with self._session_factory() as session:
            entry = await session.get(JournalEntry, entry_id)
            if entry is None:
                raise EntryNotFound(entry_id)
            if entry.user_id != user_id:
                raise EntryForbidden(entry_id)
            await session.delete(entry)
            await session.commit()

    async def list_entries(
        self,
        owner_id: int,
        *,
        start: datetime | None = None,
        end: datetime | None = None,
        newest_first: bool = True,
    ) -> Sequence[JournalEntry]:
        query = select(JournalEntry).where(JournalEntry.user_id == owner_id)
        if start is not None:
            query = query.where(JournalEntry.created_at >= start)
        if end is not None:
            query = query.where(JournalEntry.created_at < end)
        if newest_first:
            query = query.order_by(JournalEntry.created_at.desc(), JournalEntry.id.desc())
        else:
            query = query.order_by(JournalEntry.created_at.asc(), JournalEntry.id.asc())
        async with self._session_factory() as session:
            result = await session.execute(query)
            return list(result.scalars().all())

    async def count_entries(self, owner_id: int, *, search: str | None = None) -> int:
        query = select(func.count(JournalEntry.id)).where(JournalEntry.user_id == owner_id)
        clause = _search_clause(search)
        if clause is not None:
            query = query.where(clause)
        async with self._session_factory() as session:
            return int(await session.scalar(query) or 0)

    async def page_entries(
        self,
        owner_id: int,
        *,
        page: int = 1,
        limit: int = 10,
        search: str | None = None,
        sort: str = "newest",
    ) -> tuple[list[JournalEntry], int]:
        """One page of entries plus the number of entries matching ``search``."""

        query = select(JournalEntry).where(JournalEntry.user_id == owner_id)
        clause = _search_clause(search)
        if clause is not None:
            query = query.where(clause)
        query = (
            query.order_by(*SORT_ORDERS.get(sort, SORT_ORDERS["newest"]))
            .offset((page - 1) * limit)
            .limit(limit)
        )
        async with self._session_factory() as session:
            result = await session.execute(query)
            entries = list(result.scalars().all())
        total = await self.count_entries(owner_id, search=search)
        return entries, total

    # -- export ----------------------------------------------------------
    async def export_user_csv(self, user_id: int) -> bytes:
        entries = await self.list_entries(user_id, newest_first=True)

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(["title", "content", "created_at", "updated_at"])
        for entry in entries:
            writer.writerow(
                [
                    entry.title,
                    entry.content,
                    entry.created_at.isoformat(),
                    entry.updated_at.isoformat() if entry.updated_at else "",
                ]
            )
        return buffer.getvalue().encode("utf-8")

    async def export_user_json(self, user_id: int) -> dict[str, Any] | None:
        user = await self.get_user_by_id(user_id)
        if user is None:
            return None
        entries = await self.list_entries(user_id, newest_first=True)
        return {
            "profile": {
                "name": user.name,
                "email": user.email,
                "account_created": user.created_at.isoformat() if user.created_at else None,
            },
            "notification_settings": {
                field: bool(getattr(user, field)) for field in NOTIFICATION_FIELDS
            },
            "journal_entries": [
                {
                    "title": entry.title,
                    "content": entry.content,
                    "created_at": entry.created_at.isoformat(),
                    "updated_at": entry.updated_at.isoformat() if entry.updated_at else None,
                }
                for entry in entries
            ],
            "statistics": {
                "total_entries": len(entries),
                "oldest_entry": entries[-1].created_at.isoformat() if entries else None,
                "latest_entry": entries[0].created_at.isoformat() if entries else None,
            },
            "export_date": datetime.utcnow().isoformat(),
        }


__all__ = [
    "DuplicateEmail",
    "EntryForbidden",
    "EntryNotFound",
    "SORT_ORDERS",
    "StorageService",
]
